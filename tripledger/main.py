import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings, Settings
from .core.logging import init_logging, request_context_middleware
from .core import errors
from .db.bootstrap import bootstrap
from .db.store import RecordStore
from .routers import analytics, backup, expenses, settings as settings_router, trips


def create_app(settings_override: Settings | None = None) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment (e.g., temp DB). Falls back to cached get_settings().
    """
    settings = settings_override or get_settings()
    if settings.db_path is None:
        settings.init_post_load()
    init_logging(debug=settings.debug)

    store = RecordStore(settings.db_path, busy_timeout=settings.db_busy_timeout_seconds)
    # Schema + default seeds are idempotent; run on every startup
    try:
        bootstrap(store)
    except Exception:
        logging.getLogger("tripledger").exception("failed to bootstrap store on startup")
        raise

    app = FastAPI(
        title=settings.app_name, debug=settings.debug, version=settings.version
    )
    app.state.store = store

    app.middleware("http")(request_context_middleware)

    app.add_exception_handler(StarletteHTTPException, errors.http_error_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(errors.ValidationFailed, errors.domain_validation_handler)
    app.add_exception_handler(errors.NotFound, errors.not_found_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    app.include_router(trips.router)
    app.include_router(expenses.router)
    app.include_router(analytics.router)
    app.include_router(settings_router.router)
    app.include_router(backup.router)

    @app.get("/")
    async def root():
        return {
            "message": "Trip Ledger API",
            "version": settings.version,
            "schemaVersion": store.get_schema_version(),
        }

    return app


def run() -> None:
    """Console entry point: serve the app factory with uvicorn."""
    import uvicorn

    uvicorn.run("tripledger.main:create_app", factory=True, host="127.0.0.1", port=8000)
