"""Error taxonomy for the ledger core and the HTTP handlers that render it.

Storage failures (``sqlite3.Error``) are not wrapped here: they propagate
unchanged from the store and end up in ``server_error_handler``.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette import status
import logging
import math

logger = logging.getLogger("tripledger.errors")


class LedgerError(Exception):
    """Base class for errors raised by the ledger core."""


class ValidationFailed(LedgerError, ValueError):
    """Input rejected before any store mutation."""


class SnapshotShapeError(ValidationFailed):
    """Restore payload is missing required arrays or record keys."""


class NotFound(LedgerError, LookupError):
    def __init__(self, kind: str, key: str):
        super().__init__(f"{kind} '{key}' not found")
        self.kind = kind
        self.key = key


class TransactionScopeError(LedgerError):
    """A unit touched a record kind it did not declare."""


class ReadOnlyTransactionError(LedgerError):
    """A write was attempted inside a read-only unit."""


def not_found_handler(request: Request, exc):  # type: ignore
    if isinstance(exc, NotFound):
        detail = str(exc)
    else:
        detail = getattr(exc, "detail", None) or f"No route for {request.method} {request.url.path}"
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={
            "error": "not_found",
            "detail": detail,
        },
    )


def http_error_handler(request: Request, exc):  # type: ignore
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return not_found_handler(request, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "http_error", "detail": exc.detail},
    )


def domain_validation_handler(request: Request, exc: ValidationFailed):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "validation_error",
            "detail": str(exc),
        },
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "detail": jsonable_errors(exc.errors()),
        },
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )


def _json_safe(value):
    # responses are rendered with allow_nan=False
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def jsonable_errors(errors) -> list:
    # pydantic v2 puts the raw exception object under ctx["error"]
    cleaned = []
    for err in errors:
        item = dict(err)
        if "input" in item:
            item["input"] = _json_safe(item["input"])
        ctx = item.get("ctx")
        if ctx:
            item["ctx"] = {k: str(v) for k, v in ctx.items()}
        cleaned.append(item)
    return cleaned
