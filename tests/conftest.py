"""Shared fixtures: a bootstrapped store in a temp dir and an API client."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from tripledger.core.config import Settings
from tripledger.db.bootstrap import bootstrap
from tripledger.db.store import RecordStore
from tripledger.main import create_app
from tripledger.models import ExpenseIn, TripIn
from tripledger.services import ledger


@pytest.fixture
def store(tmp_path):
    s = RecordStore(tmp_path / "ledger.sqlite3")
    bootstrap(s)
    return s


@pytest.fixture
def jpy_trip(store):
    """Tokyo trip in JPY with a 100000 budget."""
    return ledger.save_trip(
        store,
        TripIn(
            name="Tokyo",
            start_date=date(2025, 4, 1),
            end_date=date(2025, 4, 10),
            base_currency="JPY",
            currencies=["USD", "HKD"],
            budget_enabled=True,
            budget_amount_base=100000,
        ),
    )


@pytest.fixture
def add_expense(store):
    def _add(trip, **overrides):
        data = {
            "trip_id": trip.id,
            "date_time": "2025-04-02T12:00",
            "amount_original": 1000,
            "currency": trip.base_currency,
            "category": "Food & drinks",
            "payment": "Cash",
        }
        data.update(overrides)
        return ledger.save_expense(store, ExpenseIn(**data))

    return _add


@pytest.fixture
def client(tmp_path):
    settings = Settings(db_path=tmp_path / "api.sqlite3", debug=False)
    app = create_app(settings_override=settings)
    with TestClient(app) as c:
        yield c
