"""Validated writes and reads for trips, expenses and settings.

Every write runs inside one atomic unit so the checks it relies on (trip
exists, trip has no expenses, settings lists) are read in the same unit that
writes. Validation failures are raised before anything is written.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from tripledger.core.errors import NotFound, ValidationFailed
from tripledger.db.schema import EXPENSES, SETTINGS, TRIPS
from tripledger.db.store import RecordStore, read_settings
from tripledger.db.transaction import READWRITE
from tripledger.models import (
    DEFAULT_CATEGORIES,
    DEFAULT_PAYMENT_METHODS,
    Expense,
    ExpenseIn,
    Trip,
    TripIn,
)
from tripledger.models.base import new_id, utc_now_iso
from tripledger.services.aggregation import (
    ExpenseFilter,
    TripSummary,
    sort_expenses,
    summarize,
)
from tripledger.services.money import convert, resolve_fx_rate

logger = logging.getLogger("tripledger.ledger")


# ---------------- Trips -----------------
def list_trips(store: RecordStore) -> List[Trip]:
    return [Trip.model_validate(r) for r in store.list_trips()]


def get_trip(store: RecordStore, trip_id: str) -> Trip:
    row = store.get(TRIPS, trip_id)
    if row is None:
        raise NotFound("trip", trip_id)
    return Trip.model_validate(row)


def save_trip(
    store: RecordStore,
    payload: TripIn,
    trip_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Trip:
    """Create a trip, or update one in place keeping its id and ``createdAt``.

    The base currency is locked once the trip has at least one expense.
    """
    stamp = utc_now_iso(now)
    with store.transaction([TRIPS, EXPENSES], READWRITE) as tx:
        if trip_id is None:
            trip = Trip.from_input(new_id("trip"), payload, stamp, stamp)
        else:
            existing = tx.get(TRIPS, trip_id)
            if existing is None:
                raise NotFound("trip", trip_id)
            if existing.get("baseCurrency") != payload.base_currency:
                if tx.count_by_index(EXPENSES, "tripId", trip_id) > 0:
                    raise ValidationFailed(
                        "base currency cannot be changed once expenses exist for this trip"
                    )
            created = existing.get("createdAt") or stamp
            trip = Trip.from_input(trip_id, payload, created, stamp)
        tx.put(TRIPS, trip.to_record())
    logger.info(
        "trip %s", "updated" if trip_id else "created", extra={"trip_id": trip.id}
    )
    return trip


def delete_trip(store: RecordStore, trip_id: str) -> int:
    """Delete a trip together with its expenses; returns expenses removed."""
    if store.get(TRIPS, trip_id) is None:
        raise NotFound("trip", trip_id)
    return store.delete_trip_cascade(trip_id)


# ---------------- Expenses -----------------
def get_expense(store: RecordStore, expense_id: str) -> Expense:
    row = store.get(EXPENSES, expense_id)
    if row is None:
        raise NotFound("expense", expense_id)
    return Expense.model_validate(row)


def list_trip_expenses(store: RecordStore, trip_id: str) -> List[Expense]:
    """Expenses of one trip, newest first."""
    return sort_expenses(Expense.model_validate(r) for r in store.list_expenses(trip_id))


def _default_date_time(now: Optional[datetime]) -> str:
    return (now or datetime.now()).strftime("%Y-%m-%dT%H:%M")


def save_expense(
    store: RecordStore,
    payload: ExpenseIn,
    expense_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Expense:
    """Create or edit an expense.

    ``amountBase`` is recomputed here on every write from the original amount
    and the resolved rate, using the owning trip's base currency.
    """
    stamp = utc_now_iso(now)
    with store.transaction([TRIPS, EXPENSES, SETTINGS], READWRITE) as tx:
        trip_row = tx.get(TRIPS, payload.trip_id)
        if trip_row is None:
            raise NotFound("trip", payload.trip_id)
        trip = Trip.model_validate(trip_row)
        if payload.currency not in trip.currencies:
            raise ValidationFailed(
                f"currency {payload.currency} is not configured for trip '{trip.name}'"
            )
        lists = read_settings(tx)
        if payload.category not in lists["categories"]:
            raise ValidationFailed(f"unknown category '{payload.category}'")
        if payload.payment not in lists["paymentMethods"]:
            raise ValidationFailed(f"unknown payment method '{payload.payment}'")

        rate = resolve_fx_rate(payload.currency, trip.base_currency, payload.fx_rate_to_base)
        amount_base = convert(
            payload.amount_original, rate, trip.base_currency, currency=payload.currency
        )

        created = stamp
        if expense_id is None:
            expense_id = new_id("exp")
        else:
            existing = tx.get(EXPENSES, expense_id)
            if existing is None:
                raise NotFound("expense", expense_id)
            created = existing.get("createdAt") or stamp

        expense = Expense(
            id=expense_id,
            trip_id=trip.id,
            date_time=payload.date_time or _default_date_time(now),
            amount_original=payload.amount_original,
            currency=payload.currency,
            fx_rate_to_base=rate,
            amount_base=amount_base,
            category=payload.category,
            payment=payload.payment,
            note=payload.note,
            location=payload.location,
            paid_by=payload.paid_by,
            tags=payload.tags,
            created_at=created,
            updated_at=stamp,
        )
        tx.put(EXPENSES, expense.to_record())
    return expense


def delete_expense(store: RecordStore, expense_id: str) -> None:
    if not store.delete(EXPENSES, expense_id):
        raise NotFound("expense", expense_id)


# ---------------- Settings -----------------
def _clean_list(values: Iterable[str]) -> List[str]:
    return [v.strip() for v in values if isinstance(v, str) and v.strip()]


def update_settings(
    store: RecordStore, categories: Iterable[str], payment_methods: Iterable[str]
) -> dict:
    """Replace both lists; an empty list (after trimming) rejects the whole update."""
    cats = _clean_list(categories)
    pays = _clean_list(payment_methods)
    if not cats or not pays:
        raise ValidationFailed("categories and payment methods must not be empty")
    store.save_settings(cats, pays)
    return {"categories": cats, "paymentMethods": pays}


def reset_settings(store: RecordStore) -> dict:
    return update_settings(store, DEFAULT_CATEGORIES, DEFAULT_PAYMENT_METHODS)


# ---------------- Dashboard -----------------
def trip_summary(
    store: RecordStore,
    trip_id: str,
    flt: Optional[ExpenseFilter],
    now: datetime,
) -> TripSummary:
    """Load one snapshot of a trip and its expenses, then aggregate it."""
    with store.transaction([TRIPS, EXPENSES]) as tx:
        trip_row = tx.get(TRIPS, trip_id)
        if trip_row is None:
            raise NotFound("trip", trip_id)
        rows = tx.query_by_index(EXPENSES, "tripId", trip_id)
    trip = Trip.model_validate(trip_row)
    expenses = [Expense.model_validate(r) for r in rows]
    return summarize(trip, expenses, flt, now)
