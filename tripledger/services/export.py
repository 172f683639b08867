"""Flat expense rows for spreadsheet export.

Only the row values are produced here, in a fixed column order; quoting and
writing the CSV text is left to the caller.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Iterable, Iterator, List

from tripledger.models import Expense, Trip

CSV_COLUMNS = (
    "id",
    "tripId",
    "tripName",
    "dateTime",
    "category",
    "payment",
    "amountOriginal",
    "currency",
    "fxRateToBase",
    "amountBase",
    "baseCurrency",
    "note",
    "paidBy",
    "location",
    "tags",
    "createdAt",
    "updatedAt",
)

TAG_SEPARATOR = ";"


def _blank(value: Any) -> Any:
    return "" if value is None else value


def export_row(trip: Trip, expense: Expense) -> List[Any]:
    return [
        expense.id,
        expense.trip_id,
        trip.name,
        expense.date_time,
        expense.category,
        expense.payment,
        expense.amount_original,
        expense.currency,
        expense.fx_rate_to_base,
        expense.amount_base,
        trip.base_currency,
        expense.note or "",
        expense.paid_by or "",
        expense.location or "",
        TAG_SEPARATOR.join(expense.tags),
        _blank(expense.created_at),
        _blank(expense.updated_at),
    ]


def export_rows(trip: Trip, expenses: Iterable[Expense]) -> Iterator[List[Any]]:
    for expense in expenses:
        yield export_row(trip, expense)


def sanitize_name(name: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9_-]+", "_", name).strip("_")[:80]
    return cleaned or "trip"


def export_filename(trip: Trip, today: date) -> str:
    return f"travel_expenses_{sanitize_name(trip.name)}_{today.isoformat()}.csv"
