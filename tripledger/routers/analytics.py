from __future__ import annotations

from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from pydantic.alias_generators import to_camel

from tripledger.db.store import RecordStore
from tripledger.services import ledger
from tripledger.services.aggregation import ExpenseFilter
from tripledger.services.export import CSV_COLUMNS, export_filename, export_rows

from .deps import get_store

router = APIRouter(prefix="/trips", tags=["analytics"])


def _camel(value: Any) -> Any:
    if is_dataclass(value):
        value = asdict(value)
    if isinstance(value, dict):
        return {to_camel(k): _camel(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_camel(v) for v in value]
    return value


@router.get("/{trip_id}/summary", summary="Totals, breakdowns and budget burn rate")
async def trip_summary(
    trip_id: str,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    category: Optional[str] = Query(None),
    payment: Optional[str] = Query(None),
    search: str = Query(""),
    now: Optional[datetime] = Query(
        None, description="Reference time for burn rate (defaults to server time)"
    ),
    store: RecordStore = Depends(get_store),
):
    flt = ExpenseFilter(start_date, end_date, category, payment, search)
    summary = ledger.trip_summary(store, trip_id, flt, now or datetime.now())
    return jsonable_encoder(_camel(summary))


@router.get("/{trip_id}/export/rows", summary="Expense rows in CSV column order")
async def trip_export_rows(trip_id: str, store: RecordStore = Depends(get_store)):
    trip = ledger.get_trip(store, trip_id)
    expenses = ledger.list_trip_expenses(store, trip_id)
    return {
        "filename": export_filename(trip, date.today()),
        "columns": list(CSV_COLUMNS),
        "rows": jsonable_encoder(list(export_rows(trip, expenses))),
    }
