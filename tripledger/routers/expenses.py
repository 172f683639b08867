from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from tripledger.db.store import RecordStore
from tripledger.models import Expense, ExpenseIn
from tripledger.services import ledger
from tripledger.services.aggregation import ExpenseFilter, filter_expenses, last_fx_rate

from .deps import get_store

router = APIRouter(tags=["expenses"])


@router.get(
    "/trips/{trip_id}/expenses",
    response_model=list[Expense],
    summary="List a trip's expenses, newest first",
)
async def list_expenses(
    trip_id: str,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    category: Optional[str] = Query(None, description="Exact category or 'All'"),
    payment: Optional[str] = Query(None, description="Exact payment method or 'All'"),
    search: str = Query("", description="Matches note, location and tags"),
    store: RecordStore = Depends(get_store),
):
    ledger.get_trip(store, trip_id)
    flt = ExpenseFilter(start_date, end_date, category, payment, search)
    return filter_expenses(ledger.list_trip_expenses(store, trip_id), flt)


@router.get(
    "/trips/{trip_id}/last-fx-rate",
    summary="Most recent FX rate used for a currency on this trip",
)
async def get_last_fx_rate(
    trip_id: str,
    currency: str = Query(..., min_length=3),
    store: RecordStore = Depends(get_store),
):
    ledger.get_trip(store, trip_id)
    expenses = ledger.list_trip_expenses(store, trip_id)
    code = currency.upper()
    return {"currency": code, "fxRateToBase": last_fx_rate(expenses, code)}


@router.post(
    "/expenses",
    response_model=Expense,
    status_code=status.HTTP_201_CREATED,
    summary="Add expense",
)
async def create_expense(payload: ExpenseIn, store: RecordStore = Depends(get_store)):
    return ledger.save_expense(store, payload)


@router.get("/expenses/{expense_id}", response_model=Expense, summary="Get expense")
async def get_expense(expense_id: str, store: RecordStore = Depends(get_store)):
    return ledger.get_expense(store, expense_id)


@router.put("/expenses/{expense_id}", response_model=Expense, summary="Edit expense")
async def update_expense(
    expense_id: str, payload: ExpenseIn, store: RecordStore = Depends(get_store)
):
    return ledger.save_expense(store, payload, expense_id=expense_id)


@router.delete(
    "/expenses/{expense_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete expense",
)
async def delete_expense(expense_id: str, store: RecordStore = Depends(get_store)):
    ledger.delete_expense(store, expense_id)
