from __future__ import annotations

from fastapi import APIRouter, Depends, status

from tripledger.db.store import RecordStore
from tripledger.models import Trip, TripIn
from tripledger.services import ledger

from .deps import get_store

router = APIRouter(prefix="/trips", tags=["trips"])


@router.get("", response_model=list[Trip], summary="List trips")
async def list_trips(store: RecordStore = Depends(get_store)):
    return ledger.list_trips(store)


@router.post(
    "",
    response_model=Trip,
    status_code=status.HTTP_201_CREATED,
    summary="Create trip",
)
async def create_trip(payload: TripIn, store: RecordStore = Depends(get_store)):
    return ledger.save_trip(store, payload)


@router.get("/{trip_id}", response_model=Trip, summary="Get trip details")
async def get_trip(trip_id: str, store: RecordStore = Depends(get_store)):
    return ledger.get_trip(store, trip_id)


@router.put(
    "/{trip_id}",
    response_model=Trip,
    summary="Update trip (base currency locked once expenses exist)",
)
async def update_trip(
    trip_id: str, payload: TripIn, store: RecordStore = Depends(get_store)
):
    return ledger.save_trip(store, payload, trip_id=trip_id)


@router.delete("/{trip_id}", summary="Delete trip and all of its expenses")
async def delete_trip(trip_id: str, store: RecordStore = Depends(get_store)):
    removed = ledger.delete_trip(store, trip_id)
    return {"deleted": trip_id, "expensesRemoved": removed}
