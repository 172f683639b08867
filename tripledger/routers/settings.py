from fastapi import APIRouter, Depends

from tripledger.db.store import RecordStore
from tripledger.models import SettingsLists
from tripledger.services import ledger

from .deps import get_store

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", summary="Category and payment method lists")
async def get_settings(store: RecordStore = Depends(get_store)):
    return store.get_settings()


@router.put("", summary="Replace both lists (neither may be empty)")
async def update_settings(
    payload: SettingsLists, store: RecordStore = Depends(get_store)
):
    return ledger.update_settings(store, payload.categories, payload.payment_methods)


@router.post("/reset", summary="Restore default lists")
async def reset_settings(store: RecordStore = Depends(get_store)):
    return ledger.reset_settings(store)
