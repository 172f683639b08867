from typing import Any

from fastapi import APIRouter, Body, Depends

from tripledger.db.store import RecordStore
from tripledger.services import backup

from .deps import get_store

router = APIRouter(prefix="/backup", tags=["backup"])


@router.get("", summary="Export full backup payload")
async def export_backup(store: RecordStore = Depends(get_store)):
    return backup.export_snapshot(store)


@router.post("/preview", summary="Validate a backup and summarize its contents")
async def preview_restore(payload: Any = Body(...)):
    return backup.snapshot_summary(backup.validate_snapshot(payload))


@router.post("/restore", summary="Overwrite all data with a backup payload")
async def restore_backup(
    payload: Any = Body(...), store: RecordStore = Depends(get_store)
):
    snapshot = backup.restore_snapshot(store, payload)
    return {"restored": True, **backup.snapshot_summary(snapshot)}


@router.post("/clear", summary="Delete all data and reseed defaults")
async def clear_all(store: RecordStore = Depends(get_store)):
    store.clear_all()
    return {"cleared": True}
