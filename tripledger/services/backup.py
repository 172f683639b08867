"""Backup export and restore.

Restore is a full overwrite: the payload is checked first, then every record
kind is replaced inside a single unit (see ``RecordStore.restore``). Records
are stored exactly as supplied once they validate as trips and expenses.
Reading and JSON-decoding the backup file is the caller's job.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ValidationError

from tripledger.core.errors import SnapshotShapeError
from tripledger.db.schema import ALL_KINDS, EXPENSES, TRIPS
from tripledger.db.store import RecordStore, read_schema_version, read_settings
from tripledger.models import (
    DEFAULT_CATEGORIES,
    DEFAULT_PAYMENT_METHODS,
    SCHEMA_VERSION,
    Expense,
    Snapshot,
    SnapshotConfig,
    Trip,
)
from tripledger.models.base import utc_now_iso

logger = logging.getLogger("tripledger.backup")

RECORD_MODELS = {
    "trips": Trip,
    "expenses": Expense,
}
# Key path and indexed attributes the store needs, which must be non-empty.
REQUIRED_RECORD_KEYS = {
    "trips": ("id",),
    "expenses": ("id", "tripId", "dateTime"),
}


def _config_list(config: Mapping[str, Any], key: str, defaults) -> list:
    value = config.get(key)
    if not isinstance(value, list) or not value:
        return list(defaults)
    if not all(isinstance(v, str) for v in value):
        raise SnapshotShapeError(f"config.{key} must be a list of strings")
    return list(value)


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    where = ".".join(str(p) for p in err.get("loc", ())) or "record"
    return f"{where}: {err.get('msg')}"


def _check_records(section: str, records: Any, model: type[BaseModel]) -> list:
    if not isinstance(records, list):
        raise SnapshotShapeError("backup must contain trips and expenses arrays")
    for i, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise SnapshotShapeError(f"{section}[{i}] is not an object")
        missing = [k for k in REQUIRED_RECORD_KEYS[section] if record.get(k) in (None, "")]
        if missing:
            raise SnapshotShapeError(f"{section}[{i}] is missing {', '.join(missing)}")
        try:
            model.model_validate(dict(record))
        except ValidationError as exc:
            raise SnapshotShapeError(
                f"{section}[{i}] is not a valid record ({_first_error(exc)})"
            ) from None
    return [dict(r) for r in records]


def validate_snapshot(payload: Any) -> Snapshot:
    """Check the payload; nothing touches the store here.

    Every expense must belong to a trip in the same payload.
    """
    if not isinstance(payload, Mapping):
        raise SnapshotShapeError("backup must be a JSON object")
    records = {
        section: _check_records(section, payload.get(section), model)
        for section, model in RECORD_MODELS.items()
    }
    trip_ids = {str(t["id"]) for t in records["trips"]}
    for i, expense in enumerate(records["expenses"]):
        if str(expense["tripId"]) not in trip_ids:
            raise SnapshotShapeError(
                f"expenses[{i}] references unknown trip '{expense['tripId']}'"
            )
    config = payload.get("config")
    if not isinstance(config, Mapping):
        config = {}
    try:
        return Snapshot(
            schema_version=str(payload.get("schemaVersion") or SCHEMA_VERSION),
            exported_at=payload.get("exportedAt"),
            trips=records["trips"],
            expenses=records["expenses"],
            config=SnapshotConfig(
                categories=_config_list(config, "categories", DEFAULT_CATEGORIES),
                payment_methods=_config_list(
                    config, "paymentMethods", DEFAULT_PAYMENT_METHODS
                ),
            ),
        )
    except ValidationError as exc:
        raise SnapshotShapeError(f"invalid backup ({_first_error(exc)})") from None


def snapshot_summary(snapshot: Snapshot) -> Dict[str, Any]:
    """Counts shown to the user before confirming a restore."""
    return {
        "trips": len(snapshot.trips),
        "expenses": len(snapshot.expenses),
        "schemaVersion": snapshot.schema_version,
    }


def restore_snapshot(store: RecordStore, payload: Any) -> Snapshot:
    snapshot = validate_snapshot(payload)
    store.restore(
        schema_version=snapshot.schema_version,
        categories=snapshot.config.categories,
        payment_methods=snapshot.config.payment_methods,
        trips=snapshot.trips,
        expenses=snapshot.expenses,
    )
    return snapshot


def export_snapshot(store: RecordStore, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Full backup payload read in one unit, in the wire format."""
    with store.transaction(ALL_KINDS) as tx:
        schema_version = read_schema_version(tx)
        settings = read_settings(tx)
        trips = tx.get_all(TRIPS)
        expenses = tx.get_all(EXPENSES)
    snapshot = Snapshot(
        schema_version=schema_version,
        exported_at=utc_now_iso(now),
        trips=trips,
        expenses=expenses,
        config=SnapshotConfig(
            categories=settings["categories"],
            payment_methods=settings["paymentMethods"],
        ),
    )
    logger.info("snapshot exported: %d trips, %d expenses", len(trips), len(expenses))
    return snapshot.to_record()
