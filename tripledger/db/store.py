"""Record store over SQLite.

Responsibilities
----------------
- Key-addressed containers for the four record kinds (meta, settings, trips,
  expenses) with the expense indexes by trip and by trip + dateTime.
- Single-call CRUD helpers, each running as its own atomic unit.
- Composite operations that must never be partially applied: cascading trip
  delete, full restore from a snapshot, and clear-all.

Records are plain dicts in the snapshot wire format (camelCase keys). Validation
belongs to the service layer; the store only requires key paths and indexed
attributes to be present.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, TypeVar

from tripledger.models.constants import (
    DEFAULT_CATEGORIES,
    DEFAULT_PAYMENT_METHODS,
    SCHEMA_VERSION,
    SCHEMA_VERSION_KEY,
)

from .schema import ALL_KINDS, EXPENSES, META, SETTINGS, TRIPS, init_db
from .transaction import READONLY, READWRITE, Transaction, atomic

logger = logging.getLogger("tripledger.db")

T = TypeVar("T")


class RecordStore:
    def __init__(self, db_path: Path, busy_timeout: float = 5.0):
        self.db_path = Path(db_path)
        self.busy_timeout = busy_timeout

    # ------------------------------------------------------------------
    # Connection / unit helpers
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path, timeout=self.busy_timeout, isolation_level=None
        )
        conn.row_factory = sqlite3.Row
        return conn

    def init_schema(self) -> None:
        init_db(self.db_path)

    @contextmanager
    def transaction(
        self, kinds: Iterable[str], mode: str = READONLY
    ) -> Iterator[Transaction]:
        with atomic(self._connect, kinds, mode) as tx:
            yield tx

    def run(
        self, kinds: Iterable[str], mode: str, handler: Callable[[Transaction], T]
    ) -> T:
        """Run ``handler`` inside one unit and return its result."""
        with self.transaction(kinds, mode) as tx:
            return handler(tx)

    # ------------------------------------------------------------------
    # Single-unit CRUD
    def get(self, kind: str, key: str) -> Optional[Dict[str, Any]]:
        with self.transaction([kind]) as tx:
            return tx.get(kind, key)

    def get_all(self, kind: str) -> List[Dict[str, Any]]:
        with self.transaction([kind]) as tx:
            return tx.get_all(kind)

    def put(self, kind: str, record: Dict[str, Any]) -> str:
        with self.transaction([kind], READWRITE) as tx:
            return tx.put(kind, record)

    def delete(self, kind: str, key: str) -> bool:
        with self.transaction([kind], READWRITE) as tx:
            return tx.delete(kind, key)

    def query_by_index(
        self,
        kind: str,
        index: str,
        key: Any,
        lower: Optional[str] = None,
        upper: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        with self.transaction([kind]) as tx:
            return tx.query_by_index(kind, index, key, lower=lower, upper=upper)

    def count_by_index(self, kind: str, index: str, key: Any) -> int:
        with self.transaction([kind]) as tx:
            return tx.count_by_index(kind, index, key)

    # ------------------------------------------------------------------
    # Convenience reads
    def get_schema_version(self) -> str:
        with self.transaction([META]) as tx:
            return read_schema_version(tx)

    def get_settings(self) -> Dict[str, List[str]]:
        """Return both configurable lists, falling back to defaults per list."""
        with self.transaction([SETTINGS]) as tx:
            return read_settings(tx)

    def list_trips(self) -> List[Dict[str, Any]]:
        return self.get_all(TRIPS)

    def list_expenses(self, trip_id: str) -> List[Dict[str, Any]]:
        return self.query_by_index(EXPENSES, "tripId", trip_id)

    # ------------------------------------------------------------------
    # Composite operations
    def delete_trip_cascade(self, trip_id: str) -> int:
        """Delete a trip and all of its expenses in one unit.

        Returns the number of expenses removed.
        """
        with self.transaction([TRIPS, EXPENSES], READWRITE) as tx:
            tx.delete(TRIPS, trip_id)
            removed = tx.delete_by_index(EXPENSES, "tripId", trip_id)
        logger.info(
            "trip deleted with cascade",
            extra={"trip_id": trip_id, "count": removed},
        )
        return removed

    def save_settings(self, categories: List[str], payment_methods: List[str]) -> None:
        with self.transaction([SETTINGS], READWRITE) as tx:
            _write_settings(tx, categories, payment_methods)

    def restore(
        self,
        schema_version: str,
        categories: List[str],
        payment_methods: List[str],
        trips: Iterable[Mapping[str, Any]],
        expenses: Iterable[Mapping[str, Any]],
    ) -> None:
        """Replace every record kind with the given snapshot contents."""
        trip_count = expense_count = 0
        with self.transaction(ALL_KINDS, READWRITE) as tx:
            for kind in ALL_KINDS:
                tx.clear(kind)
            tx.put(META, {"key": SCHEMA_VERSION_KEY, "value": schema_version})
            _write_settings(tx, categories, payment_methods)
            for trip in trips:
                tx.put(TRIPS, dict(trip))
                trip_count += 1
            for expense in expenses:
                tx.put(EXPENSES, dict(expense))
                expense_count += 1
        logger.info(
            "store restored from snapshot: %d trips, %d expenses",
            trip_count,
            expense_count,
        )

    def clear_all(self) -> None:
        """Wipe all data and reseed the default schema marker and settings."""
        with self.transaction(ALL_KINDS, READWRITE) as tx:
            for kind in ALL_KINDS:
                tx.clear(kind)
            tx.put(META, {"key": SCHEMA_VERSION_KEY, "value": SCHEMA_VERSION})
            _write_settings(tx, list(DEFAULT_CATEGORIES), list(DEFAULT_PAYMENT_METHODS))
        logger.info("all data cleared")


def read_schema_version(tx: Transaction) -> str:
    row = tx.get(META, SCHEMA_VERSION_KEY)
    return row["value"] if row else SCHEMA_VERSION


def read_settings(tx: Transaction) -> Dict[str, List[str]]:
    categories = tx.get(SETTINGS, "categories")
    payments = tx.get(SETTINGS, "paymentMethods")
    return {
        "categories": (categories or {}).get("value") or list(DEFAULT_CATEGORIES),
        "paymentMethods": (payments or {}).get("value") or list(DEFAULT_PAYMENT_METHODS),
    }


def _write_settings(
    tx: Transaction, categories: List[str], payment_methods: List[str]
) -> None:
    tx.put(SETTINGS, {"key": "categories", "value": list(categories)})
    tx.put(SETTINGS, {"key": "paymentMethods", "value": list(payment_methods)})


__all__ = ["RecordStore", "READONLY", "READWRITE", "read_schema_version", "read_settings"]
