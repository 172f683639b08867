"""Database schema DDL definitions and initialization utilities.

Tables (one per record kind):
  - meta: schema version marker, keyed by ``key``
  - settings: configurable lists (categories, paymentMethods), keyed by ``key``
  - trips: trip records, keyed by ``id``
  - expenses: expense records, keyed by ``id``; ``trip_id`` and ``date_time``
    are copied out of the JSON body so they can be indexed

Every row stores the full record as JSON in ``body``.
"""

from __future__ import annotations
import sqlite3
from pathlib import Path
from typing import Dict, Mapping, Sequence, Tuple

META = "meta"
SETTINGS = "settings"
TRIPS = "trips"
EXPENSES = "expenses"

ALL_KINDS: Tuple[str, ...] = (META, SETTINGS, TRIPS, EXPENSES)

# Record attribute used as primary key, per kind.
KEY_PATHS: Mapping[str, str] = {
    META: "key",
    SETTINGS: "key",
    TRIPS: "id",
    EXPENSES: "id",
}

# Index name -> record attributes, mirrored into indexed columns.
INDEXES: Mapping[str, Mapping[str, Tuple[str, ...]]] = {
    EXPENSES: {
        "tripId": ("tripId",),
        "tripId_dateTime": ("tripId", "dateTime"),
    },
}

# Record attribute -> column name for the extra indexed columns.
INDEX_COLUMNS: Mapping[str, Dict[str, str]] = {
    EXPENSES: {"tripId": "trip_id", "dateTime": "date_time"},
}

META_DDL = """
CREATE TABLE IF NOT EXISTS meta (
    key TEXT PRIMARY KEY,
    body TEXT NOT NULL,
    seq INTEGER NOT NULL
);
"""

SETTINGS_DDL = """
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    body TEXT NOT NULL,
    seq INTEGER NOT NULL
);
"""

TRIPS_DDL = """
CREATE TABLE IF NOT EXISTS trips (
    key TEXT PRIMARY KEY,
    body TEXT NOT NULL,
    seq INTEGER NOT NULL
);
"""

EXPENSES_DDL = """
CREATE TABLE IF NOT EXISTS expenses (
    key TEXT PRIMARY KEY,
    trip_id TEXT NOT NULL,
    date_time TEXT NOT NULL,
    body TEXT NOT NULL,
    seq INTEGER NOT NULL
);
"""

EXPENSES_TRIP_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_expenses_trip ON expenses(trip_id);"
)
EXPENSES_TRIP_DATE_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_expenses_trip_date ON expenses(trip_id, date_time);"
)

DDL_ORDER: Sequence[str] = (
    META_DDL,
    SETTINGS_DDL,
    TRIPS_DDL,
    EXPENSES_DDL,
    EXPENSES_TRIP_INDEX_DDL,
    EXPENSES_TRIP_DATE_INDEX_DDL,
)


def init_db(path: Path) -> None:
    """Create all tables and indexes idempotently.

    Parameters
    ----------
    path: Path to SQLite database file.
    """
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for ddl in DDL_ORDER:
            cur.execute(ddl)
        conn.commit()
    finally:
        conn.close()
