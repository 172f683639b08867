"""Atomic units of work over the record store.

A unit names the record kinds it touches and a mode. Everything written
inside the unit becomes visible together on commit; any exception rolls the
whole unit back and is re-raised unchanged. There is no retry.

    with store.transaction([TRIPS, EXPENSES], READWRITE) as tx:
        tx.delete(TRIPS, trip_id)
        tx.delete_by_index(EXPENSES, "tripId", trip_id)
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from tripledger.core.errors import ReadOnlyTransactionError, TransactionScopeError

from .schema import ALL_KINDS, INDEX_COLUMNS, INDEXES, KEY_PATHS

READONLY = "readonly"
READWRITE = "readwrite"
MODES = (READONLY, READWRITE)

logger = logging.getLogger("tripledger.db")


def _check_kinds(kinds: Iterable[str]) -> frozenset:
    declared = frozenset(kinds)
    if not declared:
        raise ValueError("a transaction must declare at least one record kind")
    unknown = declared - set(ALL_KINDS)
    if unknown:
        raise ValueError(f"unknown record kind(s): {sorted(unknown)}")
    return declared


class Transaction:
    """Store operations bound to one open SQLite transaction."""

    def __init__(self, conn: sqlite3.Connection, kinds: Iterable[str], mode: str):
        if mode not in MODES:
            raise ValueError(f"unsupported transaction mode '{mode}'")
        self._conn = conn
        self.kinds = _check_kinds(kinds)
        self.mode = mode

    # ------------------------------------------------------------------
    # Guards
    def _scope(self, kind: str) -> None:
        if kind not in self.kinds:
            raise TransactionScopeError(
                f"record kind '{kind}' not declared for this transaction"
            )

    def _writable(self, kind: str) -> None:
        self._scope(kind)
        if self.mode != READWRITE:
            raise ReadOnlyTransactionError(f"cannot write '{kind}' in a readonly unit")

    def _index_where(
        self,
        kind: str,
        index: str,
        key: Any,
        lower: Optional[str] = None,
        upper: Optional[str] = None,
    ) -> tuple[str, List[Any]]:
        indexes = INDEXES.get(kind, {})
        if index not in indexes:
            raise ValueError(f"record kind '{kind}' has no index '{index}'")
        columns = INDEX_COLUMNS[kind]
        attrs = indexes[index]
        clauses = [f"{columns[attrs[0]]} = ?"]
        params: List[Any] = [key]
        if len(attrs) > 1:
            range_col = columns[attrs[1]]
            if lower is not None:
                clauses.append(f"{range_col} >= ?")
                params.append(lower)
            if upper is not None:
                clauses.append(f"{range_col} <= ?")
                params.append(upper)
        elif lower is not None or upper is not None:
            raise ValueError(f"index '{index}' does not support range bounds")
        return " AND ".join(clauses), params

    # ------------------------------------------------------------------
    # Reads
    def get(self, kind: str, key: str) -> Optional[Dict[str, Any]]:
        self._scope(kind)
        row = self._conn.execute(
            f"SELECT body FROM {kind} WHERE key = ?", (key,)
        ).fetchone()
        return json.loads(row[0]) if row else None

    def get_all(self, kind: str) -> List[Dict[str, Any]]:
        self._scope(kind)
        rows = self._conn.execute(f"SELECT body FROM {kind} ORDER BY seq").fetchall()
        return [json.loads(r[0]) for r in rows]

    def query_by_index(
        self,
        kind: str,
        index: str,
        key: Any,
        lower: Optional[str] = None,
        upper: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        self._scope(kind)
        where, params = self._index_where(kind, index, key, lower, upper)
        order = "date_time, seq" if index == "tripId_dateTime" else "seq"
        rows = self._conn.execute(
            f"SELECT body FROM {kind} WHERE {where} ORDER BY {order}", params
        ).fetchall()
        return [json.loads(r[0]) for r in rows]

    def count_by_index(self, kind: str, index: str, key: Any) -> int:
        self._scope(kind)
        where, params = self._index_where(kind, index, key)
        row = self._conn.execute(
            f"SELECT COUNT(*) FROM {kind} WHERE {where}", params
        ).fetchone()
        return int(row[0] if row and row[0] is not None else 0)

    # ------------------------------------------------------------------
    # Writes
    def put(self, kind: str, record: Dict[str, Any]) -> str:
        """Insert or replace ``record`` by its key path; returns the key."""
        self._writable(kind)
        key_path = KEY_PATHS[kind]
        key = record.get(key_path)
        if key is None or key == "":
            raise ValueError(f"{kind} record is missing its '{key_path}'")
        key = str(key)
        body = json.dumps(record, ensure_ascii=False)
        extra = INDEX_COLUMNS.get(kind, {})
        cols = ["key", *extra.values(), "body"]
        values: List[Any] = [key]
        for attr in extra:
            value = record.get(attr)
            if value is None:
                raise ValueError(f"{kind} record '{key}' is missing '{attr}'")
            values.append(str(value))
        values.append(body)
        placeholders = ", ".join("?" for _ in cols)
        updates = ", ".join(f"{c} = excluded.{c}" for c in cols[1:])
        self._conn.execute(
            f"""
            INSERT INTO {kind} ({", ".join(cols)}, seq)
            VALUES ({placeholders}, (SELECT COALESCE(MAX(seq), 0) + 1 FROM {kind}))
            ON CONFLICT(key) DO UPDATE SET {updates}
            """,
            values,
        )
        return key

    def delete(self, kind: str, key: str) -> bool:
        self._writable(kind)
        cur = self._conn.execute(f"DELETE FROM {kind} WHERE key = ?", (key,))
        return cur.rowcount > 0

    def delete_by_index(self, kind: str, index: str, key: Any) -> int:
        self._writable(kind)
        where, params = self._index_where(kind, index, key)
        cur = self._conn.execute(f"DELETE FROM {kind} WHERE {where}", params)
        return int(cur.rowcount)

    def clear(self, kind: str) -> None:
        self._writable(kind)
        self._conn.execute(f"DELETE FROM {kind}")


@contextmanager
def atomic(
    connect: Callable[[], sqlite3.Connection], kinds: Iterable[str], mode: str = READONLY
) -> Iterator[Transaction]:
    """Open a connection, run one unit, commit or roll back, close."""
    conn = connect()
    try:
        tx = Transaction(conn, kinds, mode)
        conn.execute("BEGIN IMMEDIATE" if mode == READWRITE else "BEGIN")
        try:
            yield tx
        except BaseException:
            if conn.in_transaction:
                conn.rollback()
            logger.debug(
                "transaction aborted", extra={"kind": ",".join(sorted(tx.kinds))}
            )
            raise
        conn.commit()
        logger.debug("transaction committed", extra={"kind": ",".join(sorted(tx.kinds))})
    finally:
        conn.close()
