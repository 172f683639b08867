"""Tests for the record store, atomic units and composite operations."""

import sqlite3

import pytest

from tripledger.core.errors import ReadOnlyTransactionError, TransactionScopeError
from tripledger.db.schema import EXPENSES, META, SETTINGS, TRIPS
from tripledger.db.transaction import READWRITE


def _trip(id, name="Trip"):
    return {
        "id": id,
        "name": name,
        "startDate": "2025-01-01",
        "endDate": "2025-01-05",
        "baseCurrency": "EUR",
        "currencies": ["EUR"],
    }


def _expense(id, trip_id, date_time="2025-01-02T10:00", amount=10.0):
    return {
        "id": id,
        "tripId": trip_id,
        "dateTime": date_time,
        "amountOriginal": amount,
        "currency": "EUR",
        "fxRateToBase": 1,
        "amountBase": amount,
    }


class TestCrud:
    def test_put_get_roundtrip(self, store):
        store.put(TRIPS, _trip("t1", "Rome"))
        assert store.get(TRIPS, "t1")["name"] == "Rome"
        assert store.get(TRIPS, "missing") is None

    def test_put_replaces_by_identity(self, store):
        store.put(TRIPS, _trip("t1", "Rome"))
        store.put(TRIPS, _trip("t1", "Milan"))
        trips = store.get_all(TRIPS)
        assert len(trips) == 1
        assert trips[0]["name"] == "Milan"

    def test_get_all_keeps_insertion_order(self, store):
        for key in ("b", "a", "c"):
            store.put(TRIPS, _trip(key))
        store.put(TRIPS, _trip("a", "renamed"))
        assert [t["id"] for t in store.get_all(TRIPS)] == ["b", "a", "c"]

    def test_delete(self, store):
        store.put(TRIPS, _trip("t1"))
        assert store.delete(TRIPS, "t1") is True
        assert store.delete(TRIPS, "t1") is False
        assert store.get(TRIPS, "t1") is None

    def test_put_requires_key_path(self, store):
        with pytest.raises(ValueError):
            store.put(TRIPS, {"name": "no id"})

    def test_expense_requires_indexed_attributes(self, store):
        with pytest.raises(ValueError):
            store.put(EXPENSES, {"id": "e1", "dateTime": "2025-01-01T10:00"})

    def test_unknown_kind_rejected(self, store):
        with pytest.raises(ValueError):
            store.get("budgets", "x")


class TestIndexQueries:
    def test_query_by_trip(self, store):
        store.put(EXPENSES, _expense("e1", "t1"))
        store.put(EXPENSES, _expense("e2", "t2"))
        store.put(EXPENSES, _expense("e3", "t1"))
        ids = {e["id"] for e in store.query_by_index(EXPENSES, "tripId", "t1")}
        assert ids == {"e1", "e3"}
        assert store.count_by_index(EXPENSES, "tripId", "t1") == 2

    def test_range_scan_by_trip_and_date_time(self, store):
        store.put(EXPENSES, _expense("late", "t1", "2025-01-04T09:00"))
        store.put(EXPENSES, _expense("early", "t1", "2025-01-01T09:00"))
        store.put(EXPENSES, _expense("mid", "t1", "2025-01-02T23:00"))
        store.put(EXPENSES, _expense("other", "t2", "2025-01-02T10:00"))
        rows = store.query_by_index(
            EXPENSES,
            "tripId_dateTime",
            "t1",
            lower="2025-01-01T00:00",
            upper="2025-01-03T00:00",
        )
        assert [r["id"] for r in rows] == ["early", "mid"]

    def test_unknown_index_rejected(self, store):
        with pytest.raises(ValueError):
            store.query_by_index(EXPENSES, "category", "Food")

    def test_range_bounds_need_compound_index(self, store):
        with pytest.raises(ValueError):
            store.query_by_index(EXPENSES, "tripId", "t1", lower="2025-01-01")


class TestTransactions:
    def test_commit_makes_all_writes_visible(self, store):
        with store.transaction([TRIPS, EXPENSES], READWRITE) as tx:
            tx.put(TRIPS, _trip("t1"))
            tx.put(EXPENSES, _expense("e1", "t1"))
        assert store.get(TRIPS, "t1") is not None
        assert store.get(EXPENSES, "e1") is not None

    def test_failure_discards_every_write(self, store):
        with pytest.raises(RuntimeError, match="boom"):
            with store.transaction([TRIPS, EXPENSES], READWRITE) as tx:
                tx.put(TRIPS, _trip("t1"))
                tx.put(EXPENSES, _expense("e1", "t1"))
                raise RuntimeError("boom")
        assert store.get(TRIPS, "t1") is None
        assert store.get(EXPENSES, "e1") is None

    def test_run_returns_handler_result(self, store):
        store.put(TRIPS, _trip("t1"))
        count = store.run([TRIPS], "readonly", lambda tx: len(tx.get_all(TRIPS)))
        assert count == 1

    def test_readonly_unit_rejects_writes(self, store):
        with pytest.raises(ReadOnlyTransactionError):
            with store.transaction([TRIPS]) as tx:
                tx.put(TRIPS, _trip("t1"))
        assert store.get(TRIPS, "t1") is None

    def test_undeclared_kind_rejected(self, store):
        with pytest.raises(TransactionScopeError):
            with store.transaction([TRIPS], READWRITE) as tx:
                tx.put(TRIPS, _trip("t1"))
                tx.put(EXPENSES, _expense("e1", "t1"))
        assert store.get(TRIPS, "t1") is None

    def test_storage_errors_surface_unchanged(self, store, monkeypatch):
        original = store._connect

        def broken_connect():
            conn = original()
            conn.execute("DROP TABLE expenses")
            return conn

        monkeypatch.setattr(store, "_connect", broken_connect)
        with pytest.raises(sqlite3.OperationalError):
            store.get(EXPENSES, "e1")


class TestCascadeDelete:
    def test_removes_trip_and_only_its_expenses(self, store):
        store.put(TRIPS, _trip("t1"))
        store.put(TRIPS, _trip("t2"))
        for i in range(3):
            store.put(EXPENSES, _expense(f"a{i}", "t1"))
        store.put(EXPENSES, _expense("b0", "t2"))

        removed = store.delete_trip_cascade("t1")

        assert removed == 3
        assert store.get(TRIPS, "t1") is None
        assert store.query_by_index(EXPENSES, "tripId", "t1") == []
        assert [e["id"] for e in store.get_all(EXPENSES)] == ["b0"]

    def test_failure_mid_cascade_leaves_trip_and_expenses(self, store, monkeypatch):
        from tripledger.db import transaction as txmod

        store.put(TRIPS, _trip("t1"))
        store.put(EXPENSES, _expense("e1", "t1"))

        def failing_delete_by_index(self, kind, index, key):
            raise sqlite3.OperationalError("disk I/O error")

        monkeypatch.setattr(txmod.Transaction, "delete_by_index", failing_delete_by_index)
        with pytest.raises(sqlite3.OperationalError, match="disk I/O error"):
            store.delete_trip_cascade("t1")

        assert store.get(TRIPS, "t1") is not None
        assert store.get(EXPENSES, "e1") is not None


class TestRestore:
    def test_replaces_everything(self, store):
        store.put(TRIPS, _trip("old"))
        store.put(EXPENSES, _expense("old_e", "old"))

        store.restore(
            schema_version="0.9.0",
            categories=["Food"],
            payment_methods=["Card"],
            trips=[_trip("new")],
            expenses=[_expense("new_e", "new")],
        )

        assert [t["id"] for t in store.get_all(TRIPS)] == ["new"]
        assert [e["id"] for e in store.get_all(EXPENSES)] == ["new_e"]
        assert store.get_schema_version() == "0.9.0"
        assert store.get_settings() == {"categories": ["Food"], "paymentMethods": ["Card"]}

    def test_bad_record_aborts_whole_restore(self, store):
        store.put(TRIPS, _trip("keep"))
        with pytest.raises(ValueError):
            store.restore(
                schema_version="1.0.0",
                categories=["Food"],
                payment_methods=["Card"],
                trips=[_trip("new")],
                expenses=[{"id": "broken"}],
            )
        assert [t["id"] for t in store.get_all(TRIPS)] == ["keep"]
        assert store.get(SETTINGS, "categories")["value"][0] == "Flights"

    def test_clear_all_reseeds_defaults(self, store):
        store.put(TRIPS, _trip("t1"))
        store.save_settings(["Only"], ["One"])
        store.clear_all()
        assert store.get_all(TRIPS) == []
        assert store.get(META, "schemaVersion")["value"] == "1.0.0"
        assert store.get_settings()["paymentMethods"] == ["Cash", "Wise", "Apple Pay", "Other"]
