"""Tests for snapshot stores."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine

from arb_paper.db.engine import _ensure_psycopg_driver, create_ledger_engine
from arb_paper.errors import PersistenceError
from arb_paper.storage import GuardedStore, JsonFileStore, MemoryStore, SnapshotStore, SqlSnapshotStore


class TestJsonFileStore:
    def test_missing_file_loads_none(self, tmp_path):
        assert JsonFileStore(tmp_path / "nope.json").load() is None

    def test_save_and_load(self, tmp_path):
        store = JsonFileStore(tmp_path / "sub" / "doc.json")
        store.save({"cash_balance": 12.5, "positions": {}})
        assert store.load() == {"cash_balance": 12.5, "positions": {}}

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        store = JsonFileStore(tmp_path / "doc.json")
        store.save([1])
        store.save([1, 2])
        assert store.load() == [1, 2]
        assert [p.name for p in tmp_path.iterdir()] == ["doc.json"]

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "doc.json"
        path.write_text('{"cash_balance": ')
        with pytest.raises(PersistenceError):
            JsonFileStore(path).load()

    def test_unserialisable_document_keeps_previous(self, tmp_path):
        store = JsonFileStore(tmp_path / "doc.json")
        store.save({"a": 1})
        with pytest.raises(PersistenceError):
            store.save({"a": object()})
        assert store.load() == {"a": 1}
        assert [p.name for p in tmp_path.iterdir()] == ["doc.json"]

    def test_satisfies_protocol(self, tmp_path):
        assert isinstance(JsonFileStore(tmp_path / "x.json"), SnapshotStore)


class TestSqlSnapshotStore:
    def test_round_trip(self, sqlite_engine):
        store = SqlSnapshotStore(sqlite_engine, "portfolio")
        assert store.load() is None
        store.save({"cash_balance": 900.0})
        store.save({"cash_balance": 1050.0})
        assert store.load() == {"cash_balance": 1050.0}

    def test_keys_are_independent(self, sqlite_engine):
        a = SqlSnapshotStore(sqlite_engine, "portfolio")
        b = SqlSnapshotStore(sqlite_engine, "trades")
        a.save({"x": 1})
        b.save([{"id": "t1"}])
        assert a.load() == {"x": 1}
        assert b.load() == [{"id": "t1"}]

    def test_file_database_survives_new_engine(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'nested' / 'ledger.db'}"
        SqlSnapshotStore(create_ledger_engine(url), "k").save({"v": 1})
        assert SqlSnapshotStore(create_engine(url), "k").load() == {"v": 1}

    def test_postgres_url_rewrite(self):
        assert _ensure_psycopg_driver("postgresql://u@h/db") == "postgresql+psycopg://u@h/db"
        assert _ensure_psycopg_driver("sqlite:///x.db") == "sqlite:///x.db"

    def test_unusable_database_raises_on_construction(self, tmp_path):
        # a directory cannot be opened as a SQLite file
        with pytest.raises(PersistenceError):
            SqlSnapshotStore(create_engine(f"sqlite:///{tmp_path}"), "k")


class TestMemoryStore:
    def test_copies_on_save_and_load(self):
        store = MemoryStore()
        doc = {"positions": {}}
        store.save(doc)
        doc["positions"]["M"] = 1
        loaded = store.load()
        assert loaded == {"positions": {}}
        loaded["extra"] = True
        assert store.document == {"positions": {}}
        assert store.saves == 1

    def test_failure_flags(self):
        store = MemoryStore({"a": 1})
        store.fail_loads = True
        store.fail_saves = True
        with pytest.raises(PersistenceError):
            store.load()
        with pytest.raises(PersistenceError):
            store.save({})
        assert store.document == {"a": 1}


class TestGuardedStore:
    def test_queues_failures(self):
        inner = MemoryStore()
        guarded = GuardedStore(inner, "portfolio")
        inner.fail_saves = True
        guarded.save({"a": 1})
        guarded.save({"a": 2})
        failures = guarded.take_failures()
        assert len(failures) == 2
        assert all(isinstance(f, PersistenceError) for f in failures)
        assert guarded.take_failures() == []

    def test_passes_through(self):
        inner = MemoryStore({"a": 1})
        guarded = GuardedStore(inner, "trades")
        assert guarded.load() == {"a": 1}
        guarded.save({"a": 2})
        assert inner.document == {"a": 2}
        assert guarded.take_failures() == []
