import sqlite3

import pytest

from budget_tracker.db import init_db
from budget_tracker.settings import Settings
from budget_tracker.store import MemoryStore, SqliteStore, StorageError


def test_init_db_creates_kv_table(tmp_path):
    settings = Settings(data_dir=tmp_path / "nested", db_path=tmp_path / "nested" / "t.sqlite")
    init_db(settings)

    conn = sqlite3.connect(str(settings.db_path))
    conn.row_factory = sqlite3.Row
    columns = [row["name"] for row in conn.execute("PRAGMA table_info(kv)").fetchall()]
    conn.close()
    assert columns == ["key", "value", "created_at", "updated_at"]


def test_sqlite_store_get_set_delete(tmp_path):
    settings = Settings(data_dir=tmp_path, db_path=tmp_path / "t.sqlite")
    init_db(settings)
    store = SqliteStore(settings.db_path)

    assert store.get("budget") is None
    store.set("budget", '{"income": []}')
    store.set("budget", '{"income": [], "expenses": []}')
    assert store.get("budget") == '{"income": [], "expenses": []}'

    store.delete("budget")
    assert store.get("budget") is None


def test_sqlite_store_wraps_sqlite_errors(tmp_path):
    store = SqliteStore(tmp_path / "missing-table.sqlite")
    with pytest.raises(StorageError):
        store.get("budget")
    with pytest.raises(StorageError):
        store.set("budget", "{}")


def test_memory_store():
    store = MemoryStore({"a": "1"})
    assert store.get("a") == "1"
    store.set("b", "2")
    store.delete("a")
    store.delete("a")
    assert store.data == {"b": "2"}
