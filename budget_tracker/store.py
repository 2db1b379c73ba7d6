"""
Key-value persistence.

The tracker keeps its whole state as one JSON document under one key, so the
storage seam only needs get/set/delete. ``SqliteStore`` is what the web app
uses; ``MemoryStore`` is for tests.
"""

import sqlite3
from typing import Protocol

from .db import connect


class StorageError(Exception):
    """Reading or writing the backing store failed."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class SqliteStore:
    """Store backed by the ``kv`` table created in ``db.init_db``."""

    def __init__(self, db_path):
        self.db_path = db_path

    def get(self, key: str) -> str | None:
        try:
            with connect(self.db_path) as conn:
                row = conn.execute(
                    "SELECT value FROM kv WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"could not read {key!r}") from exc
        return None if row is None else row["value"]

    def set(self, key: str, value: str) -> None:
        try:
            with connect(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT INTO kv(key, value)
                    VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value
                    """,
                    (key, value),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"could not write {key!r}") from exc

    def delete(self, key: str) -> None:
        try:
            with connect(self.db_path) as conn:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StorageError(f"could not delete {key!r}") from exc
