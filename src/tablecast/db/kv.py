"""Key-value string stores used as the cache persistence substrate.

The cache only needs get/set/remove/keys over string values. Two
implementations are provided:

  SqliteKeyValueStore  kv_entries table in a local SQLite file
  MemoryKeyValueStore  process-local dict (tests, --no-cache runs)

Both accept an optional ``max_bytes`` quota; a write that would exceed it
raises StorageError, as does any underlying sqlite3 failure.
"""

from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path

from tablecast.db.connection import Database
from tablecast.db.migrations import run_migrations


class StorageError(RuntimeError):
    """The persistence substrate failed (quota exceeded, I/O or DB error)."""


class KeyValueStore(ABC):
    """Minimal string key-value store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value stored at *key*, or None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store *value* at *key*, replacing any existing value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete *key*. Missing keys are ignored."""

    @abstractmethod
    def keys(self) -> list[str]:
        """Return every stored key."""

    def close(self) -> None:
        """Release resources. The default implementation does nothing."""


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store with an optional size quota."""

    def __init__(self, max_bytes: int | None = None) -> None:
        self._data: dict[str, str] = {}
        self.max_bytes = max_bytes

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.max_bytes is not None:
            used = sum(len(k) + len(v) for k, v in self._data.items() if k != key)
            if used + len(key) + len(value) > self.max_bytes:
                raise StorageError(
                    f"Quota exceeded: writing {len(value)} chars to '{key}' "
                    f"would exceed {self.max_bytes} bytes."
                )
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class SqliteKeyValueStore(KeyValueStore):
    """kv_entries-backed store.

    Wraps an open sqlite3.Connection whose schema has been migrated (see
    ``tablecast.db.migrations.run_migrations``). The store owns the
    connection and closes it in close().
    """

    def __init__(self, conn: sqlite3.Connection, max_bytes: int | None = None) -> None:
        self._conn = conn
        self.max_bytes = max_bytes

    def get(self, key: str) -> str | None:
        try:
            row = self._conn.execute(
                "SELECT value FROM kv_entries WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not read '{key}': {exc}") from exc
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        try:
            if self.max_bytes is not None:
                used = self._conn.execute(
                    "SELECT COALESCE(SUM(LENGTH(key) + LENGTH(value)), 0) FROM kv_entries WHERE key != ?",
                    (key,),
                ).fetchone()[0]
                if used + len(key) + len(value) > self.max_bytes:
                    raise StorageError(
                        f"Quota exceeded: writing {len(value)} chars to '{key}' "
                        f"would exceed {self.max_bytes} bytes."
                    )
            self._conn.execute(
                """
                INSERT INTO kv_entries (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = datetime('now')
                """,
                (key, value),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not write '{key}': {exc}") from exc

    def remove(self, key: str) -> None:
        try:
            self._conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not remove '{key}': {exc}") from exc

    def keys(self) -> list[str]:
        try:
            rows = self._conn.execute("SELECT key FROM kv_entries ORDER BY key").fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not list keys: {exc}") from exc
        return [r["key"] for r in rows]

    def close(self) -> None:
        self._conn.close()


def open_sqlite_store(db_path: Path | str, max_bytes: int | None = None) -> SqliteKeyValueStore:
    """Open (creating and migrating if needed) a SQLite-backed store.

    Raises:
        StorageError: If the database cannot be opened or migrated.
    """
    try:
        conn = Database(db_path).connect()
        run_migrations(conn)
    except (sqlite3.Error, OSError) as exc:
        raise StorageError(f"Could not open cache database '{db_path}': {exc}") from exc
    return SqliteKeyValueStore(conn, max_bytes=max_bytes)
