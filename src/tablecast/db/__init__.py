"""Key-value persistence substrate for the cache."""

from tablecast.db.connection import Database
from tablecast.db.kv import (
    KeyValueStore,
    MemoryKeyValueStore,
    SqliteKeyValueStore,
    StorageError,
    open_sqlite_store,
)
from tablecast.db.migrations import run_migrations

__all__ = [
    "Database",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqliteKeyValueStore",
    "StorageError",
    "open_sqlite_store",
    "run_migrations",
]
