"""Tests for the key-value persistence substrates."""

from __future__ import annotations

import pytest

from tablecast.db.kv import (
    MemoryKeyValueStore,
    SqliteKeyValueStore,
    StorageError,
    open_sqlite_store,
)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        s = MemoryKeyValueStore()
    else:
        s = open_sqlite_store(tmp_path / "kv.db")
    yield s
    s.close()


def test_get_missing_returns_none(store):
    assert store.get("nope") is None


def test_set_get_overwrite(store):
    store.set("k", "v1")
    store.set("k", "v2")
    assert store.get("k") == "v2"
    assert store.keys() == ["k"]


def test_remove_and_remove_missing(store):
    store.set("k", "v")
    store.remove("k")
    store.remove("k")
    assert store.get("k") is None
    assert store.keys() == []


def test_keys_lists_everything(store):
    for k in ("b", "a", "c"):
        store.set(k, "x")
    assert sorted(store.keys()) == ["a", "b", "c"]


@pytest.mark.parametrize("factory", ["memory", "sqlite"])
def test_quota_exceeded_raises_storage_error(factory, tmp_path):
    s = MemoryKeyValueStore(max_bytes=10) if factory == "memory" else open_sqlite_store(
        tmp_path / "kv.db", max_bytes=10
    )
    s.set("a", "1234")  # 5 bytes
    with pytest.raises(StorageError, match="Quota exceeded"):
        s.set("b", "123456")  # 5 + 7 > 10
    s.set("a", "12345678")  # replacing own value: 9 bytes, fits
    assert s.get("b") is None
    s.close()


def test_sqlite_store_persists_across_connections(tmp_path):
    path = tmp_path / "kv.db"
    first = open_sqlite_store(path)
    first.set("k", "v")
    first.close()

    second = open_sqlite_store(path)
    assert second.get("k") == "v"
    second.close()


def test_sqlite_errors_become_storage_error(tmp_path):
    s = open_sqlite_store(tmp_path / "kv.db")
    s.close()
    with pytest.raises(StorageError):
        s.get("k")


def test_open_sqlite_store_unwritable_path_raises(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a dir", encoding="utf-8")
    with pytest.raises(StorageError, match="Could not open cache database"):
        open_sqlite_store(blocker / "kv.db")


def test_sqlite_store_is_a_key_value_store(tmp_path):
    s = open_sqlite_store(tmp_path / "kv.db")
    assert isinstance(s, SqliteKeyValueStore)
    s.close()
