"""Shared pytest fixtures."""

from __future__ import annotations

import os

# Keep litellm from fetching its model cost map over the network in a
# background thread at import time (deadlocks test collection offline).
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

import pytest

from tablecast.cache.fingerprint import SourceFile
from tablecast.cache.store import CacheStore
from tablecast.db.kv import MemoryKeyValueStore


class FakeClock:
    """Manually advanced clock in epoch seconds."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance_hours(self, hours: float) -> None:
        self.now += hours * 3600


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_cache(clock):
    """Opened CacheStore over an in-memory substrate, closed after test."""
    store = CacheStore(MemoryKeyValueStore(), ttl_hours=24, clock=clock).open()
    yield store
    store.close()


@pytest.fixture
def make_file():
    """Factory for in-memory SourceFiles."""

    def _make(
        name: str = "survey.xlsx",
        content: bytes = b"unit,name\nA,Asha\n",
        last_modified: int = 1_700_000_000_000,
    ) -> SourceFile:
        return SourceFile(
            name=name, size=len(content), last_modified=last_modified, content=content
        )

    return _make
