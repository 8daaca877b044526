"""Cache/reconciliation layer over a KeyValueStore.

Two entries are written per stored dataset:

  <prefix><fingerprint>       exact match; trusted, skips re-extraction
  <prefix>name_<name key>     advisory; may belong to a different file with
                              the same name, so callers must still re-extract

Reconciliation is strictly monotonic on row count: a dataset only replaces a
previous one when it has more rows.

Every operation is best-effort. Storage failures and corrupted entries are
logged and turned into a miss or a no-op; the pipeline works (slower) with
the cache entirely broken.
"""

from __future__ import annotations

import json
import logging
import math
import time
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Literal

from tablecast.cache.fingerprint import SourceFile, compute_fingerprint, name_key
from tablecast.db.kv import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "tablecast_cache_"
DEFAULT_TTL_HOURS = 24.0

# JSON decoding, bad entry shapes, and substrate failures.
_CACHE_ERRORS = (StorageError, ValueError, TypeError, KeyError, OverflowError, RecursionError)
_ENTRY_ERRORS = (ValueError, TypeError, KeyError, OverflowError, RecursionError)

Dataset = list[dict[str, Any]]


def _finite(value: Any, name: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"cache entry field '{name}' is not finite: {value!r}")
    return number


@dataclass
class CacheEntry:
    """A cached dataset for one source file.

    ``timestamp`` is epoch seconds. ``exact_key`` is only set on name-keyed
    entries and points back at the fingerprint entry.
    """

    data: Dataset
    timestamp: float
    file_name: str
    file_size: int
    data_length: int
    file_hash: str
    exact_key: str | None = None

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> CacheEntry:
        """Parse a stored entry.

        Raises:
            ValueError: If *raw* is not JSON, lacks required fields, or holds
                a non-finite number.
        """
        obj = json.loads(raw)
        if not isinstance(obj, dict) or not isinstance(obj.get("data"), list):
            raise ValueError("cache entry is not an object with a 'data' list")
        return cls(
            data=obj["data"],
            timestamp=_finite(obj["timestamp"], "timestamp"),
            file_name=str(obj.get("file_name", "")),
            file_size=int(_finite(obj.get("file_size", 0), "file_size")),
            data_length=int(_finite(obj.get("data_length", len(obj["data"])), "data_length")),
            file_hash=str(obj.get("file_hash", "")),
            exact_key=obj.get("exact_key"),
        )


@dataclass(frozen=True)
class CacheLookup:
    """Result of CacheStore.lookup().

    Attributes:
        data: Cached dataset, or None on a miss.
        should_update: False only for an unexpired exact match.
        reason: Human-readable explanation of the decision.
        match: Which key matched, or None.
    """

    data: Dataset | None
    should_update: bool
    reason: str = ""
    match: Literal["exact", "name"] | None = None


@dataclass(frozen=True)
class CachedFileInfo:
    name: str
    records: int
    timestamp: datetime


@dataclass
class CacheInfo:
    total_entries: int = 0
    total_size: int = 0
    files: list[CachedFileInfo] = field(default_factory=list)


class CacheStore:
    """Content- and name-addressed dataset cache with expiry.

    Args:
        substrate: Key-value store that persists entries. Owned by the cache
            once opened; close() closes it.
        ttl_hours: Entry lifetime.
        prefix: Key prefix; keys outside it are never touched.
        clock: Returns the current time in epoch seconds (for testing).
    """

    def __init__(
        self,
        substrate: KeyValueStore,
        *,
        ttl_hours: float = DEFAULT_TTL_HOURS,
        prefix: str = DEFAULT_PREFIX,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._substrate = substrate
        self.ttl_seconds = ttl_hours * 3600
        self.prefix = prefix
        self._clock = clock

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self, cleanup: bool = True) -> CacheStore:
        """Prepare the store for use, purging expired entries unless *cleanup* is False."""
        if cleanup:
            self.expire_and_cleanup()
        return self

    def close(self) -> None:
        """Close the substrate. Closing twice is harmless."""
        try:
            self._substrate.close()
        except _CACHE_ERRORS as exc:
            logger.warning("Failed to close cache substrate: %s", exc)

    def __enter__(self) -> CacheStore:
        return self.open()

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def exact_key(self, file: SourceFile) -> str:
        return f"{self.prefix}{compute_fingerprint(file)}"

    def name_key(self, file_name: str) -> str:
        return f"{self.prefix}name_{name_key(file_name)}"

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.timestamp > self.ttl_seconds

    def _read(self, key: str) -> CacheEntry | None:
        """Return the parsed entry at *key*; corrupted entries are removed."""
        raw = self._substrate.get(key)
        if raw is None:
            return None
        try:
            return CacheEntry.from_json(raw)
        except _ENTRY_ERRORS as exc:
            logger.warning("Removing corrupted cache entry %s: %s", key, exc)
            self._substrate.remove(key)
            return None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def lookup(self, file: SourceFile) -> CacheLookup:
        """Find a cached dataset for *file*: exact fingerprint first, then name."""
        try:
            exact_key = self.exact_key(file)
            nkey = self.name_key(file.name)

            entry = self._read(exact_key)
            if entry is not None:
                if not self._is_expired(entry):
                    logger.info("Exact cache match with %d records", entry.data_length)
                    return CacheLookup(
                        data=entry.data,
                        should_update=False,
                        reason="Exact cache match",
                        match="exact",
                    )
                logger.info("Cache entry for %s expired", file.name)
                self._substrate.remove(exact_key)

            name_entry = self._read(nkey)
            if name_entry is not None:
                if self._is_expired(name_entry):
                    self._substrate.remove(nkey)
                    if name_entry.exact_key:
                        self._substrate.remove(name_entry.exact_key)
                    return CacheLookup(data=None, should_update=True, reason="Name-based cache expired")
                logger.info(
                    "Name-based cache match with %d records for similar file", name_entry.data_length
                )
                return CacheLookup(
                    data=name_entry.data,
                    should_update=True,
                    reason=f"Checking if new file has more than {name_entry.data_length} records",
                    match="name",
                )

            return CacheLookup(data=None, should_update=True, reason="No cache found")
        except _CACHE_ERRORS as exc:
            logger.warning("Failed to retrieve cached data: %s", exc)
            return CacheLookup(data=None, should_update=True, reason="Cache retrieval error")

    def store(self, file: SourceFile, dataset: Sequence[dict[str, Any]]) -> bool:
        """Write *dataset* under both the fingerprint key and the name key.

        Returns True if both writes succeeded. When the name entry cannot be
        written, the fingerprint entry is removed again so no entry is left
        without its name counterpart.
        """
        written: str | None = None
        try:
            fingerprint = compute_fingerprint(file)
            exact_key = f"{self.prefix}{fingerprint}"
            entry = CacheEntry(
                data=list(dataset),
                timestamp=self._clock(),
                file_name=file.name,
                file_size=file.size,
                data_length=len(dataset),
                file_hash=fingerprint,
            )
            self._substrate.set(exact_key, entry.to_json())
            written = exact_key
            entry.exact_key = exact_key
            self._substrate.set(self.name_key(file.name), entry.to_json())
        except _CACHE_ERRORS as exc:
            logger.warning("Failed to cache data for %s: %s", file.name, exc)
            if written is not None:
                self._discard(written)
            return False
        logger.info("Cached %d records for file: %s", len(dataset), file.name)
        return True

    def _discard(self, key: str) -> None:
        try:
            self._substrate.remove(key)
        except StorageError as exc:
            logger.warning("Failed to remove partial cache entry %s: %s", key, exc)

    def reconcile(
        self,
        file: SourceFile,
        new_dataset: Sequence[dict[str, Any]],
        previous_dataset: Sequence[dict[str, Any]] | None = None,
    ) -> bool:
        """Store *new_dataset* iff there is no previous one or it has more rows.

        Returns True if the cache was written.
        """
        if previous_dataset is not None and len(new_dataset) <= len(previous_dataset):
            logger.info(
                "Keeping existing cache: %d <= %d records for %s",
                len(new_dataset),
                len(previous_dataset),
                file.name,
            )
            return False
        if not self.store(file, new_dataset):
            return False
        if previous_dataset is not None:
            logger.info(
                "Updated cache: %d -> %d records for %s",
                len(previous_dataset),
                len(new_dataset),
                file.name,
            )
        return True

    def expire_and_cleanup(self) -> int:
        """Remove expired and unparsable entries. Returns the number removed."""
        removed = 0
        try:
            for key in self._substrate.keys():
                if not key.startswith(self.prefix):
                    continue
                raw = self._substrate.get(key)
                if raw is None:
                    continue
                try:
                    expired = self._is_expired(CacheEntry.from_json(raw))
                except _ENTRY_ERRORS:
                    expired = True
                if expired:
                    self._substrate.remove(key)
                    removed += 1
        except StorageError as exc:
            logger.warning("Failed to clean up cache: %s", exc)
        if removed:
            logger.info("Cleaned up %d expired/corrupted cache entries", removed)
        return removed

    def clear_all(self) -> int:
        """Remove every entry under the prefix. Returns the number removed."""
        removed = 0
        try:
            for key in self._substrate.keys():
                if key.startswith(self.prefix):
                    self._substrate.remove(key)
                    removed += 1
        except StorageError as exc:
            logger.warning("Failed to clear cache: %s", exc)
            return removed
        logger.info("Cache cleared (%d entries)", removed)
        return removed

    def info(self) -> CacheInfo:
        """Summarise cache contents: entry count, stored size, files."""
        info = CacheInfo()
        seen: set[str] = set()
        try:
            for key in self._substrate.keys():
                if not key.startswith(self.prefix):
                    continue
                raw = self._substrate.get(key)
                if raw is None:
                    continue
                info.total_entries += 1
                info.total_size += len(raw)
                try:
                    entry = CacheEntry.from_json(raw)
                    captured = datetime.fromtimestamp(entry.timestamp)
                except _ENTRY_ERRORS + (OSError,):
                    continue
                if entry.file_name and entry.file_name not in seen:
                    seen.add(entry.file_name)
                    info.files.append(
                        CachedFileInfo(
                            name=entry.file_name,
                            records=entry.data_length,
                            timestamp=captured,
                        )
                    )
        except StorageError as exc:
            logger.warning("Failed to get cache info: %s", exc)
        return info
