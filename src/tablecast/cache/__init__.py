"""Dataset cache — fingerprinting, lookup, monotonic reconciliation, expiry."""

from tablecast.cache.fingerprint import SourceFile, compute_fingerprint, name_key
from tablecast.cache.store import (
    CacheEntry,
    CacheInfo,
    CacheLookup,
    CacheStore,
    CachedFileInfo,
)

__all__ = [
    "CacheEntry",
    "CacheInfo",
    "CacheLookup",
    "CacheStore",
    "CachedFileInfo",
    "SourceFile",
    "compute_fingerprint",
    "name_key",
]
