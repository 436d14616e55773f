# src/cache/base_cache_store.py — v2
"""Abstract cache store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from stemcache.cache.models import CacheEntry


class BaseCacheStore(ABC):
    """Unified interface for cache storage backends.

    Implementations must make ``upsert`` atomic per fingerprint: concurrent
    writers converge on one entry and partial writes are never observable.
    Driver failures are raised as ``StorageError``.
    """

    @abstractmethod
    async def get(self, fingerprint: str) -> CacheEntry | None:
        """Retrieve the entry for a fingerprint, None on miss."""

    @abstractmethod
    async def upsert(self, entry: CacheEntry) -> CacheEntry:
        """Insert or replace the entry keyed by ``entry.fingerprint``.

        Returns the entry as persisted.
        """

    @abstractmethod
    async def list_entries(self) -> list[CacheEntry]:
        """List all cached entries."""

    def close(self) -> None:
        """Release backend resources."""
