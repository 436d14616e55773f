# src/cache/inference_cache.py — v1
"""Inference cache: fingerprint -> normalized result set.

Thin domain layer over a BaseCacheStore. The fingerprint is the only key, so
at most one expensive computation is kept per distinct content across all
submitters.
"""

from __future__ import annotations

import logging

from stemcache.cache.base_cache_store import BaseCacheStore
from stemcache.cache.models import CacheEntry
from stemcache.core.errors import StorageError
from stemcache.core.models import NamedPart

logger = logging.getLogger(__name__)


class InferenceCache:
    """Get-or-store access to cached separation results."""

    def __init__(self, store: BaseCacheStore) -> None:
        self._store = store

    async def lookup(self, fingerprint: str) -> CacheEntry | None:
        """Return the entry for ``fingerprint`` or None on a genuine miss.

        Raises:
            StorageError: If the backing store is unavailable.
        """
        entry = await self._guard(self._store.get(fingerprint), "lookup", fingerprint)
        logger.debug("Cache %s for %s", "hit" if entry else "miss", fingerprint)
        return entry

    async def upsert(
        self, fingerprint: str, source_name: str, parts: list[NamedPart]
    ) -> CacheEntry:
        """Write ``parts`` (and their flattened locations) under ``fingerprint``.

        Raises:
            StorageError: If the backing store is unavailable.
        """
        entry = CacheEntry.build(fingerprint, source_name, parts)
        stored = await self._guard(self._store.upsert(entry), "upsert", fingerprint)
        logger.info(
            "Cached %d part(s) for %s (%s)", len(stored.parts), fingerprint, source_name,
        )
        return stored

    @staticmethod
    async def _guard(awaitable, op: str, fingerprint: str):
        try:
            return await awaitable
        except StorageError:
            raise
        except OSError as e:
            raise StorageError(f"Cache {op} failed for {fingerprint}: {e}") from e
