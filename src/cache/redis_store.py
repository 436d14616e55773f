# src/cache/redis_store.py — v2
"""Redis-based cache store (CACHE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable for multi-instance deployments. Each entry is a single JSON value
written with one SET, which Redis applies atomically; the last SET wins.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from stemcache.cache.base_cache_store import BaseCacheStore
from stemcache.cache.models import CacheEntry
from stemcache.core.errors import StorageError

logger = logging.getLogger(__name__)

_KEY_PREFIX = "stemcache:cache:"
_INDEX_KEY = "stemcache:cache:__index__"


class RedisCacheStore(BaseCacheStore):
    """Redis-backed cache store."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._errors: tuple[type[Exception], ...] = (redis.RedisError,)
        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def get(self, fingerprint: str) -> CacheEntry | None:
        """Retrieve cache entry by fingerprint."""
        try:
            data = self._client.get(f"{_KEY_PREFIX}{fingerprint}")
        except self._errors as e:
            raise StorageError(f"Cache lookup failed for {fingerprint}: {e}") from e
        if data is None:
            return None
        try:
            return CacheEntry.model_validate(json.loads(data))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to deserialize cache entry %s: %s", fingerprint, e)
            return None

    async def upsert(self, entry: CacheEntry) -> CacheEntry:
        """Store the entry under its fingerprint key."""
        key = f"{_KEY_PREFIX}{entry.fingerprint}"
        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.set(key, entry.model_dump_json())
            pipe.sadd(_INDEX_KEY, entry.fingerprint)
            pipe.execute()
        except self._errors as e:
            raise StorageError(f"Cache upsert failed for {entry.fingerprint}: {e}") from e
        return entry

    async def list_entries(self) -> list[CacheEntry]:
        """List all cached entries."""
        try:
            keys = self._client.smembers(_INDEX_KEY)
        except self._errors as e:
            raise StorageError(f"Cache listing failed: {e}") from e
        entries: list[CacheEntry] = []
        for fingerprint in sorted(keys):
            entry = await self.get(fingerprint)
            if entry is not None:
                entries.append(entry)
        return entries

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()
