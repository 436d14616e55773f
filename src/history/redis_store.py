# src/history/redis_store.py — v2
"""Redis-based history store (HISTORY_BACKEND=redis).

Requires 'redis' package: pip install redis.
Profiles are hashes; each submitter's history is a list of JSON records
appended with RPUSH inside a WATCH on the profile key, so list order is
append order and no record lands without a profile.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from stemcache.core.errors import StorageError
from stemcache.history.base_history_store import BaseHistoryStore
from stemcache.history.models import HistoryRecord, SubmitterProfile

logger = logging.getLogger(__name__)

_PROFILE_PREFIX = "stemcache:profile:"
_HISTORY_PREFIX = "stemcache:history:"


class RedisHistoryStore(BaseHistoryStore):
    """Redis-backed history store."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._errors: tuple[type[Exception], ...] = (redis.RedisError,)
        self._watch_error: type[Exception] = redis.WatchError
        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def create_profile(self, submitter: str) -> SubmitterProfile:
        profile = SubmitterProfile(submitter=submitter)
        key = f"{_PROFILE_PREFIX}{submitter}"
        try:
            self._client.hsetnx(key, "created_at", profile.created_at.isoformat())
            created_at = self._client.hget(key, "created_at")
        except self._errors as e:
            raise StorageError(f"Profile creation failed for {submitter}: {e}") from e
        return SubmitterProfile(submitter=submitter, created_at=created_at)

    async def profile_exists(self, submitter: str) -> bool:
        try:
            return bool(self._client.exists(f"{_PROFILE_PREFIX}{submitter}"))
        except self._errors as e:
            raise StorageError(f"Profile lookup failed for {submitter}: {e}") from e

    async def append(self, record: HistoryRecord) -> bool:
        """RPUSH under WATCH on the profile key, so the check and write are atomic."""
        profile_key = f"{_PROFILE_PREFIX}{record.submitter}"
        history_key = f"{_HISTORY_PREFIX}{record.submitter}"
        try:
            with self._client.pipeline(transaction=True) as pipe:
                while True:
                    try:
                        pipe.watch(profile_key)
                        if not pipe.exists(profile_key):
                            pipe.unwatch()
                            return False
                        pipe.multi()
                        pipe.rpush(history_key, record.model_dump_json())
                        pipe.execute()
                        return True
                    except self._watch_error:
                        logger.debug(
                            "Profile %s changed during append, retrying", record.submitter,
                        )
        except self._errors as e:
            raise StorageError(f"History append failed for {record.submitter}: {e}") from e

    async def load(self, submitter: str) -> list[HistoryRecord] | None:
        if not await self.profile_exists(submitter):
            return None
        try:
            raw_items = self._client.lrange(f"{_HISTORY_PREFIX}{submitter}", 0, -1)
        except self._errors as e:
            raise StorageError(f"History read failed for {submitter}: {e}") from e

        records: list[HistoryRecord] = []
        for raw in raw_items:
            try:
                records.append(HistoryRecord.model_validate(json.loads(raw)))
            except (json.JSONDecodeError, ValidationError) as e:
                logger.warning("Skipping unreadable history record for %s: %s", submitter, e)
        return records

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()
