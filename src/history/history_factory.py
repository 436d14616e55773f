# src/history/history_factory.py — v1
"""Factory for history store instantiation."""

from __future__ import annotations

from stemcache.config.settings import Settings
from stemcache.history.base_history_store import BaseHistoryStore


def create_history_store(settings: Settings | None = None) -> BaseHistoryStore:
    """Instantiate the configured history backend.

    Args:
        settings: Application settings. Defaults to SQLite backend.

    Returns:
        Configured BaseHistoryStore implementation.
    """
    backend = "sqlite" if settings is None else settings.history_backend

    if backend == "sqlite":
        from stemcache.history.sqlite_store import SqliteHistoryStore
        db_path = "~/.stemcache/history.db" if settings is None else settings.history_db_path
        return SqliteHistoryStore(db_path=db_path)

    if backend == "redis":
        from stemcache.history.redis_store import RedisHistoryStore
        if settings is None or not settings.history_redis_url:
            raise ValueError(
                "HISTORY_REDIS_URL must be set when HISTORY_BACKEND=redis"
            )
        return RedisHistoryStore(redis_url=settings.history_redis_url)

    raise ValueError(f"Unsupported history backend: {backend!r}")
