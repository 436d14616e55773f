# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides sample parts, a scriptable fake compute backend, an in-memory Redis
stand-in, temp stores and upload factories.
Nothing here needs an external service; network I/O is faked.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from stemcache.backend.base_client import BaseComputeBackend
from stemcache.backend.models import BackendResult
from stemcache.cache.json_store import JsonCacheStore
from stemcache.cache.sqlite_store import SqliteCacheStore
from stemcache.core.models import NamedPart
from stemcache.history.sqlite_store import SqliteHistoryStore


# === Fake compute backend ===


class FakeBackend(BaseComputeBackend):
    """Records calls and returns a scripted result or raises a scripted error."""

    def __init__(
        self,
        result: BackendResult | None = None,
        error: Exception | None = None,
        delay_s: float = 0.0,
    ) -> None:
        self.result = result or BackendResult(
            status="success",
            stems=[
                NamedPart(name="Vocals", location="https://cdn.test/vocals.wav"),
                NamedPart(name="Drums", location="https://cdn.test/drums.wav"),
            ],
        )
        self.error = error
        self.delay_s = delay_s
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def process(
        self, artifact_path: Path, source_name: str, fingerprint: str
    ) -> BackendResult:
        self.calls.append({
            "artifact_exists": Path(artifact_path).exists(),
            "source_name": source_name,
            "fingerprint": fingerprint,
        })
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.error is not None:
            raise self.error
        return self.result

    async def aclose(self) -> None:
        self.closed = True


# === In-memory Redis stand-in ===


class FakeRedisError(Exception):
    """Stands in for redis.RedisError in mocked stores."""


class FakeWatchError(FakeRedisError):
    """Stands in for redis.WatchError."""


class _FakePipeline:
    """Buffers commands after multi(); runs them immediately while watching."""

    def __init__(self, client: FakeRedis) -> None:
        self._client = client
        self._ops: list[tuple[str, tuple]] = []
        self._buffering = True

    def __enter__(self) -> _FakePipeline:
        return self

    def __exit__(self, *exc) -> None:
        self.reset()

    def reset(self) -> None:
        self._ops = []
        self._buffering = True

    def watch(self, *keys) -> None:
        self._client._check()
        self._buffering = False

    def unwatch(self) -> None:
        self._buffering = True

    def multi(self) -> None:
        self._buffering = True

    def _command(self, name: str, *args):
        if self._buffering:
            self._ops.append((name, args))
            return self
        return getattr(self._client, name)(*args)

    def set(self, *args):
        return self._command("set", *args)

    def sadd(self, *args):
        return self._command("sadd", *args)

    def rpush(self, *args):
        return self._command("rpush", *args)

    def exists(self, *args):
        return self._command("exists", *args)

    def execute(self):
        self._client._check()
        ops, self._ops = self._ops, []
        if self._client.watch_conflicts:
            self._client.watch_conflicts -= 1
            raise FakeWatchError("watched key changed")
        return [getattr(self._client, name)(*args) for name, args in ops]


class FakeRedis:
    """Just enough of redis.Redis (decode_responses=True) for the stores."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.watch_conflicts = 0
        self.values: dict[str, str] = {}
        self.sets: dict[str, set[str]] = {}
        self.hashes: dict[str, dict[str, str]] = {}
        self.lists: dict[str, list[str]] = {}

    def _check(self) -> None:
        if self.fail:
            raise FakeRedisError("connection refused")

    def get(self, key):
        self._check()
        return self.values.get(key)

    def set(self, key, value):
        self._check()
        self.values[key] = value
        return True

    def sadd(self, key, member):
        self._check()
        self.sets.setdefault(key, set()).add(member)
        return 1

    def smembers(self, key):
        self._check()
        return set(self.sets.get(key, set()))

    def pipeline(self, transaction=True):
        self._check()
        return _FakePipeline(self)

    def exists(self, key):
        self._check()
        return int(key in self.hashes or key in self.values or key in self.lists)

    def hsetnx(self, key, field, value):
        self._check()
        bucket = self.hashes.setdefault(key, {})
        if field in bucket:
            return 0
        bucket[field] = value
        return 1

    def hget(self, key, field):
        self._check()
        return self.hashes.get(key, {}).get(field)

    def rpush(self, key, value):
        self._check()
        self.lists.setdefault(key, []).append(value)
        return len(self.lists[key])

    def lrange(self, key, start, end):
        self._check()
        items = self.lists.get(key, [])
        return list(items[start:] if end == -1 else items[start:end + 1])

    def close(self):
        pass


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_parts() -> list[NamedPart]:
    return [
        NamedPart(name="Vocals", location="https://cdn.test/vocals.wav"),
        NamedPart(name="Drums", location="https://cdn.test/drums.wav"),
    ]


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


# === FIXTURES: Stores ===


@pytest.fixture
def json_cache_store(tmp_path: Path) -> JsonCacheStore:
    return JsonCacheStore(cache_root=tmp_path / "cache")


@pytest.fixture
def sqlite_cache_store(tmp_path: Path):
    store = SqliteCacheStore(db_path=tmp_path / "cache.db")
    yield store
    store.close()


@pytest.fixture
def history_store(tmp_path: Path):
    store = SqliteHistoryStore(db_path=tmp_path / "history.db")
    yield store
    store.close()


# === FIXTURES: Uploads ===


@pytest.fixture
def make_upload(tmp_path: Path) -> Callable[..., Any]:
    """Factory writing a transient upload file and returning UploadedArtifact."""
    from stemcache.api.models import UploadedArtifact

    counter = {"n": 0}

    def _make(content: bytes = b"RIFF....WAVEfmt ", name: str = "song.wav"):
        counter["n"] += 1
        upload_dir = tmp_path / "uploads"
        upload_dir.mkdir(exist_ok=True)
        path = upload_dir / f"upload_{counter['n']}"
        path.write_bytes(content)
        return UploadedArtifact(path=path, original_name=name)

    return _make


# === FIXTURES: Redis-backed stores over FakeRedis ===


@pytest.fixture
def redis_cache_store(fake_redis: FakeRedis):
    from stemcache.cache.redis_store import RedisCacheStore

    store = RedisCacheStore.__new__(RedisCacheStore)
    store._client = fake_redis
    store._errors = (FakeRedisError,)
    return store


@pytest.fixture
def redis_history_store(fake_redis: FakeRedis):
    from stemcache.history.redis_store import RedisHistoryStore

    store = RedisHistoryStore.__new__(RedisHistoryStore)
    store._client = fake_redis
    store._errors = (FakeRedisError,)
    store._watch_error = FakeWatchError
    return store
