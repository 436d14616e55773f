# src/cache/json_store.py — v2
"""JSON file-based cache store (default CACHE_BACKEND=json).

Stores one JSON document per fingerprint under CACHE_ROOT. Writes go to a
temporary sibling file which is then renamed over the target, so readers
only ever observe complete documents and the last rename wins.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from stemcache.cache.base_cache_store import BaseCacheStore
from stemcache.cache.models import CacheEntry
from stemcache.core.errors import StorageError

logger = logging.getLogger(__name__)


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create cache root {self._root}: {e}") from e

    async def get(self, fingerprint: str) -> CacheEntry | None:
        """Retrieve cache entry by fingerprint."""
        path = self._entry_path(fingerprint)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read cache entry {fingerprint}: {e}") from e
        try:
            return CacheEntry.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Unreadable cache entry %s, treating as miss: %s", fingerprint, e)
            return None

    async def upsert(self, entry: CacheEntry) -> CacheEntry:
        """Write the entry atomically, keeping the first ``created_at``."""
        existing = await self.get(entry.fingerprint)
        if existing is not None:
            entry = entry.model_copy(update={"created_at": existing.created_at})

        path = self._entry_path(entry.fingerprint)
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self._root,
                prefix=".tmp-", suffix=".json", delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(entry.model_dump_json(indent=2))
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Failed to write cache entry {entry.fingerprint}: {e}") from e
        return entry

    async def list_entries(self) -> list[CacheEntry]:
        """List all cached entries."""
        entries: list[CacheEntry] = []
        if not self._root.is_dir():
            return entries

        for path in sorted(self._root.glob("*.json")):
            if path.name.startswith(".tmp-"):
                continue
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                entries.append(CacheEntry.model_validate(data))
            except (OSError, json.JSONDecodeError, ValidationError):
                logger.debug("Skipping unreadable cache file %s", path.name)
                continue

        return entries

    def _entry_path(self, fingerprint: str) -> Path:
        """Return file path for a fingerprint."""
        safe_key = fingerprint.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_key}.json"
