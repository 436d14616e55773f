# src/cache/sqlite_store.py — v2
"""SQLite-based cache store (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3. The fingerprint is the primary key; writes use
``INSERT ... ON CONFLICT DO UPDATE`` so concurrent writers, including
writers in other processes, converge on a single row.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from stemcache.cache.base_cache_store import BaseCacheStore
from stemcache.cache.models import CacheEntry
from stemcache.core.errors import StorageError
from stemcache.core.models import NamedPart

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    fingerprint TEXT PRIMARY KEY,
    source_name TEXT NOT NULL DEFAULT '',
    parts TEXT NOT NULL DEFAULT '[]',
    legacy_locations TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""

_UPSERT = """
INSERT INTO cache_entries
    (fingerprint, source_name, parts, legacy_locations, created_at, updated_at)
VALUES (?, ?, ?, ?, ?, ?)
ON CONFLICT(fingerprint) DO UPDATE SET
    source_name = excluded.source_name,
    parts = excluded.parts,
    legacy_locations = excluded.legacy_locations,
    updated_at = excluded.updated_at
"""

_COLUMNS = "fingerprint, source_name, parts, legacy_locations, created_at, updated_at"


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed cache store."""

    def __init__(self, db_path: Path | str, timeout_s: float = 30.0) -> None:
        self._db_path = Path(db_path).expanduser()
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path), timeout=timeout_s)
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open cache database {self._db_path}: {e}") from e

    async def get(self, fingerprint: str) -> CacheEntry | None:
        """Retrieve cache entry by fingerprint."""
        try:
            row = self._conn.execute(
                f"SELECT {_COLUMNS} FROM cache_entries WHERE fingerprint = ?",
                (fingerprint,),
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Cache lookup failed for {fingerprint}: {e}") from e
        if row is None:
            return None
        try:
            return _row_to_entry(row)
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning("Unreadable cache entry %s, treating as miss: %s", fingerprint, e)
            return None

    async def upsert(self, entry: CacheEntry) -> CacheEntry:
        """Insert or update the row keyed by fingerprint."""
        parts_json = json.dumps([p.model_dump() for p in entry.parts])
        try:
            with self._conn:
                self._conn.execute(
                    _UPSERT,
                    (
                        entry.fingerprint,
                        entry.source_name,
                        parts_json,
                        json.dumps(entry.legacy_locations),
                        entry.created_at.isoformat(),
                        entry.updated_at.isoformat(),
                    ),
                )
        except sqlite3.Error as e:
            raise StorageError(f"Cache upsert failed for {entry.fingerprint}: {e}") from e

        stored = await self.get(entry.fingerprint)
        return stored if stored is not None else entry

    async def list_entries(self) -> list[CacheEntry]:
        """List all cached entries, oldest first."""
        try:
            rows = self._conn.execute(
                f"SELECT {_COLUMNS} FROM cache_entries ORDER BY created_at"
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Cache listing failed: {e}") from e
        entries: list[CacheEntry] = []
        for row in rows:
            try:
                entries.append(_row_to_entry(row))
            except (ValueError, TypeError, ValidationError) as e:
                logger.warning("Skipping unreadable cache entry %s: %s", row[0], e)
        return entries

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()


def _row_to_entry(row: tuple) -> CacheEntry:
    fingerprint, source_name, parts, legacy, created_at, updated_at = row
    return CacheEntry(
        fingerprint=fingerprint,
        source_name=source_name or "",
        parts=[NamedPart.model_validate(p) for p in json.loads(parts or "[]")],
        legacy_locations=json.loads(legacy or "[]"),
        created_at=datetime.fromisoformat(created_at),
        updated_at=datetime.fromisoformat(updated_at),
    )
