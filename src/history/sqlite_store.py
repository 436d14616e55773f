# src/history/sqlite_store.py — v1
"""SQLite-based history store (HISTORY_BACKEND=sqlite).

Records reference their submitter through a foreign key; the autoincrement
id preserves append order for records sharing a timestamp.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from stemcache.core.errors import StorageError
from stemcache.core.models import NamedPart
from stemcache.history.base_history_store import BaseHistoryStore
from stemcache.history.models import HistoryRecord, SubmitterProfile

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS submitter_profiles (
    submitter TEXT PRIMARY KEY,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS history_records (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    submitter TEXT NOT NULL REFERENCES submitter_profiles(submitter),
    source_name TEXT NOT NULL,
    fingerprint TEXT NOT NULL,
    locations TEXT NOT NULL DEFAULT '[]',
    parts TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_history_submitter ON history_records(submitter);
"""

_APPEND = """
INSERT INTO history_records
    (submitter, source_name, fingerprint, locations, parts, created_at)
SELECT ?, ?, ?, ?, ?, ?
WHERE EXISTS (SELECT 1 FROM submitter_profiles WHERE submitter = ?)
"""


class SqliteHistoryStore(BaseHistoryStore):
    """SQLite-backed history store."""

    def __init__(self, db_path: Path | str, timeout_s: float = 30.0) -> None:
        self._db_path = Path(db_path).expanduser()
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path), timeout=timeout_s)
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.executescript(_SCHEMA)
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open history database {self._db_path}: {e}") from e

    async def create_profile(self, submitter: str) -> SubmitterProfile:
        profile = SubmitterProfile(submitter=submitter)
        try:
            with self._conn:
                self._conn.execute(
                    "INSERT OR IGNORE INTO submitter_profiles (submitter, created_at) "
                    "VALUES (?, ?)",
                    (submitter, profile.created_at.isoformat()),
                )
            row = self._conn.execute(
                "SELECT created_at FROM submitter_profiles WHERE submitter = ?",
                (submitter,),
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Profile creation failed for {submitter}: {e}") from e
        return SubmitterProfile(
            submitter=submitter, created_at=datetime.fromisoformat(row[0]),
        )

    async def profile_exists(self, submitter: str) -> bool:
        try:
            row = self._conn.execute(
                "SELECT 1 FROM submitter_profiles WHERE submitter = ?", (submitter,),
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Profile lookup failed for {submitter}: {e}") from e
        return row is not None

    async def append(self, record: HistoryRecord) -> bool:
        try:
            with self._conn:
                cursor = self._conn.execute(
                    _APPEND,
                    (
                        record.submitter,
                        record.source_name,
                        record.fingerprint,
                        json.dumps(record.locations),
                        json.dumps([p.model_dump() for p in record.parts]),
                        record.created_at.isoformat(),
                        record.submitter,
                    ),
                )
        except sqlite3.Error as e:
            raise StorageError(f"History append failed for {record.submitter}: {e}") from e
        return cursor.rowcount == 1

    async def load(self, submitter: str) -> list[HistoryRecord] | None:
        if not await self.profile_exists(submitter):
            return None
        try:
            rows = self._conn.execute(
                "SELECT submitter, source_name, fingerprint, locations, parts, created_at "
                "FROM history_records WHERE submitter = ? ORDER BY id",
                (submitter,),
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"History read failed for {submitter}: {e}") from e
        records: list[HistoryRecord] = []
        for row in rows:
            try:
                records.append(_row_to_record(row))
            except (ValueError, TypeError, ValidationError) as e:
                logger.warning("Skipping unreadable history record for %s: %s", submitter, e)
        return records

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()


def _row_to_record(row: tuple) -> HistoryRecord:
    submitter, source_name, fingerprint, locations, parts, created_at = row
    return HistoryRecord(
        submitter=submitter,
        source_name=source_name,
        fingerprint=fingerprint,
        locations=json.loads(locations or "[]"),
        parts=[NamedPart.model_validate(p) for p in json.loads(parts or "[]")],
        created_at=datetime.fromisoformat(created_at),
    )
