# src/history/ledger.py — v1
"""History ledger: per-submitter submission history.

Appends are best-effort: a submitter that does not resolve to a profile, or
a failing store, yields an ``AppendResult`` with ``appended=False`` instead of
an exception. Reads paginate most-recent-first and never fail on malformed
pagination input.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from stemcache.core.errors import NotFoundError, StorageError
from stemcache.core.models import NamedPart, part_locations
from stemcache.history.base_history_store import BaseHistoryStore
from stemcache.history.models import AppendResult, HistoryPage, HistoryRecord

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


def coerce_positive_int(value: Any, default: int) -> int:
    """Parse ``value`` as an int >= 1, falling back to ``default``.

    Accepts ints and numeric strings; anything else (None, "abc", "2.5",
    booleans, zero, negatives) yields the default.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            return default
    else:
        return default
    return parsed if parsed >= 1 else default


class HistoryLedger:
    """Append to and page through submitters' processing history."""

    def __init__(
        self,
        store: BaseHistoryStore,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = 100,
    ) -> None:
        self._store = store
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    async def append(
        self,
        submitter: str,
        source_name: str,
        fingerprint: str,
        parts: list[NamedPart],
    ) -> AppendResult:
        """Record one submission event for ``submitter``."""
        record = HistoryRecord(
            submitter=submitter,
            source_name=source_name,
            fingerprint=fingerprint,
            locations=part_locations(parts),
            parts=list(parts),
        )
        try:
            appended = await self._store.append(record)
        except StorageError as e:
            logger.warning("History append failed for %s: %s", submitter, e)
            return AppendResult(appended=False, reason="storage_error", detail=str(e))

        if not appended:
            logger.warning("Submitter not found while saving outputs: %s", submitter)
            return AppendResult(
                appended=False,
                reason="submitter_not_found",
                detail=f"Submitter {submitter!r} has no profile",
            )

        logger.debug("Appended history record %s for %s", fingerprint, submitter)
        return AppendResult(appended=True)

    async def list(
        self, submitter: str, page: Any = DEFAULT_PAGE, page_size: Any = None
    ) -> HistoryPage:
        """Return one page of history, most recent first.

        Raises:
            NotFoundError: If the submitter does not exist.
            StorageError: If the store is unavailable.
        """
        page_no, limit = self.coerce_pagination(page, page_size)

        records = await self._store.load(submitter)
        if records is None:
            raise NotFoundError(f"Submitter {submitter!r} not found")

        ordered = _most_recent_first(records)
        start = (page_no - 1) * limit
        items = [r.with_resolved_parts() for r in ordered[start:start + limit]]

        return HistoryPage(total=len(records), page=page_no, limit=limit, items=items)

    def coerce_pagination(self, page: Any, page_size: Any) -> tuple[int, int]:
        """Best-effort (page, limit) from raw query parameters."""
        page_no = coerce_positive_int(page, DEFAULT_PAGE)
        limit = coerce_positive_int(page_size, self._default_page_size)
        return page_no, min(limit, self._max_page_size)


def _most_recent_first(records: list[HistoryRecord]) -> list[HistoryRecord]:
    """Sort by created_at descending; ties keep the later append first."""
    return sorted(
        reversed(records),
        key=lambda r: _as_utc(r.created_at),
        reverse=True,
    )


def _as_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts
