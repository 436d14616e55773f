# src/history/models.py — v1
"""History domain models: SubmitterProfile, HistoryRecord, HistoryPage."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from stemcache.core.models import NamedPart
from stemcache.core.normalizer import normalize_parts


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubmitterProfile(BaseModel):
    """Externally owned identity that history records hang off."""

    submitter: str
    created_at: datetime = Field(default_factory=_utcnow)


class HistoryRecord(BaseModel):
    """One submission event pointing at a cache entry."""

    submitter: str
    source_name: str
    fingerprint: str
    locations: list[str] = Field(default_factory=list)
    parts: list[NamedPart] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)

    def with_resolved_parts(self) -> HistoryRecord:
        """Copy with parts synthesized from ``locations`` for older records."""
        if self.parts or not self.locations:
            return self
        return self.model_copy(
            update={"parts": normalize_parts(None, self.locations)}
        )


class HistoryPage(BaseModel):
    """One page of a submitter's history, most recent first."""

    total: int
    page: int
    limit: int
    items: list[HistoryRecord] = Field(default_factory=list)


class AppendResult(BaseModel):
    """Outcome of a best-effort history append.

    ``appended=False`` is not an error for the submission path: the cache and
    compute work already succeeded.
    """

    appended: bool
    reason: Literal["submitter_not_found", "storage_error"] | None = None
    detail: str | None = None
