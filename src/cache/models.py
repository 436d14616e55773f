# src/cache/models.py — v2
"""Cache domain models: CacheEntry.

A CacheEntry is keyed uniquely by the artifact fingerprint and holds the
normalized result parts plus the flattened legacy location list.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from stemcache.core.models import NamedPart, part_locations
from stemcache.core.normalizer import from_locations


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CacheEntry(BaseModel):
    """Unique stored result for one fingerprint."""

    fingerprint: str
    source_name: str = ""
    parts: list[NamedPart] = Field(default_factory=list)
    legacy_locations: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def build(
        cls, fingerprint: str, source_name: str, parts: list[NamedPart]
    ) -> CacheEntry:
        """Create an entry with ``legacy_locations`` derived from ``parts``."""
        return cls(
            fingerprint=fingerprint,
            source_name=source_name,
            parts=list(parts),
            legacy_locations=part_locations(parts),
        )

    def resolved_parts(self) -> list[NamedPart]:
        """Parts as stored, or synthesized from legacy locations if empty."""
        if self.parts:
            return list(self.parts)
        return from_locations(self.legacy_locations)
