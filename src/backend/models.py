# src/backend/models.py — v1
"""Compute backend wire models.

Every field of the backend response is optional; presence is checked
explicitly by the normalizer and the orchestrator.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from stemcache.core.models import NamedPart


class BackendResult(BaseModel):
    """Decoded body of a successful ``POST /infer`` call."""

    model_config = ConfigDict(extra="ignore")

    cache_id: str | None = None
    status: str | None = None
    files: list[str] | None = None
    stems: list[NamedPart] | None = None

    def resolve_cache_id(self, local_fingerprint: str) -> str:
        """Backend cache id when present and non-empty, else the local one."""
        return self.cache_id or local_fingerprint
