# src/backend/base_client.py — v1
"""Abstract compute backend interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from stemcache.backend.models import BackendResult


class BaseComputeBackend(ABC):
    """Delegates uncached separation work to an external engine.

    Calls block the current submission until the engine answers. There is no
    automatic retry at this level.
    """

    @abstractmethod
    async def process(
        self, artifact_path: Path, source_name: str, fingerprint: str
    ) -> BackendResult:
        """Submit an artifact for processing.

        Raises:
            BackendUnavailable: Transport-level failure.
            BackendRejected: The engine returned an error response.
        """

    async def aclose(self) -> None:
        """Release transport resources."""
