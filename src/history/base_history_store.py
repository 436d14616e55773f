# src/history/base_history_store.py — v1
"""Abstract history store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from stemcache.history.models import HistoryRecord, SubmitterProfile


class BaseHistoryStore(ABC):
    """Per-submitter append-only history collections.

    Driver failures are raised as ``StorageError``.
    """

    @abstractmethod
    async def create_profile(self, submitter: str) -> SubmitterProfile:
        """Provision a submitter profile (idempotent)."""

    @abstractmethod
    async def profile_exists(self, submitter: str) -> bool:
        """Whether the submitter resolves to a profile."""

    @abstractmethod
    async def append(self, record: HistoryRecord) -> bool:
        """Append a record; False if ``record.submitter`` has no profile."""

    @abstractmethod
    async def load(self, submitter: str) -> list[HistoryRecord] | None:
        """All records in append order, or None for an unknown submitter."""

    def close(self) -> None:
        """Release backend resources."""
