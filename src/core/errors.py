# src/core/errors.py — v1
"""Error taxonomy for the submission and history paths.

Each error maps to one externally visible status code; the mapping lives in
api/facade.py.
"""

from __future__ import annotations

from typing import Any


class StemCacheError(Exception):
    """Base class for all stemcache errors."""


class InputError(StemCacheError):
    """The caller supplied no artifact (400-class)."""


class BackendError(StemCacheError):
    """Delegation to the compute backend failed (500-class)."""


class BackendUnavailable(BackendError):
    """Transport-level failure: connect error, timeout, broken stream."""


class BackendRejected(BackendError):
    """The engine answered with an error response or an undecodable body."""

    def __init__(
        self, message: str, status_code: int | None = None, payload: Any = None
    ) -> None:
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)


class StorageError(StemCacheError):
    """Cache or history store unreachable or failing (500-class)."""


class NotFoundError(StemCacheError):
    """History requested for an unknown submitter (404-class)."""
