# src/logging/context.py — v2
"""Contextual logging support — attach submission_id, submitter, fingerprint.

Context variables are per asyncio task, so concurrent submissions never
see each other's context.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_submission_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "submission_id", default=None
)
_submitter: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "submitter", default=None
)
_fingerprint: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "fingerprint", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    submission_id: str | None = None
    submitter: str | None = None
    fingerprint: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        submission_id=_submission_id.get(),
        submitter=_submitter.get(),
        fingerprint=_fingerprint.get(),
    )


def set_submission_context(submission_id: str, submitter: str) -> None:
    """Set submission-level context (called once per submission)."""
    _submission_id.set(submission_id)
    _submitter.set(submitter)
    _fingerprint.set(None)


def set_fingerprint_context(fingerprint: str) -> None:
    """Attach the computed fingerprint once it is known."""
    _fingerprint.set(fingerprint)


def clear_context() -> None:
    """Reset all context variables."""
    _submission_id.set(None)
    _submitter.set(None)
    _fingerprint.set(None)
