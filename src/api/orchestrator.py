# src/api/orchestrator.py — v1
"""Inference orchestrator — one submission from upload to response.

State machine per submission:
    RECEIVED -> FINGERPRINT_COMPUTED -> (CACHE_HIT | CACHE_MISS ->
    BACKEND_INVOKED -> CACHE_WRITTEN) -> HISTORY_APPENDED -> RESPONDED
with FAILED reachable from any stage. The transient artifact is removed on
every exit path.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from enum import Enum
from pathlib import Path

from stemcache.api.models import SubmissionResult, UploadedArtifact
from stemcache.backend.base_client import BaseComputeBackend
from stemcache.cache.fingerprint import DEFAULT_CHUNK_SIZE, compute_file_fingerprint
from stemcache.cache.inference_cache import InferenceCache
from stemcache.core.errors import InputError
from stemcache.core.models import NamedPart
from stemcache.core.normalizer import normalize_backend_result
from stemcache.history.ledger import HistoryLedger
from stemcache.logging.context import set_fingerprint_context, set_submission_context
from stemcache.storage.transient import transient_artifact

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    RECEIVED = "received"
    FINGERPRINT_COMPUTED = "fingerprint_computed"
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    BACKEND_INVOKED = "backend_invoked"
    CACHE_WRITTEN = "cache_written"
    HISTORY_APPENDED = "history_appended"
    RESPONDED = "responded"
    FAILED = "failed"


class _StateTrail:
    """Ordered record of the states one submission went through."""

    def __init__(self) -> None:
        self.states: list[SubmissionState] = []

    def enter(self, state: SubmissionState) -> None:
        self.states.append(state)
        logger.debug("Submission state -> %s", state.value)

    @property
    def current(self) -> SubmissionState | None:
        return self.states[-1] if self.states else None


class InferenceOrchestrator:
    """Fingerprint, cache lookup or compute, history append."""

    def __init__(
        self,
        cache: InferenceCache,
        backend: BaseComputeBackend,
        ledger: HistoryLedger,
        fingerprint_chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._cache = cache
        self._backend = backend
        self._ledger = ledger
        self._chunk_size = fingerprint_chunk_size

    async def submit(
        self, upload: UploadedArtifact | None, submitter: str
    ) -> SubmissionResult:
        """Process one submission.

        Raises:
            InputError: No artifact was uploaded.
            BackendError: Delegation to the compute backend failed.
            StorageError: The cache store is unavailable.
            OSError: The artifact could not be read.
        """
        if upload is None:
            raise InputError("No file uploaded")

        submission_id = uuid.uuid4().hex[:12]
        set_submission_context(submission_id, submitter)
        trail = _StateTrail()
        trail.enter(SubmissionState.RECEIVED)

        with transient_artifact(upload.path) as artifact_path:
            try:
                result = await self._run(artifact_path, upload.original_name, submitter, trail)
            except BaseException:
                failed_after = trail.current
                trail.enter(SubmissionState.FAILED)
                logger.error(
                    "Submission %s failed after %s",
                    submission_id, failed_after.value if failed_after else "start",
                )
                raise

        trail.enter(SubmissionState.RESPONDED)
        return result

    async def _run(
        self,
        artifact_path: Path,
        source_name: str,
        submitter: str,
        trail: _StateTrail,
    ) -> SubmissionResult:
        fingerprint = await asyncio.to_thread(
            compute_file_fingerprint, artifact_path, self._chunk_size,
        )
        set_fingerprint_context(fingerprint)
        trail.enter(SubmissionState.FINGERPRINT_COMPUTED)

        entry = await self._cache.lookup(fingerprint)
        if entry is not None:
            trail.enter(SubmissionState.CACHE_HIT)
            logger.info("Cache hit for %s", source_name)
            cache_id = fingerprint
            parts = entry.resolved_parts()
            status = "cached"
        else:
            trail.enter(SubmissionState.CACHE_MISS)
            cache_id, parts, status = await self._compute(
                artifact_path, source_name, fingerprint, trail,
            )

        recorded = await self._record_history(submitter, source_name, cache_id, parts)
        trail.enter(SubmissionState.HISTORY_APPENDED)

        return SubmissionResult(
            status=status,
            cache_id=cache_id,
            parts=parts,
            cache_hit=entry is not None,
            history_recorded=recorded,
        )

    async def _compute(
        self,
        artifact_path: Path,
        source_name: str,
        fingerprint: str,
        trail: _StateTrail,
    ) -> tuple[str, list[NamedPart], str]:
        result = await self._backend.process(artifact_path, source_name, fingerprint)
        trail.enter(SubmissionState.BACKEND_INVOKED)

        cache_id = result.resolve_cache_id(fingerprint)
        if cache_id != fingerprint:
            logger.info("Backend cache id %s overrides local fingerprint", cache_id)
        parts = normalize_backend_result(result)

        await self._cache.upsert(cache_id, source_name, parts)
        trail.enter(SubmissionState.CACHE_WRITTEN)
        return cache_id, parts, result.status or "success"

    async def _record_history(
        self, submitter: str, source_name: str, cache_id: str, parts: list[NamedPart]
    ) -> bool:
        # Only call site of HistoryLedger.append: a failed append is logged by
        # the ledger and dropped here, the submission still succeeds.
        outcome = await self._ledger.append(submitter, source_name, cache_id, parts)
        if not outcome.appended:
            logger.info("History not recorded (%s)", outcome.reason)
        return outcome.appended
