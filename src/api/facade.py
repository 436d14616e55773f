# src/api/facade.py — v2
"""Public API facade — submission and history endpoints.

Usage:
    from stemcache.api.facade import StemCacheService
    service = StemCacheService.from_settings(settings)
    response = await service.submit(upload, submitter)

Handlers never raise: every outcome becomes an ``ApiResponse`` carrying a
status code and a JSON body, ready to be returned by any route layer.
"""

from __future__ import annotations

import json
import logging
from datetime import timezone
from typing import Any

from stemcache.api.models import (
    ApiResponse,
    ErrorResponse,
    HistoryItem,
    HistoryResponse,
    SubmissionResponse,
    UploadedArtifact,
)
from stemcache.api.orchestrator import InferenceOrchestrator
from stemcache.backend.base_client import BaseComputeBackend
from stemcache.cache.base_cache_store import BaseCacheStore
from stemcache.cache.inference_cache import InferenceCache
from stemcache.config.settings import Settings
from stemcache.core.errors import (
    BackendRejected,
    InputError,
    NotFoundError,
)
from stemcache.history.base_history_store import BaseHistoryStore
from stemcache.history.ledger import HistoryLedger
from stemcache.history.models import HistoryPage, SubmitterProfile
from stemcache.logging.context import clear_context

logger = logging.getLogger(__name__)

DEFAULT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


async def handle_submission(
    orchestrator: InferenceOrchestrator,
    upload: UploadedArtifact | None,
    submitter: str,
) -> ApiResponse:
    """Run one submission and map the outcome to 200 / 400 / 500."""
    try:
        result = await orchestrator.submit(upload, submitter)
    except InputError as e:
        return _error(400, str(e))
    except Exception as e:
        logger.error("Error during inference: %s", _error_message(e))
        return _error(500, _error_message(e))
    finally:
        clear_context()

    return ApiResponse(
        status_code=200, body=SubmissionResponse.from_result(result).to_body(),
    )


async def handle_history(
    ledger: HistoryLedger,
    submitter: str,
    page: Any = None,
    limit: Any = None,
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
) -> ApiResponse:
    """Serve one page of history and map the outcome to 200 / 404 / 500."""
    try:
        history = await ledger.list(submitter, page, limit)
    except NotFoundError:
        return _error(404, "User not found")
    except Exception as e:
        logger.error("Error fetching history for %s: %s", submitter, e)
        return _error(500, _error_message(e))

    body = build_history_response(history, timestamp_format).to_body()
    return ApiResponse(status_code=200, body=body)


def build_history_response(
    history: HistoryPage, timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT
) -> HistoryResponse:
    """Render a HistoryPage as the history endpoint body."""
    results = []
    for record in history.items:
        created_at = record.created_at
        if created_at.tzinfo is not None:
            created_at = created_at.astimezone(timezone.utc)
        results.append(
            HistoryItem(
                input_name=record.source_name,
                cache_id=record.fingerprint,
                created_at=created_at.strftime(timestamp_format),
                output_urls=list(record.locations),
                stems=[p.to_view() for p in record.parts],
            )
        )
    return HistoryResponse(
        total=history.total, page=history.page, limit=history.limit, results=results,
    )


def _error(status_code: int, message: str) -> ApiResponse:
    return ApiResponse(
        status_code=status_code, body=ErrorResponse(message=message).to_body(),
    )


def _error_message(error: Exception) -> str:
    """Backend's raw error payload when available, else the local message."""
    if isinstance(error, BackendRejected) and error.payload not in (None, ""):
        if isinstance(error.payload, str):
            return error.payload
        return json.dumps(error.payload, default=str)
    return str(error) or type(error).__name__


class StemCacheService:
    """Wires stores, cache, backend, ledger and orchestrator together."""

    def __init__(
        self,
        cache_store: BaseCacheStore,
        history_store: BaseHistoryStore,
        backend: BaseComputeBackend,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self._cache_store = cache_store
        self._history_store = history_store
        self._backend = backend
        self.ledger = HistoryLedger(
            history_store,
            default_page_size=self.settings.history_default_page_size,
            max_page_size=self.settings.history_max_page_size,
        )
        self.orchestrator = InferenceOrchestrator(
            cache=InferenceCache(cache_store),
            backend=backend,
            ledger=self.ledger,
            fingerprint_chunk_size=self.settings.fingerprint_chunk_size,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> StemCacheService:
        """Build the service from configuration (called once at startup)."""
        from stemcache.backend.http_client import HttpComputeBackend
        from stemcache.cache.cache_factory import create_cache_store
        from stemcache.history.history_factory import create_history_store

        settings = settings or Settings()
        return cls(
            cache_store=create_cache_store(settings),
            history_store=create_history_store(settings),
            backend=HttpComputeBackend(
                infer_url=settings.backend_infer_url,
                timeout_s=settings.backend_timeout_s,
            ),
            settings=settings,
        )

    async def submit(
        self, upload: UploadedArtifact | None, submitter: str
    ) -> ApiResponse:
        return await handle_submission(self.orchestrator, upload, submitter)

    async def history(
        self, submitter: str, page: Any = None, limit: Any = None
    ) -> ApiResponse:
        return await handle_history(
            self.ledger, submitter, page, limit,
            timestamp_format=self.settings.history_timestamp_format,
        )

    async def register(self, submitter: str) -> SubmitterProfile:
        """Provision a submitter profile."""
        return await self._history_store.create_profile(submitter)

    async def aclose(self) -> None:
        await self._backend.aclose()
        self._cache_store.close()
        self._history_store.close()
