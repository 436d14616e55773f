# src/backend/http_client.py — v1
"""HTTP compute backend client (multipart POST via httpx).

The artifact is streamed from disk together with the locally computed
fingerprint as ``cache_id``.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError

from stemcache.backend.base_client import BaseComputeBackend
from stemcache.backend.models import BackendResult
from stemcache.core.errors import BackendRejected, BackendUnavailable

logger = logging.getLogger(__name__)


class HttpComputeBackend(BaseComputeBackend):
    """Compute backend reached over HTTP."""

    def __init__(
        self,
        infer_url: str,
        timeout_s: float = 300.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._infer_url = infer_url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_s))

    async def process(
        self, artifact_path: Path, source_name: str, fingerprint: str
    ) -> BackendResult:
        logger.info("Forwarding %s to %s", source_name, self._infer_url)
        t0 = time.monotonic()
        try:
            with Path(artifact_path).open("rb") as fh:
                response = await self._client.post(
                    self._infer_url,
                    files={"file": (source_name, fh, "application/octet-stream")},
                    data={"cache_id": fingerprint},
                )
        except httpx.HTTPError as e:
            raise BackendUnavailable(f"Compute backend unreachable: {e}") from e

        latency = int((time.monotonic() - t0) * 1000)
        logger.debug(
            "Backend answered %d in %dms for %s", response.status_code, latency, fingerprint,
        )

        if response.is_error:
            payload = _decode_payload(response)
            raise BackendRejected(
                f"Compute backend returned {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )

        try:
            return BackendResult.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise BackendRejected(
                f"Compute backend returned an unreadable body: {e}",
                status_code=response.status_code,
                payload=response.text,
            ) from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _decode_payload(response: httpx.Response) -> Any:
    """Raw error payload: decoded JSON when possible, else text."""
    try:
        return response.json()
    except ValueError:
        return response.text or None
