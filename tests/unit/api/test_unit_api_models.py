# tests/unit/api/test_unit_api_models.py — v1
"""Tests for api/models.py — camelCase response bodies."""

from __future__ import annotations

from stemcache.api.models import (
    ErrorResponse,
    HistoryResponse,
    SubmissionResponse,
    SubmissionResult,
)
from stemcache.core.models import NamedPart


class TestSubmissionResponse:
    def test_from_result(self):
        result = SubmissionResult(
            status="cached",
            cache_id="fp",
            parts=[NamedPart(name="Vocals", location="v")],
        )
        body = SubmissionResponse.from_result(result).to_body()
        assert body == {
            "status": "cached",
            "cacheId": "fp",
            "outputs": ["v"],
            "stems": [{"name": "Vocals", "url": "v"}],
        }

    def test_empty_parts(self):
        body = SubmissionResponse.from_result(
            SubmissionResult(status="success", cache_id="fp"),
        ).to_body()
        assert body["outputs"] == []
        assert body["stems"] == []


def test_error_response_shape():
    assert ErrorResponse(message="nope").to_body() == {"status": "error", "message": "nope"}


def test_history_response_empty():
    body = HistoryResponse(total=0, page=1, limit=10).to_body()
    assert body == {"total": 0, "page": 1, "limit": 10, "results": []}
