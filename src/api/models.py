# src/api/models.py — v2
"""API-level models: uploads, submission results and response bodies.

Response bodies serialize with camelCase keys (``cacheId``, ``inputName``,
...) to match the route layer's JSON contract.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from stemcache.core.models import NamedPart, StemView


class UploadedArtifact(BaseModel):
    """A transient upload handed over by the route layer."""

    path: Path
    original_name: str


class SubmissionResult(BaseModel):
    """Outcome of one successful submission."""

    status: str
    cache_id: str
    parts: list[NamedPart] = Field(default_factory=list)
    cache_hit: bool = False
    history_recorded: bool = True


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class SubmissionResponse(_CamelModel):
    """200 body of the submission endpoint."""

    status: str
    cache_id: str
    outputs: list[str] = Field(default_factory=list)
    stems: list[StemView] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: SubmissionResult) -> SubmissionResponse:
        return cls(
            status=result.status,
            cache_id=result.cache_id,
            outputs=[p.location for p in result.parts],
            stems=[p.to_view() for p in result.parts],
        )


class ErrorResponse(_CamelModel):
    """Error body shared by all endpoints."""

    status: str = "error"
    message: str


class HistoryItem(_CamelModel):
    input_name: str
    cache_id: str
    created_at: str
    output_urls: list[str] = Field(default_factory=list)
    stems: list[StemView] = Field(default_factory=list)


class HistoryResponse(_CamelModel):
    """200 body of the history endpoint."""

    total: int
    page: int
    limit: int
    results: list[HistoryItem] = Field(default_factory=list)


class ApiResponse(BaseModel):
    """Status code plus JSON body, ready for any route layer."""

    status_code: int
    body: dict[str, Any]
