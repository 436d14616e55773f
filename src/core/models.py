# src/core/models.py — v1
"""Shared domain models: NamedPart and its wire view.

NamedPart is the canonical unit of a processed result: one separated stem
with a human-facing label and a resolvable output location.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class NamedPart(BaseModel):
    """One labeled output location (immutable).

    Accepts ``location`` or ``url`` on input so that backend payloads and
    older persisted records validate into the same shape.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    location: str = Field(validation_alias=AliasChoices("location", "url"))

    def to_view(self) -> StemView:
        """Render as the submitter-facing ``{name, url}`` shape."""
        return StemView(name=self.name, url=self.location)


class StemView(BaseModel):
    """Submitter-facing rendering of a NamedPart."""

    name: str
    url: str


def part_locations(parts: list[NamedPart]) -> list[str]:
    """Flatten parts into their ordered location list."""
    return [p.location for p in parts]
