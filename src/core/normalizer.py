# src/core/normalizer.py — v1
"""Result normalization: heterogeneous result shapes -> ordered NamedParts.

Two raw shapes are accepted:
  - named: a sequence of {name, location} items, passed through in order;
  - positional: a sequence of bare locations, labelled "Stem 1", "Stem 2", ...

Pure functions, no I/O.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from stemcache.core.models import NamedPart

if TYPE_CHECKING:
    from stemcache.backend.models import BackendResult

POSITIONAL_LABEL = "Stem"


def positional_name(index: int) -> str:
    """Synthetic 1-indexed label for the 0-indexed position ``index``."""
    return f"{POSITIONAL_LABEL} {index + 1}"


def from_locations(locations: Sequence[str]) -> list[NamedPart]:
    """Name bare locations by position."""
    return [
        NamedPart(name=positional_name(i), location=loc)
        for i, loc in enumerate(locations)
    ]


def normalize_parts(
    named: Sequence[NamedPart | Mapping[str, Any]] | None,
    locations: Sequence[str] | None,
) -> list[NamedPart]:
    """Prefer the named shape when non-empty, else derive from locations."""
    if named:
        return [_coerce_part(item) for item in named]
    return from_locations(locations or [])


def normalize(raw: Sequence[Any] | None) -> list[NamedPart]:
    """Normalize a single raw result list of either shape.

    Raises:
        ValueError: If the list mixes shapes or holds unsupported items.
    """
    if not raw:
        return []
    if all(isinstance(item, str) for item in raw):
        return from_locations(raw)
    if any(isinstance(item, str) for item in raw):
        raise ValueError("Raw result mixes named parts and bare locations")
    return [_coerce_part(item) for item in raw]


def normalize_backend_result(result: BackendResult) -> list[NamedPart]:
    """Apply the named-over-positional rule to a backend response."""
    return normalize_parts(result.stems, result.files)


def _coerce_part(item: NamedPart | Mapping[str, Any]) -> NamedPart:
    if isinstance(item, NamedPart):
        return item
    if isinstance(item, Mapping):
        return NamedPart.model_validate(dict(item))
    raise ValueError(f"Unsupported result item: {item!r}")
