# tests/unit/history/test_unit_history_models.py — v1
"""Tests for history/models.py."""

from __future__ import annotations

from stemcache.core.models import NamedPart
from stemcache.history.models import AppendResult, HistoryRecord


class TestHistoryRecord:
    def test_resolved_parts_passthrough(self, sample_parts):
        record = HistoryRecord(
            submitter="a", source_name="s.wav", fingerprint="fp",
            locations=["ignored"], parts=sample_parts,
        )
        assert record.with_resolved_parts().parts == sample_parts

    def test_resolved_parts_from_locations(self):
        record = HistoryRecord(
            submitter="a", source_name="s.wav", fingerprint="fp", locations=["x"],
        )
        resolved = record.with_resolved_parts()
        assert resolved.parts == [NamedPart(name="Stem 1", location="x")]
        assert record.parts == []

    def test_nothing_to_resolve(self):
        record = HistoryRecord(submitter="a", source_name="s.wav", fingerprint="fp")
        assert record.with_resolved_parts().parts == []


def test_append_result_defaults():
    assert AppendResult(appended=True).reason is None
