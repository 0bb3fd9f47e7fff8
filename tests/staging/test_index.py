"""
Unit Tests for the Scheme Index

Tests for build_scheme_index and sorted_identifiers.
"""

import logging

from exam_atlas.core.models.files import FileRef
from exam_atlas.staging.index import build_scheme_index, sorted_identifiers


def refs(*names):
    return [FileRef(name) for name in names]


class TestBuildSchemeIndex:
    """Tests for build_scheme_index."""

    def test_build_when_valid_names_then_indexed_by_identifier(self):
        index = build_scheme_index(refs("m1.png", "m2.1.png"))
        assert set(index.entries) == {"1", "2.1"}
        assert index.get("2.1").name == "m2.1.png"
        assert "1" in index
        assert len(index) == 2

    def test_build_when_unparseable_name_then_ignored_and_logged(self, caplog):
        with caplog.at_level(logging.WARNING):
            index = build_scheme_index(refs("m1.png", "notes.png"))
        assert index.ignored == ["notes.png"]
        assert "notes.png" in caplog.text
        assert len(index) == 1

    def test_build_when_duplicate_identifier_then_last_wins_and_reported(self, caplog):
        with caplog.at_level(logging.WARNING):
            index = build_scheme_index(refs("m1.png", "M1.PNG"))
        assert index.get("1").name == "M1.PNG"
        assert index.duplicates == ["m1.png"]
        assert "replaces" in caplog.text

    def test_build_when_empty_then_empty_index(self):
        index = build_scheme_index([])
        assert len(index) == 0
        assert index.ignored == []
        assert index.get("1") is None


class TestSortedIdentifiers:
    """Tests for sorted_identifiers."""

    def test_sorted_when_mixed_widths_then_numeric_order(self):
        index = build_scheme_index(refs("m1.10.png", "m1.2.png", "m1.1.png"))
        assert sorted_identifiers(index) == ["1.1", "1.2", "1.10"]

    def test_sorted_when_multiple_majors_then_grouped_by_major(self):
        index = build_scheme_index(refs("m10.png", "m2.2.png", "m2.1.png", "m1.png"))
        assert sorted_identifiers(index) == ["1", "2.1", "2.2", "10"]
