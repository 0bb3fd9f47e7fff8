"""
Unit Tests for Core Models

Tests for FileRef, BatchMetadata, QuestionRecord, Resource and TopicStats.
"""

import json

import pytest

from exam_atlas.core.models.files import FileRef
from exam_atlas.core.models.records import QuestionRecord, new_question_id
from exam_atlas.core.models.resources import Resource, resource_key, schema_resource_key
from exam_atlas.core.models.staging import BatchMetadata, StagingRow
from exam_atlas.core.models.stats import TopicStats


class TestFileRef:
    """Tests for FileRef."""

    @pytest.mark.parametrize("name, expected", [
        ("1.png", "image/png"),
        ("scan.JPG", "image/jpeg"),
        ("scheme.pdf", "application/pdf"),
        ("MS.PDF", "application/pdf"),
        ("noext", "image/png"),
        ("notes.txt", "image/png"),
    ])
    def test_mime_type_when_suffix_then_inferred(self, name, expected):
        assert FileRef(name).mime_type == expected

    def test_data_url_when_round_tripped_then_equal(self, png_bytes):
        ref = FileRef("1.png", png_bytes)
        url = ref.to_data_url()
        assert url.startswith("data:image/png;base64,")
        assert FileRef.from_data_url("1.png", url) == ref

    def test_from_data_url_when_no_header_then_decoded(self):
        assert FileRef.from_data_url("a.png", "aGVsbG8=").data == b"hello"

    def test_from_data_url_when_invalid_base64_then_raises(self):
        with pytest.raises(ValueError, match="Invalid base64"):
            FileRef.from_data_url("a.png", "data:image/png;base64,@@@")

    @pytest.mark.parametrize("payload", [
        {"name": "1.png", "data": None},
        {"name": 3, "data": "aGVsbG8="},
        "1.png",
    ])
    def test_from_dict_when_payload_not_strings_then_value_error(self, payload):
        with pytest.raises(ValueError):
            FileRef.from_dict(payload)

    def test_from_path_when_file_exists_then_named_by_basename(self, sample_image, png_bytes):
        ref = FileRef.from_path(sample_image)
        assert ref.name == "2.1-6.png"
        assert ref.data == png_bytes

    def test_repr_when_large_payload_then_size_only(self):
        assert repr(FileRef("1.png", b"x" * 10)) == "FileRef('1.png', 10 bytes)"


class TestBatchMetadata:
    def test_init_when_board_empty_then_raises(self):
        with pytest.raises(ValueError, match="board"):
            BatchMetadata(board="", subject="PHYSICS", year=2019, paper="P1")

    def test_init_when_subject_empty_then_raises(self):
        with pytest.raises(ValueError, match="subject"):
            BatchMetadata(board="AQA", subject="", year=2019, paper="P1")


class TestStagingRow:
    def test_defaults_when_created_then_placeholder_values(self):
        row = StagingRow("1")
        assert (row.topic, row.marks, row.lines) == ("General", 0, 4)
        assert row.images == []
        assert row.scheme is None


class TestQuestionRecord:
    """Tests for QuestionRecord."""

    def make(self, **overrides):
        fields = dict(
            id="q-abc", type="image", board="AQA", subject="PHYSICS", year=2019, paper="P1",
            topic="Energy", marks=3, lines=6,
            question_images=(FileRef("2.png", b"a"), FileRef("2.1.png", b"b")),
            scheme_image=FileRef("m2.1.png", b"c"), question_text="Q", scheme_text="S",
            created_at="2024-05-01T10:00:00+00:00",
        )
        fields.update(overrides)
        return QuestionRecord(**fields)

    def test_to_dict_when_serialized_then_images_are_data_urls(self):
        d = self.make().to_dict()
        assert d["question_images"][0] == {"name": "2.png", "data": "data:image/png;base64,YQ=="}
        assert d["scheme_image"]["name"] == "m2.1.png"

    def test_from_dict_when_round_tripped_then_equal(self):
        record = self.make()
        assert QuestionRecord.from_dict(record.to_dict()) == record

    def test_from_dict_when_no_scheme_then_none(self):
        record = self.make(scheme_image=None)
        assert QuestionRecord.from_dict(record.to_dict()).scheme_image is None

    def test_from_dict_when_year_string_then_int(self):
        d = self.make().to_dict()
        d["year"] = "2019"
        assert QuestionRecord.from_dict(d).year == 2019

    def test_from_dict_when_topic_empty_then_kept_empty(self):
        record = self.make(topic="")
        restored = QuestionRecord.from_dict(json.loads(json.dumps(record.to_dict())))
        assert restored.topic == ""
        assert restored == record

    def test_from_dict_when_topic_missing_then_default(self):
        d = self.make().to_dict()
        del d["topic"]
        assert QuestionRecord.from_dict(d).topic == "General"

    @pytest.mark.parametrize("topic, untagged", [
        ("General", True), ("Uncategorized", True), ("", True), ("Energy", False),
    ])
    def test_is_untagged_when_topic_then_flag(self, topic, untagged):
        assert self.make(topic=topic).is_untagged is untagged

    def test_with_topic_when_called_then_new_record(self):
        record = self.make()
        updated = record.with_topic("Waves")
        assert updated.topic == "Waves"
        assert record.topic == "Energy"

    def test_new_question_id_when_called_then_unique(self):
        ids = {new_question_id() for _ in range(50)}
        assert len(ids) == 50


class TestResource:
    def test_keys_when_built_then_documented_format(self):
        assert resource_key("AQA", "PHYSICS", 2019, "P1", "scheme") == "AQA-PHYSICS-2019-P1-scheme"
        assert schema_resource_key("topics.csv") == "SCHEMA-FILE-topics.csv"

    def test_init_when_unknown_type_then_raises(self):
        with pytest.raises(ValueError):
            Resource(key="k", file_name="f", type="video", board="AQA")

    def test_round_trip_when_schema_marker_then_optional_fields_omitted(self):
        resource = Resource(key="SCHEMA-FILE-t.csv", file_name="t.csv", type="schema", board="ALL")
        assert resource.to_dict() == {"file_name": "t.csv", "type": "schema", "board": "ALL"}
        assert Resource.from_dict(resource.key, resource.to_dict()) == resource


class TestTopicStats:
    @pytest.mark.parametrize("correct, total, mastery", [(0, 0, 0), (1, 3, 33), (2, 3, 67), (4, 4, 100)])
    def test_mastery_when_counts_then_rounded_percentage(self, correct, total, mastery):
        assert TopicStats(correct, total).mastery == mastery

    def test_add_when_called_then_new_value(self):
        stats = TopicStats(1, 2)
        assert stats.add(2, 3) == TopicStats(3, 5)
        assert stats == TopicStats(1, 2)
