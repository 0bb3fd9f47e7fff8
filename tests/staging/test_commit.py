"""
Unit Tests for Staging Commit
"""

from exam_atlas.core.models.files import FileRef
from exam_atlas.core.models.staging import BatchMetadata, StagingRow
from exam_atlas.staging.commit import commit_staging, incomplete_rows

BATCH = BatchMetadata(board="AQA", subject="PHYSICS", year=2019, paper="P1")


def make_rows():
    return [
        StagingRow("1", images=[FileRef("1.png")], scheme=FileRef("m1.png"), marks=2, topic="Energy"),
        StagingRow("2.1", images=[FileRef("2.png"), FileRef("2.1.png")], scheme=FileRef("m2.1.png"), marks=3),
        StagingRow("2.2", images=[], scheme=None, marks=0, lines=7),
    ]


class TestCommitStaging:
    """Tests for commit_staging."""

    def test_commit_when_rows_then_one_record_per_row_in_order(self):
        records = commit_staging(make_rows(), BATCH)
        assert len(records) == 3
        assert [r.scheme_image.name if r.scheme_image else None for r in records] == ["m1.png", "m2.1.png", None]
        assert [r.marks for r in records] == [2, 3, 0]

    def test_commit_when_rows_then_batch_metadata_uniform(self):
        records = commit_staging(make_rows(), BATCH)
        assert {(r.board, r.subject, r.year, r.paper) for r in records} == {("AQA", "PHYSICS", 2019, "P1")}
        assert {r.type for r in records} == {"image"}
        assert len({r.created_at for r in records}) == 1

    def test_commit_when_rows_then_fresh_unique_ids(self):
        records = commit_staging(make_rows(), BATCH)
        ids = [r.id for r in records]
        assert len(set(ids)) == 3
        assert all(i.startswith("q-") for i in ids)

    def test_commit_when_row_incomplete_then_still_committed(self):
        records = commit_staging(make_rows(), BATCH)
        assert records[2].question_images == ()
        assert records[2].lines == 7

    def test_commit_when_images_then_order_kept(self):
        records = commit_staging(make_rows(), BATCH)
        assert [f.name for f in records[1].question_images] == ["2.png", "2.1.png"]

    def test_commit_when_no_rows_then_empty(self):
        assert commit_staging([], BATCH) == []


class TestIncompleteRows:
    def test_incomplete_when_missing_scheme_images_or_marks_then_listed(self):
        assert incomplete_rows(make_rows()) == ["2.2"]
