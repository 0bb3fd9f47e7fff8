"""
Module: staging.commit

Purpose:
    Convert staging rows into persisted QuestionRecords. Completeness is not
    checked: a row with zero marks or no scheme is committed as a draft and
    the caller is expected to warn first.

Key Functions:
    - commit_staging(): One record per row, in row order
    - incomplete_rows(): Rows the caller may want to warn about
"""

from __future__ import annotations

from typing import Iterable

from exam_atlas.core.models.records import IMAGE_QUESTION, QuestionRecord, new_question_id, utc_timestamp
from exam_atlas.core.models.staging import BatchMetadata, StagingRow


def commit_staging(rows: Iterable[StagingRow], batch: BatchMetadata) -> list[QuestionRecord]:
    """
    Materialize staging rows as question records.

    Every record gets a fresh id, the image question type and the same
    board/subject/year/paper from ``batch``.

    Args:
        rows: Staging rows in grid order
        batch: Metadata applied to every record

    Returns:
        Records in row order
    """
    created_at = utc_timestamp()
    return [
        QuestionRecord(
            id=new_question_id(),
            type=IMAGE_QUESTION,
            board=batch.board,
            subject=batch.subject,
            year=batch.year,
            paper=batch.paper,
            topic=row.topic,
            marks=row.marks,
            lines=row.lines,
            question_images=tuple(row.images),
            scheme_image=row.scheme,
            question_text=row.question_text,
            scheme_text=row.scheme_text,
            created_at=created_at,
        )
        for row in rows
    ]


def incomplete_rows(rows: Iterable[StagingRow]) -> list[str]:
    """Identifiers of rows with no scheme, no images or zero marks."""
    return [row.id for row in rows if row.scheme is None or not row.images or row.marks == 0]
