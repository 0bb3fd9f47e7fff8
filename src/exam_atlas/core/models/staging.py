"""
Module: staging

Purpose:
    Provides the StagingRow and BatchMetadata dataclasses. A StagingRow is
    the editable, not-yet-persisted candidate for one mark-scheme
    identifier. Unlike the persisted records it is deliberately mutable:
    the instructor edits it in place before commit.

Used By:
    - exam_atlas.staging.assembler: Creates rows
    - exam_atlas.staging.grid: Mutates rows
    - exam_atlas.staging.commit: Converts rows to QuestionRecords
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .files import FileRef

DEFAULT_TOPIC = "General"
DEFAULT_LINES = 4


@dataclass(frozen=True)
class BatchMetadata:
    """
    Metadata applied uniformly to every row of one commit.

    Attributes:
        board: Exam board code, e.g. "AQA"
        subject: Subject code, e.g. "PHYSICS"
        year: Exam year, e.g. 2023
        paper: Paper code, e.g. "P1"
    """
    board: str
    subject: str
    year: int
    paper: str

    def __post_init__(self) -> None:
        if not self.board:
            raise ValueError("board must not be empty")
        if not self.subject:
            raise ValueError("subject must not be empty")


@dataclass
class StagingRow:
    """
    One editable staging row.

    Attributes:
        id: Dotted identifier, e.g. "2.1"
        images: Ordered question images: root, then context, then specific
        scheme: Mark scheme file for this identifier
        topic: Topic label, placeholder until enriched
        marks: Maximum marks (>= 0)
        lines: Ruled answer lines (>= 0)
        question_text: OCR text of the question, filled by enrichment
        scheme_text: OCR text of the mark scheme, filled by enrichment
    """
    id: str
    images: list[FileRef] = field(default_factory=list)
    scheme: Optional[FileRef] = None
    topic: str = DEFAULT_TOPIC
    marks: int = 0
    lines: int = DEFAULT_LINES
    question_text: str = ""
    scheme_text: str = ""

    @property
    def image_names(self) -> list[str]:
        return [image.name for image in self.images]
