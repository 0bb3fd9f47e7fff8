"""
Module: records

Purpose:
    Provides the QuestionRecord dataclass - the persisted form of a question
    in the library. Records are produced by the staging commit or by the
    single-question studio form and are the de facto export/import format.

Key Functions:
    - QuestionRecord.to_dict() / QuestionRecord.from_dict(): Serialization
    - new_question_id(): Fresh unique record identifier

Dependencies:
    - dataclasses (std)
    - uuid (std)
    - .files.FileRef

Used By:
    - exam_atlas.staging.commit
    - exam_atlas.storage.library.QuestionLibrary
    - exam_atlas.core.utils.serialization
    - exam_atlas.practice

Design Note:
    Records are frozen. Reclassification produces a new record via
    ``with_topic`` rather than mutating the stored instance.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

from .files import FileRef
from .staging import DEFAULT_LINES, DEFAULT_TOPIC

IMAGE_QUESTION = "image"
TEXT_QUESTION = "text"
UNTAGGED_TOPICS = frozenset({"", "General", "Uncategorized"})


def new_question_id() -> str:
    """Return a fresh identifier like ``q-3f9c0a1b2d4e``."""
    return f"q-{uuid.uuid4().hex[:12]}"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(frozen=True)
class QuestionRecord:
    """
    Persisted question (immutable).

    Attributes:
        id: Unique identifier like "q-3f9c0a1b2d4e"
        type: "image" for scanned questions, "text" for typed ones
        board: Exam board code, e.g. "AQA"
        subject: Subject code, e.g. "PHYSICS"
        year: Exam year, e.g. 2023
        paper: Paper code, e.g. "P1"
        topic: Topic classification
        marks: Maximum marks
        lines: Ruled answer lines shown to the learner
        question_images: Ordered question images (root, context, specific)
        scheme_image: Mark scheme image, may be missing for drafts
        question_text: Question text (OCR or typed)
        scheme_text: Mark scheme text (OCR or typed)
        created_at: ISO-8601 UTC timestamp
    """
    id: str
    type: str
    board: str
    subject: str
    year: int
    paper: str
    topic: str = DEFAULT_TOPIC
    marks: int = 0
    lines: int = DEFAULT_LINES
    question_images: tuple[FileRef, ...] = ()
    scheme_image: Optional[FileRef] = None
    question_text: str = ""
    scheme_text: str = ""
    created_at: str = ""

    @property
    def is_untagged(self) -> bool:
        """True when the topic is still a placeholder."""
        return self.topic in UNTAGGED_TOPICS

    def with_topic(self, topic: str) -> QuestionRecord:
        return replace(self, topic=topic)

    def to_dict(self) -> dict:
        """
        Serialize to dictionary for JSON storage.

        Images are stored as ``{"name", "data"}`` with base64 data URLs.
        """
        return {
            "id": self.id,
            "type": self.type,
            "board": self.board,
            "subject": self.subject,
            "year": self.year,
            "paper": self.paper,
            "topic": self.topic,
            "marks": self.marks,
            "lines": self.lines,
            "question_images": [image.to_dict() for image in self.question_images],
            "scheme_image": self.scheme_image.to_dict() if self.scheme_image else None,
            "question_text": self.question_text,
            "scheme_text": self.scheme_text,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> QuestionRecord:
        """
        Deserialize from dictionary.

        Args:
            data: Dict representation (see ``to_dict``)

        Returns:
            QuestionRecord instance
        """
        scheme = data.get("scheme_image")
        return cls(
            id=data["id"],
            type=data.get("type", IMAGE_QUESTION),
            board=data["board"],
            subject=data["subject"],
            year=int(data["year"]),
            paper=data["paper"],
            topic=data.get("topic", DEFAULT_TOPIC),
            marks=int(data.get("marks", 0)),
            lines=int(data.get("lines", DEFAULT_LINES)),
            question_images=tuple(
                FileRef.from_dict(image) for image in data.get("question_images", [])
            ),
            scheme_image=FileRef.from_dict(scheme) if scheme else None,
            question_text=data.get("question_text", ""),
            scheme_text=data.get("scheme_text", ""),
            created_at=data.get("created_at", ""),
        )

    def __repr__(self) -> str:
        """Concise representation for debugging."""
        return (
            f"QuestionRecord({self.id!r}, {self.board} {self.subject} "
            f"{self.year} {self.paper}, marks={self.marks}, topic={self.topic!r})"
        )
