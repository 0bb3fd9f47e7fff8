"""
Module: practice.papers

Purpose:
    Assemble practice exams from the question library: a past paper by
    subject/year/paper, or a shuffled topic practice set.

Key Functions:
    - build_paper(): Questions of one past paper, in library order
    - group_by_topic(): Topic -> questions for a subject
    - build_topic_practice(): Shuffled practice set for one topic
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterable, Optional

from exam_atlas.core.models.records import QuestionRecord
from exam_atlas.services.classifier import UNCATEGORIZED

PRACTICE_BOARD = "Practice"
MIXED_YEAR = "Mixed"


@dataclass(frozen=True)
class Exam:
    """
    A sequence of questions taken in one sitting.

    Attributes:
        id: Exam identifier, e.g. "PHYSICS-2019-P1"
        title: Display title
        questions: Questions in sitting order
        board: Board code, "Practice" for topic sets
        year: Exam year, "Mixed" for topic sets
        paper: Paper code, None for topic sets
    """
    id: str
    title: str
    questions: tuple[QuestionRecord, ...]
    board: str
    year: int | str
    paper: Optional[str] = None

    @property
    def total_marks(self) -> int:
        return sum(q.marks for q in self.questions)

    def __len__(self) -> int:
        return len(self.questions)


def build_paper(
    questions: Iterable[QuestionRecord], subject: str, year: int, paper: str
) -> Optional[Exam]:
    """
    Build a past paper.

    Returns:
        The exam, or None when the library holds no question for the paper
    """
    selected = tuple(
        q for q in questions if q.subject == subject and q.year == year and q.paper == paper
    )
    if not selected:
        return None
    return Exam(
        id=f"{subject}-{year}-{paper}",
        title=f"{subject} {year} {paper}",
        questions=selected,
        board=selected[0].board,
        year=year,
        paper=paper,
    )


def group_by_topic(
    questions: Iterable[QuestionRecord], subject: Optional[str] = None
) -> dict[str, list[QuestionRecord]]:
    """Group questions by topic; a missing topic groups as "Uncategorized"."""
    groups: dict[str, list[QuestionRecord]] = {}
    for question in questions:
        if subject is not None and question.subject != subject:
            continue
        groups.setdefault(question.topic or UNCATEGORIZED, []).append(question)
    return groups


def build_topic_practice(
    topic: str,
    questions: Iterable[QuestionRecord],
    *,
    rng: Optional[random.Random] = None,
) -> Exam:
    """
    Shuffle a topic's questions into a practice exam.

    Args:
        topic: Topic name
        questions: The topic's questions
        rng: Random source, seed it for a reproducible order
    """
    shuffled = list(questions)
    (rng or random.Random()).shuffle(shuffled)
    return Exam(
        id=f"practice-{topic}",
        title=f"{topic} Practice",
        questions=tuple(shuffled),
        board=PRACTICE_BOARD,
        year=MIXED_YEAR,
    )
