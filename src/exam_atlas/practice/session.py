"""
Module: practice.session

Purpose:
    One sitting of an exam. The learner submits a written answer per
    question; image questions are marked by the classifier using the
    question's scheme image and the paper's global mark scheme, after which
    the learner self-verifies full or zero marks. On completion the marks
    per topic are added to the mastery stats.

Key Classes:
    - ExamSession: Answer submission, verification and scoring
    - Answer: Recorded answer for one question

Key Functions:
    - parse_awarded_marks(): Read "2/3" style scores from feedback text
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from exam_atlas.core.models.records import IMAGE_QUESTION, QuestionRecord
from exam_atlas.core.models.staging import DEFAULT_TOPIC
from exam_atlas.services.classifier import GeminiClassifier
from exam_atlas.storage.library import ResourceLibrary, StatsStore

from .papers import Exam

logger = logging.getLogger(__name__)

_SCORE_RE = re.compile(r"(\d+)\s*/\s*(\d+)")


def parse_awarded_marks(feedback: Optional[str], max_marks: int) -> Optional[int]:
    """
    First "earned/possible" score in the feedback, capped at ``max_marks``.

    Example:
        >>> parse_awarded_marks("Score: 2/3. Good use of units.", 3)
        2
        >>> parse_awarded_marks("Marking failed.", 3) is None
        True
    """
    match = _SCORE_RE.search(feedback or "")
    if not match:
        return None
    return min(int(match.group(1)), max(max_marks, 0))


@dataclass
class Answer:
    text: str
    feedback: Optional[str] = None
    marks_awarded: int = 0
    is_correct: Optional[bool] = None


class ExamSession:
    """
    Example:
        >>> session = ExamSession(exam, classifier, resources)
        >>> await session.submit("Energy is conserved")
        >>> session.verify(True)
        >>> session.next()
    """

    def __init__(
        self,
        exam: Exam,
        classifier: GeminiClassifier,
        resources: Optional[ResourceLibrary] = None,
    ) -> None:
        if not exam.questions:
            raise ValueError(f"Exam {exam.id} has no questions")
        self.exam = exam
        self.classifier = classifier
        self.resources = resources
        self.index = 0
        self.answers: dict[int, Answer] = {}
        self.finished = False

    @property
    def question(self) -> QuestionRecord:
        return self.exam.questions[self.index]

    @property
    def answer(self) -> Optional[Answer]:
        return self.answers.get(self.index)

    async def submit(self, text: str) -> Answer:
        """
        Record an answer for the current question.

        Image questions are sent for marking; feedback is whatever the
        classifier returns, including its failure text.

        Raises:
            ValueError: If ``text`` is blank
        """
        if not text.strip():
            raise ValueError("Answer is empty")
        question = self.question
        feedback = None
        if question.type == IMAGE_QUESTION:
            global_scheme = None
            if self.resources is not None:
                resource = self.resources.global_scheme(
                    question.board, question.subject, question.year, question.paper
                )
                global_scheme = resource.file if resource else None
            feedback = await self.classifier.evaluate_answer(
                question.question_images,
                question.scheme_image,
                global_scheme,
                text,
                question.marks,
            )
        answer = Answer(text=text, feedback=feedback)
        self.answers[self.index] = answer
        return answer

    def verify(self, correct: bool) -> Answer:
        """Self-verify the current answer: full marks or zero."""
        answer = self.answers.setdefault(self.index, Answer(text=""))
        answer.is_correct = correct
        answer.marks_awarded = self.question.marks if correct else 0
        return answer

    def next(self) -> bool:
        """Advance; returns False (and finishes) after the last question."""
        if self.index < len(self.exam) - 1:
            self.index += 1
            return True
        self.finished = True
        return False

    @property
    def score(self) -> int:
        return sum(a.marks_awarded for a in self.answers.values())

    @property
    def total(self) -> int:
        return self.exam.total_marks

    @property
    def percentage(self) -> int:
        return round(self.score / self.total * 100) if self.total else 0

    def topic_results(self) -> dict[str, tuple[int, int]]:
        """(earned, possible) marks per topic over every question."""
        results: dict[str, tuple[int, int]] = {}
        for i, question in enumerate(self.exam.questions):
            topic = question.topic or DEFAULT_TOPIC
            answer = self.answers.get(i)
            earned, possible = results.get(topic, (0, 0))
            results[topic] = (
                earned + (answer.marks_awarded if answer else 0),
                possible + question.marks,
            )
        return results

    async def record_stats(self, stats: StatsStore) -> bool:
        results = self.topic_results()
        logger.info(f"{self.exam.title}: {self.score}/{self.total} ({self.percentage}%)")
        return await stats.record(results)
