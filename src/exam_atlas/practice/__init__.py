"""Learner-side practice: past papers, topic sets and marked exam sessions."""

from .papers import Exam, build_paper, build_topic_practice, group_by_topic
from .session import Answer, ExamSession, parse_awarded_marks

__all__ = [
    "Answer",
    "Exam",
    "ExamSession",
    "build_paper",
    "build_topic_practice",
    "group_by_topic",
    "parse_awarded_marks",
]
