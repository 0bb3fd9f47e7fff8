"""
Exam Atlas Core Package

Shared data models, schema validation and serialization utilities.
"""

from .models import BatchMetadata, FileRef, QuestionRecord, Resource, StagingRow, TopicStats

__all__ = [
    "FileRef",
    "BatchMetadata",
    "StagingRow",
    "QuestionRecord",
    "Resource",
    "TopicStats",
]
