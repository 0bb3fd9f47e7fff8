"""
Core Models Package

Data models shared by staging, storage, services and practice.

Persisted models (QuestionRecord, Resource, TopicStats) are frozen
dataclasses with ``to_dict``/``from_dict``. The staging row is the one
mutable model: it exists to be edited before commit.
"""

from .files import FileRef
from .staging import BatchMetadata, StagingRow
from .records import QuestionRecord
from .resources import Resource
from .stats import TopicStats

__all__ = [
    "FileRef",
    "BatchMetadata",
    "StagingRow",
    "QuestionRecord",
    "Resource",
    "TopicStats",
]
