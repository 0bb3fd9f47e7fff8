"""Persistence: async key-value store and the collections built on it."""

from .library import BookmarkStore, QuestionLibrary, ResourceLibrary, StatsStore, TopicSchemaStore
from .store import JsonFileStore, KeyValueStore, MemoryStore, StorageError

__all__ = [
    "BookmarkStore",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "QuestionLibrary",
    "ResourceLibrary",
    "StatsStore",
    "StorageError",
    "TopicSchemaStore",
]
