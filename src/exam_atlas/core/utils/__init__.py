"""Serialization helpers for database export and import."""

from .serialization import (
    DatabaseSnapshot,
    deserialize_database,
    load_database_json,
    save_database_json,
    serialize_database,
)

__all__ = [
    "DatabaseSnapshot",
    "deserialize_database",
    "load_database_json",
    "save_database_json",
    "serialize_database",
]
