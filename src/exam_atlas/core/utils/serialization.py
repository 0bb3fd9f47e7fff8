"""
Serialization Utilities

Export and import of the whole studio database as one JSON document:

    {
      "schema_version": 1,
      "questions": [QuestionRecord.to_dict(), ...],
      "resources": {key: Resource.to_dict(), ...},
      "schema": {"AQA-PHYSICS-P1": ["Energy", ...], ...}
    }

Question records round-trip exactly: ``deserialize_database(
serialize_database(...))`` yields equal records.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from ..models.records import QuestionRecord
from ..models.resources import Resource
from ..schemas.validator import DATABASE_SCHEMA_VERSION, ValidationError, validate_database

# Failures raised by model from_dict() on payloads that slip past validation
DECODE_ERRORS = (ValueError, TypeError, AttributeError, KeyError)


@dataclass(frozen=True)
class DatabaseSnapshot:
    """
    Contents of one database export.

    Attributes:
        questions: Question records in library order
        resources: Paper resources keyed by storage key
        schema: Topic lists keyed by "BOARD-SUBJECT-PAPER"
    """
    questions: tuple[QuestionRecord, ...] = ()
    resources: dict[str, Resource] = field(default_factory=dict)
    schema: dict[str, list[str]] = field(default_factory=dict)


# ─────────────────────────────────────────────────────────────────────────────
# Database Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_database(
    questions: Iterable[QuestionRecord],
    resources: Mapping[str, Resource] | None = None,
    schema: Mapping[str, list[str]] | None = None,
) -> dict[str, Any]:
    """
    Serialize library contents to an export dictionary.

    Args:
        questions: Records to export
        resources: Resources keyed by storage key
        schema: Topic schema mapping

    Returns:
        Dictionary suitable for JSON serialization
    """
    return {
        "schema_version": DATABASE_SCHEMA_VERSION,
        "questions": [q.to_dict() for q in questions],
        "resources": {key: r.to_dict() for key, r in (resources or {}).items()},
        "schema": {key: list(topics) for key, topics in (schema or {}).items()},
    }


def deserialize_database(data: dict[str, Any], *, validate: bool = True) -> DatabaseSnapshot:
    """
    Deserialize an export dictionary.

    Args:
        data: Dictionary from JSON
        validate: Whether to validate the payload first

    Returns:
        DatabaseSnapshot

    Raises:
        ValidationError: If validate=True and data is invalid, or if an
            image payload cannot be decoded
    """
    if validate:
        validate_database(data, strict=True)

    try:
        questions = tuple(QuestionRecord.from_dict(q) for q in data.get("questions", []))
    except DECODE_ERRORS as e:
        raise ValidationError(f"Could not decode question: {e}", path="questions") from e

    try:
        resources = {
            key: Resource.from_dict(key, payload)
            for key, payload in data.get("resources", {}).items()
        }
    except DECODE_ERRORS as e:
        raise ValidationError(f"Could not decode resource: {e}", path="resources") from e
    schema = {key: list(topics) for key, topics in data.get("schema", {}).items()}
    return DatabaseSnapshot(questions=questions, resources=resources, schema=schema)


# ─────────────────────────────────────────────────────────────────────────────
# JSON File Utilities
# ─────────────────────────────────────────────────────────────────────────────

def save_database_json(path: Path, snapshot: DatabaseSnapshot) -> None:
    """
    Write a database export to disk.

    Args:
        path: Output path, e.g. "examatlas_db.json"
        snapshot: Contents to export
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data = serialize_database(snapshot.questions, snapshot.resources, snapshot.schema)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)


def load_database_json(path: Path, *, validate: bool = True) -> DatabaseSnapshot:
    """
    Read a database export from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the file is not valid JSON or fails validation
    """
    if not path.exists():
        raise FileNotFoundError(f"Database export not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON: {e}", path=str(path)) from e

    return deserialize_database(data, validate=validate)
