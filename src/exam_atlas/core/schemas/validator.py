"""
Schema Validation Utilities

Validates persisted JSON data before it is turned back into models.

Two payload shapes are checked:
1. Question records (one entry of the ``questions`` collection)
2. Database exports (``{"questions": [...], "resources": {...}, "schema": {...}}``)

Each has a quick hand-written check used when loading the studio's own
collections, and a strict mode that also runs the JSON Schema definitions
next to this module (``question.schema.json``, ``database.schema.json``)
through ``jsonschema``. Imports of exported databases use strict mode.

Validation fails fast: the first structurally broken record aborts an
import so a partial database never gets merged.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema

from ..models.resources import RESOURCE_TYPES

# Schema version written into database exports
DATABASE_SCHEMA_VERSION = 1

QUESTION_REQUIRED_FIELDS = ("id", "board", "subject", "year", "paper")


# Load schemas lazily
_SCHEMAS: dict[str, dict] = {}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class ValidationError(Exception):
    """Raised when data fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def _validate_against(data: Any, schema_name: str, path: str = "") -> None:
    """Run jsonschema validation, re-raising as ValidationError."""
    schema = _load_schema(schema_name)
    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as e:
        location = ".".join(str(p) for p in e.absolute_path)
        raise ValidationError(
            f"Schema validation failed: {e.message}",
            path=".".join(p for p in (path, location) if p),
            errors=[e.message],
        ) from e


def validate_question(data: Any, *, path: str = "", strict: bool = False) -> None:
    """
    Validate a question record dictionary.

    Args:
        data: Question dictionary to validate
        path: Location used in error messages, e.g. "questions[3]"
        strict: If True, also validate against question.schema.json

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Question must be an object, got {type(data).__name__}", path=path)

    missing = [f for f in QUESTION_REQUIRED_FIELDS if f not in data]
    if missing:
        raise ValidationError(
            f"Missing required fields: {missing}",
            path=path,
            errors=[f"Missing field: {f}" for f in missing],
        )

    errors: list[str] = []
    try:
        int(data["year"])
    except (TypeError, ValueError):
        errors.append(f"year must be an integer: {data['year']!r}")

    for key in ("marks", "lines"):
        if key in data:
            value = data[key]
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                errors.append(f"{key} must be a non-negative integer: {value!r}")

    images = data.get("question_images", [])
    if not isinstance(images, list):
        errors.append("question_images must be a list")
    else:
        for i, image in enumerate(images):
            if not _is_file_payload(image):
                errors.append(f"question_images[{i}] must have string 'name' and 'data'")

    scheme = data.get("scheme_image")
    if scheme is not None and not _is_file_payload(scheme):
        errors.append("scheme_image must have string 'name' and 'data'")

    if errors:
        raise ValidationError(
            f"Question {data.get('id')!r} is invalid: {errors[0]}",
            path=path,
            errors=errors,
        )

    if strict:
        _validate_against(data, "question", path)


def validate_database(data: Any, *, strict: bool = False) -> None:
    """
    Validate a database export payload.

    All three sections are optional but must have the right shape when
    present.

    Args:
        data: Parsed export document
        strict: If True, also validate against database.schema.json and
            each question against question.schema.json

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data, dict):
        raise ValidationError("Database export must be a JSON object")

    questions = data.get("questions", [])
    if not isinstance(questions, list):
        raise ValidationError("'questions' must be a list", path="questions")
    for i, question in enumerate(questions):
        validate_question(question, path=f"questions[{i}]")

    resources = data.get("resources", {})
    if not isinstance(resources, dict):
        raise ValidationError("'resources' must be an object", path="resources")
    for key, resource in resources.items():
        if not isinstance(resource, dict) or resource.get("type") not in RESOURCE_TYPES:
            raise ValidationError(
                f"Resource {key!r} has an invalid type",
                path=f"resources.{key}",
            )

    schema = data.get("schema", {})
    if not isinstance(schema, dict):
        raise ValidationError("'schema' must be an object", path="schema")
    for key, topics in schema.items():
        if not isinstance(topics, list) or not all(isinstance(t, str) for t in topics):
            raise ValidationError(
                f"Schema entry {key!r} must be a list of topic strings",
                path=f"schema.{key}",
            )

    if strict:
        _validate_against(data, "database")
        for i, question in enumerate(questions):
            _validate_against(question, "question", f"questions[{i}]")


def _is_file_payload(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and isinstance(value.get("name"), str)
        and isinstance(value.get("data"), str)
    )
