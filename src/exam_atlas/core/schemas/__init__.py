"""Schema validation for persisted and exported data."""

from .validator import (
    DATABASE_SCHEMA_VERSION,
    ValidationError,
    validate_database,
    validate_question,
)

__all__ = [
    "DATABASE_SCHEMA_VERSION",
    "ValidationError",
    "validate_database",
    "validate_question",
]
