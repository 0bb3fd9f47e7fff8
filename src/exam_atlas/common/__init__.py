"""Shared helpers used across studio and practice code."""

from .topics import normalise_paper_code, parse_topic_schema_csv, schema_key, valid_topics_for

__all__ = [
    "normalise_paper_code",
    "parse_topic_schema_csv",
    "schema_key",
    "valid_topics_for",
]
