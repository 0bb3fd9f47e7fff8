"""
Module: common.topics

Purpose:
    Topic classification schemas. Instructors upload a CSV listing the
    valid topics for each board/subject/paper; the classifier is then
    constrained to that list.

    CSV layout (header row optional, detected by a leading "board"):

        Board,Subject,Paper,Topics
        AQA,Physics,Paper 1,"Energy; Electricity; Particle model"
        AQA,Physics,Paper 2,Forces,Waves,Magnetism

    Topics may be split across trailing columns and/or separated by ";"
    or "," inside a quoted cell.

Key Functions:
    - parse_topic_schema_csv(): CSV text -> {"AQA-PHYSICS-P1": [...]}
    - normalise_paper_code(): "Paper 1" -> "P1"
    - schema_key(): Upper-cased "BOARD-SUBJECT-PAPER" key
    - valid_topics_for(): Topics for a paper, empty when unknown

Used By:
    - exam_atlas.storage.library.TopicSchemaStore
    - exam_atlas.studio: Valid topics for classification
"""

from __future__ import annotations

import csv
import io
import logging
import re
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

__all__ = [
    "parse_topic_schema_csv",
    "normalise_paper_code",
    "schema_key",
    "valid_topics_for",
]

_TOPIC_SPLIT_RE = re.compile(r"[;,]")
MIN_COLUMNS = 4


def _clean(value: Optional[str]) -> str:
    return value.strip().strip('"').strip().upper() if value else ""


def normalise_paper_code(value: str) -> str:
    """
    Normalize a paper label to a paper code.

    Any label mentioning 1 becomes "P1" and any mentioning 2 becomes "P2"
    (2 takes precedence); other labels are returned upper-cased.

    Example:
        >>> normalise_paper_code("Paper 1")
        'P1'
        >>> normalise_paper_code("p2")
        'P2'
        >>> normalise_paper_code("Specimen")
        'SPECIMEN'
    """
    code = _clean(value)
    if "2" in code:
        return "P2"
    if "1" in code:
        return "P1"
    return code


def schema_key(board: str, subject: str, paper: str) -> str:
    """
    Build the schema lookup key.

    Example:
        >>> schema_key("aqa", "Physics", "p1")
        'AQA-PHYSICS-P1'
    """
    return f"{board.upper()}-{subject.upper()}-{paper.upper()}"


def parse_topic_schema_csv(text: str) -> dict[str, list[str]]:
    """
    Parse a topic schema CSV.

    Rows with fewer than four columns are skipped. A later row for the
    same board/subject/paper replaces an earlier one.

    Args:
        text: CSV file contents

    Returns:
        Mapping of schema_key -> topic list (order preserved)

    Example:
        >>> parse_topic_schema_csv('AQA,Physics,Paper 1,"Energy; Waves"')
        {'AQA-PHYSICS-P1': ['Energy', 'Waves']}
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return {}
    if lines[0].strip().lower().startswith("board"):
        lines = lines[1:]

    result: dict[str, list[str]] = {}
    for row_no, row in enumerate(csv.reader(io.StringIO("\n".join(lines))), 1):
        if len(row) < MIN_COLUMNS:
            logger.debug(f"Skipping schema row {row_no}: expected {MIN_COLUMNS} columns, got {len(row)}")
            continue
        board, subject, paper = _clean(row[0]), _clean(row[1]), normalise_paper_code(row[2])
        topics = [
            topic.strip().strip('"').strip()
            for cell in row[3:]
            for topic in _TOPIC_SPLIT_RE.split(cell)
        ]
        result[schema_key(board, subject, paper)] = [t for t in topics if t]

    logger.info(f"Parsed topic schema with {len(result)} paper configuration(s)")
    return result


def valid_topics_for(
    schema: Mapping[str, list[str]],
    board: str,
    subject: str,
    paper: str,
) -> list[str]:
    """Topics allowed for a paper; empty when the schema has no entry."""
    return list(schema.get(schema_key(board, subject, paper), []))
