"""
Module: staging.assembler

Purpose:
    Pair question images with mark schemes and produce the staging grid.
    This is the bulk-upload pipeline: scheme index, then for every
    identifier in ascending order a context fold step followed by row
    assembly.

Key Functions:
    - assemble_row(): Build one StagingRow from the current context snapshot
    - build_staging_grid(): Run the whole pipeline over two file sets

Key Classes:
    - StagingResult: Rows plus the ignored/duplicate scheme report

Row image order is always root -> context -> specific, de-duplicated by
filename within the row. Consumers (enrichment, display, commit) rely on
this order.

Example:
    >>> schemes = [FileRef(n) for n in ("m1.png", "m2.1.png", "m2.2.png")]
    >>> questions = [FileRef(n) for n in ("1.png", "2.png", "2.1.png", "2.1-plus.png", "2.2.png")]
    >>> result = build_staging_grid(questions, schemes)
    >>> [(r.id, r.image_names) for r in result.rows]  # doctest: +NORMALIZE_WHITESPACE
    [('1', ['1.png']),
     ('2.1', ['2.png', '2.1-plus.png', '2.1.png']),
     ('2.2', ['2.png', '2.1-plus.png', '2.2.png'])]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from exam_atlas.core.models.files import FileRef
from exam_atlas.core.models.staging import DEFAULT_LINES, DEFAULT_TOPIC, StagingRow

from .context import ContextSet, accumulate_context
from .index import SchemeIndex, build_scheme_index, sorted_identifiers
from .matching import find_root_image, find_specific_images
from .naming import extract_line_count_hint, major_id

logger = logging.getLogger(__name__)

NO_SCHEMES_ERROR = "No mark scheme files with a recognised identifier (e.g. m1.2.png) were supplied."


@dataclass
class StagingResult:
    """
    Outcome of a bulk staging run.

    Attributes:
        rows: Staging rows in ascending identifier order
        ignored_schemes: Scheme filenames without an identifier
        duplicate_schemes: Scheme filenames overwritten by a later file
        error: Set when no grid could be produced
    """
    rows: list[StagingRow] = field(default_factory=list)
    ignored_schemes: list[str] = field(default_factory=list)
    duplicate_schemes: list[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def line_hint_for(images: Sequence[FileRef]) -> Optional[int]:
    """Last filename line hint among ``images``, or None."""
    hint = None
    for image in images:
        value = extract_line_count_hint(image.name)
        if value is not None:
            hint = value
    return hint


def assemble_row(
    identifier: str,
    scheme_index: SchemeIndex,
    question_files: Sequence[FileRef],
    context: ContextSet,
    *,
    strict: bool = False,
    default_topic: str = DEFAULT_TOPIC,
    default_lines: int = DEFAULT_LINES,
) -> StagingRow:
    """
    Assemble the staging row for one identifier.

    ``context`` must already include the fold step for ``identifier``
    (see build_staging_grid).

    Args:
        identifier: Row identifier, e.g. "2.1"
        scheme_index: Index from build_scheme_index
        question_files: All uploaded question images
        context: Context snapshot for this identifier
        strict: Boundary-aware specific matching
        default_topic: Placeholder topic
        default_lines: Lines when no filename hint is present

    Returns:
        StagingRow with images ordered root -> context -> specific
    """
    major = major_id(identifier)
    images: list[FileRef] = []
    placed: set[str] = set()

    def place(candidate: FileRef) -> None:
        if candidate.name not in placed:
            images.append(candidate)
            placed.add(candidate.name)

    root = find_root_image(question_files, major)
    if root is not None:
        place(root)
    for candidate in context.for_major(major):
        place(candidate)
    for candidate in find_specific_images(question_files, identifier, strict=strict):
        place(candidate)

    hint = line_hint_for(images)
    row = StagingRow(
        id=identifier,
        images=images,
        scheme=scheme_index.get(identifier),
        topic=default_topic,
        lines=hint if hint is not None else default_lines,
    )
    logger.debug(f"Row {identifier}: {row.image_names}")
    return row


def build_staging_grid(
    question_files: Sequence[FileRef],
    scheme_files: Sequence[FileRef],
    *,
    strict: bool = False,
    default_topic: str = DEFAULT_TOPIC,
    default_lines: int = DEFAULT_LINES,
) -> StagingResult:
    """
    Pair question images with mark schemes.

    Args:
        question_files: Uploaded question images, any order
        scheme_files: Uploaded mark scheme images, any order
        strict: Boundary-aware specific matching
        default_topic: Placeholder topic for every row
        default_lines: Lines when no filename hint is present

    Returns:
        StagingResult. When no scheme file carries an identifier the result
        has no rows and ``error`` is set; rows are never keyed by question
        filenames.
    """
    index = build_scheme_index(scheme_files)
    result = StagingResult(
        ignored_schemes=list(index.ignored),
        duplicate_schemes=list(index.duplicates),
    )
    if not index.entries:
        logger.warning(NO_SCHEMES_ERROR)
        result.error = NO_SCHEMES_ERROR
        return result

    context = ContextSet()
    for identifier in sorted_identifiers(index):
        specific = find_specific_images(question_files, identifier, strict=strict)
        context = accumulate_context(specific, major_id(identifier), context)
        result.rows.append(
            assemble_row(
                identifier,
                index,
                question_files,
                context,
                strict=strict,
                default_topic=default_topic,
                default_lines=default_lines,
            )
        )

    logger.info(
        f"Staged {len(result.rows)} rows from {len(question_files)} question images "
        f"and {len(scheme_files)} mark schemes"
    )
    if result.ignored_schemes:
        logger.warning(f"{len(result.ignored_schemes)} mark scheme file(s) ignored")
    return result
