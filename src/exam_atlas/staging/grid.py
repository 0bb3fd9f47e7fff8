"""
Module: staging.grid

Purpose:
    The editable staging grid produced by bulk pairing. Rows stay in the
    order they were assembled; edits, image changes and enrichment only
    ever touch one row.

Key Classes:
    - StagingGrid: Row container with the mutation API

Key Functions:
    - enrich_row(): Fill a row's fields from the classification service
    - coerce_count(): Numeric field coercion used by set_row_field

Concurrency:
    ``enrich_all`` runs rows strictly in order, one at a time, sleeping
    ``delay`` seconds between service calls to stay under provider rate
    limits. An ``asyncio.Event`` passed as ``cancel`` is checked between
    rows.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Optional, Sequence

from exam_atlas.core.models.files import FileRef
from exam_atlas.core.models.staging import BatchMetadata, StagingRow

from .assembler import line_hint_for

if TYPE_CHECKING:
    from exam_atlas.services.classifier import GeminiClassifier

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("topic", "question_text", "scheme_text")
COUNT_FIELDS = ("marks", "lines")
EDITABLE_FIELDS = TEXT_FIELDS + COUNT_FIELDS
DEFAULT_ENRICH_DELAY_S = 0.5


def coerce_count(value: Any) -> int:
    """
    Coerce user input for marks/lines to a non-negative integer.

    Numeric text is truncated like the number it spells.

    Example:
        >>> coerce_count("6"), coerce_count("3.5"), coerce_count("abc"), coerce_count(-2)
        (6, 3, 0, 0)
    """
    if isinstance(value, str):
        value = value.strip()
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(number, 0)


async def enrich_row(
    row: StagingRow,
    classifier: GeminiClassifier,
    batch: BatchMetadata,
    valid_topics: Sequence[str] = (),
) -> StagingRow:
    """
    Ask the classification service to fill a row.

    Topic, marks, question text and scheme text are overwritten with the
    service response. Lines are overwritten only when no image in the row
    carries a filename line hint: the filename wins over the inferred value.

    The service never raises; on failure it returns low-confidence
    defaults, which are applied like any other response.

    Args:
        row: Row to enrich (not modified)
        classifier: Classification service
        batch: Board/subject/paper context for the prompt
        valid_topics: Allowed topics from the topic schema, may be empty

    Returns:
        Updated copy of the row
    """
    analysis = await classifier.analyze(
        row.images,
        row.scheme,
        board=batch.board,
        subject=batch.subject,
        paper=batch.paper,
        valid_topics=valid_topics,
    )
    lines = row.lines if line_hint_for(row.images) is not None else analysis.lines
    return replace(
        row,
        images=list(row.images),
        topic=analysis.topic,
        marks=max(analysis.marks, 0),
        lines=max(lines, 0),
        question_text=analysis.question_text,
        scheme_text=analysis.scheme_text,
    )


class StagingGrid:
    """
    Mutable, ordered collection of staging rows owned by one studio session.

    Example:
        >>> grid = StagingGrid([StagingRow("1")])
        >>> grid.set_row_field(0, "marks", "3")
        >>> grid[0].marks
        3
    """

    def __init__(self, rows: Optional[Iterable[StagingRow]] = None) -> None:
        self._rows: list[StagingRow] = list(rows or [])

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[StagingRow]:
        return iter(self._rows)

    def __getitem__(self, index: int) -> StagingRow:
        return self._rows[index]

    @property
    def rows(self) -> list[StagingRow]:
        """Snapshot of the rows in grid order."""
        return list(self._rows)

    def _row(self, row_index: int) -> StagingRow:
        if not 0 <= row_index < len(self._rows):
            raise IndexError(f"Row {row_index} out of range (grid has {len(self._rows)} rows)")
        return self._rows[row_index]

    # ─────────────────────────────────────────────────────────────────────────
    # Mutation API
    # ─────────────────────────────────────────────────────────────────────────

    def add_image_to_row(self, row_index: int, files: Iterable[FileRef]) -> None:
        """
        Append images to one row.

        No de-duplication against other rows: the same file may appear in
        several rows, e.g. a shared diagram placed by hand.
        """
        row = self._row(row_index)
        row.images.extend(files)

    def remove_image_from_row(self, row_index: int, image_index: int) -> FileRef:
        """Remove and return one image of a row."""
        row = self._row(row_index)
        if not 0 <= image_index < len(row.images):
            raise IndexError(f"Image {image_index} out of range for row {row.id}")
        return row.images.pop(image_index)

    def set_row_field(self, row_index: int, field_name: str, value: Any) -> None:
        """
        Set one editable field.

        Non-numeric marks/lines coerce to 0. Text fields are stored as str.

        Raises:
            ValueError: If ``field_name`` is not editable
        """
        if field_name not in EDITABLE_FIELDS:
            raise ValueError(f"Field {field_name!r} is not editable; expected one of {EDITABLE_FIELDS}")
        row = self._row(row_index)
        if field_name in COUNT_FIELDS:
            setattr(row, field_name, coerce_count(value))
        else:
            setattr(row, field_name, "" if value is None else str(value))

    def clear(self) -> None:
        self._rows.clear()

    # ─────────────────────────────────────────────────────────────────────────
    # Enrichment
    # ─────────────────────────────────────────────────────────────────────────

    async def enrich_row(
        self,
        row_index: int,
        classifier: GeminiClassifier,
        batch: BatchMetadata,
        valid_topics: Sequence[str] = (),
    ) -> StagingRow:
        """Enrich one row in place and return it."""
        updated = await enrich_row(self._row(row_index), classifier, batch, valid_topics)
        self._rows[row_index] = updated
        return updated

    async def enrich_all(
        self,
        classifier: GeminiClassifier,
        batch: BatchMetadata,
        valid_topics: Sequence[str] = (),
        *,
        delay: float = DEFAULT_ENRICH_DELAY_S,
        cancel: Optional[asyncio.Event] = None,
        on_progress: Optional[Callable[[int, StagingRow], None]] = None,
    ) -> int:
        """
        Enrich every row in grid order.

        Args:
            classifier: Classification service
            batch: Board/subject/paper context
            valid_topics: Allowed topics from the topic schema
            delay: Seconds to wait between service calls
            cancel: Set to stop before the next row
            on_progress: Called with (row_index, updated_row) after each row

        Returns:
            Number of rows enriched
        """
        done = 0
        for row_index in range(len(self._rows)):
            if cancel is not None and cancel.is_set():
                logger.info(f"Enrichment cancelled after {done} of {len(self._rows)} rows")
                break
            if done:
                await asyncio.sleep(delay)
            updated = await self.enrich_row(row_index, classifier, batch, valid_topics)
            done += 1
            logger.debug(f"Enriched row {updated.id}: topic={updated.topic!r} marks={updated.marks}")
            if on_progress is not None:
                on_progress(row_index, updated)
        return done
