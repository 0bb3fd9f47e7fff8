"""
Module: studio

Purpose:
    Instructor-side orchestration. A StudioSession owns the loaded
    collections, the current staging grid and the classifier, and exposes
    the studio workflows: bulk staging, enrichment and commit, the
    single-question form with auto-detection, reclassification, resource
    and topic schema uploads, and database export/import.

Key Classes:
    - StudioSession: Studio workflows over one store
    - CommitResult: Outcome of committing the staging grid

Used By:
    - exam_atlas.cli
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence

from exam_atlas.common.topics import parse_topic_schema_csv
from exam_atlas.config import AtlasConfig
from exam_atlas.core.models.files import FileRef
from exam_atlas.core.models.records import (
    IMAGE_QUESTION,
    TEXT_QUESTION,
    QuestionRecord,
    new_question_id,
    utc_timestamp,
)
from exam_atlas.core.models.resources import (
    SCHEMA_RESOURCE,
    Resource,
    resource_key,
    schema_resource_key,
)
from exam_atlas.core.models.staging import BatchMetadata, StagingRow
from exam_atlas.core.utils.serialization import (
    DatabaseSnapshot,
    load_database_json,
    save_database_json,
)
from exam_atlas.services.attachments import pdf_page_count
from exam_atlas.services.classifier import UNCATEGORIZED, GeminiClassifier
from exam_atlas.staging import StagingGrid, StagingResult, build_staging_grid, commit_staging
from exam_atlas.storage import KeyValueStore, QuestionLibrary, ResourceLibrary, TopicSchemaStore

logger = logging.getLogger(__name__)


@dataclass
class CommitResult:
    """
    Attributes:
        records: Records built from the grid (not persisted when saved=False)
        saved: Whether the library save succeeded
    """
    records: list[QuestionRecord] = field(default_factory=list)
    saved: bool = False


class StudioSession:
    """
    One instructor session over a key-value store.

    Example:
        >>> session = StudioSession.from_store(JsonFileStore(cfg.data_dir), classifier, cfg)
        >>> await session.load()
        >>> result = session.stage(question_files, scheme_files)
        >>> await session.enrich_all(batch)
        >>> await session.commit(batch)
    """

    def __init__(
        self,
        library: QuestionLibrary,
        resources: ResourceLibrary,
        schema_store: TopicSchemaStore,
        classifier: GeminiClassifier,
        config: AtlasConfig,
    ) -> None:
        self.library = library
        self.resources = resources
        self.schema_store = schema_store
        self.classifier = classifier
        self.config = config
        self.grid = StagingGrid()

    @classmethod
    def from_store(
        cls, store: KeyValueStore, classifier: GeminiClassifier, config: AtlasConfig
    ) -> StudioSession:
        return cls(
            QuestionLibrary(store),
            ResourceLibrary(store),
            TopicSchemaStore(store),
            classifier,
            config,
        )

    async def load(self) -> None:
        await self.library.load()
        await self.resources.load()
        await self.schema_store.load()

    def valid_topics(self, board: str, subject: str, paper: str) -> list[str]:
        return self.schema_store.valid_topics(board, subject, paper)

    # ─────────────────────────────────────────────────────────────────────────
    # Bulk staging
    # ─────────────────────────────────────────────────────────────────────────

    def stage(
        self, question_files: Sequence[FileRef], scheme_files: Sequence[FileRef]
    ) -> StagingResult:
        """
        Pair uploads into a new staging grid, replacing the current one.

        On error (no usable scheme files) the existing grid is kept.
        """
        result = build_staging_grid(
            question_files,
            scheme_files,
            strict=self.config.strict_prefix_match,
            default_topic=self.config.default_topic,
            default_lines=self.config.default_lines,
        )
        if result.ok:
            self.grid = StagingGrid(result.rows)
        return result

    async def enrich_all(
        self,
        batch: BatchMetadata,
        *,
        cancel: Optional[asyncio.Event] = None,
        on_progress: Optional[Callable[[int, StagingRow], None]] = None,
    ) -> int:
        return await self.grid.enrich_all(
            self.classifier,
            batch,
            self.valid_topics(batch.board, batch.subject, batch.paper),
            delay=self.config.enrich_delay_s,
            cancel=cancel,
            on_progress=on_progress,
        )

    async def commit(self, batch: BatchMetadata) -> CommitResult:
        """
        Append the staging grid to the library.

        The grid is cleared only when the library save succeeds; otherwise
        both the grid and the library are left as they were.
        """
        records = commit_staging(self.grid, batch)
        if not records:
            return CommitResult(records=[], saved=True)
        saved = await self.library.extend(records)
        if saved:
            self.grid.clear()
            logger.info(f"Committed {len(records)} questions for {batch.board} {batch.subject} {batch.year} {batch.paper}")
        else:
            logger.warning(f"Commit of {len(records)} questions failed; staging grid kept")
        return CommitResult(records=records, saved=saved)

    # ─────────────────────────────────────────────────────────────────────────
    # Single question
    # ─────────────────────────────────────────────────────────────────────────

    async def add_question(
        self,
        batch: BatchMetadata,
        images: Sequence[FileRef] = (),
        scheme: Optional[FileRef] = None,
        *,
        topic: Optional[str] = None,
        marks: int = 0,
        lines: int = 0,
        question_text: str = "",
        scheme_text: str = "",
        auto_detect: bool = True,
    ) -> QuestionRecord:
        """
        Add one question from the studio form.

        Image questions need at least one image and a scheme image; with
        ``auto_detect`` the classifier fills marks, lines and topic, keeping
        the given values where detection finds nothing. A question with
        only ``question_text`` is stored as a text question.

        Raises:
            ValueError: If the question has neither images nor text, or an
                image question has no scheme image
        """
        if images and scheme is None:
            raise ValueError("Image questions need a mark scheme image")
        if not images and not question_text.strip():
            raise ValueError("A question needs images or question text")

        topic = topic or self.config.default_topic
        lines = lines or self.config.default_lines
        if images and auto_detect:
            detected_marks, detected_lines, detected_topic = await asyncio.gather(
                self.classifier.detect_marks(images),
                self.classifier.detect_lines(images),
                self.classifier.detect_topic(
                    images,
                    board=batch.board,
                    subject=batch.subject,
                    valid_topics=self.valid_topics(batch.board, batch.subject, batch.paper),
                ),
            )
            marks = detected_marks if detected_marks > 0 else marks
            lines = detected_lines if detected_lines > 0 else lines
            topic = detected_topic if detected_topic != UNCATEGORIZED else topic

        record = QuestionRecord(
            id=new_question_id(),
            type=IMAGE_QUESTION if images else TEXT_QUESTION,
            board=batch.board,
            subject=batch.subject,
            year=batch.year,
            paper=batch.paper,
            topic=topic,
            marks=max(marks, 0),
            lines=max(lines, 0),
            question_images=tuple(images),
            scheme_image=scheme,
            question_text=question_text,
            scheme_text=scheme_text,
            created_at=utc_timestamp(),
        )
        if not await self.library.add(record):
            logger.warning(f"Question {record.id} added in memory but not saved")
        return record

    # ─────────────────────────────────────────────────────────────────────────
    # Reclassification
    # ─────────────────────────────────────────────────────────────────────────

    async def reclassify(self, question_id: str) -> str:
        """
        Re-detect one question's topic against the current schema.

        Raises:
            KeyError: If no question has ``question_id``
        """
        question = self.library.get(question_id)
        if question is None:
            raise KeyError(question_id)
        topic = await self.classifier.detect_topic(
            question.question_images,
            board=question.board,
            subject=question.subject,
            valid_topics=self.valid_topics(question.board, question.subject, question.paper),
        )
        await self.library.set_topic(question_id, topic)
        logger.debug(f"Reclassified {question_id}: {question.topic!r} -> {topic!r}")
        return topic

    async def reclassify_all(
        self,
        *,
        subject: Optional[str] = None,
        year: Optional[int] = None,
        paper: Optional[str] = None,
        only_untagged: bool = False,
        delay: Optional[float] = None,
    ) -> int:
        """
        Reclassify every question matching the filter, one at a time.

        Returns:
            Number of questions reclassified
        """
        delay = self.config.enrich_delay_s if delay is None else delay
        targets = self.library.filter(subject=subject, year=year, paper=paper)
        if only_untagged:
            targets = [q for q in targets if q.is_untagged]
        done = 0
        for question in targets:
            if done:
                await asyncio.sleep(delay)
            try:
                await self.reclassify(question.id)
            except KeyError:
                logger.debug(f"Question {question.id} was removed during reclassification")
                continue
            done += 1
        logger.info(f"Reclassified {done} of {len(targets)} questions")
        return done

    # ─────────────────────────────────────────────────────────────────────────
    # Resources and topic schemas
    # ─────────────────────────────────────────────────────────────────────────

    async def upload_resource(
        self,
        file: FileRef,
        *,
        kind: str,
        board: str,
        subject: str,
        year: int,
        paper: str,
    ) -> Resource:
        """Store a paper resource, replacing any previous one of the same kind."""
        resource = Resource(
            key=resource_key(board, subject, year, paper, kind),
            file_name=file.name,
            type=kind,
            board=board,
            subject=subject,
            year=year,
            paper=paper,
            file=file,
            page_count=pdf_page_count(file),
        )
        if not await self.resources.add(resource):
            logger.warning(f"Resource {resource.key} added in memory but not saved")
        return resource

    async def upload_schema_csv(self, file_name: str, text: str) -> dict[str, list[str]]:
        """
        Load a topic schema CSV and record the upload as a schema resource.

        Returns:
            The parsed entries (empty when nothing usable was found)
        """
        entries = parse_topic_schema_csv(text)
        if not entries:
            logger.warning(f"No paper configurations found in {file_name}")
            return entries
        await self.schema_store.merge(entries)
        await self.resources.add(
            Resource(
                key=schema_resource_key(file_name),
                file_name=file_name,
                type=SCHEMA_RESOURCE,
                board="ALL",
            )
        )
        logger.info(f"Schema loaded: {len(entries)} paper configurations from {file_name}")
        return entries

    # ─────────────────────────────────────────────────────────────────────────
    # Export / import
    # ─────────────────────────────────────────────────────────────────────────

    def snapshot(self) -> DatabaseSnapshot:
        return DatabaseSnapshot(
            questions=tuple(self.library.questions),
            resources=self.resources.resources,
            schema=self.schema_store.schema,
        )

    def export_database(self, path: Path) -> DatabaseSnapshot:
        snapshot = self.snapshot()
        save_database_json(path, snapshot)
        logger.info(f"Exported {len(snapshot.questions)} questions to {path}")
        return snapshot

    async def import_database(self, path: Path) -> DatabaseSnapshot:
        """
        Merge an export into the library.

        Questions are appended; resources and schema entries are merged by
        key, imported values replacing existing ones.

        Raises:
            FileNotFoundError: If ``path`` does not exist
            ValidationError: If the file is not a valid export
        """
        snapshot = load_database_json(path)
        if snapshot.questions:
            await self.library.extend(snapshot.questions)
        if snapshot.resources:
            await self.resources.merge(snapshot.resources)
        if snapshot.schema:
            await self.schema_store.merge(snapshot.schema)
        logger.info(
            f"Imported {len(snapshot.questions)} questions, {len(snapshot.resources)} resources "
            f"and {len(snapshot.schema)} schema entries from {path}"
        )
        return snapshot
