"""
Module: storage.library

Purpose:
    Persisted collections on top of the key-value store. Each collection
    is loaded whole, edited in memory and written back whole
    (last writer wins; the application is single-user).

Key Classes:
    - QuestionLibrary: Question records ("questions")
    - ResourceLibrary: Paper resources ("resources")
    - TopicSchemaStore: Topic schemas ("topic_schema")
    - StatsStore: Per-topic mastery ("user_stats")
    - BookmarkStore: Bookmarked question ids ("bookmarks")

Failure semantics:
    Mutations return True when the collection was saved. On a failed save
    single edits stay applied in memory so no work is lost; ``extend`` is
    the exception and rolls back, so a commit is all-or-nothing.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional

from exam_atlas.common.topics import valid_topics_for
from exam_atlas.core.models.records import QuestionRecord
from exam_atlas.core.models.resources import SCHEME_RESOURCE, Resource, resource_key
from exam_atlas.core.models.stats import TopicStats
from exam_atlas.core.schemas.validator import ValidationError, validate_question

from .store import BOOKMARKS, QUESTIONS, RESOURCES, TOPIC_SCHEMA, USER_STATS, KeyValueStore

logger = logging.getLogger(__name__)


class QuestionLibrary:
    """
    The question library.

    Example:
        >>> library = QuestionLibrary(MemoryStore())
        >>> await library.load()
        >>> await library.add(record)
        True
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self._questions: list[QuestionRecord] = []

    @property
    def questions(self) -> list[QuestionRecord]:
        return list(self._questions)

    def __len__(self) -> int:
        return len(self._questions)

    async def load(self) -> None:
        """Load the collection; invalid entries are skipped with a warning."""
        payload = await self.store.get(QUESTIONS) or []
        questions = []
        for i, data in enumerate(payload):
            try:
                validate_question(data, path=f"questions[{i}]")
                questions.append(QuestionRecord.from_dict(data))
            except (ValidationError, ValueError, TypeError) as e:
                logger.warning(f"Skipping stored question {i}: {e}")
        self._questions = questions
        logger.debug(f"Loaded {len(questions)} questions")

    async def save(self) -> bool:
        return await self.store.set(QUESTIONS, [q.to_dict() for q in self._questions])

    def get(self, question_id: str) -> Optional[QuestionRecord]:
        for question in self._questions:
            if question.id == question_id:
                return question
        return None

    def filter(
        self,
        *,
        board: Optional[str] = None,
        subject: Optional[str] = None,
        year: Optional[int] = None,
        paper: Optional[str] = None,
        topic: Optional[str] = None,
    ) -> list[QuestionRecord]:
        """Questions matching every given criterion (None means any)."""
        return [
            q for q in self._questions
            if (board is None or q.board == board)
            and (subject is None or q.subject == subject)
            and (year is None or q.year == year)
            and (paper is None or q.paper == paper)
            and (topic is None or q.topic == topic)
        ]

    def untagged_count(self) -> int:
        return sum(1 for q in self._questions if q.is_untagged)

    async def add(self, record: QuestionRecord) -> bool:
        self._questions.append(record)
        return await self.save()

    async def extend(self, records: Iterable[QuestionRecord]) -> bool:
        """
        Append several records in one save.

        If the save fails the in-memory library is restored to its previous
        contents.
        """
        previous = list(self._questions)
        self._questions.extend(records)
        if await self.save():
            return True
        self._questions = previous
        logger.warning("Library save failed; appended questions were rolled back")
        return False

    async def delete(self, question_id: str) -> bool:
        self._questions = [q for q in self._questions if q.id != question_id]
        return await self.save()

    async def set_topic(self, question_id: str, topic: str) -> bool:
        """
        Replace one question's topic.

        Raises:
            KeyError: If no question has ``question_id``
        """
        for i, question in enumerate(self._questions):
            if question.id == question_id:
                self._questions[i] = question.with_topic(topic)
                return await self.save()
        raise KeyError(question_id)


class ResourceLibrary:
    """Global mark schemes, supplementary sheets and schema upload markers."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self._resources: dict[str, Resource] = {}

    @property
    def resources(self) -> dict[str, Resource]:
        return dict(self._resources)

    async def load(self) -> None:
        payload = await self.store.get(RESOURCES) or {}
        resources = {}
        for key, data in payload.items():
            try:
                resources[key] = Resource.from_dict(key, data)
            except (KeyError, TypeError, AttributeError, ValueError) as e:
                logger.warning(f"Skipping stored resource {key}: {e}")
        self._resources = resources

    async def save(self) -> bool:
        return await self.store.set(RESOURCES, {k: r.to_dict() for k, r in self._resources.items()})

    async def add(self, resource: Resource) -> bool:
        """Add or replace a resource under its key."""
        self._resources[resource.key] = resource
        return await self.save()

    async def merge(self, resources: Mapping[str, Resource]) -> bool:
        self._resources.update(resources)
        return await self.save()

    async def delete(self, key: str) -> bool:
        self._resources.pop(key, None)
        return await self.save()

    def global_scheme(self, board: str, subject: str, year: int, paper: str) -> Optional[Resource]:
        """The whole-paper mark scheme resource, if uploaded."""
        return self._resources.get(resource_key(board, subject, year, paper, SCHEME_RESOURCE))


class TopicSchemaStore:
    """Valid topic lists keyed by "BOARD-SUBJECT-PAPER"."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self._schema: dict[str, list[str]] = {}

    @property
    def schema(self) -> dict[str, list[str]]:
        return {k: list(v) for k, v in self._schema.items()}

    async def load(self) -> None:
        self._schema = dict(await self.store.get(TOPIC_SCHEMA) or {})

    async def merge(self, entries: Mapping[str, list[str]]) -> bool:
        """Merge parsed entries; an entry replaces the same key wholesale."""
        self._schema.update({k: list(v) for k, v in entries.items()})
        return await self.store.set(TOPIC_SCHEMA, self._schema)

    def valid_topics(self, board: str, subject: str, paper: str) -> list[str]:
        return valid_topics_for(self._schema, board, subject, paper)


class StatsStore:
    """Per-topic marks earned / marks available."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self._stats: dict[str, TopicStats] = {}

    @property
    def stats(self) -> dict[str, TopicStats]:
        return dict(self._stats)

    def for_topic(self, topic: str) -> TopicStats:
        return self._stats.get(topic, TopicStats())

    async def load(self) -> None:
        payload = await self.store.get(USER_STATS) or {}
        self._stats = {topic: TopicStats.from_dict(data) for topic, data in payload.items()}

    async def record(self, results: Mapping[str, tuple[int, int]]) -> bool:
        """
        Add (earned, possible) marks per topic.

        The in-memory counters are updated even when the save fails.
        """
        for topic, (earned, possible) in results.items():
            self._stats[topic] = self.for_topic(topic).add(earned, possible)

        def merge(existing: dict) -> dict:
            for topic, (earned, possible) in results.items():
                current = TopicStats.from_dict(existing.get(topic, {}))
                existing[topic] = current.add(earned, possible).to_dict()
            return existing

        written = await self.store.update(USER_STATS, merge)
        if written is None:
            return False
        self._stats = {topic: TopicStats.from_dict(data) for topic, data in written.items()}
        return True


class BookmarkStore:
    """Ordered set of bookmarked question ids."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self._ids: list[str] = []

    @property
    def ids(self) -> list[str]:
        return list(self._ids)

    def is_bookmarked(self, question_id: str) -> bool:
        return question_id in self._ids

    async def load(self) -> None:
        self._ids = list(await self.store.get(BOOKMARKS) or [])

    async def toggle(self, question_id: str) -> bool:
        """Add or remove a bookmark; returns whether the change was saved."""
        if question_id in self._ids:
            self._ids.remove(question_id)
        else:
            self._ids.append(question_id)
        return await self.store.set(BOOKMARKS, self._ids)
