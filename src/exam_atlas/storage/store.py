"""
Module: storage.store

Purpose:
    Async key-value store keyed by logical collection name. The rest of
    the application only relies on ``get``/``set``/``update``:

    - ``get`` returns None for a missing (empty) collection
    - ``set`` returns False on failure instead of raising; the caller keeps
      its in-memory state and warns the user

Key Classes:
    - KeyValueStore: Interface
    - JsonFileStore: One locked JSON file per collection under a directory
    - MemoryStore: Process-local store (CLI dry runs, tests)

Dependencies:
    - portalocker (via storage.locking)
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import re
from pathlib import Path
from typing import Any, Callable, Optional

import portalocker

from .locking import locked_read_json, locked_read_modify_write_json, locked_write_json

logger = logging.getLogger(__name__)

QUESTIONS = "questions"
RESOURCES = "resources"
TOPIC_SCHEMA = "topic_schema"
USER_STATS = "user_stats"
BOOKMARKS = "bookmarks"

_COLLECTION_RE = re.compile(r"^[A-Za-z0-9_\-]+$")


class StorageError(Exception):
    """Raised for store misuse, e.g. an invalid collection name."""


class KeyValueStore:
    """Async get/set store keyed by collection name."""

    async def get(self, collection: str) -> Optional[Any]:
        raise NotImplementedError

    async def set(self, collection: str, value: Any) -> bool:
        raise NotImplementedError

    async def update(
        self,
        collection: str,
        modifier: Callable[[Any], Any],
        default: Callable[[], Any] = dict,
    ) -> Optional[Any]:
        """
        Read-modify-write one collection.

        Returns:
            The written value, or None if the write failed
        """
        current = await self.get(collection)
        modified = modifier(default() if current is None else current)
        return modified if await self.set(collection, modified) else None


class JsonFileStore(KeyValueStore):
    """
    Collections stored as ``<root>/<collection>.json``.

    File IO runs in a worker thread so the event loop is never blocked.

    Example:
        >>> store = JsonFileStore(Path("workspace"))
        >>> await store.set("questions", [])
        True
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, collection: str) -> Path:
        if not _COLLECTION_RE.match(collection):
            raise StorageError(f"Invalid collection name: {collection!r}")
        return self.root / f"{collection}.json"

    async def get(self, collection: str) -> Optional[Any]:
        path = self.path_for(collection)
        try:
            return await asyncio.to_thread(locked_read_json, path)
        except json.JSONDecodeError as e:
            logger.warning(f"Collection {collection} is corrupted, treating as empty: {e}")
            return None
        except (OSError, portalocker.LockException) as e:
            logger.warning(f"Could not read collection {collection}: {e}")
            return None

    async def set(self, collection: str, value: Any) -> bool:
        path = self.path_for(collection)
        try:
            await asyncio.to_thread(locked_write_json, path, value)
        except (OSError, portalocker.LockException) as e:
            logger.warning(f"Could not save collection {collection}: {e}")
            return False
        return True

    async def update(
        self,
        collection: str,
        modifier: Callable[[Any], Any],
        default: Callable[[], Any] = dict,
    ) -> Optional[Any]:
        path = self.path_for(collection)
        try:
            return await asyncio.to_thread(locked_read_modify_write_json, path, modifier, default)
        except json.JSONDecodeError as e:
            logger.warning(f"Collection {collection} is corrupted, not updated: {e}")
            return None
        except (OSError, portalocker.LockException) as e:
            logger.warning(f"Could not update collection {collection}: {e}")
            return None


class MemoryStore(KeyValueStore):
    """Dictionary-backed store; values are deep-copied in and out."""

    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    async def get(self, collection: str) -> Optional[Any]:
        return copy.deepcopy(self._data.get(collection))

    async def set(self, collection: str, value: Any) -> bool:
        self._data[collection] = copy.deepcopy(value)
        return True
