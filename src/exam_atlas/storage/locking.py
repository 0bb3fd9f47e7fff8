"""
Module: storage.locking

Purpose:
    Cross-platform file locking for the JSON collection files. Uses
    portalocker for Mac, Windows, and Linux compatibility.

Key Functions:
    - locked_file: Context manager for locked file access
    - locked_read_json: Read a JSON document under a shared lock
    - locked_write_json: Replace a JSON document under an exclusive lock
    - locked_read_modify_write_json: Read-modify-write under one exclusive lock

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - storage.store.JsonFileStore
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Generator, Optional

import portalocker

logger = logging.getLogger(__name__)


@contextmanager
def locked_file(
    path: Path,
    mode: str = 'r',
    lock_type: int = portalocker.LOCK_EX,
) -> Generator:
    """
    Context manager for cross-platform locked file access.

    Args:
        path: Path to file.
        mode: File open mode ('r', 'w', 'a', etc.).
        lock_type: Lock type (LOCK_EX for exclusive, LOCK_SH for shared).

    Yields:
        Open file handle with lock held.

    Example:
        >>> with locked_file(path, 'r+') as f:
        ...     f.write('data')
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Ensure file exists for read modes
    if 'r' in mode and not path.exists():
        path.touch()

    with open(path, mode, encoding='utf-8') as f:
        portalocker.lock(f, lock_type)
        try:
            yield f
        finally:
            portalocker.unlock(f)


def locked_read_json(path: Path) -> Optional[Any]:
    """
    Read a JSON document with a shared lock.

    Returns:
        Parsed document, or None if the file is missing or empty.

    Raises:
        json.JSONDecodeError: If the file is not valid JSON.
    """
    if not path.exists():
        return None
    with locked_file(path, 'r', portalocker.LOCK_SH) as f:
        content = f.read()
    if not content.strip():
        return None
    return json.loads(content)


def locked_write_json(path: Path, value: Any) -> None:
    """
    Replace a JSON document with an exclusive lock held.

    The document is serialized before the file is touched, so an
    unserializable value leaves the old contents in place.
    """
    payload = json.dumps(value, ensure_ascii=False)
    with locked_file(path, 'r+', portalocker.LOCK_EX) as f:
        f.seek(0)
        f.truncate()
        f.write(payload)

    logger.debug(f"Wrote {len(payload)} bytes to {path.name}")


def locked_read_modify_write_json(
    path: Path,
    modifier: Callable[[Any], Any],
    default: Callable[[], Any] = dict,
) -> Any:
    """
    Read JSON, apply modifier, write back - all with exclusive lock.

    Used for counters that several practice sessions update.

    Args:
        path: Path to JSON file.
        modifier: Function that takes existing data, returns modified data.
        default: Factory for default data if file doesn't exist or is empty.

    Returns:
        The modified data that was written.

    Example:
        >>> def bump(existing):
        ...     existing['count'] = existing.get('count', 0) + 1
        ...     return existing
        >>> locked_read_modify_write_json(stats_path, bump)
    """
    with locked_file(path, 'r+', portalocker.LOCK_EX) as f:
        f.seek(0)
        content = f.read()
        existing = json.loads(content) if content.strip() else default()

        modified = modifier(existing)
        payload = json.dumps(modified, ensure_ascii=False)

        f.seek(0)
        f.truncate()
        f.write(payload)

    return modified
