"""
Module: staging.index

Purpose:
    Build the mapping from identifier to mark scheme file. The identifiers
    in this index are the universe of staging rows: question images never
    create rows on their own.

Key Functions:
    - build_scheme_index(): Parse scheme filenames into a SchemeIndex
    - sorted_identifiers(): Numerically ordered identifiers

Duplicate identifiers are resolved last-wins in input order (the order
the files were selected). The overwritten files are reported so the
studio can tell the instructor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from exam_atlas.core.models.files import FileRef

from .naming import extract_scheme_id, identifier_sort_key

logger = logging.getLogger(__name__)


@dataclass
class SchemeIndex:
    """
    Identifier to mark scheme mapping.

    Attributes:
        entries: Identifier -> scheme file (at most one per identifier)
        ignored: Names of scheme files without a parseable identifier
        duplicates: Names of scheme files overwritten by a later file
    """
    entries: dict[str, FileRef] = field(default_factory=dict)
    ignored: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self.entries

    def get(self, identifier: str) -> Optional[FileRef]:
        return self.entries.get(identifier)


def build_scheme_index(scheme_files: Iterable[FileRef]) -> SchemeIndex:
    """
    Index mark scheme files by identifier.

    Args:
        scheme_files: Scheme files in selection order

    Returns:
        SchemeIndex with entries, ignored and duplicate filenames

    Example:
        >>> index = build_scheme_index([FileRef("m1.png"), FileRef("notes.png")])
        >>> sorted(index.entries), index.ignored
        (['1'], ['notes.png'])
    """
    index = SchemeIndex()
    for scheme in scheme_files:
        identifier = extract_scheme_id(scheme.name)
        if identifier is None:
            logger.warning(f"Ignoring mark scheme without identifier: {scheme.name}")
            index.ignored.append(scheme.name)
            continue

        previous = index.entries.get(identifier)
        if previous is not None:
            logger.warning(
                f"Mark scheme {scheme.name} replaces {previous.name} for identifier {identifier}"
            )
            index.duplicates.append(previous.name)
        index.entries[identifier] = scheme
        logger.debug(f"Scheme {scheme.name} -> {identifier}")

    return index


def sorted_identifiers(index: SchemeIndex) -> list[str]:
    """
    Identifiers in ascending numeric order.

    Example:
        >>> index = build_scheme_index([FileRef("m1.10.png"), FileRef("m1.2.png"), FileRef("m1.1.png")])
        >>> sorted_identifiers(index)
        ['1.1', '1.2', '1.10']
    """
    return sorted(index.entries, key=identifier_sort_key)
