"""
Module: staging.context

Purpose:
    Accumulate context images per major identifier. A context image (a
    shared diagram or table, marked with "plus" in its name) introduced at
    sub-question k applies to k and every later sub-question of the same
    major, never to earlier ones.

Key Classes:
    - ContextSet: Immutable major -> ordered context files mapping

Key Functions:
    - accumulate_context(): One fold step, returns a new ContextSet

Invariants:
    - A filename appears at most once per major
    - Accumulation order is encounter order across ascending identifiers
    - Each step returns a new value; earlier snapshots never change, so a
      row assembled before a context file was discovered cannot see it
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from exam_atlas.core.models.files import FileRef

from .naming import is_context_file


@dataclass(frozen=True)
class ContextSet:
    """
    Context images accumulated so far, grouped by major identifier.

    Attributes:
        groups: Major identifier -> context files in accumulation order.
            Treated as read-only; use ``with_files`` to extend.
    """
    groups: Mapping[str, tuple[FileRef, ...]] = field(default_factory=dict)

    def for_major(self, major: str) -> tuple[FileRef, ...]:
        return self.groups.get(major, ())

    def with_files(self, major: str, files: Iterable[FileRef]) -> ContextSet:
        """
        Return a copy with ``files`` appended to ``major``.

        Files whose name is already present for that major are skipped.
        """
        current = list(self.for_major(major))
        seen = {f.name for f in current}
        for candidate in files:
            if candidate.name in seen:
                continue
            current.append(candidate)
            seen.add(candidate.name)

        if len(current) == len(self.for_major(major)):
            return self
        groups = dict(self.groups)
        groups[major] = tuple(current)
        return ContextSet(groups)


def accumulate_context(
    specific_images: Iterable[FileRef],
    major: str,
    context: ContextSet,
) -> ContextSet:
    """
    Register the context-marked files among ``specific_images``.

    Args:
        specific_images: Images matched to the identifier being processed
        major: Major identifier the images belong to
        context: Accumulator from the previous identifier

    Returns:
        Updated accumulator (``context`` itself when nothing was added)

    Example:
        >>> ctx = accumulate_context([FileRef("2.1.png"), FileRef("2.1-plus.png")], "2", ContextSet())
        >>> [f.name for f in ctx.for_major("2")]
        ['2.1-plus.png']
    """
    return context.with_files(major, (f for f in specific_images if is_context_file(f.name)))
