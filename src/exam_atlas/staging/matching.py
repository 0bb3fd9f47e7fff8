"""
Module: staging.matching

Purpose:
    Match question images to a row: the whole-question root image for a
    major identifier, and the images specific to one identifier.

Key Functions:
    - find_root_image(): "2.png" / "Q2.png" for major "2"
    - find_specific_images(): Every image whose name starts with the identifier

Note:
    Specific matching is a plain prefix test, so row "1.2" also picks up
    "1.20.png". Existing uploads rely on this laxity; ``strict=True``
    requires the character after the identifier to be a non-digit.
"""

from __future__ import annotations

from typing import Optional, Sequence

from exam_atlas.core.models.files import FileRef

from .naming import is_root_file


def find_root_image(question_files: Sequence[FileRef], major: str) -> Optional[FileRef]:
    """
    Find the whole-question image for a major identifier.

    The ``Q`` prefix is case-sensitive. The first match in upload order wins.

    Example:
        >>> find_root_image([FileRef("2.1.png"), FileRef("Q2.png")], "2").name
        'Q2.png'
    """
    for candidate in question_files:
        if is_root_file(candidate.name, major):
            return candidate
    return None


def find_specific_images(
    question_files: Sequence[FileRef],
    identifier: str,
    *,
    strict: bool = False,
) -> list[FileRef]:
    """
    Find images specific to an identifier, in upload order.

    Args:
        question_files: Uploaded question images
        identifier: Row identifier, e.g. "1.2"
        strict: Reject names where the identifier is followed by a digit

    Returns:
        Matching files

    Example:
        >>> files = [FileRef("1.2.png"), FileRef("1.2a.png"), FileRef("1.20.png")]
        >>> [f.name for f in find_specific_images(files, "1.2")]
        ['1.2.png', '1.2a.png', '1.20.png']
        >>> [f.name for f in find_specific_images(files, "1.2", strict=True)]
        ['1.2.png', '1.2a.png']
    """
    matches = []
    for candidate in question_files:
        name = candidate.name
        if not name.startswith(identifier):
            continue
        if strict:
            rest = name[len(identifier):]
            if rest[:1].isdigit():
                continue
        matches.append(candidate)
    return matches
