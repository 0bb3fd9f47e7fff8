"""
Module: staging.naming

Purpose:
    The file-naming contract for bulk uploads. Instructors name scanned
    fragments so that the pairing pipeline can work out which question
    images belong to which mark scheme. Every convention is declared once
    in NAMING_RULES so it can be tested and documented on its own.

    Conventions:
        m<id>.<ext>       mark scheme for identifier <id>   (m1.2.png -> "1.2")
        <major>.<ext>     whole-question root image          (2.png)
        Q<major>.<ext>    root image, alternative form       (Q2.png)
        <id>...           image specific to identifier <id>  (2.1.png, 2.1a.png)
        ...plus...        context image shared with later sub-parts (2.1-plus.png)
        ...-<n>.          ruled answer line count hint        (q1-6.png -> 6)

Key Functions:
    - extract_scheme_id(): Identifier from a mark scheme filename
    - extract_line_count_hint(): Line count from a question filename
    - is_context_file(): Whether a filename carries the context marker
    - major_id(): Leading segment of an identifier
    - identifier_sort_key(): Numeric component-wise ordering key

Used By:
    - staging.index, staging.matching, staging.context, staging.assembler
    - staging.grid: Line hint precedence during enrichment

All functions are total over strings: a malformed name simply does not
match.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class NamingRule:
    """
    One filename convention.

    Attributes:
        name: Short rule name used as the NAMING_RULES key
        pattern: Compiled pattern applied with ``search``
        description: Human-readable statement of the convention
    """
    name: str
    pattern: re.Pattern
    description: str


NAMING_RULES: dict[str, NamingRule] = {
    rule.name: rule
    for rule in (
        NamingRule(
            "scheme_id",
            re.compile(r"m(\d+(?:\.\d+)*)", re.IGNORECASE),
            "Mark scheme files contain 'm' followed by a dotted number: m1.2.png",
        ),
        NamingRule(
            "line_hint",
            re.compile(r"-(\d+)\."),
            "A hyphen, digits and a dot give the ruled line count: q1-6.png",
        ),
        NamingRule(
            "context_marker",
            re.compile(r"plus", re.IGNORECASE),
            "Names containing 'plus' apply to this and later sub-parts: 2.1-plus.png",
        ),
    )
}

# Root image template, formatted with the escaped major identifier
ROOT_TEMPLATE = r"^Q?{major}\.[^.]+$"


def extract_scheme_id(filename: str) -> Optional[str]:
    """
    Extract the dotted identifier from a mark scheme filename.

    Args:
        filename: Uploaded filename

    Returns:
        Identifier string or None when the name has no identifier

    Example:
        >>> extract_scheme_id("m1.2.png")
        '1.2'
        >>> extract_scheme_id("M3.PNG")
        '3'
        >>> extract_scheme_id("question.png") is None
        True
    """
    match = NAMING_RULES["scheme_id"].pattern.search(filename)
    return match.group(1) if match else None


def extract_line_count_hint(filename: str) -> Optional[int]:
    """
    Extract the ruled line count hint from a question filename.

    Example:
        >>> extract_line_count_hint("q1-6.png")
        6
        >>> extract_line_count_hint("q1.png") is None
        True
    """
    match = NAMING_RULES["line_hint"].pattern.search(filename)
    return int(match.group(1)) if match else None


def is_context_file(filename: str) -> bool:
    return NAMING_RULES["context_marker"].pattern.search(filename) is not None


def is_root_file(filename: str, major: str) -> bool:
    """Whether ``filename`` is the whole-question image for ``major``."""
    return re.match(ROOT_TEMPLATE.format(major=re.escape(major)), filename) is not None


def major_id(identifier: str) -> str:
    """
    Leading segment of an identifier.

    Example:
        >>> major_id("1.2.3")
        '1'
    """
    return identifier.split(".", 1)[0]


def identifier_sort_key(identifier: str) -> tuple[int, ...]:
    """
    Numeric component-wise sort key, so "1.10" sorts after "1.2".

    Non-numeric segments sort first; identifiers produced by
    extract_scheme_id never contain any.
    """
    return tuple(int(part) if part.isdigit() else -1 for part in identifier.split("."))
