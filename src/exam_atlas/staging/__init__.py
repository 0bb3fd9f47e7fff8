"""
Bulk staging pipeline.

Pairs scanned question fragments with scanned mark scheme fragments by
filename, builds the editable staging grid and commits it to records.

Stages:
1. naming     – filename conventions (NAMING_RULES)
2. index      – identifier -> mark scheme, numeric ordering
3. matching   – root and specific images per row
4. context    – forward-only context accumulation per major
5. assembler  – row assembly and build_staging_grid
6. grid       – user edits and enrichment
7. commit     – rows -> QuestionRecords
"""

from .assembler import StagingResult, assemble_row, build_staging_grid
from .commit import commit_staging, incomplete_rows
from .context import ContextSet, accumulate_context
from .grid import StagingGrid, enrich_row
from .index import SchemeIndex, build_scheme_index, sorted_identifiers
from .matching import find_root_image, find_specific_images
from .naming import NAMING_RULES, extract_line_count_hint, extract_scheme_id, major_id

__all__ = [
    "NAMING_RULES",
    "ContextSet",
    "SchemeIndex",
    "StagingGrid",
    "StagingResult",
    "accumulate_context",
    "assemble_row",
    "build_scheme_index",
    "build_staging_grid",
    "commit_staging",
    "enrich_row",
    "extract_line_count_hint",
    "extract_scheme_id",
    "find_root_image",
    "find_specific_images",
    "incomplete_rows",
    "major_id",
    "sorted_identifiers",
]
