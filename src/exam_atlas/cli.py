"""
Command line entry point.

Usage:
    exam-atlas stage --questions scans/q --schemes scans/ms
    exam-atlas ingest AQA PHYSICS 2019 P1 --questions scans/q --schemes scans/ms --enrich
    exam-atlas library --subject PHYSICS --year 2019
    exam-atlas schema topics.csv
    exam-atlas reclassify --all --untagged
    exam-atlas resource scheme.pdf AQA PHYSICS 2019 P1 --kind scheme
    exam-atlas export examatlas_db.json
    exam-atlas import examatlas_db.json
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Optional, Sequence

from exam_atlas import __version__
from exam_atlas.config import AtlasConfig, load_config
from exam_atlas.core.models.files import FileRef
from exam_atlas.core.models.resources import SCHEME_RESOURCE, SUPPLEMENTARY_RESOURCE
from exam_atlas.core.models.staging import BatchMetadata, StagingRow
from exam_atlas.core.schemas.validator import ValidationError
from exam_atlas.services.classifier import GeminiClassifier
from exam_atlas.staging import StagingResult, incomplete_rows
from exam_atlas.storage import JsonFileStore
from exam_atlas.studio import StudioSession


def collect_files(paths: Iterable[Path]) -> list[FileRef]:
    """Load files; directories contribute their files in name order."""
    files = []
    for path in paths:
        if path.is_dir():
            files.extend(FileRef.from_path(p) for p in sorted(path.iterdir()) if p.is_file())
        else:
            files.append(FileRef.from_path(path))
    return files


def _print_rows(rows: Sequence[StagingRow]) -> None:
    for row in rows:
        scheme = row.scheme.name if row.scheme else "-"
        print(f"{row.id:>8}  scheme={scheme}  lines={row.lines}  marks={row.marks}  topic={row.topic}")
        for name in row.image_names:
            print(f"{'':>10}{name}")


def _print_staging(result: StagingResult) -> None:
    if result.error:
        print(f"Error: {result.error}")
        return
    _print_rows(result.rows)
    if result.ignored_schemes:
        print(f"Ignored mark schemes: {', '.join(result.ignored_schemes)}")
    if result.duplicate_schemes:
        print(f"Overwritten mark schemes: {', '.join(result.duplicate_schemes)}")


def _session(config: AtlasConfig) -> StudioSession:
    return StudioSession.from_store(JsonFileStore(config.data_dir), GeminiClassifier(config), config)


def _batch(args: argparse.Namespace) -> BatchMetadata:
    return BatchMetadata(board=args.board, subject=args.subject, year=args.year, paper=args.paper)


# ─────────────────────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────────────────────

async def cmd_stage(args: argparse.Namespace, config: AtlasConfig) -> int:
    session = _session(config)
    result = session.stage(collect_files(args.questions), collect_files(args.schemes))
    _print_staging(result)
    return 0 if result.ok else 1


async def cmd_ingest(args: argparse.Namespace, config: AtlasConfig) -> int:
    session = _session(config)
    await session.load()
    batch = _batch(args)
    result = session.stage(collect_files(args.questions), collect_files(args.schemes))
    if not result.ok:
        _print_staging(result)
        return 1

    if args.enrich:
        print(f"Enriching {len(session.grid)} rows...")
        await session.enrich_all(
            batch, on_progress=lambda i, row: print(f"  [{i + 1}/{len(session.grid)}] {row.id}: {row.topic}")
        )
    _print_rows(session.grid.rows)

    incomplete = incomplete_rows(session.grid)
    if incomplete:
        print(f"Warning: {len(incomplete)} row(s) incomplete (no scheme, no images or 0 marks): {', '.join(incomplete)}")
    if args.dry_run:
        print("Dry run: nothing committed")
        return 0

    outcome = await session.commit(batch)
    if not outcome.saved:
        print("Error: could not save the question library")
        return 1
    print(f"Committed {len(outcome.records)} questions")
    return 0


async def cmd_library(args: argparse.Namespace, config: AtlasConfig) -> int:
    session = _session(config)
    await session.load()
    questions = session.library.filter(
        board=args.board, subject=args.subject, year=args.year, paper=args.paper, topic=args.topic
    )
    for q in questions:
        print(f"{q.id}  {q.board} {q.subject} {q.year} {q.paper}  [{q.marks}]  {q.topic}")
    print(f"{len(questions)} of {len(session.library)} questions ({session.library.untagged_count()} untagged)")
    return 0


async def cmd_schema(args: argparse.Namespace, config: AtlasConfig) -> int:
    session = _session(config)
    await session.load()
    entries = await session.upload_schema_csv(args.csv.name, args.csv.read_text(encoding="utf-8"))
    for key, topics in entries.items():
        print(f"{key}: {len(topics)} topics")
    print(f"Schema loaded: {len(entries)} paper configurations found.")
    return 0 if entries else 1


async def cmd_reclassify(args: argparse.Namespace, config: AtlasConfig) -> int:
    session = _session(config)
    await session.load()
    if args.id:
        try:
            topic = await session.reclassify(args.id)
        except KeyError:
            print(f"Error: no question {args.id}")
            return 1
        print(f"{args.id}: {topic}")
        return 0
    done = await session.reclassify_all(
        subject=args.subject, year=args.year, paper=args.paper, only_untagged=args.untagged
    )
    print(f"Refined {done} topics")
    return 0


async def cmd_resource(args: argparse.Namespace, config: AtlasConfig) -> int:
    session = _session(config)
    await session.load()
    resource = await session.upload_resource(
        FileRef.from_path(args.file),
        kind=args.kind,
        board=args.board,
        subject=args.subject,
        year=args.year,
        paper=args.paper,
    )
    pages = f" ({resource.page_count} pages)" if resource.page_count else ""
    print(f"Resource saved: {resource.key}{pages}")
    return 0


async def cmd_export(args: argparse.Namespace, config: AtlasConfig) -> int:
    session = _session(config)
    await session.load()
    snapshot = session.export_database(args.path)
    print(f"Exported {len(snapshot.questions)} questions to {args.path}")
    return 0


async def cmd_import(args: argparse.Namespace, config: AtlasConfig) -> int:
    session = _session(config)
    await session.load()
    try:
        snapshot = await session.import_database(args.path)
    except (FileNotFoundError, ValidationError) as e:
        print(f"Error: {e}")
        return 1
    print(f"Imported {len(snapshot.questions)} questions")
    return 0


COMMANDS = {
    "stage": cmd_stage,
    "ingest": cmd_ingest,
    "library": cmd_library,
    "schema": cmd_schema,
    "reclassify": cmd_reclassify,
    "resource": cmd_resource,
    "export": cmd_export,
    "import": cmd_import,
}


# ─────────────────────────────────────────────────────────────────────────────
# Parser
# ─────────────────────────────────────────────────────────────────────────────

def _add_paper_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("board", help="Exam board, e.g. AQA")
    parser.add_argument("subject", help="Subject code, e.g. PHYSICS")
    parser.add_argument("year", type=int, help="Exam year")
    parser.add_argument("paper", help="Paper code, e.g. P1")


def _add_filter_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--subject", help="Only this subject")
    parser.add_argument("--year", type=int, help="Only this year")
    parser.add_argument("--paper", help="Only this paper")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="exam-atlas", description="Exam Atlas studio tools")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--data-dir", type=Path, help="Override EXAM_ATLAS_DATA_DIR")
    sub = parser.add_subparsers(dest="command", required=True)

    stage = sub.add_parser("stage", help="Preview question/mark scheme pairing")
    stage.add_argument("--questions", type=Path, nargs="+", required=True, help="Question images or directories")
    stage.add_argument("--schemes", type=Path, nargs="+", required=True, help="Mark scheme images or directories")

    ingest = sub.add_parser("ingest", help="Stage, optionally enrich, and commit a paper")
    _add_paper_args(ingest)
    ingest.add_argument("--questions", type=Path, nargs="+", required=True)
    ingest.add_argument("--schemes", type=Path, nargs="+", required=True)
    ingest.add_argument("--enrich", action="store_true", help="Classify and transcribe every row")
    ingest.add_argument("--dry-run", action="store_true", help="Do not commit")

    library = sub.add_parser("library", help="List library questions")
    _add_filter_args(library)
    library.add_argument("--board", help="Only this board")
    library.add_argument("--topic", help="Only this topic")

    schema = sub.add_parser("schema", help="Load a topic schema CSV")
    schema.add_argument("csv", type=Path)

    reclassify = sub.add_parser("reclassify", help="Re-detect topics against the schema")
    target = reclassify.add_mutually_exclusive_group(required=True)
    target.add_argument("--id", help="One question id")
    target.add_argument("--all", action="store_true", help="Every question matching the filters")
    _add_filter_args(reclassify)
    reclassify.add_argument("--untagged", action="store_true", help="Only General/Uncategorized questions")

    resource = sub.add_parser("resource", help="Upload a global mark scheme or supplementary sheet")
    resource.add_argument("file", type=Path)
    _add_paper_args(resource)
    resource.add_argument("--kind", choices=[SCHEME_RESOURCE, SUPPLEMENTARY_RESOURCE], default=SCHEME_RESOURCE)

    export = sub.add_parser("export", help="Export the database to JSON")
    export.add_argument("path", type=Path, nargs="?", default=Path("examatlas_db.json"))

    import_ = sub.add_parser("import", help="Merge a JSON export into the database")
    import_.add_argument("path", type=Path)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s")

    config = load_config()
    if args.data_dir is not None:
        config = replace(config, data_dir=args.data_dir)
    return asyncio.run(COMMANDS[args.command](args, config))


if __name__ == "__main__":
    sys.exit(main())
