"""
CLI Tests

Runs exam-atlas subcommands against a temporary data directory.
"""

import json

import pytest

from exam_atlas.cli import build_parser, collect_files, main


@pytest.fixture
def uploads(tmp_path, png_bytes):
    questions = tmp_path / "questions"
    schemes = tmp_path / "schemes"
    questions.mkdir()
    schemes.mkdir()
    for name in ("1.png", "2.png", "2.1.png", "2.1-plus.png", "2.2-6.png"):
        (questions / name).write_bytes(png_bytes)
    for name in ("m1.png", "m2.1.png", "m2.2.png", "notes.png"):
        (schemes / name).write_bytes(png_bytes)
    return questions, schemes


def run(tmp_path, *args):
    return main(["--data-dir", str(tmp_path / "data"), *args])


class TestParser:
    def test_parse_when_ingest_then_paper_args_typed(self):
        args = build_parser().parse_args(
            ["ingest", "AQA", "PHYSICS", "2019", "P1", "--questions", "q", "--schemes", "s"]
        )
        assert (args.board, args.year, args.enrich, args.dry_run) == ("AQA", 2019, False, False)

    def test_parse_when_no_command_then_exits(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestCollectFiles:
    def test_collect_when_directory_then_files_in_name_order(self, uploads):
        questions, _ = uploads
        assert [f.name for f in collect_files([questions])] == [
            "1.png", "2.1-plus.png", "2.1.png", "2.2-6.png", "2.png",
        ]


class TestCommands:
    """End-to-end command runs."""

    def test_stage_when_uploads_then_rows_printed(self, tmp_path, uploads, capsys):
        questions, schemes = uploads
        assert run(tmp_path, "stage", "--questions", str(questions), "--schemes", str(schemes)) == 0
        out = capsys.readouterr().out
        assert "2.1-plus.png" in out
        assert "lines=6" in out
        assert "Ignored mark schemes: notes.png" in out

    def test_stage_when_no_schemes_then_error_exit(self, tmp_path, uploads, capsys):
        questions, _ = uploads
        empty = tmp_path / "empty"
        empty.mkdir()
        assert run(tmp_path, "stage", "--questions", str(questions), "--schemes", str(empty)) == 1
        assert "Error:" in capsys.readouterr().out

    def test_ingest_then_library_when_committed_then_listed(self, tmp_path, uploads, capsys):
        questions, schemes = uploads
        code = run(
            tmp_path, "ingest", "AQA", "PHYSICS", "2019", "P1",
            "--questions", str(questions), "--schemes", str(schemes),
        )
        assert code == 0
        out = capsys.readouterr().out
        assert "Committed 3 questions" in out
        assert "incomplete" in out

        assert run(tmp_path, "library", "--year", "2019") == 0
        assert "3 of 3 questions (3 untagged)" in capsys.readouterr().out

    def test_ingest_when_dry_run_then_nothing_saved(self, tmp_path, uploads, capsys):
        questions, schemes = uploads
        run(
            tmp_path, "ingest", "AQA", "PHYSICS", "2019", "P1", "--dry-run",
            "--questions", str(questions), "--schemes", str(schemes),
        )
        assert not (tmp_path / "data" / "questions.json").exists()

    def test_schema_when_csv_then_loaded(self, tmp_path, capsys):
        csv_path = tmp_path / "topics.csv"
        csv_path.write_text("Board,Subject,Paper,Topics\nAQA,Physics,Paper 1,\"Energy; Waves\"\n")
        assert run(tmp_path, "schema", str(csv_path)) == 0
        assert "AQA-PHYSICS-P1: 2 topics" in capsys.readouterr().out
        stored = json.loads((tmp_path / "data" / "topic_schema.json").read_text())
        assert stored == {"AQA-PHYSICS-P1": ["Energy", "Waves"]}

    def test_export_import_when_round_tripped_then_questions_appended(self, tmp_path, uploads, capsys):
        questions, schemes = uploads
        run(
            tmp_path, "ingest", "AQA", "PHYSICS", "2019", "P1",
            "--questions", str(questions), "--schemes", str(schemes),
        )
        export_path = tmp_path / "examatlas_db.json"
        assert run(tmp_path, "export", str(export_path)) == 0
        assert run(tmp_path, "import", str(export_path)) == 0
        assert "Imported 3 questions" in capsys.readouterr().out
        assert len(json.loads((tmp_path / "data" / "questions.json").read_text())) == 6

    def test_import_when_malformed_then_error_exit(self, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text("[]")
        assert run(tmp_path, "import", str(bad)) == 1
        assert "Error:" in capsys.readouterr().out

    def test_reclassify_when_unknown_id_then_error_exit(self, tmp_path, capsys):
        assert run(tmp_path, "reclassify", "--id", "q-missing") == 1
        assert "no question q-missing" in capsys.readouterr().out

    def test_import_when_resource_file_undecodable_then_error_exit(self, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"resources": {
            "AQA-PHYSICS-2019-P1-scheme": {
                "type": "scheme", "file_name": "ms.pdf", "board": "AQA",
                "file": {"name": "ms.pdf", "data": "!!notb64"},
            },
        }}))
        assert run(tmp_path, "import", str(bad)) == 1
        assert "Could not decode resource" in capsys.readouterr().out
