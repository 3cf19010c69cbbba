"""Tests for the heading search CLI tools (scripts/heading_search.py,
scripts/build_heading_store.py)."""
from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

_scripts_dir = str(Path(__file__).resolve().parents[1] / "scripts")
if _scripts_dir not in sys.path:
    sys.path.insert(0, _scripts_dir)

from build_heading_store import main as build_main  # noqa: E402
from heading_search import build_parser, main  # noqa: E402

RECORDS = [
    {"doc_id": "notes", "doc_name": "notes.org", "level": 1, "title": "Projects",
     "tags": ["work"], "char_start": 0, "line": 1},
    {"doc_id": "notes", "level": 2, "title": "Write report", "keyword": "TODO",
     "priority": "A", "char_start": 30, "line": 4},
    {"doc_id": "notes", "level": 2, "title": "File taxes", "keyword": "DONE",
     "char_start": 60, "line": 8},
    {"doc_id": "inbox", "doc_name": "inbox.org", "level": 1, "title": "Call plumber",
     "keyword": "TODO", "char_start": 0, "line": 1},
]


@pytest.fixture()
def jsonl_path(tmp_path: Path) -> Path:
    path = tmp_path / "headings.jsonl"
    path.write_text("\n".join(json.dumps(r) for r in RECORDS) + "\n")
    return path


def _run(capsys, argv: list[str]) -> tuple[int, dict | None, str]:
    code = main(argv)
    captured = capsys.readouterr()
    payload = json.loads(captured.out) if captured.out.strip() else None
    return code, payload, captured.err


class TestHeadingSearch:
    def test_parser_requires_source(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_all_documents_query(self, capsys, jsonl_path: Path) -> None:
        code, payload, err = _run(capsys, ["--jsonl", str(jsonl_path), "--query", "plumber"])
        assert code == 0
        assert payload["selected"] == {
            "heading": "inbox.org: TODO Call plumber",
            "doc_id": "inbox",
            "char_start": 0,
            "line": 1,
        }
        assert "Loaded 2 documents" in err

    def test_doc_scope_with_narrow_key(self, capsys, jsonl_path: Path) -> None:
        code, payload, _ = _run(
            capsys, ["--jsonl", str(jsonl_path), "--doc", "notes", "--narrow", "d", "--list"],
        )
        assert code == 0
        assert payload["selected"]["char_start"] == 60
        assert payload["candidates"] == [
            {"heading": "Projects/DONE File taxes :work:", "annotation": "DONE "},
        ]

    def test_match_filter(self, capsys, jsonl_path: Path) -> None:
        code, payload, _ = _run(
            capsys,
            ["--jsonl", str(jsonl_path), "--doc", "notes", "--match", "todo:TODO", "--list"],
        )
        assert code == 0
        assert payload["match_count"] == 1
        assert payload["selected"]["line"] == 4

    def test_no_headings(self, capsys, jsonl_path: Path) -> None:
        code, payload, err = _run(
            capsys, ["--jsonl", str(jsonl_path), "--doc", "notes", "--match", "nope"],
        )
        assert code == 1
        assert payload is None
        assert "No headings" in err

    def test_unknown_document(self, capsys, jsonl_path: Path) -> None:
        code, _, err = _run(capsys, ["--jsonl", str(jsonl_path), "--doc", "ghost"])
        assert code == 1
        assert "ghost" in err

    def test_bad_match_expression(self, capsys, jsonl_path: Path) -> None:
        code, _, err = _run(capsys, ["--jsonl", str(jsonl_path), "--match", "a &"])
        assert code == 1
        assert "Error:" in err

    def test_nothing_selected(self, capsys, jsonl_path: Path) -> None:
        code, payload, err = _run(capsys, ["--jsonl", str(jsonl_path), "--query", "zebra"])
        assert code == 0
        assert payload["selected"] is None
        assert "No heading selected" in err

    def test_show_keys(self, capsys, jsonl_path: Path) -> None:
        _, payload, _ = _run(capsys, ["--jsonl", str(jsonl_path), "--show-keys"])
        assert payload["narrow_keys"]["1"] == "Level 1"
        assert payload["narrow_keys"]["t"] == "TODO"

    def test_missing_source(self, capsys, tmp_path: Path) -> None:
        code, _, err = _run(capsys, ["--jsonl", str(tmp_path / "missing.jsonl")])
        assert code == 1
        assert "Source not found" in err


class TestBuildHeadingStore:
    def test_build_then_search(self, capsys, tmp_path: Path, jsonl_path: Path) -> None:
        db = tmp_path / "headings.duckdb"
        assert build_main(["--jsonl", str(jsonl_path), "--output", str(db)]) == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["documents"] == 2
        assert summary["headings"] == 4

        code, payload, _ = _run(
            capsys, ["--db", str(db), "--doc", "notes", "--query", "report"],
        )
        assert code == 0
        assert payload["selected"]["heading"] == "Projects/TODO [#A] Write report :work:"

    def test_refuses_to_overwrite(self, capsys, tmp_path: Path, jsonl_path: Path) -> None:
        db = tmp_path / "headings.duckdb"
        db.write_bytes(b"")
        assert build_main(["--jsonl", str(jsonl_path), "--output", str(db)]) == 1
        assert "exists" in capsys.readouterr().err

    def test_summary_out(self, capsys, tmp_path: Path, jsonl_path: Path) -> None:
        db = tmp_path / "headings.duckdb"
        summary_path = tmp_path / "reports" / "summary.json"
        code = build_main([
            "--jsonl", str(jsonl_path), "--output", str(db),
            "--summary-out", str(summary_path),
        ])
        assert code == 0
        printed = json.loads(capsys.readouterr().out)
        assert json.loads(summary_path.read_text()) == printed
