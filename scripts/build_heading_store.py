#!/usr/bin/env python3
"""Build a DuckDB heading store from JSONL heading records.

Usage:
    python3 scripts/build_heading_store.py --jsonl outlines.jsonl \
      --output headings.duckdb [--force] [--summary-out summary.json]

Each JSONL line is one heading record (``doc_id``, ``doc_name``, ``level``,
``title``, ``keyword``, ``priority``, ``tags``, ``char_start``, ``line``).
A summary is printed as JSON to stdout.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import duckdb

from heading_index.io_utils import dump_json, save_json
from heading_index.outline import load_outline_jsonl
from heading_index.store import SCHEMA_VERSION, create_schema, write_outline

log = logging.getLogger("build_heading_store")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build a DuckDB heading store from JSONL heading records."
    )
    parser.add_argument("--jsonl", required=True, type=Path, help="Input records")
    parser.add_argument("--output", required=True, type=Path, help="Output .duckdb")
    parser.add_argument(
        "--summary-out", type=Path, help="Also write the summary JSON to this file"
    )
    parser.add_argument(
        "--force", action="store_true", help="Overwrite an existing output file"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return parser


def build_store(jsonl_path: Path, output: Path) -> dict[str, object]:
    """Load records from *jsonl_path* and write them into a new store."""
    outline = load_outline_jsonl(jsonl_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    con = duckdb.connect(str(output))
    try:
        create_schema(con)
        heading_count = write_outline(con, outline)
    finally:
        con.close()
    log.info("Wrote %d headings for %d documents", heading_count, len(outline))
    return {
        "output": str(output),
        "schema_version": SCHEMA_VERSION,
        "documents": len(outline),
        "headings": heading_count,
    }


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if not args.jsonl.exists():
        print(f"Error: input not found: {args.jsonl}", file=sys.stderr)
        return 1
    if args.output.exists():
        if not args.force:
            print(
                f"Error: {args.output} exists (use --force to overwrite)",
                file=sys.stderr,
            )
            return 1
        args.output.unlink()

    summary = build_store(args.jsonl, args.output)
    if args.summary_out:
        save_json(summary, args.summary_out)
    dump_json(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
