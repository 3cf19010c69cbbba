#!/usr/bin/env python3
"""Search outline headings and resolve the chosen one to its source location.

Non-interactive front end for the heading index: builds the candidate list
for a scope, applies a substring query and an optional single narrowing key
(level digit, priority letter or keyword key), and prints the chosen
heading's location.

Usage:
    python3 scripts/heading_search.py --jsonl outlines.jsonl --all \
      --query "report" --narrow t

    python3 scripts/heading_search.py --db headings.duckdb --doc notes \
      --match "work & level<=2" --list

Structured JSON output goes to stdout; human messages go to stderr.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from heading_index.config import IndexConfig
from heading_index.errors import HeadingIndexError
from heading_index.io_utils import dump_json
from heading_index.narrow import build_narrow_table, narrow_labels
from heading_index.outline import (
    DocumentScope,
    Outline,
    RegionScope,
    Scope,
    SubtreeScope,
    load_outline_jsonl,
)
from heading_index.session import ScriptedSession, list_all_headings, list_headings
from heading_index.store import HeadingStore

log = logging.getLogger("heading_search")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Search outline headings and print the chosen location."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--db", type=Path, help="Path to a heading store (.duckdb)")
    source.add_argument("--jsonl", type=Path, help="Path to heading records (.jsonl)")
    parser.add_argument("--config", type=Path, default=None, help="Index config JSON")

    scope = parser.add_mutually_exclusive_group()
    scope.add_argument("--doc", default=None, help="Restrict to one document id")
    scope.add_argument(
        "--all", action="store_true", help="Search every document (default)"
    )
    parser.add_argument(
        "--subtree",
        type=int,
        default=None,
        metavar="CHAR",
        help="With --doc: only the subtree containing this char offset",
    )
    parser.add_argument(
        "--region",
        type=int,
        nargs=2,
        default=None,
        metavar=("START", "END"),
        help="With --doc: only headings starting in [START, END)",
    )
    parser.add_argument("--match", default=None, help="Match filter expression")
    parser.add_argument("--query", default="", help="Substring query terms")
    parser.add_argument("--narrow", default=None, help="Single narrowing key")
    parser.add_argument(
        "--pick", type=int, default=0, help="Index of the match to choose (default: 0)"
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print every surviving candidate with its annotation",
    )
    parser.add_argument("--show-keys", action="store_true", help="Print narrow keys")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return parser


def _load_outline(args: argparse.Namespace) -> Outline:
    if args.db is not None:
        with HeadingStore(args.db) as store:
            return store.load_outline()
    return load_outline_jsonl(args.jsonl)


def _scope(args: argparse.Namespace) -> Scope | None:
    if args.doc is None:
        if args.subtree is not None or args.region is not None:
            raise HeadingIndexError("--subtree/--region require --doc")
        return None
    if args.subtree is not None:
        return SubtreeScope(args.doc, args.subtree)
    if args.region is not None:
        return RegionScope(args.doc, args.region[0], args.region[1])
    return DocumentScope(args.doc)


def run(args: argparse.Namespace) -> dict[str, Any]:
    config = IndexConfig.from_json(args.config) if args.config else IndexConfig()
    source = args.db if args.db is not None else args.jsonl
    if not source.exists():
        raise HeadingIndexError(f"Source not found: {source}")

    outline = _load_outline(args)
    print(f"Loaded {len(outline)} documents from {source}", file=sys.stderr)

    session = ScriptedSession(query=args.query, narrow_key=args.narrow, pick=args.pick)
    history: list[str] = []
    scope = _scope(args)
    log.debug("Scope %s, match %r, narrow %r", scope or "all documents", args.match, args.narrow)
    if scope is None:
        location = list_all_headings(
            outline, session, config, match=args.match, history=history,
        )
    else:
        location = list_headings(
            outline, scope, session, config, match=args.match, history=history,
        )

    payload: dict[str, Any] = {
        "selected": None,
        "match_count": len(session.shown),
    }
    if location is not None:
        payload["selected"] = {
            "heading": history[-1] if history else "",
            "doc_id": location.doc_id,
            "char_start": location.char_start,
            "line": location.line,
        }
    if args.list:
        payload["candidates"] = [
            {"heading": visible, "annotation": annotation}
            for visible, annotation in session.shown
        ]
    if args.show_keys:
        payload["narrow_keys"] = narrow_labels(build_narrow_table(
            config.keyword_groups, config.priority_low, config.priority_high,
        ))
    return payload


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        payload = run(args)
    except HeadingIndexError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if payload["selected"] is None:
        print("No heading selected", file=sys.stderr)
    dump_json(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
