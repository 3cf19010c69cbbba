"""DuckDB-backed heading store.

Read-only access to a pre-built heading database. Writers (import tools,
tests) use ``create_schema`` and ``write_outline``.

Tables:
    documents       : one row per outline document
    headings        : one row per heading (FK to documents), ordered by ordinal
    _schema_version : schema version tracking
"""
from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any

import orjson

from heading_index.errors import SchemaVersionError
from heading_index.outline import Outline, OutlineDocument, OutlineHeading

# Dynamic DuckDB import for pyright compatibility
_duckdb_mod = importlib.import_module("duckdb")


SCHEMA_VERSION = "1.0.0"


def _read_schema_version(conn: Any) -> str:
    """Read heading store schema version from an open DuckDB connection."""
    try:
        result = conn.execute(
            "SELECT version FROM _schema_version WHERE table_name = 'headings'"
        ).fetchone()
    except _duckdb_mod.Error:
        return "unknown"
    return str(result[0]) if result else "unknown"


def ensure_schema_version(
    conn: Any,
    *,
    db_path: Path | None = None,
    expected: str = SCHEMA_VERSION,
) -> str:
    """Validate schema version; raises SchemaVersionError on mismatch."""
    actual = _read_schema_version(conn)
    if actual != expected:
        where = f" in {db_path}" if db_path is not None else ""
        raise SchemaVersionError(
            f"Schema version mismatch{where}: expected {expected}, got {actual}"
        )
    return actual


def create_schema(conn: Any, *, version: str = SCHEMA_VERSION) -> None:
    """Create the store tables on a writable connection."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS _schema_version (
            table_name VARCHAR PRIMARY KEY,
            version VARCHAR NOT NULL,
            created_at TIMESTAMP
        )
        """
    )
    conn.execute(
        "INSERT OR REPLACE INTO _schema_version VALUES ('headings', ?, current_timestamp)",
        [version],
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS documents (
            doc_id VARCHAR PRIMARY KEY,
            name VARCHAR,
            path VARCHAR
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS headings (
            doc_id VARCHAR,
            ordinal INTEGER,
            level INTEGER,
            title VARCHAR,
            keyword VARCHAR,
            priority VARCHAR,
            tags VARCHAR[],
            char_start INTEGER,
            line INTEGER
        )
        """
    )


def write_outline(conn: Any, outline: Outline) -> int:
    """Insert every document and heading of *outline*; returns heading count."""
    count = 0
    for doc in outline.documents:
        conn.execute(
            "INSERT INTO documents VALUES (?, ?, ?)",
            [doc.doc_id, doc.name, doc.path],
        )
        rows = [
            [
                doc.doc_id, i, h.level, h.title, h.keyword, h.priority,
                list(h.tags) or None, h.char_start, h.line,
            ]
            for i, h in enumerate(doc.headings)
        ]
        if rows:
            conn.executemany(
                "INSERT INTO headings VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)", rows,
            )
        count += len(rows)
    return count


def _decode_tags(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value if str(v))
    if isinstance(value, str):
        raw = value.strip()
        if raw.startswith("["):
            try:
                decoded = orjson.loads(raw)
            except orjson.JSONDecodeError:
                decoded = None
            if isinstance(decoded, list):
                return tuple(str(v) for v in decoded if str(v))
        return tuple(t for t in raw.strip(":").split(":") if t)
    return ()


class HeadingStore:
    """Read-only interface to a DuckDB heading store."""

    def __init__(self, db_path: Path, *, enforce_schema: bool = True) -> None:
        self._db_path = db_path
        self._conn: Any = _duckdb_mod.connect(str(db_path), read_only=True)
        if enforce_schema:
            try:
                ensure_schema_version(self._conn, db_path=db_path)
            except SchemaVersionError:
                self._conn.close()
                raise

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> HeadingStore:
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()

    @property
    def schema_version(self) -> str:
        return _read_schema_version(self._conn)

    @property
    def doc_count(self) -> int:
        result = self._conn.execute("SELECT COUNT(*) FROM documents").fetchone()
        return int(result[0]) if result else 0

    def doc_ids(self) -> list[str]:
        """All document IDs, sorted."""
        rows = self._conn.execute(
            "SELECT doc_id FROM documents ORDER BY doc_id"
        ).fetchall()
        return [str(r[0]) for r in rows]

    def load_outline(self, doc_ids: list[str] | None = None) -> Outline:
        """Load documents (all, or the given ids in sorted order) with headings."""
        wanted = set(doc_ids) if doc_ids is not None else None
        doc_rows = self._conn.execute(
            "SELECT doc_id, name, path FROM documents ORDER BY doc_id"
        ).fetchall()
        heading_rows = self._conn.execute(
            """
            SELECT doc_id, level, title, keyword, priority, tags, char_start, line
            FROM headings
            ORDER BY doc_id, ordinal
            """
        ).fetchall()

        by_doc: dict[str, list[OutlineHeading]] = {}
        for row in heading_rows:
            doc_id = str(row[0])
            if wanted is not None and doc_id not in wanted:
                continue
            by_doc.setdefault(doc_id, []).append(OutlineHeading(
                level=int(row[1] or 0),
                title=str(row[2] or ""),
                keyword=row[3] or None,
                priority=row[4] or None,
                tags=_decode_tags(row[5]),
                char_start=int(row[6] or 0),
                line=int(row[7] or 0),
            ))

        docs: list[OutlineDocument] = []
        for doc_id, name, path in doc_rows:
            doc_id = str(doc_id)
            if wanted is not None and doc_id not in wanted:
                continue
            docs.append(OutlineDocument(
                doc_id=doc_id,
                name=str(name or doc_id),
                headings=tuple(by_doc.get(doc_id, [])),
                path=str(path or ""),
            ))
        return Outline(docs)
