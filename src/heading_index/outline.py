"""In-memory outline document model.

Holds already-parsed headings (level, title, keyword, priority, own tags,
position) per document and answers the questions the indexer asks:

* traversal of a scope in document order, with match/skip filters
* outline paths (ancestor titles + own title), cached for one document at a
  time and rebuilt after ``invalidate_path_cache``
* inherited tags, computed on demand

Scopes:
  DocumentScope    : every heading of one document
  SubtreeScope     : the heading containing ``char_start`` and its descendants
  RegionScope      : headings starting in ``[start, end)``
  AllDocumentsScope: every heading of every document, documents in load order
"""
from __future__ import annotations

import logging
from bisect import bisect_right
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

from heading_index.errors import UnknownDocumentError
from heading_index.io_utils import load_jsonl
from heading_index.types import HeadingLocation

log = logging.getLogger(__name__)

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OutlineHeading:
    """One heading of a document, as stored."""

    level: int
    title: str
    keyword: str | None = None
    priority: str | None = None
    tags: tuple[str, ...] = ()     # Own tags only
    char_start: int = 0
    line: int = 0


@dataclass(frozen=True, slots=True)
class OutlineDocument:
    """A document: stable id, display name and headings in document order."""

    doc_id: str
    name: str
    headings: tuple[OutlineHeading, ...] = ()
    path: str = ""


# ---------------------------------------------------------------------------
# Scopes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DocumentScope:
    doc_id: str


@dataclass(frozen=True, slots=True)
class SubtreeScope:
    doc_id: str
    char_start: int


@dataclass(frozen=True, slots=True)
class RegionScope:
    doc_id: str
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class AllDocumentsScope:
    pass


Scope = DocumentScope | SubtreeScope | RegionScope | AllDocumentsScope


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HeadingEntry:
    """A heading as yielded by traversal; satisfies ``types.OutlineEntry``."""

    document: OutlineDocument
    ordinal: int
    outline: Outline = field(compare=False, repr=False)

    @property
    def heading(self) -> OutlineHeading:
        return self.document.headings[self.ordinal]

    @property
    def doc_id(self) -> str:
        return self.document.doc_id

    @property
    def doc_name(self) -> str:
        return self.document.name

    @property
    def level(self) -> int:
        return self.heading.level

    @property
    def keyword(self) -> str | None:
        return self.heading.keyword

    @property
    def priority(self) -> str | None:
        return self.heading.priority

    @property
    def own_tags(self) -> tuple[str, ...]:
        return self.heading.tags

    @property
    def title(self) -> str:
        return self.heading.title

    @property
    def location(self) -> HeadingLocation:
        h = self.heading
        return HeadingLocation(self.document.doc_id, h.char_start, h.line)

    def outline_path(self) -> tuple[str, ...]:
        return self.outline.outline_path(self.document.doc_id, self.ordinal)

    def inherited_tags(self) -> tuple[str, ...]:
        return self.outline.inherited_tags(self.document.doc_id, self.ordinal)


EntryFilter = Callable[[HeadingEntry], bool]


# ---------------------------------------------------------------------------
# Outline collection
# ---------------------------------------------------------------------------


def _parent_indices(headings: tuple[OutlineHeading, ...]) -> list[int]:
    """Parent ordinal per heading (-1 for top level), by level nesting."""
    parents: list[int] = []
    stack: list[tuple[int, int]] = []  # (level, ordinal)
    for i, h in enumerate(headings):
        level = max(1, h.level)
        while stack and stack[-1][0] >= level:
            stack.pop()
        parents.append(stack[-1][1] if stack else -1)
        stack.append((level, i))
    return parents


class Outline:
    """A set of outline documents plus the path cache for the active one."""

    def __init__(self, documents: Iterable[OutlineDocument] = ()) -> None:
        self._docs: dict[str, OutlineDocument] = {}
        for doc in documents:
            if doc.doc_id in self._docs:
                raise ValueError(f"Duplicate document id: {doc.doc_id!r}")
            self._docs[doc.doc_id] = doc
        self._parents: dict[str, list[int]] = {}
        self._path_cache_doc: str | None = None
        self._path_cache: list[tuple[str, ...]] = []
        self.path_cache_builds = 0

    @property
    def documents(self) -> tuple[OutlineDocument, ...]:
        return tuple(self._docs.values())

    def __len__(self) -> int:
        return len(self._docs)

    def document(self, doc_id: str) -> OutlineDocument:
        try:
            return self._docs[doc_id]
        except KeyError:
            raise UnknownDocumentError(f"Unknown document: {doc_id!r}") from None

    def document_name(self, location: HeadingLocation) -> str:
        """Display name of the document owning *location*."""
        return self.document(location.doc_id).name

    # -- structure ----------------------------------------------------------

    def _parents_of(self, doc_id: str) -> list[int]:
        parents = self._parents.get(doc_id)
        if parents is None:
            parents = _parent_indices(self.document(doc_id).headings)
            self._parents[doc_id] = parents
        return parents

    def invalidate_path_cache(self, doc_id: str | None = None) -> None:
        """Drop cached outline paths; the next lookup rebuilds for its document.

        Args:
            doc_id: Document traversal is moving to (informational).
        """
        log.debug("Outline path cache invalidated (next document: %s)", doc_id)
        self._path_cache_doc = None
        self._path_cache = []

    def _build_path_cache(self, doc_id: str) -> None:
        doc = self.document(doc_id)
        parents = self._parents_of(doc_id)
        paths: list[tuple[str, ...]] = []
        for i, h in enumerate(doc.headings):
            parent = parents[i]
            prefix = paths[parent] if parent >= 0 else ()
            paths.append((*prefix, h.title))
        self._path_cache_doc = doc_id
        self._path_cache = paths
        self.path_cache_builds += 1

    def outline_path(self, doc_id: str, ordinal: int) -> tuple[str, ...]:
        """Ancestor titles followed by the heading's own title."""
        if self._path_cache_doc != doc_id:
            self._build_path_cache(doc_id)
        return self._path_cache[ordinal]

    def inherited_tags(self, doc_id: str, ordinal: int) -> tuple[str, ...]:
        """Ancestors' own tags (outermost first) then the heading's, deduplicated."""
        doc = self.document(doc_id)
        parents = self._parents_of(doc_id)
        chain: list[int] = []
        i = ordinal
        while i >= 0:
            chain.append(i)
            i = parents[i]
        seen: set[str] = set()
        tags: list[str] = []
        for idx in reversed(chain):
            for tag in doc.headings[idx].tags:
                if tag not in seen:
                    seen.add(tag)
                    tags.append(tag)
        return tuple(tags)

    # -- traversal ----------------------------------------------------------

    def _scope_ranges(self, scope: Scope) -> Iterator[tuple[OutlineDocument, range]]:
        match scope:
            case AllDocumentsScope():
                for doc in self._docs.values():
                    yield doc, range(len(doc.headings))
            case DocumentScope(doc_id=doc_id):
                doc = self.document(doc_id)
                yield doc, range(len(doc.headings))
            case SubtreeScope(doc_id=doc_id, char_start=pos):
                doc = self.document(doc_id)
                starts = [h.char_start for h in doc.headings]
                root = bisect_right(starts, pos) - 1
                if root < 0:
                    return
                root_level = doc.headings[root].level
                end = root + 1
                while end < len(doc.headings) and doc.headings[end].level > root_level:
                    end += 1
                yield doc, range(root, end)
            case RegionScope(doc_id=doc_id, start=start, end=stop):
                doc = self.document(doc_id)
                idx = [
                    i for i, h in enumerate(doc.headings)
                    if start <= h.char_start < stop
                ]
                if idx:
                    yield doc, range(idx[0], idx[-1] + 1)

    def entries(
        self,
        scope: Scope,
        match: EntryFilter | None = None,
        skip: EntryFilter | None = None,
    ) -> Iterator[HeadingEntry]:
        """Lazily yield matching entries in document order."""
        for doc, ordinals in self._scope_ranges(scope):
            for ordinal in ordinals:
                entry = HeadingEntry(doc, ordinal, self)
                if skip is not None and skip(entry):
                    continue
                if match is not None and not match(entry):
                    continue
                yield entry

    def for_each_entry(
        self,
        scope: Scope,
        visit: Callable[[HeadingEntry], T],
        match: EntryFilter | None = None,
        skip: EntryFilter | None = None,
    ) -> list[T]:
        """Call *visit* once per matching entry; return the results in order."""
        return [visit(entry) for entry in self.entries(scope, match, skip)]


# ---------------------------------------------------------------------------
# Construction from flat records
# ---------------------------------------------------------------------------


def _tags_from_record(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(t for t in value.strip(":").split(":") if t)
    if isinstance(value, (list, tuple)):
        return tuple(str(t) for t in value if str(t))
    return ()


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None


def _int_field(rec: dict[str, Any], key: str) -> int:
    try:
        return int(rec.get(key) or 0)
    except (TypeError, ValueError):
        return 0


def heading_from_record(rec: dict[str, Any]) -> OutlineHeading:
    """Build a heading from a flat dict; missing or malformed fields become 0/absent."""
    return OutlineHeading(
        level=_int_field(rec, "level"),
        title=str(rec.get("title") or ""),
        keyword=_optional_str(rec.get("keyword")),
        priority=_optional_str(rec.get("priority")),
        tags=_tags_from_record(rec.get("tags")),
        char_start=_int_field(rec, "char_start"),
        line=_int_field(rec, "line"),
    )


def outline_from_records(records: Iterable[dict[str, Any]]) -> Outline:
    """Group flat heading records by ``doc_id`` (first-seen order) into an Outline.

    Record keys: ``doc_id`` (required), ``doc_name``, ``level``, ``title``,
    ``keyword``, ``priority``, ``tags`` (list or ``":a:b:"``), ``char_start``,
    ``line``. Headings keep record order within each document.
    """
    names: dict[str, str] = {}
    headings: dict[str, list[OutlineHeading]] = {}
    for rec in records:
        doc_id = str(rec.get("doc_id") or "")
        if not doc_id:
            log.warning("Skipping heading record without doc_id: %r", rec)
            continue
        if doc_id not in headings:
            headings[doc_id] = []
            names[doc_id] = str(rec.get("doc_name") or doc_id)
        if rec.get("level") is None and rec.get("title") is None:
            # Document-only record (declares a document with no headings yet).
            continue
        headings[doc_id].append(heading_from_record(rec))
    return Outline(
        OutlineDocument(doc_id, names[doc_id], tuple(hs))
        for doc_id, hs in headings.items()
    )


def load_outline_jsonl(path: Path) -> Outline:
    """Load an outline from a JSONL file of heading records."""
    return outline_from_records(load_jsonl(path))
