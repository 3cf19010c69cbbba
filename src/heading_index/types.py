"""Core types shared by the indexing, narrowing and annotation layers.

Type hierarchy:
  HeadingLocation : Source-location handle (the single currency for jumps)
  HeadingMeta     : Out-of-band metadata triple (level, keyword, priority)
  Highlight       : Semantic face span over a candidate's display text
  Candidate       : Display text + identity, flattened only at the boundary
  LevelThreshold / PriorityEquals / KeywordEquals: narrowing criteria
  NarrowBinding   : One entry of the narrowing key table
  OutlineEntry    : Protocol the document collaborator's entries satisfy

All dataclasses are frozen and use slots=True.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from heading_index.identity import encode_identity

# ---------------------------------------------------------------------------
# Locations and metadata
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class HeadingLocation:
    """Exact position of a heading in its source document.

    Stable for the duration of one indexing session.
    """
    doc_id: str
    char_start: int     # Char offset of the heading line in the document
    line: int = 0       # 1-based line number (0 when unknown)


@dataclass(frozen=True, slots=True)
class HeadingMeta:
    """Structural metadata carried alongside a candidate string."""
    level: int
    keyword: str | None = None
    priority: str | None = None


@dataclass(frozen=True, slots=True)
class Highlight:
    """Face applied to ``text[start:end]``; never alters the text itself."""
    start: int
    end: int
    face: str   # "document" | "keyword" | "priority" | "tags"


# ---------------------------------------------------------------------------
# Candidate
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Candidate:
    """A display candidate: visible text plus a session-unique identity.

    The visible text and the identity are kept apart; ``rendered`` joins them
    into the single string a selection UI works with.
    """
    text: str
    highlights: tuple[Highlight, ...]
    meta: HeadingMeta
    location: HeadingLocation
    index: int          # Sequence index, 0-based in traversal order

    @property
    def rendered(self) -> str:
        """Visible text followed by the invisible identity suffix."""
        return self.text + encode_identity(self.index)


# ---------------------------------------------------------------------------
# Narrowing criteria: tagged variant
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class LevelThreshold:
    """Match headings at or above (numerically <=) ``level``."""
    level: int


@dataclass(frozen=True, slots=True)
class PriorityEquals:
    """Match headings whose priority is exactly ``priority``."""
    priority: str


@dataclass(frozen=True, slots=True)
class KeywordEquals:
    """Match headings whose state keyword is exactly ``keyword``."""
    keyword: str


NarrowCriterion = LevelThreshold | PriorityEquals | KeywordEquals


@dataclass(frozen=True, slots=True)
class NarrowBinding:
    """A single narrowing key with its criterion and human-readable label."""
    key: str
    criterion: NarrowCriterion
    label: str


# ---------------------------------------------------------------------------
# Outline entries (provided by the document collaborator)
# ---------------------------------------------------------------------------

class OutlineEntry(Protocol):
    """Read-only view of one heading as yielded by a document traversal."""

    @property
    def doc_id(self) -> str: ...

    @property
    def doc_name(self) -> str: ...

    @property
    def level(self) -> int: ...

    @property
    def keyword(self) -> str | None: ...

    @property
    def priority(self) -> str | None: ...

    @property
    def own_tags(self) -> tuple[str, ...]: ...

    @property
    def location(self) -> HeadingLocation: ...

    def outline_path(self) -> tuple[str, ...]:
        """Ancestor titles followed by the heading's own title."""
        ...

    def inherited_tags(self) -> tuple[str, ...]:
        """Effective tag set including tags declared on ancestors."""
        ...
