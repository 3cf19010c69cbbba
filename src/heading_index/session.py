"""Selection-session boundary and the two heading listing entry points.

A selection session (interactive UI, or the scripted one below) only sees
strings. ``SessionBridge`` flattens candidates into rendered strings at that
boundary and hands the session four callables that map strings back to the
structured candidates: the narrowing predicate, the annotator, the group
function and the lookup.

Entry points:

* ``list_headings``    : headings of one scope (document, subtree, region)
* ``list_all_headings``: headings of every loaded document, name-prefixed

Both return the chosen ``HeadingLocation`` (or None when the user picks
nothing); jumping there is the caller's business.
"""
from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, Protocol

from heading_index.annotate import AnnotationFormatter
from heading_index.candidates import CandidateBuilder
from heading_index.config import IndexConfig
from heading_index.errors import NoDocumentsError, NoHeadingsError
from heading_index.identity import LocationRegistry, strip_identity
from heading_index.match_filter import compile_match
from heading_index.narrow import (
    NarrowTable,
    build_narrow_table,
    make_narrow_predicate,
    narrow_labels,
)
from heading_index.outline import AllDocumentsScope, EntryFilter, Outline, Scope
from heading_index.types import Candidate, HeadingLocation

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Session protocol
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NarrowSpec:
    """What a session needs to offer single-key narrowing."""

    predicate: Callable[[str | None, str], bool]   # (key, rendered) -> keep?
    keys: dict[str, str]                            # key -> label


class SelectionSession(Protocol):
    def select(
        self,
        candidates: Iterable[str],
        *,
        prompt: str,
        category: str,
        sort: bool,
        require_match: bool,
        history: list[str] | None,
        narrow: NarrowSpec,
        state: Callable[..., Any] | None,
        annotate: Callable[[str], str],
        group: Callable[[str, bool], str],
        lookup: Callable[[str], HeadingLocation],
    ) -> HeadingLocation | None: ...


# ---------------------------------------------------------------------------
# Bridge
# ---------------------------------------------------------------------------


class SessionBridge:
    """Per-session state shared by the callables handed to a session."""

    def __init__(
        self,
        config: IndexConfig,
        *,
        document_label: Callable[[HeadingLocation], str] | None = None,
        group_label: Callable[[HeadingLocation], str] | None = None,
    ) -> None:
        self.registry = LocationRegistry()
        self.table: NarrowTable = build_narrow_table(
            config.keyword_groups,
            config.priority_low,
            config.priority_high,
            warn_on_dropped=config.warn_on_dropped_narrow_keys,
        )
        self._predicate = make_narrow_predicate(self.table)
        self._formatter = AnnotationFormatter(
            show_keyword=config.annotate_keyword,
            show_priority=config.annotate_priority,
            document_label=document_label,
        )
        self._group_label = group_label

    def flatten(self, candidates: Iterable[Candidate]) -> Iterator[str]:
        """Register candidates as they are drawn and yield rendered strings."""
        for candidate in candidates:
            yield self.registry.register(candidate)

    def candidate(self, rendered: str) -> Candidate:
        return self.registry.resolve(rendered)

    @property
    def narrow(self) -> NarrowSpec:
        return NarrowSpec(self.narrow_predicate, narrow_labels(self.table))

    def narrow_predicate(self, key: str | None, rendered: str) -> bool:
        return self._predicate(key, self.candidate(rendered).meta)

    def annotate(self, rendered: str) -> str:
        return self._formatter(self.candidate(rendered))

    def group(self, rendered: str, transform: bool) -> str:
        """Group title for *rendered*, or its visible text when transforming."""
        if transform:
            return strip_identity(rendered)
        location = self.candidate(rendered).location
        if self._group_label is not None:
            return self._group_label(location)
        return location.doc_id

    def lookup(self, selected: str) -> HeadingLocation:
        return self.candidate(selected).location

    def state(
        self, on_state: Callable[[str, HeadingLocation], None],
    ) -> Callable[[str, str], None]:
        """Wrap *on_state* so the session reports (action, rendered) pairs.

        The session calls it with an action such as ``"preview"`` or
        ``"return"``; *on_state* receives the resolved location instead of
        the rendered string.
        """
        def _state(action: str, rendered: str) -> None:
            on_state(action, self.lookup(rendered))

        return _state


# ---------------------------------------------------------------------------
# Scripted (non-interactive) session
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class ScriptedSession:
    """Non-interactive session: substring query, optional narrow key, pick.

    Every whitespace-separated query term must occur (case-insensitively) in
    a candidate's visible text. ``shown`` records ``(visible, annotation)``
    for each surviving candidate, in traversal order.
    """

    query: str = ""
    narrow_key: str | None = None
    pick: int = 0
    shown: list[tuple[str, str]] = field(default_factory=list)
    prompt_seen: str = ""

    def select(
        self,
        candidates: Iterable[str],
        *,
        prompt: str,
        category: str,
        sort: bool,
        require_match: bool,
        history: list[str] | None,
        narrow: NarrowSpec,
        state: Callable[..., Any] | None,
        annotate: Callable[[str], str],
        group: Callable[[str, bool], str],
        lookup: Callable[[str], HeadingLocation],
    ) -> HeadingLocation | None:
        self.prompt_seen = prompt
        terms = self.query.lower().split()
        survivors: list[str] = []
        for rendered in candidates:
            visible = strip_identity(rendered)
            lowered = visible.lower()
            if not all(t in lowered for t in terms):
                continue
            if not narrow.predicate(self.narrow_key, rendered):
                continue
            survivors.append(rendered)
            self.shown.append((visible, annotate(rendered)))

        if not survivors or not 0 <= self.pick < len(survivors):
            return None
        chosen = survivors[self.pick]
        if history is not None:
            history.append(strip_identity(chosen))
        if state is not None:
            state("return", chosen)
        return lookup(chosen)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def list_headings(
    outline: Outline,
    scope: Scope,
    session: SelectionSession,
    config: IndexConfig | None = None,
    *,
    match: str | EntryFilter | None = None,
    skip: EntryFilter | None = None,
    include_document_prefix: bool = False,
    prompt: str = "Go to heading: ",
    history: list[str] | None = None,
    on_state: Callable[[str, HeadingLocation], None] | None = None,
) -> HeadingLocation | None:
    """Offer the headings of *scope* to *session*; return the chosen location.

    *on_state*, when given, receives ``(action, location)`` whenever the
    session reports a preview or final selection; previewing the location is
    the caller's business.

    Raises:
        NoDocumentsError: *scope* spans all documents and none are loaded.
        NoHeadingsError: the scope/filter yields no heading. The session is
            not started in that case.
    """
    config = config or IndexConfig()
    if isinstance(scope, AllDocumentsScope) and len(outline) == 0:
        raise NoDocumentsError()

    if isinstance(match, str):
        match = compile_match(match, tag_inheritance=config.tag_inheritance)

    builder = CandidateBuilder(config, on_document_change=outline.invalidate_path_cache)
    candidates = builder.build(
        outline.entries(scope, match, skip),
        include_document_prefix=include_document_prefix,
    )
    first = next(candidates, None)
    if first is None:
        raise NoHeadingsError()

    bridge = SessionBridge(
        config,
        document_label=outline.document_name if config.annotate_document else None,
        group_label=outline.document_name,
    )
    log.info("Starting heading selection for %s", scope)
    return session.select(
        bridge.flatten(itertools.chain([first], candidates)),
        prompt=prompt,
        category="heading",
        sort=False,
        require_match=True,
        history=history,
        narrow=bridge.narrow,
        state=bridge.state(on_state) if on_state is not None else None,
        annotate=bridge.annotate,
        group=bridge.group,
        lookup=bridge.lookup,
    )


def list_all_headings(
    outline: Outline,
    session: SelectionSession,
    config: IndexConfig | None = None,
    *,
    match: str | EntryFilter | None = None,
    skip: EntryFilter | None = None,
    history: list[str] | None = None,
    on_state: Callable[[str, HeadingLocation], None] | None = None,
) -> HeadingLocation | None:
    """Offer the headings of every loaded document, prefixed by document name.

    Raises:
        NoDocumentsError: no documents are loaded.
        NoHeadingsError: documents exist but none of their headings match.
    """
    if len(outline) == 0:
        raise NoDocumentsError()
    return list_headings(
        outline,
        AllDocumentsScope(),
        session,
        config,
        match=match,
        skip=skip,
        include_document_prefix=True,
        prompt="Go to heading (all documents): ",
        history=history,
        on_state=on_state,
    )
