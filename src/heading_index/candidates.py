"""Turn outline entries into display candidates.

Each candidate's visible text is::

    [<doc name>: ]<ancestor>/<ancestor>/<KEYWORD> [#P] <title>[ :tag1:tag2:]

The state keyword, priority cookie, tag block and document prefix are
recorded as highlight spans rather than baked-in markup. The sequence index
rides separately on the candidate and is only flattened into the string
(as an invisible suffix) by ``Candidate.rendered``.

Outline paths are expensive and cached by the document collaborator. The
builder never caches them itself; it only reports when traversal crosses into
a new document so the collaborator can rebuild its cache.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator

from heading_index.config import IndexConfig
from heading_index.types import Candidate, HeadingMeta, Highlight, OutlineEntry

log = logging.getLogger(__name__)


def render_tags(tags: Iterable[str], delimiter: str = ":") -> str:
    """Render tags as ``:a:b:``; an empty tag set renders as ``""``."""
    tag_list = [t for t in tags if t]
    if not tag_list:
        return ""
    return delimiter + delimiter.join(tag_list) + delimiter


class CandidateBuilder:
    """Build candidates for one selection session.

    Args:
        config: Separators, tag delimiter and the tag inheritance switch.
        on_document_change: Called with the new doc id whenever an entry
            belongs to a different document than the previous one (including
            the first entry).
    """

    def __init__(
        self,
        config: IndexConfig,
        on_document_change: Callable[[str], None] | None = None,
    ) -> None:
        self._config = config
        self._on_document_change = on_document_change

    def build(
        self,
        entries: Iterable[OutlineEntry],
        include_document_prefix: bool = False,
    ) -> Iterator[Candidate]:
        """Lazily yield one candidate per entry in traversal order."""
        current_doc: str | None = None
        index = 0
        for entry in entries:
            if entry.doc_id != current_doc:
                current_doc = entry.doc_id
                log.debug("Indexing headings of %s", current_doc)
                if self._on_document_change is not None:
                    self._on_document_change(current_doc)
            yield self._render(entry, index, include_document_prefix)
            index += 1

    def _render(
        self, entry: OutlineEntry, index: int, include_document_prefix: bool,
    ) -> Candidate:
        cfg = self._config
        buf: list[str] = []
        highlights: list[Highlight] = []
        pos = 0

        def emit(piece: str, face: str | None = None) -> None:
            nonlocal pos
            if face is not None and piece:
                highlights.append(Highlight(pos, pos + len(piece), face))
            buf.append(piece)
            pos += len(piece)

        if include_document_prefix:
            emit(entry.doc_name, "document")
            emit(": ")

        path = tuple(entry.outline_path())
        for ancestor in path[:-1]:
            emit(ancestor)
            emit(cfg.path_separator)

        if entry.keyword:
            emit(entry.keyword, "keyword")
            emit(" ")
        if entry.priority:
            emit(f"[#{entry.priority}]", "priority")
            emit(" ")
        emit(path[-1] if path else "")

        tags = entry.inherited_tags() if cfg.tag_inheritance else entry.own_tags
        tag_block = render_tags(tags, cfg.tag_delimiter)
        if tag_block:
            emit(" ")
            emit(tag_block, "tags")

        return Candidate(
            text="".join(buf),
            highlights=tuple(highlights),
            meta=HeadingMeta(entry.level, entry.keyword, entry.priority),
            location=entry.location,
            index=index,
        )


def build_candidates(
    entries: Iterable[OutlineEntry],
    config: IndexConfig,
    *,
    include_document_prefix: bool = False,
    on_document_change: Callable[[str], None] | None = None,
) -> Iterator[Candidate]:
    """Convenience wrapper around ``CandidateBuilder.build``."""
    builder = CandidateBuilder(config, on_document_change)
    return builder.build(entries, include_document_prefix)
