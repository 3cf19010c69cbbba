"""Column-aligned candidate annotations.

Up to three columns, in fixed order: state keyword, priority, document label.
Each column is padded to the widest value seen so far in the session, so
widths only ever grow. The alignment logic is the pure ``annotate_step``;
``AnnotationFormatter`` just threads the running widths through it.
"""
from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from heading_index.types import Candidate, HeadingLocation


@dataclass(frozen=True, slots=True)
class ColumnWidths:
    """Running maximum rendered width per annotation column."""
    widths: tuple[int, ...] = ()

    def get(self, column: int) -> int:
        return self.widths[column] if column < len(self.widths) else 0


def annotate_step(
    state: ColumnWidths, fields: Sequence[str],
) -> tuple[ColumnWidths, str]:
    """Pad *fields* to the running column widths and join them.

    Returns the updated widths and the formatted annotation.
    """
    widths = [max(state.get(i), len(value)) for i, value in enumerate(fields)]
    # Columns beyond this call's fields keep their previous maxima.
    widths.extend(state.widths[len(fields):])
    text = " ".join(value.ljust(widths[i]) for i, value in enumerate(fields))
    return ColumnWidths(tuple(widths)), text


class AnnotationFormatter:
    """Per-session annotation function with growing column widths.

    Not reentrant: create one per selection session.
    """

    def __init__(
        self,
        *,
        show_keyword: bool = True,
        show_priority: bool = True,
        document_label: Callable[[HeadingLocation], str] | None = None,
    ) -> None:
        self._show_keyword = show_keyword
        self._show_priority = show_priority
        self._document_label = document_label
        self._state = ColumnWidths()

    @property
    def widths(self) -> ColumnWidths:
        return self._state

    def fields(self, candidate: Candidate) -> list[str]:
        """Compute the enabled columns for *candidate*."""
        out: list[str] = []
        if self._show_keyword:
            out.append(candidate.meta.keyword or "")
        if self._show_priority:
            prio = candidate.meta.priority
            out.append(f"[#{prio}]" if prio else "")
        if self._document_label is not None:
            out.append(self._document_label(candidate.location))
        return out

    def __call__(self, candidate: Candidate) -> str:
        self._state, text = annotate_step(self._state, self.fields(candidate))
        return text
