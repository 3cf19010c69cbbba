"""Tests for heading_index.annotate: column-aligned annotations."""
from __future__ import annotations

from heading_index.annotate import AnnotationFormatter, ColumnWidths, annotate_step
from heading_index.types import Candidate, HeadingLocation, HeadingMeta


def _cand(keyword: str | None = None, priority: str | None = None, doc: str = "d") -> Candidate:
    return Candidate(
        text="x",
        highlights=(),
        meta=HeadingMeta(1, keyword, priority),
        location=HeadingLocation(doc, 0),
        index=0,
    )


class TestAnnotateStep:
    def test_pads_to_running_width(self) -> None:
        state, text = annotate_step(ColumnWidths((5,)), ["ab"])
        assert text == "ab   "
        assert state.widths == (5,)

    def test_grows(self) -> None:
        state, text = annotate_step(ColumnWidths((2,)), ["abcd"])
        assert text == "abcd"
        assert state.widths == (4,)

    def test_joins_with_single_space(self) -> None:
        state, text = annotate_step(ColumnWidths(), ["TODO", "", "notes"])
        assert text == "TODO  notes"
        assert state.widths == (4, 0, 5)

    def test_pure(self) -> None:
        start = ColumnWidths((3, 3))
        annotate_step(start, ["abcdef", "x"])
        assert start.widths == (3, 3)


class TestAnnotationFormatter:
    def test_monotonic_keyword_width(self) -> None:
        fmt = AnnotationFormatter(show_keyword=True, show_priority=False)
        widths: list[int] = []
        for kw in ("ABC", "WAITING", "NO"):
            fmt(_cand(kw))
            widths.append(fmt.widths.get(0))
        assert widths == [3, 7, 7]

    def test_padded_output(self) -> None:
        fmt = AnnotationFormatter(show_keyword=True, show_priority=False)
        assert fmt(_cand("WAITING")) == "WAITING"
        assert fmt(_cand("NO")) == "NO     "

    def test_all_columns(self) -> None:
        fmt = AnnotationFormatter(
            show_keyword=True,
            show_priority=True,
            document_label=lambda loc: f"{loc.doc_id}.org",
        )
        assert fmt(_cand("TODO", "A", "work")) == "TODO [#A] work.org"
        assert fmt(_cand(None, None, "h")) == "          h.org   "

    def test_disabled_fields_not_computed(self) -> None:
        calls: list[HeadingLocation] = []

        def label(loc: HeadingLocation) -> str:
            calls.append(loc)
            return "doc"

        fmt = AnnotationFormatter(show_keyword=False, show_priority=False)
        assert fmt(_cand("TODO", "A")) == ""
        assert calls == []

        fmt = AnnotationFormatter(show_keyword=False, show_priority=True, document_label=label)
        assert fmt(_cand("TODO", "B")) == "[#B] doc"
        assert len(calls) == 1

    def test_new_formatter_starts_fresh(self) -> None:
        first = AnnotationFormatter(show_priority=False)
        first(_cand("WAITING"))
        second = AnnotationFormatter(show_priority=False)
        assert second(_cand("NO")) == "NO"
