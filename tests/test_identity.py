"""Tests for heading_index.identity: invisible suffix and registry."""
from __future__ import annotations

import pytest

from heading_index.errors import LookupMissError
from heading_index.identity import (
    TOFU_BASE,
    TOFU_MARKER,
    TOFU_RANGE,
    LocationRegistry,
    decode_identity,
    encode_identity,
    strip_identity,
)
from heading_index.types import Candidate, HeadingLocation, HeadingMeta


def _cand(index: int, text: str = "Heading") -> Candidate:
    return Candidate(
        text=text,
        highlights=(),
        meta=HeadingMeta(1),
        location=HeadingLocation("doc", index * 10, index + 1),
        index=index,
    )


class TestEncodeDecode:
    @pytest.mark.parametrize("index", [0, 1, TOFU_RANGE - 1, TOFU_RANGE, 10**9])
    def test_round_trip(self, index: int) -> None:
        assert decode_identity("Some heading" + encode_identity(index)) == index

    def test_zero_is_marker_and_one_digit(self) -> None:
        assert encode_identity(0) == TOFU_MARKER + chr(TOFU_BASE)

    def test_suffix_uses_private_use_chars_only(self) -> None:
        suffix = encode_identity(123456)
        assert suffix[0] == TOFU_MARKER
        assert all(TOFU_BASE <= ord(ch) < TOFU_BASE + TOFU_RANGE for ch in suffix[1:])

    def test_marker_is_not_a_digit(self) -> None:
        assert not TOFU_BASE <= ord(TOFU_MARKER) < TOFU_BASE + TOFU_RANGE

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValueError):
            encode_identity(-1)

    def test_no_suffix(self) -> None:
        assert decode_identity("plain text") is None
        assert decode_identity("") is None

    def test_survives_truncated_visible_part(self) -> None:
        rendered = "Projects/Write report" + encode_identity(42)
        assert decode_identity(rendered[5:]) == 42

    def test_strip(self) -> None:
        assert strip_identity("Title" + encode_identity(70000)) == "Title"

    def test_title_ending_in_private_use_icon(self) -> None:
        title = "Inbox \U000F0001"
        rendered = title + encode_identity(0)
        assert decode_identity(rendered) == 0
        assert strip_identity(rendered) == title

    def test_bare_private_use_text_has_no_suffix(self) -> None:
        assert decode_identity("icon \U000F0001") is None
        assert strip_identity("icon \U000F0001") == "icon \U000F0001"


class TestLocationRegistry:
    def test_register_and_resolve(self) -> None:
        reg = LocationRegistry()
        rendered = reg.register(_cand(0))
        assert reg.resolve(rendered).location == HeadingLocation("doc", 0, 1)
        assert len(reg) == 1
        assert 0 in reg

    def test_identical_text_distinct_candidates(self) -> None:
        reg = LocationRegistry()
        first = reg.register(_cand(0, "Same"))
        second = reg.register(_cand(1, "Same"))
        assert first != second
        assert strip_identity(first) == strip_identity(second)
        assert reg.resolve(first).index == 0
        assert reg.resolve(second).index == 1

    def test_resolve_by_decoded_suffix(self) -> None:
        reg = LocationRegistry()
        rendered = reg.register(_cand(3, "Long heading text"))
        assert reg.resolve("heading" + rendered[-2:]).index == 3

    def test_append_only(self) -> None:
        reg = LocationRegistry()
        reg.register(_cand(0))
        with pytest.raises(ValueError):
            reg.register(_cand(0, "Other"))

    def test_lookup_miss_is_fatal(self) -> None:
        reg = LocationRegistry()
        reg.register(_cand(0))
        with pytest.raises(LookupMissError):
            reg.resolve("unknown")
        with pytest.raises(LookupMissError):
            reg.resolve("x" + encode_identity(5))

    def test_icon_title_resolves_after_truncation(self) -> None:
        reg = LocationRegistry()
        rendered = reg.register(_cand(0, "Inbox \U000F0001"))
        assert reg.resolve(rendered[2:]).index == 0
