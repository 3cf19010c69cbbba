"""Invisible identity suffix and the per-session location registry.

Every candidate string ends with a marker character followed by its sequence
index written in "tofu" digits from the Supplementary Private Use Area-A.
Those code points have no glyphs in common fonts and are not typed by users,
so a substring or fuzzy matcher never scores against them. Icon fonts do
place glyphs in the same area, so a title may end with a digit code point;
decoding therefore reads only what follows the last marker, which survives
truncation or highlighting of the visible part.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from heading_index.errors import LookupMissError

if TYPE_CHECKING:
    from heading_index.types import Candidate

TOFU_BASE = 0xF0000
TOFU_RANGE = 0xFFFD  # digits U+F0000 .. U+FFFFC
TOFU_MARKER = chr(TOFU_BASE + TOFU_RANGE)  # U+FFFFD, never a digit


def _is_tofu(ch: str) -> bool:
    return TOFU_BASE <= ord(ch) < TOFU_BASE + TOFU_RANGE


def _suffix_start(rendered: str) -> int | None:
    """Index of the marker opening a well-formed suffix, or None."""
    marker = rendered.rfind(TOFU_MARKER)
    if marker < 0 or marker == len(rendered) - 1:
        return None
    if not all(_is_tofu(ch) for ch in rendered[marker + 1:]):
        return None
    return marker


def encode_identity(index: int) -> str:
    """Encode a non-negative sequence index as marker plus tofu digits.

    Digits are emitted most significant first; 0 encodes to one digit.
    """
    if index < 0:
        raise ValueError(f"Sequence index must be >= 0, got {index}")
    digits: list[str] = []
    while True:
        index, rem = divmod(index, TOFU_RANGE)
        digits.append(chr(TOFU_BASE + rem))
        if index == 0:
            break
    return TOFU_MARKER + "".join(reversed(digits))


def decode_identity(rendered: str) -> int | None:
    """Recover the sequence index from the tail of a rendered string.

    Returns None when the string carries no identity suffix.
    """
    start = _suffix_start(rendered)
    if start is None:
        return None
    value = 0
    for ch in rendered[start + 1:]:
        value = value * TOFU_RANGE + (ord(ch) - TOFU_BASE)
    return value


def strip_identity(rendered: str) -> str:
    """Return the visible part of a rendered string."""
    start = _suffix_start(rendered)
    return rendered if start is None else rendered[:start]


class LocationRegistry:
    """Append-only mapping from sequence index to candidate for one session."""

    def __init__(self) -> None:
        self._by_index: dict[int, Candidate] = {}
        self._by_rendered: dict[str, Candidate] = {}

    def __len__(self) -> int:
        return len(self._by_index)

    def __contains__(self, index: object) -> bool:
        return index in self._by_index

    def register(self, candidate: Candidate) -> str:
        """Record *candidate* and return its rendered string.

        Raises ValueError if the sequence index was already registered.
        """
        if candidate.index in self._by_index:
            raise ValueError(
                f"Sequence index {candidate.index} already registered"
            )
        rendered = candidate.rendered
        self._by_index[candidate.index] = candidate
        self._by_rendered[rendered] = candidate
        return rendered

    def get(self, index: int) -> Candidate | None:
        return self._by_index.get(index)

    def resolve(self, rendered: str) -> Candidate:
        """Map a string returned by a selection session to its candidate.

        Exact strings resolve directly; anything else falls back to decoding
        the identity suffix. A miss is an invariant violation.
        """
        found = self._by_rendered.get(rendered)
        if found is not None:
            return found
        index = decode_identity(rendered)
        if index is not None:
            found = self._by_index.get(index)
            if found is not None:
                return found
        raise LookupMissError(
            f"Selected string {strip_identity(rendered)!r} "
            f"(index {index}) is not a candidate of this session"
        )
