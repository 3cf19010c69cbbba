"""Single-key narrowing: key table derivation and the narrowing predicate.

The table is built once per session from configuration:

* ``1``..``9`` : level threshold (``Level N``): headings with level <= N.
* ``A``..``Z`` : priority equality (``Priority X``), restricted to the
  configured priority range. Lowercase input is normalized to uppercase.
* any other key: state keyword equality, derived from the keyword vocabulary.

Keyword keys come from the member syntax ``NAME(x...)``: the first hint char,
or the name's first char when there is no hint, lowercased. Only ``a``..``z``
survive. A keyword key that collides with a level or priority key is dropped;
the reserved classes always win.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence

from heading_index.types import (
    HeadingMeta,
    KeywordEquals,
    LevelThreshold,
    NarrowBinding,
    NarrowCriterion,
    PriorityEquals,
)

log = logging.getLogger(__name__)

LEVEL_KEYS = "123456789"

NarrowTable = dict[str, NarrowBinding]


def parse_keyword_member(member: str) -> tuple[str, str]:
    """Split a keyword member like ``"WAIT(w@/!)"`` into ``("WAIT", "w")``.

    The key is not range-checked here; ``"|"`` yields ``("|", "|")``.
    """
    member = member.strip()
    name, sep, rest = member.partition("(")
    name = name.strip()
    hint = rest.rstrip(")").strip() if sep else ""
    source = hint or name
    return name, source[:1].lower()


def build_narrow_table(
    keyword_groups: Iterable[tuple[str, Sequence[str]]],
    priority_low: str,
    priority_high: str,
    *,
    warn_on_dropped: bool = False,
) -> NarrowTable:
    """Derive the narrowing key table from keyword groups and a priority range.

    Args:
        keyword_groups: Ordered ``(label, members)`` pairs; members use the
            ``NAME(hint)`` syntax and may include ``"|"`` separators.
        priority_low: Highest priority character (e.g. ``"A"``).
        priority_high: Lowest priority character (e.g. ``"C"``).
        warn_on_dropped: Log keyword keys lost to a reserved key at WARNING
            instead of DEBUG.

    Returns:
        Mapping from key to its binding. Later keyword members sharing a key
        override earlier ones.
    """
    table: NarrowTable = {}
    for ch in LEVEL_KEYS:
        table[ch] = NarrowBinding(ch, LevelThreshold(int(ch)), f"Level {ch}")

    low = max("A", priority_low.upper())
    high = min("Z", priority_high.upper())
    for code in range(ord(low), ord(high) + 1):
        ch = chr(code)
        table[ch] = NarrowBinding(ch, PriorityEquals(ch), f"Priority {ch}")

    drop_level = logging.WARNING if warn_on_dropped else logging.DEBUG
    for _label, members in keyword_groups:
        for member in members:
            name, key = parse_keyword_member(member)
            if not name or name == "|":
                continue
            if not ("a" <= key <= "z"):
                log.debug("Keyword %r has no usable narrow key (%r)", name, key)
                continue
            reserved = table.get(key.upper())
            if reserved is not None and not isinstance(reserved.criterion, KeywordEquals):
                log.log(
                    drop_level,
                    "Narrow key %r for keyword %r collides with %s; dropped",
                    key, name, reserved.label,
                )
                continue
            table[key] = NarrowBinding(key, KeywordEquals(name), name)
    return table


def resolve_key(key: str, table: Mapping[str, NarrowBinding]) -> NarrowBinding | None:
    """Find the binding selected by *key*, honouring class precedence."""
    if len(key) != 1:
        return None
    if key in LEVEL_KEYS:
        return table.get(key)
    if key.isalpha():
        upper = table.get(key.upper())
        if upper is not None and isinstance(upper.criterion, PriorityEquals):
            return upper
    binding = table.get(key)
    if binding is not None and isinstance(binding.criterion, KeywordEquals):
        return binding
    return None


def criterion_matches(criterion: NarrowCriterion, meta: HeadingMeta) -> bool:
    """Evaluate one narrowing criterion against a candidate's metadata."""
    match criterion:
        case LevelThreshold(level=threshold):
            return 1 <= meta.level <= threshold
        case PriorityEquals(priority=priority):
            return meta.priority == priority
        case KeywordEquals(keyword=keyword):
            return meta.keyword is not None and meta.keyword == keyword
    return False


def narrow_matches(
    key: str, meta: HeadingMeta, table: Mapping[str, NarrowBinding],
) -> bool:
    """Return True if a candidate with *meta* survives narrowing by *key*.

    Unbound keys match nothing.
    """
    binding = resolve_key(key, table)
    if binding is None:
        return False
    return criterion_matches(binding.criterion, meta)


def make_narrow_predicate(
    table: Mapping[str, NarrowBinding],
) -> Callable[[str | None, HeadingMeta], bool]:
    """Close over *table*; a missing or empty key lets every candidate through."""

    def predicate(key: str | None, meta: HeadingMeta) -> bool:
        if not key:
            return True
        return narrow_matches(key, meta, table)

    return predicate


def narrow_labels(table: Mapping[str, NarrowBinding]) -> dict[str, str]:
    """Key → label mapping for display in a selection UI."""
    return {key: binding.label for key, binding in table.items()}
