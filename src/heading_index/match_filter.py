"""Boolean match expressions over outline entries.

Used as the traversal match filter (which headings enter the candidate list).

Grammar::

    expr      := and_expr ('|' and_expr)*
    and_expr  := not_expr ('&' not_expr)*
    not_expr  := '!' not_expr | atom
    atom      := '(' expr ')' | LEVEL | FIELD_TERM | BARE_WORD
    LEVEL     := 'level' ('<=' | '>=' | '<' | '>' | '=') [0-9]+
    FIELD_TERM:= ('tag' | 'todo' | 'priority') ':' VALUE
    BARE_WORD := VALUE                       -- shorthand for tag:VALUE

Examples: ``work & !home``, ``todo:TODO & level<=2``, ``(priority:A | urgent)``.

Public API:

* ``parse_match(text)``: parse into a ``MatchExpression`` AST.
* ``evaluate_match(expr, entry)``: evaluate an AST against one entry.
* ``compile_match(text)``: parse once, return an entry predicate.
"""
from __future__ import annotations

import operator
import re
from collections.abc import Callable
from dataclasses import dataclass

from heading_index.errors import MatchSyntaxError
from heading_index.types import OutlineEntry

# ---------------------------------------------------------------------------
# AST node types
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class MatchTerm:
    """Leaf: compare one entry property against a value."""

    field: str      # "tag" | "todo" | "priority" | "level"
    value: str
    op: str = "="   # only meaningful for "level"


@dataclass(frozen=True, slots=True)
class MatchNot:
    """Negation of a sub-expression."""

    child: MatchExpression


@dataclass(frozen=True, slots=True)
class MatchGroup:
    """Compound: AND/OR of children."""

    operator: str  # "and" | "or"
    children: tuple[MatchExpression, ...]


MatchExpression = MatchTerm | MatchNot | MatchGroup

_LEVEL_OPS: dict[str, Callable[[int, int], bool]] = {
    "<=": operator.le,
    ">=": operator.ge,
    "<": operator.lt,
    ">": operator.gt,
    "=": operator.eq,
}

# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class _Token:
    kind: str
    value: str
    pos: int


# Order matters (first match wins)
_TOKEN_PATTERNS: list[tuple[str, str]] = [
    ("WHITESPACE", r"\s+"),
    ("PIPE", r"\|"),
    ("AMP", r"&"),
    ("BANG", r"!"),
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("LEVEL", r"(?i:level)\s*(?:<=|>=|<|>|=)\s*\d+"),
    ("FIELD_TERM", r"(?i:tag|todo|priority):[^\s&|!():]+"),
    ("BARE_WORD", r"[^\s&|!():<>=]+"),
]

_COMPILED_PATTERNS = [(name, re.compile(pat)) for name, pat in _TOKEN_PATTERNS]
_LEVEL_RE = re.compile(r"(?i:level)\s*(<=|>=|<|>|=)\s*(\d+)")


def _tokenize(text: str) -> list[_Token]:
    tokens: list[_Token] = []
    pos = 0
    while pos < len(text):
        for name, pattern in _COMPILED_PATTERNS:
            m = pattern.match(text, pos)
            if m:
                if name != "WHITESPACE":
                    tokens.append(_Token(name, m.group(), pos))
                pos = m.end()
                break
        else:
            raise MatchSyntaxError(f"Unexpected character {text[pos]!r}", pos)
    tokens.append(_Token("EOF", "", pos))
    return tokens


# ---------------------------------------------------------------------------
# Recursive descent parser
# ---------------------------------------------------------------------------

class _Parser:
    def __init__(self, tokens: list[_Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def _peek(self) -> _Token:
        return self._tokens[self._pos]

    def _advance(self) -> _Token:
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def parse(self) -> MatchExpression:
        expr = self._or()
        tok = self._peek()
        if tok.kind != "EOF":
            raise MatchSyntaxError(f"Unexpected {tok.value!r}", tok.pos)
        return expr

    def _or(self) -> MatchExpression:
        parts = [self._and()]
        while self._peek().kind == "PIPE":
            self._advance()
            parts.append(self._and())
        return parts[0] if len(parts) == 1 else MatchGroup("or", tuple(parts))

    def _and(self) -> MatchExpression:
        parts = [self._not()]
        while self._peek().kind == "AMP":
            self._advance()
            parts.append(self._not())
        return parts[0] if len(parts) == 1 else MatchGroup("and", tuple(parts))

    def _not(self) -> MatchExpression:
        if self._peek().kind == "BANG":
            self._advance()
            return MatchNot(self._not())
        return self._atom()

    def _atom(self) -> MatchExpression:
        tok = self._advance()
        if tok.kind == "LPAREN":
            expr = self._or()
            closing = self._advance()
            if closing.kind != "RPAREN":
                raise MatchSyntaxError("Expected ')'", closing.pos)
            return expr
        if tok.kind == "LEVEL":
            m = _LEVEL_RE.fullmatch(tok.value)
            assert m is not None
            return MatchTerm("level", m.group(2), m.group(1))
        if tok.kind == "FIELD_TERM":
            name, _, value = tok.value.partition(":")
            return MatchTerm(name.lower(), value)
        if tok.kind == "BARE_WORD":
            return MatchTerm("tag", tok.value)
        if tok.kind == "EOF":
            raise MatchSyntaxError("Unexpected end of expression", tok.pos)
        raise MatchSyntaxError(f"Unexpected {tok.value!r}", tok.pos)


def parse_match(text: str) -> MatchExpression:
    """Parse a match expression; raises MatchSyntaxError on bad input."""
    if not text.strip():
        raise MatchSyntaxError("Empty match expression", 0)
    return _Parser(_tokenize(text)).parse()


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def evaluate_match(
    expr: MatchExpression,
    entry: OutlineEntry,
    *,
    tag_inheritance: bool = True,
) -> bool:
    """Evaluate *expr* against one entry."""
    match expr:
        case MatchGroup(operator="and", children=children):
            return all(
                evaluate_match(c, entry, tag_inheritance=tag_inheritance)
                for c in children
            )
        case MatchGroup(children=children):
            return any(
                evaluate_match(c, entry, tag_inheritance=tag_inheritance)
                for c in children
            )
        case MatchNot(child=child):
            return not evaluate_match(child, entry, tag_inheritance=tag_inheritance)
        case MatchTerm(field="tag", value=value):
            tags = entry.inherited_tags() if tag_inheritance else entry.own_tags
            return value in tags
        case MatchTerm(field="todo", value=value):
            return entry.keyword == value
        case MatchTerm(field="priority", value=value):
            return entry.priority is not None and entry.priority == value.upper()
        case MatchTerm(field="level", value=value, op=op):
            return _LEVEL_OPS[op](entry.level, int(value))
    return False


def compile_match(
    text: str, *, tag_inheritance: bool = True,
) -> Callable[[OutlineEntry], bool]:
    """Parse *text* once and return a predicate over entries."""
    expr = parse_match(text)

    def predicate(entry: OutlineEntry) -> bool:
        return evaluate_match(expr, entry, tag_inheritance=tag_inheritance)

    return predicate
