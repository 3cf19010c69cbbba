"""Exception types for heading indexing and selection.

Failures are local and synchronous. The two "nothing to show" conditions are
distinguished by stage:

* ``NoDocumentsError``: raised before traversal starts (no documents).
* ``NoHeadingsError``: traversal finished without producing a candidate.

``LookupMissError`` signals a broken invariant (a session returned a string it
was never given) and is not meant to be caught by callers.
"""
from __future__ import annotations


class HeadingIndexError(Exception):
    """Base class for user-facing heading index failures."""


class ConfigError(HeadingIndexError, ValueError):
    """Raised when an index configuration payload has an invalid shape."""


class NoDocumentsError(HeadingIndexError):
    """Raised when no outline documents are configured."""

    def __init__(self, message: str = "No documents configured") -> None:
        super().__init__(message)


class NoHeadingsError(HeadingIndexError):
    """Raised when a scope yields zero headings."""

    def __init__(self, message: str = "No headings") -> None:
        super().__init__(message)


class UnknownDocumentError(HeadingIndexError, KeyError):
    """Raised when a scope refers to a document id that is not loaded."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Unknown document"


class MatchSyntaxError(HeadingIndexError, ValueError):
    """Raised when a match filter expression cannot be parsed."""

    def __init__(self, message: str, position: int = 0) -> None:
        super().__init__(f"{message} (at offset {position})")
        self.position = position


class SchemaVersionError(HeadingIndexError, RuntimeError):
    """Raised when a heading store schema version does not match expected."""


class LookupMissError(AssertionError):
    """A selected string does not map to any candidate of the session."""
