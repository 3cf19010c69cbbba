"""Heading index: outline headings as narrowable, location-resolving candidates."""

from heading_index.annotate import AnnotationFormatter, ColumnWidths, annotate_step
from heading_index.candidates import CandidateBuilder, build_candidates, render_tags
from heading_index.config import IndexConfig
from heading_index.errors import (
    ConfigError,
    HeadingIndexError,
    LookupMissError,
    MatchSyntaxError,
    NoDocumentsError,
    NoHeadingsError,
    SchemaVersionError,
    UnknownDocumentError,
)
from heading_index.identity import (
    LocationRegistry,
    decode_identity,
    encode_identity,
    strip_identity,
)
from heading_index.narrow import (
    build_narrow_table,
    make_narrow_predicate,
    narrow_matches,
)
from heading_index.outline import (
    AllDocumentsScope,
    DocumentScope,
    Outline,
    OutlineDocument,
    OutlineHeading,
    RegionScope,
    SubtreeScope,
)
from heading_index.session import (
    ScriptedSession,
    SessionBridge,
    list_all_headings,
    list_headings,
)
from heading_index.types import (
    Candidate,
    HeadingLocation,
    HeadingMeta,
    KeywordEquals,
    LevelThreshold,
    NarrowBinding,
    PriorityEquals,
)

__all__ = [
    "AllDocumentsScope",
    "AnnotationFormatter",
    "Candidate",
    "CandidateBuilder",
    "ColumnWidths",
    "ConfigError",
    "DocumentScope",
    "HeadingIndexError",
    "HeadingLocation",
    "HeadingMeta",
    "IndexConfig",
    "KeywordEquals",
    "LevelThreshold",
    "LocationRegistry",
    "LookupMissError",
    "MatchSyntaxError",
    "NarrowBinding",
    "NoDocumentsError",
    "NoHeadingsError",
    "Outline",
    "OutlineDocument",
    "OutlineHeading",
    "PriorityEquals",
    "RegionScope",
    "SchemaVersionError",
    "ScriptedSession",
    "SessionBridge",
    "SubtreeScope",
    "UnknownDocumentError",
    "annotate_step",
    "build_candidates",
    "build_narrow_table",
    "decode_identity",
    "encode_identity",
    "list_all_headings",
    "list_headings",
    "make_narrow_predicate",
    "narrow_matches",
    "render_tags",
    "strip_identity",
]
