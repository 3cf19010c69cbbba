"""Index configuration loaded from JSON.

The keyword vocabulary and priority range are data, not constants: adding a
state keyword means editing the config file, not the narrowing code.

Example payload::

    {
      "keyword_groups": [
        ["sequence", ["TODO(t)", "NEXT(n)", "|", "DONE(d)"]]
      ],
      "priority_low": "A",
      "priority_high": "C",
      "tag_inheritance": true
    }
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import orjson

from heading_index.errors import ConfigError
from heading_index.io_utils import load_json
from heading_index.narrow import parse_keyword_member

KeywordGroup = tuple[str, tuple[str, ...]]


def _default_keyword_groups() -> tuple[KeywordGroup, ...]:
    return (("sequence", ("TODO", "|", "DONE")),)


@dataclass(frozen=True, slots=True)
class IndexConfig:
    """Settings for one indexing/selection session."""
    keyword_groups: tuple[KeywordGroup, ...] = field(
        default_factory=_default_keyword_groups
    )
    priority_low: str = "A"
    priority_high: str = "C"
    path_separator: str = "/"
    tag_delimiter: str = ":"
    tag_inheritance: bool = True
    annotate_keyword: bool = True
    annotate_priority: bool = True
    annotate_document: bool = False
    warn_on_dropped_narrow_keys: bool = False

    def __post_init__(self) -> None:
        for name in ("priority_low", "priority_high"):
            value = getattr(self, name)
            if not isinstance(value, str) or len(value) != 1:
                raise ConfigError(f"{name} must be a single character, got {value!r}")
        if not self.path_separator:
            raise ConfigError("path_separator must be non-empty")
        if not self.tag_delimiter:
            raise ConfigError("tag_delimiter must be non-empty")

    @property
    def keywords(self) -> tuple[str, ...]:
        """All configured state keyword names, hints and separators removed."""
        names: list[str] = []
        for _label, members in self.keyword_groups:
            for member in members:
                name, _key = parse_keyword_member(member)
                if name and name != "|":
                    names.append(name)
        return tuple(names)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IndexConfig:
        """Build a config from a decoded JSON object; missing keys use defaults."""
        if not isinstance(data, dict):
            raise ConfigError("Config payload must be a JSON object")
        kwargs: dict[str, Any] = {}
        if "keyword_groups" in data:
            kwargs["keyword_groups"] = _parse_keyword_groups(data["keyword_groups"])
        for name in ("priority_low", "priority_high", "path_separator", "tag_delimiter"):
            if name in data:
                kwargs[name] = data[name]
        for name in (
            "tag_inheritance",
            "annotate_keyword",
            "annotate_priority",
            "annotate_document",
            "warn_on_dropped_narrow_keys",
        ):
            if name in data:
                if not isinstance(data[name], bool):
                    raise ConfigError(f"{name} must be a boolean")
                kwargs[name] = data[name]
        return cls(**kwargs)

    @classmethod
    def from_json(cls, path: Path) -> IndexConfig:
        """Load from a JSON config file."""
        try:
            data = load_json(path)
        except orjson.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
        return cls.from_dict(data)


def _parse_keyword_groups(raw: Any) -> tuple[KeywordGroup, ...]:
    """Accept ``[[label, [members...]], ...]`` or ``[[label, "A(a) B"], ...]``."""
    if not isinstance(raw, list):
        raise ConfigError("keyword_groups must be a list")
    groups: list[KeywordGroup] = []
    for i, item in enumerate(raw):
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            raise ConfigError(f"keyword_groups[{i}] must be [label, members]")
        label, members = item
        if not isinstance(label, str):
            raise ConfigError(f"keyword_groups[{i}] label must be a string")
        if isinstance(members, str):
            member_list = tuple(members.split())
        elif isinstance(members, list) and all(isinstance(m, str) for m in members):
            member_list = tuple(members)
        else:
            raise ConfigError(f"keyword_groups[{i}] members must be strings")
        groups.append((label, member_list))
    return tuple(groups)
