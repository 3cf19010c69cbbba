"""Tests for heading_index.config: index configuration loading."""
from __future__ import annotations

from pathlib import Path

import pytest

from heading_index.config import IndexConfig
from heading_index.errors import ConfigError


class TestIndexConfig:
    def test_defaults(self) -> None:
        cfg = IndexConfig()
        assert cfg.priority_low == "A"
        assert cfg.priority_high == "C"
        assert cfg.tag_inheritance is True
        assert cfg.keywords == ("TODO", "DONE")

    def test_from_dict(self) -> None:
        cfg = IndexConfig.from_dict({
            "keyword_groups": [
                ["sequence", ["TODO(t)", "NEXT(n)", "|", "DONE(d)"]],
                ["type", "BUG(b) FIX(f)"],
            ],
            "priority_low": "A",
            "priority_high": "E",
            "tag_inheritance": False,
            "annotate_document": True,
        })
        assert cfg.keyword_groups[1] == ("type", ("BUG(b)", "FIX(f)"))
        assert cfg.keywords == ("TODO", "NEXT", "DONE", "BUG", "FIX")
        assert cfg.priority_high == "E"
        assert cfg.tag_inheritance is False
        assert cfg.annotate_document is True

    def test_from_json(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text('{"path_separator": " > ", "warn_on_dropped_narrow_keys": true}')
        cfg = IndexConfig.from_json(path)
        assert cfg.path_separator == " > "
        assert cfg.warn_on_dropped_narrow_keys is True

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            IndexConfig.from_json(path)

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"priority_low": "AB"},
            {"priority_high": ""},
            {"path_separator": ""},
            {"tag_inheritance": "yes"},
            {"keyword_groups": "TODO"},
            {"keyword_groups": [["only-label"]]},
            {"keyword_groups": [["label", [1, 2]]]},
        ],
    )
    def test_invalid_shapes(self, payload) -> None:
        with pytest.raises(ConfigError):
            IndexConfig.from_dict(payload)
