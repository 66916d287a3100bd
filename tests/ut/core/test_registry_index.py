"""注册表索引校验与加载测试"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from devkit.core.component.fetcher import SourceFetcher
from devkit.core.component.models import ComponentType
from devkit.core.component.registry import (
    BUILTIN_REGISTRY,
    builtin_registry_index,
    load_registry_index,
    parse_registry_index,
)
from devkit.core.exceptions import ValidationError

from conftest import component, write_registry


class TestParseRegistryIndex:
    def test_parse_builtin(self) -> None:
        index = builtin_registry_index()
        assert index.names(ComponentType.HOOK) == ["useLocalStorage", "useDebounce"]
        desc = index.get(ComponentType.HOOK, "useLocalStorage")
        assert desc is not None
        assert desc.internal_dependencies == ["utils/isBrowser"]
        assert desc.category == "State"
        assert desc.files[0].type is ComponentType.HOOK

    def test_defaults_for_optional_lists(self) -> None:
        raw = component("u", "util")
        del raw["dependencies"]
        del raw["internalDependencies"]
        index = parse_registry_index({"hooks": {}, "utils": {"u": raw}})
        desc = index.get(ComponentType.UTIL, "u")
        assert desc is not None
        assert desc.dependencies == [] and desc.internal_dependencies == []

    def test_schema_key_tolerated(self) -> None:
        index = parse_registry_index({"$schema": "x", "hooks": {}, "utils": {}})
        assert index.hooks == {} and index.utils == {}

    def test_lookup_missing_returns_none(self) -> None:
        assert builtin_registry_index().get(ComponentType.UTIL, "nope") is None

    def test_collects_all_errors(self) -> None:
        bad_file = component("h", "hook")
        bad_file["files"][0]["type"] = "widget"
        no_version = component("u", "util")
        del no_version["version"]
        with pytest.raises(ValidationError) as exc:
            parse_registry_index({
                "hooks": {"h": bad_file},
                "utils": {"u": no_version},
            })
        assert any("hooks.h.files[0].type" in d for d in exc.value.details)
        assert any("utils.u.version" in d for d in exc.value.details)

    @pytest.mark.parametrize("data", [[], "x", {"hooks": {}}, {"hooks": [], "utils": {}}])
    def test_invalid_document(self, data) -> None:
        with pytest.raises(ValidationError):
            parse_registry_index(data)

    def test_dangling_dependencies(self) -> None:
        index = parse_registry_index({
            "hooks": {"h": component("h", "hook", internal=["utils/gone", "bad"])},
            "utils": {},
        })
        assert index.dangling_dependencies() == ["hook/h -> util/gone"]

    def test_builtin_returns_fresh_objects(self) -> None:
        a = builtin_registry_index()
        a.hooks.clear()
        assert builtin_registry_index().hooks
        assert BUILTIN_REGISTRY["hooks"]


class TestLoadRegistryIndex:
    def test_load_from_local_registry(self, registry_dir: Path) -> None:
        index = load_registry_index(SourceFetcher(str(registry_dir)))
        assert index.get(ComponentType.UTIL, "formatDate") is not None

    def test_missing_index_falls_back(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            index = load_registry_index(SourceFetcher(str(tmp_path / "nowhere")))
        assert index.names(ComponentType.UTIL) == ["isBrowser", "formatDate"]
        assert "内置注册表" in caplog.text

    def test_invalid_json_falls_back(self, tmp_path: Path) -> None:
        (tmp_path / "index.json").write_text("{not json", encoding="utf-8")
        index = load_registry_index(SourceFetcher(str(tmp_path)))
        assert "useLocalStorage" in index.hooks

    def test_invalid_schema_falls_back(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        (tmp_path / "index.json").write_text(json.dumps({"hooks": 1}), encoding="utf-8")
        with caplog.at_level(logging.WARNING):
            index = load_registry_index(SourceFetcher(str(tmp_path)))
        assert "useDebounce" in index.hooks
        assert "远程注册表无效" in caplog.text

    def test_dangling_dependency_warned(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        write_registry(tmp_path, {
            "hooks": {"h": component("h", "hook", internal=["utils/gone"])},
            "utils": {},
        })
        with caplog.at_level(logging.WARNING):
            index = load_registry_index(SourceFetcher(str(tmp_path)))
        assert "h" in index.hooks
        assert "hook/h -> util/gone" in caplog.text

    def test_non_utf8_index_falls_back(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        (tmp_path / "index.json").write_bytes(b'{"hooks": {}, "utils": {"\xff": 1}}')
        with caplog.at_level(logging.WARNING):
            index = load_registry_index(SourceFetcher(str(tmp_path)))
        assert index.names(ComponentType.HOOK) == ["useLocalStorage", "useDebounce"]
        assert "拉取注册表失败" in caplog.text

    def test_non_object_index_falls_back(self, tmp_path: Path) -> None:
        (tmp_path / "index.json").write_text("[]", encoding="utf-8")
        index = load_registry_index(SourceFetcher(str(tmp_path)))
        assert "isBrowser" in index.utils
