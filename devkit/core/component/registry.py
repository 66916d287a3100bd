"""组件注册表加载

职责:
- 将注册表索引文档 (index.json) 校验并转换为 RegistryIndex
- 提供内置的后备索引（远程注册表不可用或内容无效时使用）
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from devkit.core.component.models import (
    ComponentDescriptor,
    ComponentType,
    FileEntry,
    RegistryIndex,
)
from devkit.core.exceptions import FetchError, NetworkError, ValidationError

if TYPE_CHECKING:
    from devkit.core.component.fetcher import SourceFetcher

logger = logging.getLogger(__name__)


def _check_str_list(value: Any, where: str, errors: list[str]) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        errors.append(f"{where}: 必须是字符串列表")
        return []
    return list(value)


def _parse_file(raw: Any, where: str, errors: list[str]) -> FileEntry | None:
    if not isinstance(raw, dict):
        errors.append(f"{where}: 必须是对象")
        return None
    ftype = raw.get("type")
    if ftype not in ("hook", "util"):
        errors.append(f"{where}.type: 必须是 \"hook\" 或 \"util\"")
        return None
    path = raw.get("path")
    target = raw.get("target")
    for key, value in (("path", path), ("target", target)):
        if not isinstance(value, str) or not value:
            errors.append(f"{where}.{key}: 必须是非空字符串")
            return None
    return FileEntry(type=ComponentType(ftype), path=path, target=target)


def _parse_component(
    raw: Any, where: str, errors: list[str],
) -> ComponentDescriptor | None:
    if not isinstance(raw, dict):
        errors.append(f"{where}: 必须是对象")
        return None

    before = len(errors)
    for key in ("name", "description", "version"):
        if not isinstance(raw.get(key), str):
            errors.append(f"{where}.{key}: 必须是字符串")

    raw_files = raw.get("files")
    files: list[FileEntry] = []
    if not isinstance(raw_files, list):
        errors.append(f"{where}.files: 必须是列表")
    else:
        for i, raw_file in enumerate(raw_files):
            entry = _parse_file(raw_file, f"{where}.files[{i}]", errors)
            if entry is not None:
                files.append(entry)

    dependencies = _check_str_list(
        raw.get("dependencies"), f"{where}.dependencies", errors,
    )
    internal = _check_str_list(
        raw.get("internalDependencies"), f"{where}.internalDependencies", errors,
    )
    category = raw.get("category") or ""
    if not isinstance(category, str):
        errors.append(f"{where}.category: 必须是字符串")

    if len(errors) > before:
        return None
    return ComponentDescriptor(
        name=raw["name"],
        description=raw["description"],
        version=raw["version"],
        files=files,
        dependencies=dependencies,
        internal_dependencies=internal,
        category=category,
    )


def parse_registry_index(data: Any) -> RegistryIndex:
    """校验注册表文档并转换为 RegistryIndex

    Raises:
        ValidationError: 文档结构不合法，details 列出每个出错字段
    """
    if not isinstance(data, dict):
        raise ValidationError("注册表索引必须是 JSON 对象")

    errors: list[str] = []
    index = RegistryIndex()
    for ctype in ComponentType:
        section = data.get(ctype.partition)
        if not isinstance(section, dict):
            errors.append(f"{ctype.partition}: 必须是对象")
            continue
        target = index.partition(ctype)
        for name, raw in section.items():
            desc = _parse_component(raw, f"{ctype.partition}.{name}", errors)
            if desc is not None:
                target[name] = desc

    if errors:
        raise ValidationError("注册表索引校验失败", details=errors)
    return index


def load_registry_index(fetcher: SourceFetcher) -> RegistryIndex:
    """从注册表拉取索引，失败或无效时回退到内置索引"""
    try:
        index = parse_registry_index(fetcher.fetch_index())
    except (NetworkError, FetchError) as e:
        logger.warning("拉取注册表失败，使用内置注册表: %s", e)
        return builtin_registry_index()
    except json.JSONDecodeError as e:
        logger.warning("注册表不是合法 JSON，使用内置注册表: %s", e)
        return builtin_registry_index()
    except ValidationError as e:
        logger.warning("远程注册表无效，使用内置注册表")
        for detail in e.details:
            logger.warning("  - %s", detail)
        return builtin_registry_index()

    for problem in index.dangling_dependencies():
        logger.warning("注册表中存在无法解析的内部依赖: %s", problem)
    return index


BUILTIN_REGISTRY: dict[str, Any] = {
    "hooks": {
        "useLocalStorage": {
            "name": "useLocalStorage",
            "description": "Persist state to localStorage with serialization support",
            "category": "State",
            "files": [
                {
                    "type": "hook",
                    "path": "registry/hooks/useLocalStorage.ts",
                    "target": "hooks/useLocalStorage.ts",
                },
            ],
            "dependencies": [],
            "internalDependencies": ["utils/isBrowser"],
            "version": "1.0.0",
        },
        "useDebounce": {
            "name": "useDebounce",
            "description": "Debounce a value",
            "category": "State",
            "files": [
                {
                    "type": "hook",
                    "path": "registry/hooks/useDebounce.ts",
                    "target": "hooks/useDebounce.ts",
                },
            ],
            "dependencies": [],
            "internalDependencies": [],
            "version": "1.0.0",
        },
    },
    "utils": {
        "isBrowser": {
            "name": "isBrowser",
            "description": "Check if code is running in browser",
            "files": [
                {
                    "type": "util",
                    "path": "registry/utils/isBrowser.ts",
                    "target": "utils/isBrowser.ts",
                },
            ],
            "dependencies": [],
            "version": "1.0.0",
        },
        "formatDate": {
            "name": "formatDate",
            "description": "Format date using Intl.DateTimeFormat",
            "files": [
                {
                    "type": "util",
                    "path": "registry/utils/formatDate.ts",
                    "target": "utils/formatDate.ts",
                },
            ],
            "dependencies": [],
            "version": "1.0.0",
        },
    },
}


def builtin_registry_index() -> RegistryIndex:
    """内置后备索引（每次返回新对象，调用方可随意修改）"""
    return parse_registry_index(BUILTIN_REGISTRY)
