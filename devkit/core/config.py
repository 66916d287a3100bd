"""项目配置管理

项目根目录下的 codegen.config.yml（旧版项目为 codegen.config.json）记录:
  - typescript / registryUrl
  - aliases: 用户项目中 hooks / utils 的导入别名
  - paths:   hooks / utils 的落盘目录
  - components: 安装清单，按 hooks / utils 分区记录已安装组件

读取时做完整校验，校验失败抛 ConfigError；
写回时保留未知的顶层字段（如 $schema）。
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from devkit.core.component.models import (
    Aliases,
    ComponentType,
    InstalledComponent,
    Paths,
)
from devkit.core.exceptions import ConfigError
from devkit.utils.yaml_io import atomic_write, load_yaml, save_yaml

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "codegen.config.yml"
# 旧版工具生成的 JSON 配置，仅在 YAML 配置不存在时使用
LEGACY_CONFIG_FILE_NAME = "codegen.config.json"
DEFAULT_REGISTRY_URL = "https://lyb-ai.github.io/dev-tookit-registry"

_KNOWN_KEYS = frozenset(("typescript", "registryUrl", "aliases", "paths", "components"))


@dataclass
class ProjectConfig:
    """项目配置 + 安装清单"""

    aliases: Aliases
    paths: Paths
    typescript: bool = True
    registry_url: str = DEFAULT_REGISTRY_URL
    components: dict[str, dict[str, InstalledComponent]] = field(
        default_factory=lambda: {"hooks": {}, "utils": {}},
    )
    extra: dict[str, Any] = field(default_factory=dict)

    def installed(self, ctype: ComponentType, name: str) -> InstalledComponent | None:
        return self.components.get(ctype.partition, {}).get(name)

    def set_installed(
        self, ctype: ComponentType, name: str, entry: InstalledComponent,
    ) -> None:
        """整体替换某组件的安装记录"""
        self.components.setdefault(ctype.partition, {})[name] = entry

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectConfig:
        """校验并构造配置

        Raises:
            ConfigError: 字段缺失或类型错误，details 列出每个问题
        """
        errors: list[str] = []

        typescript = data.get("typescript", True)
        if not isinstance(typescript, bool):
            errors.append("typescript: 必须是布尔值")

        registry_url = data.get("registryUrl", DEFAULT_REGISTRY_URL)
        if not isinstance(registry_url, str) or not registry_url:
            errors.append("registryUrl: 必须是非空字符串")

        sections: dict[str, dict[str, str]] = {}
        for section, keys in (("aliases", ("utils", "hooks")), ("paths", ("hooks", "utils"))):
            raw = data.get(section)
            if not isinstance(raw, dict):
                errors.append(f"{section}: 缺失或不是对象")
                continue
            for key in keys:
                if not isinstance(raw.get(key), str):
                    errors.append(f"{section}.{key}: 必须是字符串")
            sections[section] = raw

        components = _parse_components(data.get("components"), errors)

        if errors:
            raise ConfigError("配置文件校验失败", details=errors)

        return cls(
            aliases=Aliases(
                utils=sections["aliases"]["utils"],
                hooks=sections["aliases"]["hooks"],
            ),
            paths=Paths(
                hooks=sections["paths"]["hooks"],
                utils=sections["paths"]["utils"],
            ),
            typescript=typescript,
            registry_url=registry_url,
            components=components,
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        data.update({
            "typescript": self.typescript,
            "registryUrl": self.registry_url,
            "aliases": {"utils": self.aliases.utils, "hooks": self.aliases.hooks},
            "paths": {"hooks": self.paths.hooks, "utils": self.paths.utils},
            "components": {
                partition: {name: entry.to_dict() for name, entry in entries.items()}
                for partition, entries in self.components.items()
            },
        })
        return data


def _parse_components(
    raw: Any, errors: list[str],
) -> dict[str, dict[str, InstalledComponent]]:
    result: dict[str, dict[str, InstalledComponent]] = {"hooks": {}, "utils": {}}
    if raw is None:
        return result
    if not isinstance(raw, dict):
        errors.append("components: 必须是对象")
        return result

    for partition in ("hooks", "utils"):
        entries = raw.get(partition) or {}
        if not isinstance(entries, dict):
            errors.append(f"components.{partition}: 必须是对象")
            continue
        for name, entry in entries.items():
            where = f"components.{partition}.{name}"
            if not isinstance(entry, dict):
                errors.append(f"{where}: 必须是对象")
                continue
            files = entry.get("files")
            if (
                not isinstance(entry.get("version"), str)
                or not isinstance(entry.get("pulledAt"), str)
                or not isinstance(files, list)
                or not all(isinstance(f, str) for f in files)
            ):
                errors.append(f"{where}: 需要 version、files、pulledAt 字段")
                continue
            result[partition][name] = InstalledComponent(
                version=entry["version"],
                files=list(files),
                pulled_at=entry["pulledAt"],
            )
    return result


def config_path(cwd: Path) -> Path:
    """项目配置文件路径: 优先 codegen.config.yml，其次旧版 codegen.config.json"""
    primary = cwd / CONFIG_FILE_NAME
    legacy = cwd / LEGACY_CONFIG_FILE_NAME
    if not primary.exists() and legacy.exists():
        return legacy
    return primary


def load_config(path: Path) -> ProjectConfig | None:
    """读取项目配置，文件不存在返回 None

    Raises:
        ConfigError: 文件无法解析或校验失败
    """
    if not path.exists():
        return None
    try:
        data = load_yaml(path)
    except (yaml.YAMLError, OSError, ValueError) as e:
        raise ConfigError(f"读取配置文件失败: {path} - {e}") from e

    try:
        return ProjectConfig.from_dict(data)
    except ConfigError as e:
        logger.error("配置文件无效: %s", path)
        for detail in e.details:
            logger.error("  - %s", detail)
        raise


def require_config(path: Path) -> ProjectConfig:
    """读取项目配置，不存在时抛 ConfigError"""
    config = load_config(path)
    if config is None:
        raise ConfigError(
            f"未找到配置文件 {path.name}，请先运行 'devkit init'"
        )
    return config


def save_config(path: Path, config: ProjectConfig) -> None:
    """整体写回配置（原子写入），.json 文件保持 JSON 格式"""
    if path.suffix == ".json":
        atomic_write(path, json.dumps(config.to_dict(), indent=2, ensure_ascii=False) + "\n")
    else:
        save_yaml(path, config.to_dict())
    logger.info("已更新 %s", path.name)


def detect_package_manager(cwd: Path) -> str:
    """根据锁文件检测包管理器: pnpm / yarn / bun / npm"""
    if (cwd / "pnpm-lock.yaml").exists():
        return "pnpm"
    if (cwd / "yarn.lock").exists():
        return "yarn"
    if (cwd / "bun.lockb").exists():
        return "bun"
    return "npm"
