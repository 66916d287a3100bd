"""组件安装管线

拆分说明:
- models.py: 数据模型
- registry.py: 注册表索引校验 + 内置后备索引
- resolver.py: 内部依赖广度优先解析
- fetcher.py: 源码拉取（组件内并发、组件间顺序）
- transformer.py: 导入别名改写
- writer.py: 冲突处理落盘 + 安装清单更新

数据严格按 resolver -> fetcher -> transformer -> writer 单向流动。
"""

from devkit.core.component.fetcher import SourceFetcher
from devkit.core.component.models import (
    ComponentType,
    FetchedComponent,
    RegistryIndex,
    ResolvedComponent,
)
from devkit.core.component.registry import load_registry_index, parse_registry_index
from devkit.core.component.resolver import collect_dependencies, resolve_component
from devkit.core.component.transformer import transform_components, transform_content
from devkit.core.component.writer import (
    ComponentWriter,
    ConflictAction,
    ConflictInfo,
    FileOutcome,
    WriteReport,
)

__all__ = [
    "ComponentType",
    "ComponentWriter",
    "ConflictAction",
    "ConflictInfo",
    "FetchedComponent",
    "FileOutcome",
    "RegistryIndex",
    "ResolvedComponent",
    "SourceFetcher",
    "WriteReport",
    "collect_dependencies",
    "load_registry_index",
    "parse_registry_index",
    "resolve_component",
    "transform_components",
    "transform_content",
]
