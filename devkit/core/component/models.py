"""组件数据模型

数据类:
- FileEntry: 组件内单个文件的来源与目标
- ComponentDescriptor: 注册表中的组件定义
- RegistryIndex: 按 hooks / utils 分区的组件索引
- ResolvedComponent: 解析后带类型标注的组件
- FetchedFile / FetchedComponent: 拉取到源码后的文件与组件
- InstalledComponent: 安装清单（config.components）中的单条记录
- Aliases / Paths: 项目配置中的导入别名与落盘目录
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ComponentType(str, Enum):
    """组件类型"""
    HOOK = "hook"
    UTIL = "util"

    @property
    def partition(self) -> str:
        """注册表 / 安装清单中对应的分区名（复数形式）"""
        return f"{self.value}s"

    @classmethod
    def parse(cls, value: str) -> ComponentType | None:
        """解析单数或复数形式的类型名，无法识别时返回 None"""
        normalized = value[:-1] if value in ("hooks", "utils") else value
        for member in cls:
            if member.value == normalized:
                return member
        return None


# 文件 target 的逻辑根前缀，决定落盘目录类别
TARGET_PREFIXES: dict[str, ComponentType] = {
    "hooks/": ComponentType.HOOK,
    "utils/": ComponentType.UTIL,
}


@dataclass(frozen=True)
class FileEntry:
    """组件文件: path 为注册表内源路径，target 为项目内逻辑目标路径"""

    type: ComponentType
    path: str
    target: str


@dataclass
class ComponentDescriptor:
    """注册表中的组件定义"""

    name: str
    description: str
    version: str
    files: list[FileEntry] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)  # 第三方包
    internal_dependencies: list[str] = field(default_factory=list)  # "utils/isBrowser"
    category: str = ""


@dataclass
class RegistryIndex:
    """注册表索引 — hooks / utils 两个分区，各自以组件名为键"""

    hooks: dict[str, ComponentDescriptor] = field(default_factory=dict)
    utils: dict[str, ComponentDescriptor] = field(default_factory=dict)

    def partition(self, ctype: ComponentType) -> dict[str, ComponentDescriptor]:
        return self.hooks if ctype is ComponentType.HOOK else self.utils

    def get(self, ctype: ComponentType, name: str) -> ComponentDescriptor | None:
        """显式查找，不存在时返回 None"""
        return self.partition(ctype).get(name)

    def names(self, ctype: ComponentType) -> list[str]:
        return list(self.partition(ctype))

    def dangling_dependencies(self) -> list[str]:
        """列出指向注册表中不存在组件的内部依赖，形如 "hook/a -> util/b" """
        problems: list[str] = []
        for ctype in ComponentType:
            for name, desc in self.partition(ctype).items():
                for token in desc.internal_dependencies:
                    dep_type_raw, _, dep_name = token.partition("/")
                    dep_type = ComponentType.parse(dep_type_raw)
                    if dep_type is None or not dep_name:
                        continue
                    if self.get(dep_type, dep_name) is None:
                        problems.append(
                            f"{ctype.value}/{name} -> {dep_type.value}/{dep_name}"
                        )
        return problems


@dataclass
class ResolvedComponent:
    """解析结果中的组件，以 type/name 唯一标识"""

    name: str
    type: ComponentType
    version: str
    files: list[FileEntry] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    internal_dependencies: list[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.type.value}/{self.name}"


@dataclass(frozen=True)
class FetchedFile:
    """已拉取内容的文件，content 在拉取阶段视为不透明文本"""

    type: ComponentType
    path: str
    target: str
    content: str


@dataclass
class FetchedComponent:
    """已拉取源码的组件，fetched_files 与 component.files 一一对应、顺序一致"""

    component: ResolvedComponent
    fetched_files: list[FetchedFile] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.component.name

    @property
    def type(self) -> ComponentType:
        return self.component.type

    @property
    def version(self) -> str:
        return self.component.version

    @property
    def key(self) -> str:
        return self.component.key


@dataclass
class InstalledComponent:
    """安装清单记录，每次重新安装整体覆盖"""

    version: str
    files: list[str] = field(default_factory=list)
    pulled_at: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "version": self.version,
            "files": list(self.files),
            "pulledAt": self.pulled_at,
        }


@dataclass
class Aliases:
    """导入别名，如 utils="@/lib/utils"、hooks="@/hooks" """

    utils: str
    hooks: str


@dataclass
class Paths:
    """落盘目录（相对项目根目录）"""

    hooks: str
    utils: str

    def for_type(self, ctype: ComponentType) -> str:
        return self.hooks if ctype is ComponentType.HOOK else self.utils
