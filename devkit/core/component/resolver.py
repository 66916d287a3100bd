"""组件依赖解析器

职责:
- 从请求的组件出发，按内部依赖做广度优先遍历，得到完整的组件集合
- 已访问的 type/name 直接跳过，因此循环依赖只会处理一次
- 格式错误的依赖声明只记录警告并跳过该条依赖，不影响其余解析
"""

from __future__ import annotations

import logging
from collections import deque

from devkit.core.component.models import (
    ComponentType,
    RegistryIndex,
    ResolvedComponent,
)
from devkit.core.exceptions import ComponentNotFoundError, MalformedDependencyToken

logger = logging.getLogger(__name__)


def parse_dependency_token(token: str) -> tuple[ComponentType, str]:
    """解析 "type/name" 形式的内部依赖声明，type 支持单复数

    按第一个 "/" 拆分，其余部分整体作为组件名。

    Raises:
        MalformedDependencyToken: 缺少 "/"、type 或 name 为空、type 无法识别
    """
    dep_type, sep, dep_name = token.partition("/")
    if not sep or not dep_type or not dep_name:
        raise MalformedDependencyToken(token, "应为 \"type/name\" 形式")
    ctype = ComponentType.parse(dep_type)
    if ctype is None:
        raise MalformedDependencyToken(
            token, f"类型 \"{dep_type}\" 必须是 \"hook\" 或 \"util\"",
        )
    return ctype, dep_name


def resolve_component(
    name: str,
    ctype: ComponentType,
    index: RegistryIndex,
) -> list[ResolvedComponent]:
    """解析组件及其全部传递内部依赖

    返回按广度优先发现顺序排列的组件列表（请求的组件在首位）。
    该顺序仅用于展示，写入阶段不依赖它。

    Raises:
        ComponentNotFoundError: 请求的组件或任一传递依赖不在注册表中
    """
    resolved: dict[str, ResolvedComponent] = {}
    queue: deque[tuple[str, ComponentType]] = deque([(name, ctype)])

    while queue:
        cur_name, cur_type = queue.popleft()
        key = f"{cur_type.value}/{cur_name}"
        if key in resolved:
            continue

        desc = index.get(cur_type, cur_name)
        if desc is None:
            raise ComponentNotFoundError(key)

        component = ResolvedComponent(
            name=desc.name,
            type=cur_type,
            version=desc.version,
            files=list(desc.files),
            dependencies=list(desc.dependencies),
            internal_dependencies=list(desc.internal_dependencies or []),
        )
        resolved[key] = component
        if not component.files:
            logger.warning("组件 %s 未声明任何文件", key)

        for token in component.internal_dependencies:
            try:
                dep_type, dep_name = parse_dependency_token(token)
            except MalformedDependencyToken as e:
                logger.warning("%s: %s，已跳过", key, e)
                continue
            queue.append((dep_name, dep_type))

    logger.debug("解析完成: %s", ", ".join(resolved))
    return list(resolved.values())


def collect_dependencies(components: list[ResolvedComponent]) -> list[str]:
    """汇总所有组件声明的第三方依赖（去重，保留首次出现顺序）"""
    seen: dict[str, None] = {}
    for component in components:
        for dep in component.dependencies:
            seen.setdefault(dep, None)
    return list(seen)
