"""源码导入路径改写

注册表源码使用占位导入前缀（@/utils/、@/hooks/、registry/utils/、registry/hooks/），
落盘前替换为用户项目配置的别名。只做字面子串替换，不解析语法；
与无关文本碰巧匹配的情况不做处理。
"""

from __future__ import annotations

import re
from dataclasses import replace

from devkit.core.component.models import Aliases, FetchedComponent

_PLACEHOLDER_RE = re.compile(r"@/utils/|@/hooks/|registry/utils/|registry/hooks/")


def _replacements(aliases: Aliases) -> dict[str, str]:
    mapping = {
        "registry/utils/": f"{aliases.utils}/",
        "registry/hooks/": f"{aliases.hooks}/",
    }
    # @/ 前缀只在配置了别名时替换，否则保持原样
    if aliases.utils:
        mapping["@/utils/"] = f"{aliases.utils}/"
    if aliases.hooks:
        mapping["@/hooks/"] = f"{aliases.hooks}/"
    return mapping


def transform_content(content: str, aliases: Aliases) -> str:
    """单次扫描替换占位前缀，替换结果不会被再次改写"""
    mapping = _replacements(aliases)
    return _PLACEHOLDER_RE.sub(
        lambda m: mapping.get(m.group(0), m.group(0)), content,
    )


def transform_components(
    components: list[FetchedComponent], aliases: Aliases,
) -> list[FetchedComponent]:
    """改写所有组件文件内容，返回新对象，不修改入参"""
    return [
        FetchedComponent(
            component=c.component,
            fetched_files=[
                replace(f, content=transform_content(f.content, aliases))
                for f in c.fetched_files
            ],
        )
        for c in components
    ]
