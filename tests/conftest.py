"""共享 fixture — 本地注册表目录 + 项目配置

本地注册表目录结构与远程一致:
  registry/
    index.json
    registry/hooks/useLocalStorage.ts
    registry/utils/isBrowser.ts
    ...
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from devkit.core.config import Aliases, Paths, ProjectConfig


def component(
    name: str,
    ctype: str,
    *,
    deps: list[str] | None = None,
    internal: list[str] | None = None,
    version: str = "1.0.0",
    files: list[dict[str, str]] | None = None,
) -> dict[str, Any]:
    """构造注册表中的单个组件条目"""
    partition = f"{ctype}s"
    return {
        "name": name,
        "description": f"{name} component",
        "version": version,
        "files": files if files is not None else [{
            "type": ctype,
            "path": f"registry/{partition}/{name}.ts",
            "target": f"{partition}/{name}.ts",
        }],
        "dependencies": deps or [],
        "internalDependencies": internal or [],
    }


def write_registry(
    root: Path,
    index: dict[str, Any],
    sources: dict[str, str] | None = None,
) -> Path:
    """写出本地注册表；未显式给出内容的文件按组件名生成默认源码"""
    root.mkdir(parents=True, exist_ok=True)
    (root / "index.json").write_text(json.dumps(index), encoding="utf-8")
    sources = dict(sources or {})
    for partition in ("hooks", "utils"):
        for name, entry in index.get(partition, {}).items():
            for f in entry.get("files", []):
                sources.setdefault(
                    f["path"],
                    f'import {{ isBrowser }} from "@/utils/isBrowser";\n'
                    f"export function {name}() {{}}\n",
                )
    for rel, content in sources.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
    return root


@pytest.fixture()
def sample_index() -> dict[str, Any]:
    return {
        "hooks": {
            "useLocalStorage": component(
                "useLocalStorage", "hook", internal=["utils/isBrowser"],
            ),
            "useDebounce": component("useDebounce", "hook"),
        },
        "utils": {
            "isBrowser": component("isBrowser", "util"),
            "formatDate": component("formatDate", "util", deps=["date-fns"]),
        },
    }


@pytest.fixture()
def registry_dir(tmp_path: Path, sample_index: dict[str, Any]) -> Path:
    return write_registry(tmp_path / "registry", sample_index)


@pytest.fixture()
def project_config(registry_dir: Path) -> ProjectConfig:
    return ProjectConfig(
        aliases=Aliases(utils="@/lib/utils", hooks="@/hooks"),
        paths=Paths(hooks="src/hooks", utils="src/lib/utils"),
        registry_url=str(registry_dir),
    )
