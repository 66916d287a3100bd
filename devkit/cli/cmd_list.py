"""CLI — 列出注册表中的组件"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from devkit.cli import run_guarded
from devkit.core.component.fetcher import SourceFetcher
from devkit.core.component.models import ComponentType, RegistryIndex
from devkit.core.component.registry import builtin_registry_index, load_registry_index
from devkit.core.config import ProjectConfig, config_path, load_config

logger = logging.getLogger(__name__)

_TITLES = {ComponentType.HOOK: "可用 Hooks:", ComponentType.UTIL: "可用 Utils:"}


def register(group: click.Group) -> None:
    group.add_command(list_components)


@click.command(name="list")
def list_components() -> None:
    """列出可用组件及安装状态（别名: ls）"""
    config = run_guarded(lambda: load_config(config_path(Path.cwd())))
    index: RegistryIndex
    if config is None:
        logger.warning("未找到配置文件，使用内置注册表列出组件")
        index = builtin_registry_index()
    else:
        index = load_registry_index(SourceFetcher(config.registry_url))

    for ctype in ComponentType:
        click.echo("")
        click.secho(_TITLES[ctype], bold=True)
        for name, desc in index.partition(ctype).items():
            click.echo(f"  {click.style(name, fg='cyan')} {_status(config, ctype, name)}")
            click.echo(f"    {desc.description}")
    click.echo("")


def _status(config: ProjectConfig | None, ctype: ComponentType, name: str) -> str:
    entry = config.installed(ctype, name) if config else None
    if entry is None:
        return click.style("(未安装)", dim=True)
    return click.style(f"(已安装 v{entry.version})", fg="green")
