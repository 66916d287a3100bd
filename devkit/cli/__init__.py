"""devkit 命令行接口

CLI 按命令拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

import click

from devkit import __version__
from devkit.core.exceptions import DevkitError
from devkit.utils.logger import setup_logging

T = TypeVar("T")


@contextmanager
def _friendly_errors() -> Iterator[None]:
    """把业务异常转换为单行 CLI 错误（退出码 1）"""
    try:
        yield
    except DevkitError as e:
        raise click.ClickException(str(e)) from e


def run_guarded(fn: Callable[[], T]) -> T:
    with _friendly_errors():
        return fn()


class AliasedGroup(click.Group):
    """支持命令别名的 group（如 ls -> list）"""

    aliases: dict[str, str] = {"ls": "list"}

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))


@click.group(cls=AliasedGroup)
@click.version_option(version=__version__)
def main() -> None:
    """devkit - 将 hooks / utils 组件添加到你的项目"""
    setup_logging(
        level=os.getenv("DEVKIT_LOG_LEVEL", "INFO"),
        json_output=os.getenv("DEVKIT_LOG_JSON", "") == "1",
    )


# 注册各子命令
from devkit.cli.cmd_add import register as _reg_add  # noqa: E402
from devkit.cli.cmd_init import register as _reg_init  # noqa: E402
from devkit.cli.cmd_list import register as _reg_list  # noqa: E402

_reg_init(main)
_reg_list(main)
_reg_add(main)
