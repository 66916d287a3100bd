"""CLI — 初始化项目配置"""

from __future__ import annotations

from pathlib import Path

import click

from devkit.cli import run_guarded
from devkit.core.config import (
    DEFAULT_REGISTRY_URL,
    Aliases,
    Paths,
    ProjectConfig,
    config_path,
    detect_package_manager,
    save_config,
)


def register(group: click.Group) -> None:
    group.add_command(init)


@click.command()
@click.option("--typescript/--no-typescript", default=None, help="是否使用 TypeScript")
@click.option("--hooks-dir", default=None, help="hooks 存放目录")
@click.option("--utils-dir", default=None, help="utils 存放目录")
@click.option("--hooks-alias", default=None, help="hooks 导入别名")
@click.option("--utils-alias", default=None, help="utils 导入别名")
@click.option("--registry-url", default=DEFAULT_REGISTRY_URL, show_default=True, help="组件注册表地址")
@click.option("--force", is_flag=True, help="已存在配置时直接覆盖")
def init(
    typescript: bool | None, hooks_dir: str | None, utils_dir: str | None,
    hooks_alias: str | None, utils_alias: str | None,
    registry_url: str, force: bool,
) -> None:
    """初始化 codegen.config.yml（未通过参数给出的项会交互询问）"""
    cwd = Path.cwd()
    path = config_path(cwd)

    if path.exists() and not force:
        click.echo(f"{path.name} 已存在。")
        if not click.confirm("是否覆盖？", default=False):
            click.echo("已取消初始化。")
            return

    is_ts = (cwd / "tsconfig.json").exists()
    if typescript is None:
        typescript = click.confirm("是否使用 TypeScript？", default=is_ts)
    if hooks_dir is None:
        hooks_dir = click.prompt("hooks 存放目录", default="src/hooks" if is_ts else "hooks")
    if utils_dir is None:
        utils_dir = click.prompt("utils 存放目录", default="src/lib/utils" if is_ts else "utils")
    if hooks_alias is None:
        hooks_alias = click.prompt("hooks 导入别名", default="@/hooks")
    if utils_alias is None:
        utils_alias = click.prompt("utils 导入别名", default="@/lib/utils")

    config = ProjectConfig(
        aliases=Aliases(utils=utils_alias, hooks=hooks_alias),
        paths=Paths(hooks=hooks_dir, utils=utils_dir),
        typescript=typescript,
        registry_url=registry_url,
    )
    run_guarded(lambda: save_config(path, config))
    click.echo(f"{path.name} 创建成功！")

    manager = detect_package_manager(cwd)
    click.echo("")
    click.echo("下一步:")
    click.echo(f"  运行 {manager} install")
    click.echo("  尝试添加一个 hook: devkit add hook useLocalStorage")
