"""CLI — 添加组件"""

from __future__ import annotations

import difflib
from pathlib import Path

import click

from devkit.cli import run_guarded
from devkit.core.component.writer import ConflictAction, ConflictInfo, FileOutcome
from devkit.core.config import config_path, require_config
from devkit.services.add_service import AddRequest, AddResult, AddService


def register(group: click.Group) -> None:
    group.add_command(add)


def prompt_conflict(info: ConflictInfo) -> ConflictAction:
    """交互式冲突处理: overwrite / skip / diff（diff 展示差异后重新询问）"""
    while True:
        choice = click.prompt(
            f"文件 {info.target} 已存在且内容不同",
            type=click.Choice(["overwrite", "skip", "diff"]),
            default="overwrite",
        )
        if choice != "diff":
            return ConflictAction(choice)
        diff = difflib.unified_diff(
            info.existing.splitlines(keepends=True),
            info.incoming.splitlines(keepends=True),
            fromfile=f"{info.target} (本地)",
            tofile=f"{info.target} (注册表)",
        )
        click.echo("".join(diff) or "(仅空白或换行差异)")


@click.command()
@click.argument("type", type=click.Choice(["hook", "util"]))
@click.argument("name")
@click.option("--force", "-f", is_flag=True, help="覆盖已有文件，不再询问")
@click.option("--dry-run", "-d", is_flag=True, help="只预演，不写入任何文件")
def add(type: str, name: str, force: bool, dry_run: bool) -> None:  # noqa: A002
    """将组件及其内部依赖添加到项目"""
    cwd = Path.cwd()
    cfg_file = config_path(cwd)
    config = run_guarded(lambda: require_config(cfg_file))

    svc = AddService(
        config, cwd=cwd, config_file=cfg_file, resolve_conflict=prompt_conflict,
    )
    result = run_guarded(lambda: svc.execute(AddRequest(
        type=type, name=name, force=force, dry_run=dry_run,
    )))

    if dry_run:
        _print_plan(result)
    else:
        _print_summary(result, type, name)

    if result.failed:
        for key, reason in result.failed.items():
            click.echo(f"拉取失败 {key}: {reason}", err=True)
        raise click.exceptions.Exit(1)


def _print_plan(result: AddResult) -> None:
    if result.dependencies:
        click.echo(f"[DryRun] 将安装依赖: {', '.join(result.dependencies)}")
    click.echo("[DryRun] 将写入以下文件（已改写导入）:")
    for p in result.planned:
        click.echo(f"  - {p.target} -> {p.destination} [{p.state}] ({p.size} 字节)")


def _print_summary(result: AddResult, type: str, name: str) -> None:  # noqa: A002
    report = result.report
    if report is None:
        return
    if report.count(FileOutcome.FAILED):
        click.echo(f"{report.count(FileOutcome.FAILED)} 个文件写入失败，详见日志", err=True)
    if result.changed:
        click.secho(f"已成功添加 {type} \"{name}\" 及其依赖！", fg="green")
    else:
        click.echo("操作完成，未做任何修改。")
