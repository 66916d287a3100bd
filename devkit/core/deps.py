"""第三方依赖检查与安装

只检查依赖是否出现在 package.json 中，不做版本求解。
缺失的依赖通过检测到的包管理器安装；安装失败只记录错误，不中断流程。
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from devkit.core.config import detect_package_manager
from devkit.utils.shell import CommandExecutor, LocalExecutor

logger = logging.getLogger(__name__)

INSTALL_COMMANDS: dict[str, list[str]] = {
    "npm": ["npm", "install"],
    "yarn": ["yarn", "add"],
    "pnpm": ["pnpm", "add"],
    "bun": ["bun", "add"],
}


@dataclass
class DependencyReport:
    """依赖检查结果"""

    missing: list[str] = field(default_factory=list)
    installed: bool = False
    manager: str = ""


def find_missing_dependencies(dependencies: list[str], cwd: Path) -> list[str] | None:
    """返回 package.json 中未声明的依赖；没有 package.json 时返回 None

    Raises:
        ValueError: package.json 不是合法 JSON 或顶层不是对象
    """
    package_json = cwd / "package.json"
    if not package_json.exists():
        return None
    data = json.loads(package_json.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{package_json.name} 顶层必须是对象")
    declared: set[str] = set()
    for section in ("dependencies", "devDependencies"):
        entries = data.get(section)
        if isinstance(entries, dict):
            declared.update(entries)
    return [dep for dep in dependencies if dep not in declared]


def check_and_install(
    dependencies: list[str],
    *,
    cwd: Path,
    executor: CommandExecutor | None = None,
) -> DependencyReport:
    """检查并安装缺失的第三方依赖"""
    report = DependencyReport()
    if not dependencies:
        return report

    try:
        missing = find_missing_dependencies(dependencies, cwd)
    except (OSError, ValueError) as e:
        logger.warning("读取 package.json 失败，跳过依赖检查: %s", e)
        return report
    if missing is None:
        logger.warning("未找到 package.json，跳过依赖检查")
        return report
    if not missing:
        logger.info("所有依赖均已安装")
        return report

    report.missing = missing
    report.manager = detect_package_manager(cwd)
    logger.warning("缺少依赖: %s", ", ".join(missing))
    logger.info("使用 %s 安装依赖...", report.manager)

    cmd = [*INSTALL_COMMANDS[report.manager], *missing]
    result = (executor or LocalExecutor()).execute(cmd, cwd=str(cwd))
    if result.success:
        report.installed = True
        logger.info("依赖安装完成")
    else:
        logger.error(
            "依赖安装失败 (rc=%d)，请手动执行: %s\n%s",
            result.returncode, " ".join(cmd), result.stderr[:500],
        )
    return report
