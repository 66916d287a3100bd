"""Shell 命令执行工具 — 统一子进程调用

通过 CommandExecutor 协议抽象子进程执行，安装第三方依赖时
测试可注入假实现，无需 patch subprocess。
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandExecutor(Protocol):
    """命令执行器协议"""

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        timeout: int | None = None,
    ) -> CommandResult:
        """执行命令并返回结果"""
        ...


class LocalExecutor:
    """本地子进程执行器（默认实现）"""

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        timeout: int | None = None,
    ) -> CommandResult:
        args = shlex.split(cmd) if isinstance(cmd, str) else cmd
        logger.debug("执行命令: %s (cwd=%s)", " ".join(args), cwd)
        try:
            r = subprocess.run(
                args, capture_output=True, text=True,
                cwd=cwd, check=False, timeout=timeout,
            )
        except FileNotFoundError as e:
            return CommandResult(returncode=127, stdout="", stderr=str(e))
        return CommandResult(
            returncode=r.returncode,
            stdout=r.stdout,
            stderr=r.stderr,
        )
