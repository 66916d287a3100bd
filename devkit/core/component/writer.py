"""组件落盘与安装清单更新

每个文件独立走一遍冲突状态机，最终到达且只到达一个终态:

  目标不存在                      -> WRITTEN
  已存在且内容完全一致            -> UP_TO_DATE   (不写入，不计入安装文件)
  已存在且不同 + force            -> OVERWRITTEN
  已存在且不同 + 冲突策略选覆盖   -> OVERWRITTEN
  已存在且不同 + 冲突策略选跳过   -> SKIPPED      (原文件保持不变)
  目录创建 / 读 / 写出现 OSError  -> FAILED       (记录错误，继续后续文件)
  目标路径越出项目目录            -> FAILED       (不创建任何目录)

文件之间没有回滚，一个文件失败或跳过不影响其他文件。

组件内至少有一个文件 WRITTEN / OVERWRITTEN 时，整体替换该组件的安装记录；
配置对象只在内存中修改，由调用方统一持久化一次。
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from devkit.core.component.models import (
    TARGET_PREFIXES,
    FetchedComponent,
    FetchedFile,
    InstalledComponent,
)
from devkit.core.exceptions import ValidationError

if TYPE_CHECKING:
    from devkit.core.config import ProjectConfig

logger = logging.getLogger(__name__)


class FileOutcome(str, Enum):
    """单个文件的终态"""
    WRITTEN = "written"
    UP_TO_DATE = "up_to_date"
    OVERWRITTEN = "overwritten"
    SKIPPED = "skipped"
    FAILED = "failed"

    @property
    def changed(self) -> bool:
        return self in (FileOutcome.WRITTEN, FileOutcome.OVERWRITTEN)


class ConflictAction(str, Enum):
    """冲突时的处理决策"""
    OVERWRITE = "overwrite"
    SKIP = "skip"


@dataclass(frozen=True)
class ConflictInfo:
    """交给冲突策略的上下文"""

    target: str
    destination: Path
    existing: str
    incoming: str


ConflictResolver = Callable[[ConflictInfo], ConflictAction]


def skip_conflicts(info: ConflictInfo) -> ConflictAction:
    """默认冲突策略: 保留用户已有文件"""
    return ConflictAction.SKIP


@dataclass
class FileResult:
    target: str
    destination: Path
    outcome: FileOutcome
    error: str = ""


@dataclass
class ComponentResult:
    key: str
    files: list[FileResult] = field(default_factory=list)
    manifest_updated: bool = False

    @property
    def installed_targets(self) -> list[str]:
        return [f.target for f in self.files if f.outcome.changed]


@dataclass
class WriteReport:
    """写入汇总，changed 表示安装清单是否被修改"""

    components: list[ComponentResult] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return any(c.manifest_updated for c in self.components)

    def count(self, outcome: FileOutcome) -> int:
        return sum(
            1 for c in self.components for f in c.files if f.outcome is outcome
        )


@dataclass(frozen=True)
class PlannedWrite:
    """预演结果: create / unchanged / conflict / rejected"""

    key: str
    target: str
    destination: Path
    state: str
    size: int


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ComponentWriter:
    """组件写入器 - 路径映射 + 冲突处理 + 安装清单更新"""

    def __init__(
        self,
        config: ProjectConfig,
        *,
        cwd: Path,
        force: bool = False,
        resolve_conflict: ConflictResolver | None = None,
        clock: Callable[[], str] = _now_iso,
    ) -> None:
        self.config = config
        self.cwd = cwd
        self.force = force
        self.resolve_conflict = resolve_conflict or skip_conflicts
        self._clock = clock

    def destination(self, file: FetchedFile) -> Path:
        """计算文件的绝对落盘路径

        target 以 hooks/ 或 utils/ 开头时按前缀选择目录并保留剩余路径；
        否则按文件 type 选择目录，只保留文件名。

        Raises:
            ValidationError: 解析后的路径不在项目目录内（如 hooks/../../x.ts）
        """
        for prefix, ctype in TARGET_PREFIXES.items():
            if file.target.startswith(prefix):
                root = self.config.paths.for_type(ctype)
                relative = file.target[len(prefix):]
                break
        else:
            logger.warning(
                "未知的 target 前缀: %s，按文件类型 %s 放置",
                file.target, file.type.value,
            )
            root = self.config.paths.for_type(file.type)
            relative = Path(file.target).name
        dest = (self.cwd / root / relative).resolve()
        if not dest.is_relative_to(self.cwd.resolve()):
            logger.warning("拒绝写入项目目录之外的路径: %s -> %s", file.target, dest)
            raise ValidationError(f"目标路径越出项目目录: {file.target}")
        return dest

    def plan(self, components: list[FetchedComponent]) -> list[PlannedWrite]:
        """只读预演，不触碰文件系统"""
        planned: list[PlannedWrite] = []
        for component in components:
            for file in component.fetched_files:
                try:
                    dest = self.destination(file)
                except ValidationError:
                    planned.append(PlannedWrite(
                        key=component.key, target=file.target,
                        destination=self.cwd / file.target, state="rejected",
                        size=len(file.content.encode("utf-8")),
                    ))
                    continue
                if not dest.exists():
                    state = "create"
                else:
                    try:
                        same = _read_existing(dest) == file.content
                    except OSError:
                        same = False
                    state = "unchanged" if same else "conflict"
                planned.append(PlannedWrite(
                    key=component.key, target=file.target, destination=dest,
                    state=state, size=len(file.content.encode("utf-8")),
                ))
        return planned

    def write(self, components: list[FetchedComponent]) -> WriteReport:
        """写入全部组件并更新内存中的安装清单"""
        report = WriteReport()
        for component in components:
            logger.info("安装 %s ...", component.key)
            result = ComponentResult(key=component.key)
            for file in component.fetched_files:
                result.files.append(self._write_file(file))

            installed = result.installed_targets
            if installed:
                self.config.set_installed(
                    component.type,
                    component.name,
                    InstalledComponent(
                        version=component.version,
                        files=installed,
                        pulled_at=self._clock(),
                    ),
                )
                result.manifest_updated = True
            report.components.append(result)
        return report

    def _write_file(self, file: FetchedFile) -> FileResult:
        try:
            dest = self.destination(file)
        except ValidationError as e:
            return FileResult(file.target, self.cwd / file.target, FileOutcome.FAILED, error=str(e))
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            outcome = FileOutcome.WRITTEN
            if dest.exists():
                existing = _read_existing(dest)
                if existing == file.content:
                    logger.info("  %s 已是最新", file.target)
                    return FileResult(file.target, dest, FileOutcome.UP_TO_DATE)
                if not self.force:
                    action = self.resolve_conflict(ConflictInfo(
                        target=file.target, destination=dest,
                        existing=existing, incoming=file.content,
                    ))
                    if action is ConflictAction.SKIP:
                        logger.info("  已跳过 %s", file.target)
                        return FileResult(file.target, dest, FileOutcome.SKIPPED)
                outcome = FileOutcome.OVERWRITTEN

            with open(dest, "w", encoding="utf-8", newline="") as f:
                f.write(file.content)
        except OSError as e:
            logger.error("  写入 %s 失败: %s", file.target, e)
            return FileResult(file.target, dest, FileOutcome.FAILED, error=str(e))

        logger.info("  已写入 %s", file.target)
        return FileResult(file.target, dest, outcome)


def _read_existing(path: Path) -> str:
    """读取已有文件；非 UTF-8 内容按替换字符解码，保证与新内容比较时不相等"""
    with open(path, encoding="utf-8", errors="replace", newline="") as f:
        return f.read()
