"""添加组件服务 — CLI 之外也可复用的 add 编排逻辑

流程: 校验请求 → 加载注册表 → 解析依赖 → 第三方依赖 → 拉取源码
      → 改写导入 → 落盘（或预演）→ 统一持久化配置一次

解析失败在任何网络 / 文件副作用之前抛出；
单个组件拉取失败只记录并排除该组件，其余组件继续。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from devkit.core.component.fetcher import SourceFetcher
from devkit.core.component.models import (
    ComponentType,
    FetchedComponent,
    ResolvedComponent,
)
from devkit.core.component.registry import load_registry_index
from devkit.core.component.resolver import collect_dependencies, resolve_component
from devkit.core.component.transformer import transform_components
from devkit.core.component.writer import (
    ComponentWriter,
    ConflictResolver,
    PlannedWrite,
    WriteReport,
)
from devkit.core.config import ProjectConfig, save_config
from devkit.core.deps import DependencyReport, check_and_install
from devkit.core.exceptions import FetchError, ValidationError
from devkit.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


@dataclass
class AddRequest:
    """添加请求 DTO"""

    type: str
    name: str
    force: bool = False
    dry_run: bool = False


@dataclass
class AddResult:
    """添加结果"""

    resolved: list[ResolvedComponent] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    dependency_report: DependencyReport | None = None
    failed: dict[str, str] = field(default_factory=dict)
    planned: list[PlannedWrite] = field(default_factory=list)
    report: WriteReport | None = None

    @property
    def changed(self) -> bool:
        return self.report is not None and self.report.changed


def validate_request(req: AddRequest) -> ComponentType:
    """校验组件类型与名称

    Raises:
        ValidationError: 类型不是 hook/util 或名称为空
    """
    if req.type not in (ComponentType.HOOK.value, ComponentType.UTIL.value):
        raise ValidationError(f"无效的类型 \"{req.type}\"，必须是 \"hook\" 或 \"util\"")
    if not req.name.strip():
        raise ValidationError("组件名称不能为空")
    return ComponentType(req.type)


class AddService:
    """组件添加服务

    配置对象由本服务独占修改，结束时最多写回一次。
    """

    def __init__(
        self,
        config: ProjectConfig,
        *,
        cwd: Path,
        config_file: Path,
        fetcher: SourceFetcher | None = None,
        executor: CommandExecutor | None = None,
        resolve_conflict: ConflictResolver | None = None,
    ) -> None:
        self.config = config
        self.cwd = cwd
        self.config_file = config_file
        self.fetcher = fetcher or SourceFetcher(config.registry_url)
        self.executor = executor
        self.resolve_conflict = resolve_conflict

    def execute(self, req: AddRequest) -> AddResult:
        ctype = validate_request(req)
        result = AddResult()

        logger.info("拉取注册表...")
        index = load_registry_index(self.fetcher)

        logger.info("解析 %s/%s 的依赖...", ctype.value, req.name)
        result.resolved = resolve_component(req.name.strip(), ctype, index)
        logger.info("共 %d 个组件待安装", len(result.resolved))
        for c in result.resolved:
            logger.info(" - %s (v%s)", c.key, c.version)

        result.dependencies = collect_dependencies(result.resolved)
        if result.dependencies:
            if req.dry_run:
                logger.info("[DryRun] 将安装依赖: %s", ", ".join(result.dependencies))
            else:
                result.dependency_report = check_and_install(
                    result.dependencies, cwd=self.cwd, executor=self.executor,
                )

        logger.info("拉取源码...")
        fetched = self._fetch_all(result)

        transformed = transform_components(fetched, self.config.aliases)

        writer = ComponentWriter(
            self.config,
            cwd=self.cwd,
            force=req.force,
            resolve_conflict=self.resolve_conflict,
        )
        if req.dry_run:
            result.planned = writer.plan(transformed)
            logger.info("[DryRun] 预演完成，未写入任何文件")
            return result

        result.report = writer.write(transformed)
        if result.report.changed:
            save_config(self.config_file, self.config)
        return result

    def _fetch_all(self, result: AddResult) -> list[FetchedComponent]:
        fetched: list[FetchedComponent] = []
        for component in result.resolved:
            try:
                fetched.append(self.fetcher.fetch_component(component))
            except FetchError as e:
                logger.error("%s", e)
                result.failed[component.key] = str(e)
        if result.failed:
            logger.warning(
                "拉取汇总: %d 成功, %d 失败 (%s)",
                len(fetched), len(result.failed), ", ".join(result.failed),
            )
        return fetched
