"""AddService 测试 - 端到端编排（本地注册表，无网络）"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from devkit.core.component.fetcher import SourceFetcher
from devkit.core.component.models import ComponentType
from devkit.core.component.writer import ConflictAction, FileOutcome
from devkit.core.config import ProjectConfig, load_config
from devkit.core.exceptions import ComponentNotFoundError, ValidationError
from devkit.services.add_service import AddRequest, AddService
from devkit.utils.shell import CommandResult

from conftest import component, write_registry


class RecordingExecutor:
    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def execute(self, cmd, *, cwd: str = ".", timeout=None) -> CommandResult:
        self.calls.append(list(cmd))
        return CommandResult(0, "", "")


class SpyFetcher(SourceFetcher):
    """记录组件拉取次数"""

    def __init__(self, registry_url: str) -> None:
        super().__init__(registry_url)
        self.fetched: list[str] = []

    def fetch_component(self, component):
        self.fetched.append(component.key)
        return super().fetch_component(component)


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


def _service(
    project: Path, config: ProjectConfig, **kwargs: Any,
) -> AddService:
    kwargs.setdefault("fetcher", SpyFetcher(config.registry_url))
    kwargs.setdefault("executor", RecordingExecutor())
    return AddService(
        config, cwd=project, config_file=project / "codegen.config.yml", **kwargs,
    )


class TestValidation:
    @pytest.mark.parametrize(("ctype", "name"), [("component", "x"), ("hooks", "x"), ("hook", "  ")])
    def test_bad_request(self, project: Path, project_config: ProjectConfig, ctype: str, name: str) -> None:
        with pytest.raises(ValidationError):
            _service(project, project_config).execute(AddRequest(type=ctype, name=name))


class TestAddPipeline:
    def test_install_hook_with_dependency(self, project: Path, project_config: ProjectConfig) -> None:
        svc = _service(project, project_config)
        result = svc.execute(AddRequest(type="hook", name="useLocalStorage"))

        assert [c.key for c in result.resolved] == ["hook/useLocalStorage", "util/isBrowser"]
        assert result.changed is True

        hook_file = project / "src/hooks/useLocalStorage.ts"
        assert hook_file.read_text(encoding="utf-8").startswith(
            'import { isBrowser } from "@/lib/utils/isBrowser";'
        )
        assert (project / "src/lib/utils/isBrowser.ts").exists()

        saved = load_config(project / "codegen.config.yml")
        assert saved is not None
        assert saved.installed(ComponentType.HOOK, "useLocalStorage") is not None
        entry = saved.installed(ComponentType.UTIL, "isBrowser")
        assert entry is not None and entry.files == ["utils/isBrowser.ts"]

    def test_not_found_has_no_side_effects(self, project: Path, project_config: ProjectConfig) -> None:
        fetcher = SpyFetcher(project_config.registry_url)
        svc = _service(project, project_config, fetcher=fetcher)

        with pytest.raises(ComponentNotFoundError, match="util/doesNotExist"):
            svc.execute(AddRequest(type="util", name="doesNotExist"))

        assert fetcher.fetched == []
        assert list(project.iterdir()) == []

    def test_second_install_is_noop(self, project: Path, project_config: ProjectConfig) -> None:
        _service(project, project_config).execute(AddRequest(type="hook", name="useLocalStorage"))
        cfg_file = project / "codegen.config.yml"
        before = cfg_file.read_text(encoding="utf-8")

        reloaded = load_config(cfg_file)
        assert reloaded is not None
        result = _service(project, reloaded).execute(AddRequest(type="hook", name="useLocalStorage"))

        assert result.changed is False
        assert result.report is not None
        assert result.report.count(FileOutcome.UP_TO_DATE) == 2
        assert result.report.count(FileOutcome.WRITTEN) == 0
        assert cfg_file.read_text(encoding="utf-8") == before

    def test_dry_run_touches_nothing(self, project: Path, project_config: ProjectConfig) -> None:
        executor = RecordingExecutor()
        (project / "package.json").write_text("{}", encoding="utf-8")
        svc = _service(project, project_config, executor=executor)

        result = svc.execute(AddRequest(type="util", name="formatDate", dry_run=True))

        assert [p.state for p in result.planned] == ["create"]
        assert result.planned[0].destination == (project / "src/lib/utils/formatDate.ts").resolve()
        assert result.dependencies == ["date-fns"]
        assert result.report is None and result.changed is False
        assert executor.calls == []
        assert sorted(p.name for p in project.iterdir()) == ["package.json"]
        assert project_config.installed(ComponentType.UTIL, "formatDate") is None

    def test_third_party_dependencies_installed(self, project: Path, project_config: ProjectConfig) -> None:
        (project / "package.json").write_text('{"dependencies": {}}', encoding="utf-8")
        executor = RecordingExecutor()

        result = _service(project, project_config, executor=executor).execute(
            AddRequest(type="util", name="formatDate"),
        )

        assert executor.calls == [["npm", "install", "date-fns"]]
        assert result.dependency_report is not None and result.dependency_report.installed

    def test_conflict_skip_respected(self, project: Path, project_config: ProjectConfig) -> None:
        user_file = project / "src/lib/utils/isBrowser.ts"
        user_file.parent.mkdir(parents=True)
        user_file.write_text("// my version\n", encoding="utf-8")

        result = _service(
            project, project_config, resolve_conflict=lambda info: ConflictAction.SKIP,
        ).execute(AddRequest(type="hook", name="useLocalStorage"))

        assert user_file.read_text(encoding="utf-8") == "// my version\n"
        saved = load_config(project / "codegen.config.yml")
        assert saved is not None
        assert saved.installed(ComponentType.UTIL, "isBrowser") is None
        assert saved.installed(ComponentType.HOOK, "useLocalStorage") is not None

    def test_force_overwrites_and_updates_manifest(self, project: Path, project_config: ProjectConfig) -> None:
        user_file = project / "src/lib/utils/isBrowser.ts"
        user_file.parent.mkdir(parents=True)
        user_file.write_text("// my version\n", encoding="utf-8")

        result = _service(project, project_config).execute(
            AddRequest(type="util", name="isBrowser", force=True),
        )

        assert result.report is not None
        assert result.report.count(FileOutcome.OVERWRITTEN) == 1
        assert "export function isBrowser" in user_file.read_text(encoding="utf-8")
        raw = yaml.safe_load((project / "codegen.config.yml").read_text(encoding="utf-8"))
        assert raw["components"]["utils"]["isBrowser"]["files"] == ["utils/isBrowser.ts"]
        assert raw["components"]["utils"]["isBrowser"]["pulledAt"]

    def test_fetch_failure_isolated_per_component(
        self, tmp_path: Path, project: Path, sample_index: dict[str, Any],
    ) -> None:
        index = dict(sample_index)
        index["utils"] = {
            **sample_index["utils"],
            "broken": component("broken", "util"),
        }
        index["hooks"] = {
            "useBoth": component("useBoth", "hook", internal=["utils/broken", "utils/isBrowser"]),
        }
        reg = write_registry(tmp_path / "reg2", index)
        (reg / "registry/utils/broken.ts").unlink()
        cfg = ProjectConfig.from_dict({
            "registryUrl": str(reg),
            "aliases": {"utils": "@/lib/utils", "hooks": "@/hooks"},
            "paths": {"hooks": "src/hooks", "utils": "src/lib/utils"},
        })

        result = _service(project, cfg).execute(AddRequest(type="hook", name="useBoth"))

        assert list(result.failed) == ["util/broken"]
        assert (project / "src/hooks/useBoth.ts").exists()
        assert (project / "src/lib/utils/isBrowser.ts").exists()
        assert result.changed is True

    def test_non_utf8_source_isolated(
        self, tmp_path: Path, project: Path, sample_index: dict[str, Any],
    ) -> None:
        index = dict(sample_index)
        index["hooks"] = {
            "useBoth": component("useBoth", "hook", internal=["utils/isBrowser", "utils/formatDate"]),
        }
        reg = write_registry(tmp_path / "reg3", index)
        (reg / "registry/utils/isBrowser.ts").write_bytes(b"\xff\xfe")
        cfg = ProjectConfig.from_dict({
            "registryUrl": str(reg),
            "aliases": {"utils": "@/lib/utils", "hooks": "@/hooks"},
            "paths": {"hooks": "src/hooks", "utils": "src/lib/utils"},
        })

        result = _service(project, cfg).execute(AddRequest(type="hook", name="useBoth"))

        assert list(result.failed) == ["util/isBrowser"]
        assert not (project / "src/lib/utils/isBrowser.ts").exists()
        assert (project / "src/lib/utils/formatDate.ts").exists()
        assert (project / "src/hooks/useBoth.ts").exists()
