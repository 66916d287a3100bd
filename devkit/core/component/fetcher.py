"""组件源码拉取器

职责:
- 按 "注册表根地址 + 文件 path" 拉取组件源码文本
- 同一组件的所有文件并发拉取，全部完成后组件才算拉取完成
- 组件之间顺序拉取，前一个组件的全部文件完成后才开始下一个
- 注册表地址可以是 http/https URL，也可以是本地目录（离线镜像 / 测试）
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from devkit.core.component.models import (
    FetchedComponent,
    FetchedFile,
    FileEntry,
    ResolvedComponent,
)
from devkit.core.exceptions import FetchError, NetworkError, ValidationError
from devkit.utils.net import (
    DEFAULT_RETRIES,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TIMEOUT,
    fetch_text,
    is_remote_url,
    join_url,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8
INDEX_FILE = "index.json"


class SourceFetcher:
    """注册表内容拉取器 - 远程 URL 或本地目录"""

    def __init__(
        self,
        registry_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        max_workers: int = DEFAULT_MAX_WORKERS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.registry_url = registry_url
        self.timeout = timeout
        self.retries = retries
        self.retry_delay = retry_delay
        self.max_workers = max_workers
        self._sleep = sleep

    def _local_root(self) -> Path:
        parsed = urlparse(self.registry_url)
        if parsed.scheme == "file":
            return Path(parsed.path)
        return Path(self.registry_url)

    def fetch_text(self, rel_path: str) -> str:
        """拉取注册表内单个相对路径的文本内容

        Raises:
            NetworkError: 远程请求重试耗尽，或响应不是 UTF-8 文本
            FetchError: 本地注册表中文件不存在、不可读或不是 UTF-8 文本
        """
        if is_remote_url(self.registry_url):
            return fetch_text(
                join_url(self.registry_url, rel_path),
                timeout=self.timeout,
                retries=self.retries,
                retry_delay=self.retry_delay,
                sleep=self._sleep,
            )

        path = self._local_root() / rel_path
        if not path.is_file():
            raise FetchError(f"注册表文件不存在: {path}")
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise FetchError(f"注册表文件不是有效的 UTF-8 文本: {path} ({e})") from e
        except OSError as e:
            raise FetchError(f"读取注册表文件失败: {path} - {e}") from e

    def fetch_index(self) -> dict[str, Any]:
        """拉取并解析注册表索引 index.json

        Raises:
            NetworkError / FetchError: 拉取失败
            json.JSONDecodeError: 内容不是合法 JSON
            ValidationError: 顶层不是对象
        """
        data = json.loads(self.fetch_text(INDEX_FILE))
        if not isinstance(data, dict):
            raise ValidationError("注册表索引校验失败", details=["index.json: 顶层必须是对象"])
        return data

    def _fetch_file(self, component: ResolvedComponent, entry: FileEntry) -> FetchedFile:
        try:
            content = self.fetch_text(entry.path)
        except (NetworkError, FetchError) as e:
            raise FetchError(
                f"拉取 {component.key} 的源码失败 ({entry.path}): {e}"
            ) from e
        return FetchedFile(
            type=entry.type, path=entry.path, target=entry.target, content=content,
        )

    def fetch_component(self, component: ResolvedComponent) -> FetchedComponent:
        """并发拉取单个组件的全部文件，结果顺序与 files 声明顺序一致

        任一文件失败则整个组件失败；已发出的其他请求不会被取消。

        Raises:
            FetchError: 任一文件拉取失败
        """
        if not component.files:
            return FetchedComponent(component=component, fetched_files=[])

        workers = min(self.max_workers, len(component.files))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self._fetch_file, component, entry)
                for entry in component.files
            ]
            fetched = [f.result() for f in futures]

        logger.debug("已拉取 %s (%d 个文件)", component.key, len(fetched))
        return FetchedComponent(component=component, fetched_files=fetched)

    def fetch_components(
        self, components: list[ResolvedComponent],
    ) -> list[FetchedComponent]:
        """按顺序逐个拉取组件，任一组件失败即抛出 FetchError"""
        return [self.fetch_component(c) for c in components]
