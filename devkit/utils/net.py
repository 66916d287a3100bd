"""网络工具 — URL 安全校验 + 带超时与重试的文本拉取"""

from __future__ import annotations

import logging
import time
import urllib.error
import urllib.request
from collections.abc import Callable
from urllib.parse import urlparse

from devkit.core.exceptions import NetworkError, ValidationError

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = frozenset(("http", "https"))

DEFAULT_TIMEOUT = 10.0
DEFAULT_RETRIES = 2
DEFAULT_RETRY_DELAY = 1.0


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，防止 file:// 等非预期协议访问

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )


def is_remote_url(location: str) -> bool:
    """判断注册表地址是否为 http/https 远程地址"""
    return urlparse(location).scheme in _ALLOWED_SCHEMES


def join_url(base: str, path: str) -> str:
    """拼接注册表根地址与相对路径，去除重复的斜杠"""
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def fetch_text(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    retries: int = DEFAULT_RETRIES,
    retry_delay: float = DEFAULT_RETRY_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """GET 拉取文本内容，超时或非 2xx 状态视为可重试失败

    共尝试 retries + 1 次，每次失败后固定等待 retry_delay 秒。

    Raises:
        ValidationError: URL 协议不合法
        NetworkError: 重试耗尽仍失败
    """
    validate_url_scheme(url, context="fetch")

    attempt = 0
    while True:
        attempt += 1
        try:
            req = urllib.request.Request(url, headers={"Accept": "*/*"})
            with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310
                raw: bytes = resp.read()
            return _decode(url, raw)
        except urllib.error.HTTPError as e:
            message = f"HTTP 状态码 {e.code}"
        except TimeoutError:
            message = f"请求超时（{timeout}秒）"
        except (urllib.error.URLError, OSError) as e:
            message = str(getattr(e, "reason", e))

        if attempt > retries:
            raise NetworkError(f"拉取 {url} 失败（共尝试 {attempt} 次）: {message}")

        logger.warning(
            "请求失败 (%s)，%.1f 秒后重试... (%d/%d)",
            message, retry_delay, attempt, retries,
        )
        sleep(retry_delay)


def _decode(url: str, raw: bytes) -> str:
    """按 UTF-8 解码响应体；解码失败不可重试，直接抛 NetworkError"""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise NetworkError(f"拉取 {url} 失败: 响应不是有效的 UTF-8 文本 ({e})") from e
