"""devkit 日志配置

CLI 面向终端用户，默认输出精简格式（级别 + 消息）；
设置 DEVKIT_LOG_JSON=1 时输出结构化 JSON，便于 CI 流水线消费。
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
VERBOSE_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """结构化 JSON 日志格式器

    输出格式:
        {
            "timestamp": "2024-01-01T12:00:00+00:00",
            "level": "WARNING",
            "logger": "devkit.core.component.resolver",
            "message": "...",
            "line": 42,
            "exception": "traceback..." (仅在有异常时)
        }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """配置根日志器

    参数:
        level: 日志级别字符串（DEBUG, INFO, WARNING, ERROR）
        json_output: 为 True 时使用 JSON 格式，否则使用人类可读格式

    说明:
        - 输出到 stderr，stdout 留给命令结果
        - 重复调用会先清理已有 handlers，避免日志重复
        - DEBUG 级别下附带时间戳和 logger 名称
    """
    reset_logging()

    root = logging.getLogger()
    log_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(log_level)

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    elif log_level <= logging.DEBUG:
        handler.setFormatter(logging.Formatter(VERBOSE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    root.addHandler(handler)


def reset_logging() -> None:
    """清理根日志器上所有已注册的 handlers"""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
