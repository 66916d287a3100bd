"""统一异常体系

所有业务异常继承 DevkitError，替代散落的 ValueError / RuntimeError。
CLI 层据此输出单行友好提示并以非零状态码退出。
"""

from __future__ import annotations


class DevkitError(Exception):
    """devkit 基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(DevkitError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class ComponentNotFoundError(DevkitError):
    """注册表中不存在请求的组件（或其传递依赖）"""

    code = "COMPONENT_NOT_FOUND"

    def __init__(self, key: str) -> None:
        super().__init__(f"注册表中不存在组件 \"{key}\"")
        self.key = key


class ValidationError(DevkitError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class NetworkError(DevkitError):
    """网络请求超时或返回非成功状态（重试耗尽后抛出）"""

    code = "NETWORK_ERROR"


class FetchError(DevkitError):
    """组件源码拉取失败"""

    code = "FETCH_ERROR"


class MalformedDependencyToken(DevkitError):
    """内部依赖声明不是合法的 "type/name" 形式

    解析器内部使用，捕获后仅记录警告并跳过该依赖。
    """

    code = "MALFORMED_DEPENDENCY"

    def __init__(self, token: str, reason: str) -> None:
        super().__init__(f"无效的依赖声明 \"{token}\": {reason}")
        self.token = token
        self.reason = reason
