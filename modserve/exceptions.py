"""
ModServe 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和 JSON 序列化。
"""

from typing import Any, Dict, Optional


class ModServeError(Exception):
    """ModServe 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(ModServeError):
    """配置相关错误"""

    def _get_default_code(self) -> str:
        return "E100"


class ConfigParseError(ConfigError):
    """配置解析错误"""

    def _get_default_code(self) -> str:
        return "E101"


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def _get_default_code(self) -> str:
        return "E102"


class PartialDataError(ModServeError):
    """
    清单中某个字段缺失

    仅在清单合成内部使用，字段被省略，文档继续生成。
    """

    def _get_default_code(self) -> str:
        return "E206"


class StorageError(ModServeError):
    """存储读写错误"""

    def _get_default_code(self) -> str:
        return "E300"


class ValidationError(ModServeError):
    """验证相关错误"""

    def _get_default_code(self) -> str:
        return "E400"


class PayloadError(ValidationError):
    """请求体无法解析"""

    def _get_default_code(self) -> str:
        return "E412"


class NotFoundError(ModServeError):
    """实体、关联或文件不存在"""

    def _get_default_code(self) -> str:
        return "E404"


class ConflictError(ModServeError):
    """重复的关联或 slug"""

    def _get_default_code(self) -> str:
        return "E409"


class FeedError(ModServeError):
    """上游版本源请求失败"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        status: Optional[int] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message, code, context)
        if status is not None:
            self.context["status_code"] = status
        if url is not None:
            self.context["url"] = url

    def _get_default_code(self) -> str:
        return "E500"


__all__ = [
    # 基础异常
    "ModServeError",
    # 配置异常
    "ConfigError",
    "ConfigParseError",
    "ConfigValidationError",
    # 数据异常
    "PartialDataError",
    "StorageError",
    "ValidationError",
    "PayloadError",
    "NotFoundError",
    "ConflictError",
    # 上游异常
    "FeedError",
]
