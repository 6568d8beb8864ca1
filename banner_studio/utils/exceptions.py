"""自定义异常类."""

from __future__ import annotations


class AppException(Exception):
    """应用基础异常类.

    所有自定义异常都应继承此类。

    Attributes:
        message: 错误消息
        code: 错误代码
    """

    def __init__(self, message: str, code: str = "UNKNOWN") -> None:
        """初始化异常.

        Args:
            message: 错误消息
            code: 错误代码
        """
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        """返回异常字符串表示."""
        return f"[{self.code}] {self.message}"


# ===================
# 配置相关异常
# ===================
class ConfigError(AppException):
    """配置错误异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIG_ERROR")


class SceneError(AppException):
    """场景数据无效异常."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "SCENE_ERROR")


# ===================
# 导出流水线异常
# ===================
class InvalidScaleError(AppException):
    """输出比例无效异常（非正数）."""

    def __init__(self, scale: float) -> None:
        self.scale = scale
        super().__init__(f"输出比例必须为正数，实际: {scale}", "INVALID_SCALE")


class ResourceFetchError(AppException):
    """单个资源获取或转换失败.

    可恢复：记录警告后该元素降级渲染，流水线继续。
    """

    def __init__(
        self,
        locator: str,
        reason: str,
        code: str = "RESOURCE_FETCH_FAILED",
    ) -> None:
        self.locator = locator
        self.reason = reason
        super().__init__(f"资源获取失败: {locator} ({reason})", code)


class UpstreamTimeoutError(ResourceFetchError):
    """资源获取超时，按获取失败处理."""

    def __init__(self, locator: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(locator, f"超过 {timeout:g} 秒未响应", "UPSTREAM_TIMEOUT")


class RenderError(AppException):
    """合成器无法生成像素缓冲."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "RENDER_FAILED")


class EncodeError(AppException):
    """编码器拒绝像素缓冲."""

    def __init__(self, format: str, reason: str) -> None:
        self.format = format
        super().__init__(f"{format.upper()} 编码失败: {reason}", "ENCODE_ERROR")
