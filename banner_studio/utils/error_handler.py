"""错误处理工具模块.

异常到用户消息的映射，以及并发获取资源时的失败收集。
"""

from __future__ import annotations

from typing import Any

from banner_studio.utils.exceptions import (
    AppException,
    ConfigError,
    EncodeError,
    InvalidScaleError,
    RenderError,
    ResourceFetchError,
    SceneError,
    UpstreamTimeoutError,
)
from banner_studio.utils.logger import setup_logger

logger = setup_logger(__name__)


# 错误消息映射（子类在前）
ERROR_MESSAGES = {
    InvalidScaleError: "导出尺寸无效，请选择其他尺寸",
    UpstreamTimeoutError: "资源下载超时，请检查网络连接",
    ResourceFetchError: "部分图片或字体无法加载",
    RenderError: "生成横幅图像失败，请检查画布尺寸",
    EncodeError: "导出文件生成失败，请尝试其他格式",
    SceneError: "横幅数据无效",
    ConfigError: "配置错误，请检查配置文件",
}


def get_user_friendly_message(exception: Exception) -> str:
    """获取用户友好的错误消息.

    Args:
        exception: 异常对象

    Returns:
        用户友好的错误消息
    """
    for exc_type, message in ERROR_MESSAGES.items():
        if isinstance(exception, exc_type):
            return message

    if isinstance(exception, AppException):
        return exception.message

    return "操作失败，请稍后重试"


def get_error_details(exception: Exception) -> dict[str, Any]:
    """获取错误详细信息.

    Args:
        exception: 异常对象

    Returns:
        包含错误详情的字典
    """
    details = {
        "type": type(exception).__name__,
        "message": str(exception),
        "user_message": get_user_friendly_message(exception),
    }

    if isinstance(exception, AppException):
        details["code"] = exception.code

    if isinstance(exception, ResourceFetchError):
        details["locator"] = exception.locator

    return details


class ErrorCollector:
    """资源失败收集器.

    并发获取资源时收集每个元素的失败，不中断其余获取。

    Example:
        >>> collector = ErrorCollector()
        >>> try:
        ...     await inliner.inline_image(ref)
        ... except ResourceFetchError as e:
        ...     collector.add(e, context="background")
        >>> if collector.has_errors:
        ...     logger.warning(collector.summary)
    """

    def __init__(self) -> None:
        self._errors: list[tuple[ResourceFetchError, str]] = []

    def add(self, exception: ResourceFetchError, context: str = "") -> None:
        """记录一次失败.

        Args:
            exception: 获取失败异常
            context: 失败的元素（background / logo / font）
        """
        self._errors.append((exception, context))
        logger.warning(f"资源获取失败 [{context}]: {exception.locator} ({exception.reason})")

    @property
    def has_errors(self) -> bool:
        return bool(self._errors)

    @property
    def error_count(self) -> int:
        return len(self._errors)

    @property
    def errors(self) -> list[tuple[ResourceFetchError, str]]:
        """按发生顺序排列的 (异常, 元素) 列表."""
        return list(self._errors)

    @property
    def summary(self) -> str:
        """多行摘要，每个失败一行."""
        if not self._errors:
            return "无错误"

        lines = [f"共 {len(self._errors)} 个资源获取失败:"]
        for i, (exc, ctx) in enumerate(self._errors, 1):
            lines.append(f"  {i}. [{ctx or '?'}] {exc.code}: {exc.locator} ({exc.reason})")
        return "\n".join(lines)
