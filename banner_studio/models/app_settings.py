"""应用设置模型."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from banner_studio.utils.constants import (
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_USER_AGENT,
    FONT_MANIFEST_FILE,
    MAX_RESOURCE_BYTES,
)


class Settings(BaseSettings):
    """应用设置.

    支持从环境变量（BANNER_ 前缀）和 .env 文件加载配置。

    Attributes:
        log_level: 日志级别
        fetch_timeout: 单个资源获取超时（秒）
        max_resource_bytes: 单个资源最大字节数
        jpeg_quality: JPEG 默认质量 (0-1)
        render_text_without_background: 无背景时是否仍渲染文字
        font_manifest_path: 字体清单文件路径
        asset_dir: 相对图片路径的基础目录
        user_agent: 资源请求的 User-Agent
    """

    model_config = SettingsConfigDict(
        env_prefix="BANNER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 应用配置
    log_level: str = Field(
        default="INFO",
        description="日志级别",
    )

    # 资源内联配置
    fetch_timeout: float = Field(
        default=DEFAULT_FETCH_TIMEOUT,
        gt=0,
        le=120,
        description="单个资源获取超时（秒）",
    )

    max_resource_bytes: int = Field(
        default=MAX_RESOURCE_BYTES,
        ge=1024,
        description="单个资源最大字节数",
    )

    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="资源请求的 User-Agent",
    )

    font_manifest_path: Optional[Path] = Field(
        default=None,
        description="字体清单文件路径",
    )

    asset_dir: Optional[Path] = Field(
        default=None,
        description="相对图片路径的基础目录",
    )

    # 导出配置
    jpeg_quality: float = Field(
        default=DEFAULT_JPEG_QUALITY,
        gt=0,
        le=1,
        description="JPEG 默认质量 (0-1)",
    )

    render_text_without_background: bool = Field(
        default=False,
        description="无背景时是否仍渲染文字",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """验证日志级别."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"无效的日志级别: {v}，有效值: {valid_levels}")
        return upper_v

    @property
    def manifest_path(self) -> Path:
        """获取字体清单路径."""
        return self.font_manifest_path or FONT_MANIFEST_FILE
