"""导出产物模型."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Union

from banner_studio.utils.constants import SIZE_TIER_WIDTHS
from banner_studio.utils.file_utils import ensure_directory


class ExportFormat(str, Enum):
    """导出格式枚举."""

    PNG = "png"
    JPEG = "jpg"
    PDF = "pdf"

    @classmethod
    def parse(cls, value: Union[str, "ExportFormat"]) -> "ExportFormat":
        """解析格式名称（jpeg 视为 jpg）.

        Raises:
            ValueError: 不支持的格式
        """
        if isinstance(value, ExportFormat):
            return value
        normalized = value.strip().lower().lstrip(".")
        if normalized == "jpeg":
            normalized = "jpg"
        return cls(normalized)

    @property
    def extension(self) -> str:
        """文件扩展名."""
        return self.value

    @property
    def mime_type(self) -> str:
        """MIME 类型."""
        return {
            ExportFormat.PNG: "image/png",
            ExportFormat.JPEG: "image/jpeg",
            ExportFormat.PDF: "application/pdf",
        }[self]


class SizeTier(str, Enum):
    """导出尺寸档位."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"

    @property
    def target_width(self) -> int:
        """目标输出宽度（像素）."""
        return SIZE_TIER_WIDTHS[self.value]

    def scale_for(self, canvas_width: int) -> float:
        """相对于画布宽度的输出比例."""
        return self.target_width / canvas_width


@dataclass(frozen=True)
class RenderedArtifact:
    """编码后的导出产物.

    Attributes:
        data: 文件字节
        mime_type: MIME 类型
        suggested_file_name: 建议文件名
        width: 像素宽度
        height: 像素高度
        warnings: 导出过程中的降级警告
    """

    data: bytes
    mime_type: str
    suggested_file_name: str
    width: int
    height: int
    warnings: tuple[str, ...] = field(default=())

    @property
    def size_bytes(self) -> int:
        """文件大小."""
        return len(self.data)

    def save(self, directory: Union[str, Path]) -> Path:
        """写入目录，返回文件路径."""
        target_dir = ensure_directory(Path(directory))
        path = target_dir / self.suggested_file_name
        path.write_bytes(self.data)
        return path
