"""布局几何模型."""

from __future__ import annotations

from typing import NamedTuple, Optional


class TextExtent(NamedTuple):
    """文字测量结果（像素）."""

    width: float
    height: float


class Rect(NamedTuple):
    """输出像素空间中的矩形（左上角 + 尺寸）."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        """中心点."""
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def box(self) -> tuple[int, int, int, int]:
        """取整后的 (left, top, right, bottom)."""
        return (
            round(self.x),
            round(self.y),
            round(self.x + self.width),
            round(self.y + self.height),
        )

    @property
    def size(self) -> tuple[int, int]:
        """取整后的尺寸（至少 1 像素）."""
        return (max(1, round(self.width)), max(1, round(self.height)))

    @property
    def is_empty(self) -> bool:
        """面积是否为零."""
        return self.width <= 0 or self.height <= 0


class ResolvedGeometry(NamedTuple):
    """某个输出比例下解析完成的布局.

    Attributes:
        scale: 输出比例
        canvas_width: 输出宽度（像素）
        canvas_height: 输出高度（像素）
        background: 背景矩形（总是整个画布）
        logo: Logo 矩形，无 Logo 时为 None
        text: 文字矩形，无文字时为 None
    """

    scale: float
    canvas_width: int
    canvas_height: int
    background: Rect
    logo: Optional[Rect] = None
    text: Optional[Rect] = None

    @property
    def canvas_size(self) -> tuple[int, int]:
        """输出尺寸."""
        return (self.canvas_width, self.canvas_height)
