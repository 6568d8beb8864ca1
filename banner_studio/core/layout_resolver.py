"""布局解析器.

把场景的百分比定位换算为某个输出比例下的像素矩形。

所有元素以中心点锚定：先在原生画布坐标中计算中心和尺寸，再整体乘以输出比例，
因此不同比例之间中心点严格线性，不存在累积误差。

文字矩形的尺寸来自字体测量（宽度 + 内边距），只描述文字占用的区域
（例如编辑器的选中框）。渲染时文字以 "mm" 锚定在矩形中心，而中心只由
百分比位置决定，测得的宽度不影响文字绘制的位置。
"""

from __future__ import annotations

import math
from typing import Optional

from banner_studio.models.geometry import Rect, ResolvedGeometry
from banner_studio.models.scene import CanvasSpec, LogoLayer, PlacementPercent, Scene, TextLayer
from banner_studio.services.fonts import PillowTextMeasurer, TextMeasurer
from banner_studio.utils.constants import TEXT_PADDING_PX
from banner_studio.utils.exceptions import InvalidScaleError
from banner_studio.utils.logger import setup_logger

logger = setup_logger(__name__)


def validate_scale(output_scale: float) -> float:
    """验证输出比例.

    Raises:
        InvalidScaleError: 比例不是有限正数
    """
    if not isinstance(output_scale, (int, float)) or not math.isfinite(output_scale) or output_scale <= 0:
        raise InvalidScaleError(output_scale)
    return float(output_scale)


def _anchored_rect(
    canvas: CanvasSpec,
    position: PlacementPercent,
    width: float,
    height: float,
    scale: float,
) -> Rect:
    """以中心点定位的矩形（原生坐标计算后整体缩放）."""
    center_x = position.x / 100 * canvas.width
    center_y = position.y / 100 * canvas.height
    return Rect(
        x=(center_x - width / 2) * scale,
        y=(center_y - height / 2) * scale,
        width=width * scale,
        height=height * scale,
    )


class LayoutResolver:
    """布局解析器.

    Example:
        >>> resolver = LayoutResolver()
        >>> geometry = resolver.resolve(scene, 1080 / 851)
        >>> geometry.canvas_size
        (1080, 400)
    """

    def __init__(self, measurer: Optional[TextMeasurer] = None) -> None:
        """初始化解析器.

        Args:
            measurer: 文字测量器，默认使用 Pillow 度量
        """
        self.measurer: TextMeasurer = measurer or PillowTextMeasurer()

    def resolve(self, scene: Scene, output_scale: float) -> ResolvedGeometry:
        """解析布局.

        Args:
            scene: 场景快照
            output_scale: 输出比例（输出像素 / 画布像素）

        Returns:
            解析后的几何信息

        Raises:
            InvalidScaleError: 比例不是有限正数
        """
        scale = validate_scale(output_scale)
        canvas = scene.canvas

        canvas_width = round(canvas.width * scale)
        canvas_height = round(canvas.height * scale)
        background = Rect(0.0, 0.0, float(canvas_width), float(canvas_height))

        logo_rect = self._resolve_logo(canvas, scene.logo, scale) if scene.logo else None
        text_rect = None
        if scene.text is not None and scene.text.has_content:
            text_rect = self._resolve_text(canvas, scene.text, scale)

        logger.debug(
            f"布局解析完成: scale={scale:.4f}, canvas=({canvas_width}, {canvas_height}), "
            f"logo={logo_rect}, text={text_rect}"
        )

        return ResolvedGeometry(
            scale=scale,
            canvas_width=canvas_width,
            canvas_height=canvas_height,
            background=background,
            logo=logo_rect,
            text=text_rect,
        )

    def _resolve_logo(self, canvas: CanvasSpec, logo: LogoLayer, scale: float) -> Rect:
        side = logo.side_px(canvas)
        return _anchored_rect(canvas, logo.position, side, side, scale)

    def _resolve_text(self, canvas: CanvasSpec, text: TextLayer, scale: float) -> Rect:
        extent = self.measurer.measure(text.content, text.style.font_family, text.style.size_px)
        width = extent.width + 2 * TEXT_PADDING_PX
        height = extent.height + 2 * TEXT_PADDING_PX
        return _anchored_rect(canvas, text.position, width, height, scale)
