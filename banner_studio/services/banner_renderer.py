"""横幅渲染引擎.

把资源已内联的场景按解析好的布局合成为像素缓冲。

Features:
    - 由后向前合成：背景 -> Logo -> 文字
    - 背景覆盖适应（居中裁剪，不留边），缺失时绘制棋盘格占位
    - Logo 在正方形区域内包含适应，可越出画布边缘
    - 文字单行居中绘制，效果顺序：阴影 -> 描边 -> 填充
"""

from __future__ import annotations

from typing import Optional

from PIL import Image, ImageDraw, ImageFilter

from banner_studio.models.app_settings import Settings
from banner_studio.models.geometry import Rect, ResolvedGeometry
from banner_studio.models.resources import InlinedScene
from banner_studio.models.scene import ImageRef, ShadowEffect, TextLayer
from banner_studio.services.fonts import AnyFont, FontBook
from banner_studio.utils.constants import PLACEHOLDER_CELL_PX, PLACEHOLDER_COLORS
from banner_studio.utils.exceptions import RenderError
from banner_studio.utils.image_utils import (
    bytes_to_image,
    create_checkerboard,
    ensure_rgba,
    fit_contain,
    fit_cover,
)
from banner_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

# 图片解码可能抛出的异常
_DECODE_ERRORS = (OSError, ValueError, Image.DecompressionBombError)


def stroke_width_px(width_px: float, scale: float) -> int:
    """描边宽度（输出像素）.

    居中描边只有外侧一半可见，因此取一半宽度，至少 1 像素。
    """
    return max(1, round(width_px * scale / 2))


class BannerRenderer:
    """横幅渲染器.

    Example:
        >>> renderer = BannerRenderer()
        >>> image = renderer.render(inlined, geometry)
        >>> image.mode
        'RGBA'
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """初始化渲染器.

        Args:
            settings: 应用设置
        """
        self.settings = settings or Settings()

    def render(
        self,
        inlined: InlinedScene,
        geometry: ResolvedGeometry,
        warnings: Optional[list[str]] = None,
        font_book: Optional[FontBook] = None,
    ) -> Image.Image:
        """渲染横幅.

        Args:
            inlined: 资源已内联的场景
            geometry: 解析后的布局
            warnings: 可选，收集降级渲染警告
            font_book: 字体库，默认使用场景内嵌字体

        Returns:
            RGBA 图片

        Raises:
            RenderError: 画布面积为零或合成失败
        """
        if geometry.canvas_width <= 0 or geometry.canvas_height <= 0:
            raise RenderError(
                f"画布尺寸无效: {geometry.canvas_width}x{geometry.canvas_height}"
            )

        if warnings is None:
            warnings = []
        scene = inlined.scene
        size = geometry.canvas_size

        logger.debug(f"渲染横幅: 尺寸={size}, 缩放={geometry.scale:.4f}")

        try:
            result = self._render_background(scene.background, size, geometry.scale, warnings)

            if scene.logo is not None and geometry.logo is not None:
                result = self._render_logo(result, scene.logo.image, geometry.logo, warnings)

            if self._should_render_text(inlined, geometry):
                book = font_book or inlined.font_book()
                result = self._render_text(result, scene.text, geometry, book)
        except MemoryError as e:
            raise RenderError(f"画布过大，无法分配内存: {size}") from e

        return result

    def _should_render_text(self, inlined: InlinedScene, geometry: ResolvedGeometry) -> bool:
        """无背景时默认不渲染文字（与编辑器行为一致）."""
        scene = inlined.scene
        if scene.text is None or not scene.text.has_content or geometry.text is None:
            return False
        if not scene.has_background and not self.settings.render_text_without_background:
            logger.debug("场景没有背景图，跳过文字渲染")
            return False
        return True

    # ===================
    # 背景
    # ===================

    def _render_background(
        self,
        background: Optional[ImageRef],
        size: tuple[int, int],
        scale: float,
        warnings: list[str],
    ) -> Image.Image:
        """渲染背景（覆盖适应或占位棋盘格）."""
        image = self._decode(background, "background", warnings)
        if image is None:
            cell = max(1, round(PLACEHOLDER_CELL_PX * scale))
            return create_checkerboard(size, cell, *PLACEHOLDER_COLORS)

        return fit_cover(ensure_rgba(image), size)

    # ===================
    # Logo
    # ===================

    def _render_logo(
        self,
        image: Image.Image,
        logo_ref: ImageRef,
        rect: Rect,
        warnings: list[str],
    ) -> Image.Image:
        """渲染 Logo（包含适应，保持宽高比）."""
        logo = self._decode(logo_ref, "logo", warnings)
        if logo is None or rect.is_empty:
            return image

        overlay = fit_contain(ensure_rgba(logo), rect.size)
        left, top, _, _ = rect.box

        temp = Image.new("RGBA", image.size, (0, 0, 0, 0))
        temp.paste(overlay, (left, top), overlay)
        return Image.alpha_composite(image, temp)

    # ===================
    # 文字
    # ===================

    def _render_text(
        self,
        image: Image.Image,
        layer: TextLayer,
        geometry: ResolvedGeometry,
        font_book: FontBook,
    ) -> Image.Image:
        """渲染文字图层（阴影 -> 描边 -> 填充）."""
        scale = geometry.scale
        font = font_book.get_font(
            layer.style.font_family,
            layer.style.size_px * scale,
            text_content=layer.content,
        )
        center = geometry.text.center if geometry.text else (0.0, 0.0)

        shadow = layer.effects.shadow
        if shadow.enabled:
            image = self._draw_shadow(image, layer.content, font, center, scale, shadow)

        stroke = layer.effects.stroke
        if stroke.enabled and stroke.width_px > 0:
            stroke_layer = Image.new("RGBA", image.size, (0, 0, 0, 0))
            ImageDraw.Draw(stroke_layer).text(
                center,
                layer.content,
                font=font,
                fill=(0, 0, 0, 0),
                anchor="mm",
                stroke_width=stroke_width_px(stroke.width_px, scale),
                stroke_fill=stroke.rgba,
            )
            image = Image.alpha_composite(image, stroke_layer)

        fill_layer = Image.new("RGBA", image.size, (0, 0, 0, 0))
        ImageDraw.Draw(fill_layer).text(
            center,
            layer.content,
            font=font,
            fill=layer.style.rgba,
            anchor="mm",
        )
        return Image.alpha_composite(image, fill_layer)

    def _draw_shadow(
        self,
        image: Image.Image,
        content: str,
        font: AnyFont,
        center: tuple[float, float],
        scale: float,
        shadow: ShadowEffect,
    ) -> Image.Image:
        """绘制阴影（偏移后高斯模糊，sigma = blur / 2）."""
        mask = Image.new("L", image.size, 0)
        ImageDraw.Draw(mask).text(
            (center[0] + shadow.offset_x_px * scale, center[1] + shadow.offset_y_px * scale),
            content,
            font=font,
            fill=255,
            anchor="mm",
        )
        if shadow.blur_px > 0:
            mask = mask.filter(ImageFilter.GaussianBlur(radius=shadow.blur_px * scale / 2))

        r, g, b, a = shadow.rgba
        if a < 255:
            mask = mask.point(lambda v: v * a // 255)

        shadow_layer = Image.new("RGBA", image.size, (r, g, b, 0))
        shadow_layer.putalpha(mask)
        return Image.alpha_composite(image, shadow_layer)

    # ===================
    # 辅助方法
    # ===================

    def _decode(
        self,
        ref: Optional[ImageRef],
        kind: str,
        warnings: list[str],
    ) -> Optional[Image.Image]:
        """解码内联图片，未内联或无法解码时返回 None."""
        if ref is None:
            return None
        if not ref.is_inline or ref.data is None:
            logger.debug(f"{kind} 未内联，按缺失处理: {ref.describe()}")
            return None
        try:
            return bytes_to_image(ref.data)
        except _DECODE_ERRORS as e:
            message = f"{kind}: 无法解码图片 ({e})"
            logger.warning(message)
            warnings.append(message)
            return None
