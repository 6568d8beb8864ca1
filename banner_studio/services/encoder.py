"""导出编码服务.

把渲染好的像素缓冲编码为 PNG、JPEG 或 PDF 文件字节。
"""

from __future__ import annotations

import io
from typing import Optional, Union

from PIL import Image
from reportlab.lib.pagesizes import landscape, portrait
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from banner_studio.models.app_settings import Settings
from banner_studio.models.artifact import ExportFormat, RenderedArtifact
from banner_studio.utils.constants import (
    DEFAULT_FILE_NAME,
    EXPORT_BACKGROUND_COLOR,
    PDF_POINTS_PER_PIXEL,
)
from banner_studio.utils.exceptions import EncodeError
from banner_studio.utils.image_utils import add_solid_background
from banner_studio.utils.logger import setup_logger

logger = setup_logger(__name__)


def quality_to_pillow(quality: float) -> int:
    """把 0-1 的质量值换算为 Pillow 的 1-100."""
    return max(1, min(100, round(quality * 100)))


def px_to_pt(value: float) -> float:
    """像素换算为点（1px = 0.75pt）."""
    return value * PDF_POINTS_PER_PIXEL


class BannerEncoder:
    """横幅编码器.

    Example:
        >>> encoder = BannerEncoder()
        >>> artifact = encoder.encode(image, ExportFormat.PNG)
        >>> artifact.mime_type
        'image/png'
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()

    def encode(
        self,
        image: Image.Image,
        fmt: Union[ExportFormat, str],
        quality: Optional[float] = None,
        file_name: Optional[str] = None,
        warnings: tuple[str, ...] = (),
    ) -> RenderedArtifact:
        """编码图片.

        Args:
            image: 渲染结果
            fmt: 导出格式
            quality: JPEG 质量 (0-1)，默认使用设置值
            file_name: 建议文件名
            warnings: 附加到产物上的警告

        Returns:
            导出产物

        Raises:
            EncodeError: 图片为空或编码失败
        """
        try:
            fmt = ExportFormat.parse(fmt)
        except ValueError as e:
            raise EncodeError(str(fmt), "不支持的导出格式") from e

        if image.width <= 0 or image.height <= 0:
            raise EncodeError(fmt.value, f"图片尺寸无效: {image.size}")

        try:
            if fmt == ExportFormat.PNG:
                data = self._encode_png(image)
            elif fmt == ExportFormat.JPEG:
                data = self._encode_jpeg(image, quality)
            else:
                data = self._encode_pdf(image)
        except EncodeError:
            raise
        except (OSError, ValueError) as e:
            logger.error(f"{fmt.value} 编码失败: {e}")
            raise EncodeError(fmt.value, str(e)) from e

        logger.debug(f"编码完成: {fmt.value}, {image.size}, {len(data)} bytes")

        return RenderedArtifact(
            data=data,
            mime_type=fmt.mime_type,
            suggested_file_name=file_name or f"{DEFAULT_FILE_NAME}.{fmt.extension}",
            width=image.width,
            height=image.height,
            warnings=tuple(warnings),
        )

    def _encode_png(self, image: Image.Image) -> bytes:
        """PNG 无损编码（不写入时间戳等元数据）."""
        if image.mode not in ("RGB", "RGBA"):
            image = image.convert("RGBA")
        buffer = io.BytesIO()
        image.save(buffer, format="PNG", compress_level=6)
        return buffer.getvalue()

    def _encode_jpeg(self, image: Image.Image, quality: Optional[float]) -> bytes:
        """JPEG 编码（透明区域合成到白色背景）."""
        quality = self.settings.jpeg_quality if quality is None else quality
        if not 0 < quality <= 1:
            raise EncodeError("jpg", f"质量必须在 (0, 1] 范围内，实际: {quality}")

        rgb = add_solid_background(image, EXPORT_BACKGROUND_COLOR)
        buffer = io.BytesIO()
        rgb.save(buffer, format="JPEG", quality=quality_to_pillow(quality))
        return buffer.getvalue()

    def _encode_pdf(self, image: Image.Image) -> bytes:
        """PDF 编码：单页，页面尺寸等于像素尺寸，整页绘制一张位图."""
        page_size = (px_to_pt(image.width), px_to_pt(image.height))
        page_size = landscape(page_size) if image.width > image.height else portrait(page_size)

        rgb = add_solid_background(image, EXPORT_BACKGROUND_COLOR)

        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=page_size, invariant=1)
        pdf.setTitle(DEFAULT_FILE_NAME)
        pdf.drawImage(
            ImageReader(rgb),
            0,
            0,
            width=page_size[0],
            height=page_size[1],
            preserveAspectRatio=False,
        )
        pdf.showPage()
        pdf.save()
        return buffer.getvalue()
