"""字体管理.

Features:
    - 内嵌字体库（按字体族加载内联字体二进制）
    - 可变字体自动选择粗体变体
    - 系统字体与中文字体回退
    - 文字测量（布局与渲染共用同一套字体度量）
"""

from __future__ import annotations

import io
import os
from typing import Iterable, Optional, Protocol, Union

from PIL import ImageFont

from banner_studio.models.geometry import TextExtent
from banner_studio.models.resources import InlinedFont
from banner_studio.utils.constants import TEXT_LINE_HEIGHT
from banner_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

AnyFont = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


# ===================
# 常量定义
# ===================

# 默认字体
DEFAULT_FONT_NAME = "Arial"

# 字体搜索路径
FONT_SEARCH_PATHS = [
    "/System/Library/Fonts/",
    "/System/Library/Fonts/Supplemental/",
    "/Library/Fonts/",
    "~/Library/Fonts/",
    "C:/Windows/Fonts/",
    "/usr/share/fonts/",
    "/usr/share/fonts/truetype/",
]

# 中文字体回退列表（macOS/Windows/Linux 常见中文字体）
CHINESE_FONT_FALLBACKS = [
    # macOS
    "PingFang SC.ttc",
    "PingFang.ttc",
    "STHeiti Medium.ttc",
    "Hiragino Sans GB.ttc",
    # Windows
    "msyh.ttc",  # 微软雅黑
    "simhei.ttf",  # 黑体
    # Linux
    "wqy-microhei.ttc",
    "wqy-zenhei.ttc",
    "NotoSansCJK-Bold.ttc",
    "NotoSansCJK-Regular.ttc",
]

# 可变字体的粗体实例名
_BOLD_VARIATION = "Bold"


# ===================
# 系统字体查找
# ===================


def _has_chinese_characters(text: str) -> bool:
    """检查文本是否包含中文字符."""
    for char in text:
        if '\u4e00' <= char <= '\u9fff' or '\u3400' <= char <= '\u4dbf':
            return True
    return False


def _find_chinese_font(font_size: int) -> Optional[ImageFont.FreeTypeFont]:
    """查找中文字体.

    Args:
        font_size: 字体大小

    Returns:
        找到的字体，未找到返回 None
    """
    for search_path in FONT_SEARCH_PATHS:
        expanded_path = os.path.expanduser(search_path)
        if not os.path.exists(expanded_path):
            continue

        for font_name in CHINESE_FONT_FALLBACKS:
            font_path = os.path.join(expanded_path, font_name)
            if os.path.exists(font_path):
                try:
                    return ImageFont.truetype(font_path, font_size)
                except OSError:
                    continue

    return None


def _load_default_font(font_size: int) -> AnyFont:
    """加载默认字体（Arial，找不到时使用 Pillow 内置字体）."""
    try:
        return ImageFont.truetype(DEFAULT_FONT_NAME, font_size)
    except OSError:
        return ImageFont.load_default(size=font_size)


def find_font(
    font_family: Optional[str],
    font_size: int,
    bold: bool = True,
    text_content: Optional[str] = None,
) -> AnyFont:
    """在系统字体目录中查找字体.

    Args:
        font_family: 字体名称
        font_size: 字体大小
        bold: 是否优先粗体
        text_content: 要渲染的文本（用于检测是否需要中文字体）

    Returns:
        字体对象，找不到时返回默认字体
    """
    needs_chinese = bool(text_content) and _has_chinese_characters(text_content or "")

    if not font_family:
        if needs_chinese:
            chinese_font = _find_chinese_font(font_size)
            if chinese_font:
                return chinese_font
        return _load_default_font(font_size)

    # 尝试直接加载指定字体
    try:
        return ImageFont.truetype(font_family, font_size)
    except OSError:
        pass

    compact = font_family.replace(" ", "")
    font_variants = []
    if bold:
        font_variants.extend([
            f"{compact}-Bold.ttf",
            f"{font_family} Bold.ttf",
            f"{font_family}-Bold.ttf",
        ])
    font_variants.extend([
        f"{font_family}.ttf",
        f"{font_family}.otf",
        f"{font_family}.ttc",
        f"{compact}-Regular.ttf",
        f"{compact}.ttf",
    ])

    for search_path in FONT_SEARCH_PATHS:
        expanded_path = os.path.expanduser(search_path)
        if not os.path.exists(expanded_path):
            continue

        for variant in font_variants:
            font_path = os.path.join(expanded_path, variant)
            if os.path.exists(font_path):
                try:
                    return ImageFont.truetype(font_path, font_size)
                except OSError:
                    continue

    if needs_chinese:
        chinese_font = _find_chinese_font(font_size)
        if chinese_font:
            logger.warning(f"字体 '{font_family}' 未找到，使用中文字体回退")
            return chinese_font

    logger.warning(f"字体 '{font_family}' 未找到，使用默认字体")
    return _load_default_font(font_size)


# ===================
# 字体库
# ===================


class FontBook:
    """内嵌字体库.

    持有一次导出中内联的字体二进制，按 (字体族, 字号) 缓存字体对象。
    找不到的字体族回退到系统字体，永远不会抛出异常。

    Example:
        >>> book = FontBook([InlinedFont("Poppins", ttf_bytes)])
        >>> font = book.get_font("Poppins", 48)
    """

    def __init__(self, fonts: Iterable[InlinedFont] = ()) -> None:
        """初始化字体库.

        Args:
            fonts: 已内联的字体
        """
        self._fonts: dict[str, InlinedFont] = {
            font.family.casefold(): font for font in fonts
        }
        self._cache: dict[tuple[str, int], AnyFont] = {}

    def has_family(self, family: str) -> bool:
        """是否内嵌了该字体族."""
        return family.casefold() in self._fonts

    def get_font(
        self,
        family: str,
        size_px: float,
        text_content: Optional[str] = None,
    ) -> AnyFont:
        """获取字体对象.

        Args:
            family: 字体族
            size_px: 字号（像素，按输出比例缩放后）
            text_content: 要渲染的文本（系统字体回退时使用）

        Returns:
            字体对象
        """
        size = max(1, round(size_px))
        key = (family.casefold(), size)
        font = self._cache.get(key)
        if font is None:
            font = self._load(family, size, text_content)
            self._cache[key] = font
        return font

    def _load(self, family: str, size: int, text_content: Optional[str]) -> AnyFont:
        inlined = self._fonts.get(family.casefold())
        if inlined is not None:
            try:
                font = ImageFont.truetype(io.BytesIO(inlined.data), size)
            except OSError as e:
                logger.warning(f"内嵌字体 '{family}' 无法加载，使用系统字体: {e}")
            else:
                _select_bold(font)
                return font

        return find_font(family, size, bold=True, text_content=text_content)


def _select_bold(font: ImageFont.FreeTypeFont) -> None:
    """可变字体切换到粗体实例，静态字体保持不变."""
    try:
        font.set_variation_by_name(_BOLD_VARIATION)
    except (OSError, ValueError):
        pass


# ===================
# 文字测量
# ===================


class TextMeasurer(Protocol):
    """文字测量接口."""

    def measure(self, text: str, font_family: str, size_px: float) -> TextExtent:
        """测量单行文字.

        Returns:
            (前进宽度, 行高)，单位为像素
        """
        ...


class PillowTextMeasurer:
    """基于 Pillow 字体度量的文字测量器.

    与渲染器使用同一个 FontBook，保证布局与绘制的度量一致。
    """

    def __init__(self, font_book: Optional[FontBook] = None) -> None:
        self.font_book = font_book or FontBook()

    def measure(self, text: str, font_family: str, size_px: float) -> TextExtent:
        font = self.font_book.get_font(font_family, size_px, text_content=text)
        width = font.getlength(text)
        return TextExtent(width=float(width), height=size_px * TEXT_LINE_HEIGHT)
