"""画布预设与命名位置.

Features:
    - 社交平台画布尺寸预设
    - AI 建议的 9 宫格命名位置 -> 百分比位置映射
    - 编辑器可选字体列表
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, NamedTuple, Optional

from pydantic import BaseModel, Field

from banner_studio.models.scene import CanvasSpec, PlacementPercent
from banner_studio.utils.logger import setup_logger

if TYPE_CHECKING:
    from banner_studio.models.scene import SceneBuilder

logger = setup_logger(__name__)


# ===================
# 画布预设
# ===================


class BannerPreset(NamedTuple):
    """画布预设."""

    name: str
    canvas: CanvasSpec


BANNER_PRESETS: dict[str, BannerPreset] = {
    "facebookCover": BannerPreset("Facebook Cover", CanvasSpec(width=851, height=315)),
    "instagramPost": BannerPreset("Instagram Post", CanvasSpec(width=1080, height=1080)),
    "instagramStory": BannerPreset("Instagram Story", CanvasSpec(width=1080, height=1920)),
    "twitterHeader": BannerPreset("Twitter Header", CanvasSpec(width=1500, height=500)),
    "linkedinBanner": BannerPreset("LinkedIn Banner", CanvasSpec(width=1584, height=396)),
    "youtubeChannel": BannerPreset("YouTube Channel Art", CanvasSpec(width=2560, height=1440)),
}

# 自定义尺寸标记
CUSTOM_PRESET = "custom"

DEFAULT_PRESET = "facebookCover"


def resolve_canvas(preset: str, custom: Optional[CanvasSpec] = None) -> CanvasSpec:
    """根据预设名称获取画布尺寸.

    Args:
        preset: 预设名称，custom 表示使用自定义尺寸
        custom: 自定义尺寸

    Returns:
        画布尺寸；未知预设回退到 Facebook 封面
    """
    if preset == CUSTOM_PRESET:
        if custom is None:
            logger.warning("自定义预设缺少尺寸，使用默认画布")
            return BANNER_PRESETS[DEFAULT_PRESET].canvas
        return custom

    entry = BANNER_PRESETS.get(preset)
    if entry is None:
        logger.warning(f"未知预设 '{preset}'，使用默认画布")
        return BANNER_PRESETS[DEFAULT_PRESET].canvas
    return entry.canvas


def find_preset(canvas: CanvasSpec) -> str:
    """查找与画布尺寸一致的预设名称，找不到返回 custom."""
    for key, entry in BANNER_PRESETS.items():
        if entry.canvas == canvas:
            return key
    return CUSTOM_PRESET


# ===================
# 命名位置
# ===================


class NamedPlacement(str, Enum):
    """9 宫格命名位置."""

    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    MIDDLE_LEFT = "middle-left"
    MIDDLE_CENTER = "middle-center"
    MIDDLE_RIGHT = "middle-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"


NAMED_PLACEMENTS: dict[NamedPlacement, PlacementPercent] = {
    NamedPlacement.TOP_LEFT: PlacementPercent(x=15, y=15),
    NamedPlacement.TOP_CENTER: PlacementPercent(x=50, y=15),
    NamedPlacement.TOP_RIGHT: PlacementPercent(x=85, y=15),
    NamedPlacement.MIDDLE_LEFT: PlacementPercent(x=15, y=50),
    NamedPlacement.MIDDLE_CENTER: PlacementPercent(x=50, y=50),
    NamedPlacement.MIDDLE_RIGHT: PlacementPercent(x=85, y=50),
    NamedPlacement.BOTTOM_LEFT: PlacementPercent(x=15, y=85),
    NamedPlacement.BOTTOM_CENTER: PlacementPercent(x=50, y=85),
    NamedPlacement.BOTTOM_RIGHT: PlacementPercent(x=85, y=85),
}

# 别名
_PLACEMENT_ALIASES = {
    "center": NamedPlacement.MIDDLE_CENTER,
    "middle": NamedPlacement.MIDDLE_CENTER,
    "left": NamedPlacement.MIDDLE_LEFT,
    "right": NamedPlacement.MIDDLE_RIGHT,
    "top": NamedPlacement.TOP_CENTER,
    "bottom": NamedPlacement.BOTTOM_CENTER,
    "center-left": NamedPlacement.MIDDLE_LEFT,
    "center-right": NamedPlacement.MIDDLE_RIGHT,
}


def placement_from_name(name: str) -> Optional[PlacementPercent]:
    """命名位置转百分比位置.

    大小写、空格和下划线不敏感（"Top Left"、"top_left" 均可）。

    Args:
        name: 命名位置

    Returns:
        百分比位置，未知名称返回 None
    """
    key = "-".join(name.strip().lower().replace("_", " ").replace("-", " ").split())
    if key in _PLACEMENT_ALIASES:
        return NAMED_PLACEMENTS[_PLACEMENT_ALIASES[key]]
    try:
        return NAMED_PLACEMENTS[NamedPlacement(key)]
    except ValueError:
        return None


class PlacementSuggestion(BaseModel):
    """外部 AI 服务返回的位置建议."""

    logo_placement: str = Field(alias="logoPlacement")
    text_placement: str = Field(alias="textPlacement")
    reasoning: str = ""

    model_config = {"populate_by_name": True}


def apply_placement_suggestion(
    builder: "SceneBuilder",
    suggestion: PlacementSuggestion,
) -> bool:
    """把位置建议应用到场景构建器.

    无法识别的位置名称会被忽略。

    Returns:
        是否至少应用了一个位置
    """
    applied = False

    logo_position = placement_from_name(suggestion.logo_placement)
    if logo_position is not None:
        builder.set_logo_position(logo_position.x, logo_position.y)
        applied = True
    else:
        logger.warning(f"忽略无法识别的 Logo 位置: {suggestion.logo_placement}")

    text_position = placement_from_name(suggestion.text_placement)
    if text_position is not None:
        builder.set_text_position(text_position.x, text_position.y)
        applied = True
    else:
        logger.warning(f"忽略无法识别的文字位置: {suggestion.text_placement}")

    return applied


# ===================
# 字体选项
# ===================


class FontOption(NamedTuple):
    """编辑器字体选项."""

    label: str
    value: str
    is_headline: bool


FONT_OPTIONS: tuple[FontOption, ...] = (
    FontOption("Poppins", "Poppins", True),
    FontOption("PT Sans", "PT Sans", False),
    FontOption("Roboto", "Roboto", False),
    FontOption("Montserrat", "Montserrat", True),
    FontOption("Lora", "Lora", False),
    FontOption("Playfair Display", "Playfair Display", True),
)
