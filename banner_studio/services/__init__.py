"""服务层模块."""

from banner_studio.services.banner_renderer import BannerRenderer
from banner_studio.services.encoder import BannerEncoder
from banner_studio.services.fonts import FontBook, PillowTextMeasurer, TextMeasurer, find_font
from banner_studio.services.resource_inliner import ResourceInliner, inline_scene

__all__ = [
    "BannerEncoder",
    "BannerRenderer",
    "FontBook",
    "PillowTextMeasurer",
    "ResourceInliner",
    "TextMeasurer",
    "find_font",
    "inline_scene",
]
