"""数据模型模块."""

from banner_studio.models.artifact import (
    ExportFormat,
    RenderedArtifact,
    SizeTier,
)
from banner_studio.models.banner_record import BannerRecord
from banner_studio.models.font_manifest import (
    DEFAULT_FONT_MANIFEST,
    FontManifest,
    FontSource,
)
from banner_studio.models.geometry import Rect, ResolvedGeometry, TextExtent
from banner_studio.models.presets import (
    BANNER_PRESETS,
    CUSTOM_PRESET,
    DEFAULT_PRESET,
    FONT_OPTIONS,
    NAMED_PLACEMENTS,
    NamedPlacement,
    PlacementSuggestion,
    apply_placement_suggestion,
    find_preset,
    placement_from_name,
    resolve_canvas,
)
from banner_studio.models.resources import InlinedFont, InlinedScene, ResourceFailure
from banner_studio.models.scene import (
    CanvasSpec,
    ImageRef,
    LogoLayer,
    PlacementPercent,
    Scene,
    SceneBuilder,
    ShadowEffect,
    StrokeEffect,
    TextEffects,
    TextLayer,
    TextStyle,
)

__all__ = [
    # 场景
    "CanvasSpec",
    "ImageRef",
    "LogoLayer",
    "PlacementPercent",
    "Scene",
    "SceneBuilder",
    "ShadowEffect",
    "StrokeEffect",
    "TextEffects",
    "TextLayer",
    "TextStyle",
    # 预设
    "BANNER_PRESETS",
    "CUSTOM_PRESET",
    "DEFAULT_PRESET",
    "FONT_OPTIONS",
    "NAMED_PLACEMENTS",
    "NamedPlacement",
    "PlacementSuggestion",
    "apply_placement_suggestion",
    "find_preset",
    "placement_from_name",
    "resolve_canvas",
    # 持久化
    "BannerRecord",
    # 字体
    "DEFAULT_FONT_MANIFEST",
    "FontManifest",
    "FontSource",
    # 布局与资源
    "Rect",
    "ResolvedGeometry",
    "TextExtent",
    "InlinedFont",
    "InlinedScene",
    "ResourceFailure",
    # 导出
    "ExportFormat",
    "RenderedArtifact",
    "SizeTier",
]
