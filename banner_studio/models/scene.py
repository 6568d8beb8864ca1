"""横幅场景数据模型.

描述一次横幅合成的全部声明式数据：画布、背景、Logo 和文字图层。

Features:
    - 不可变场景快照（导出流水线只消费快照）
    - 百分比中心锚点定位，自动钳制到 [0, 100]
    - 图片引用（远程地址或内联数据）
    - 可变的编辑器侧构建器 SceneBuilder
    - JSON 序列化/反序列化
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from PIL import ImageColor
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_serializer,
    model_validator,
)

from banner_studio.utils.image_utils import parse_data_uri, to_data_uri


# ===================
# 类型别名
# ===================

RGBAColor = tuple[int, int, int, int]


# ===================
# 常量定义
# ===================

# Logo 尺寸范围（画布宽度百分比）
MIN_LOGO_SIZE_PERCENT = 5.0
MAX_LOGO_SIZE_PERCENT = 50.0

# 字号范围（像素）
MIN_FONT_SIZE_PX = 10
MAX_FONT_SIZE_PX = 200

# 编辑器默认值
DEFAULT_LOGO_POSITION = (15.0, 15.0)
DEFAULT_LOGO_SIZE_PERCENT = 15.0
DEFAULT_TEXT_CONTENT = "Tu Texto Aquí"
DEFAULT_TEXT_POSITION = (50.0, 50.0)
DEFAULT_FONT_FAMILY = "Poppins"
DEFAULT_FONT_SIZE_PX = 48
DEFAULT_TEXT_COLOR = "#FFFFFF"
DEFAULT_EFFECT_COLOR = "#000000"


# ===================
# 辅助函数
# ===================


def validate_color_hex(value: str) -> str:
    """验证十六进制颜色值.

    支持 #RGB、#RGBA、#RRGGBB、#RRGGBBAA 格式。

    Args:
        value: 颜色字符串

    Returns:
        去除首尾空白后的颜色字符串

    Raises:
        ValueError: 颜色格式无效
    """
    value = value.strip()
    if not value.startswith("#"):
        raise ValueError(f"颜色必须是十六进制格式（#RRGGBB），实际: {value!r}")
    try:
        ImageColor.getrgb(value)
    except ValueError as e:
        raise ValueError(f"无效的颜色值: {value!r}") from e
    return value


def color_to_rgba(value: str) -> RGBAColor:
    """十六进制颜色转 RGBA 元组."""
    return ImageColor.getcolor(value, "RGBA")  # type: ignore[return-value]


class _FrozenModel(BaseModel):
    """不可变模型基类."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)


# ===================
# 画布与图片引用
# ===================


class CanvasSpec(_FrozenModel):
    """画布尺寸（像素）.

    Attributes:
        width: 宽度
        height: 高度
    """

    width: int = Field(gt=0, description="画布宽度")
    height: int = Field(gt=0, description="画布高度")

    @property
    def size(self) -> tuple[int, int]:
        """获取画布尺寸."""
        return (self.width, self.height)

    @property
    def aspect_ratio(self) -> float:
        """宽高比."""
        return self.width / self.height

    @property
    def is_landscape(self) -> bool:
        """是否为横向."""
        return self.width > self.height


class ImageRef(_FrozenModel):
    """图片引用.

    二选一：远程定位符（URL、file:// 地址或本地路径），或内联数据（字节 + 媒体类型）。
    解析为内联形式时总是生成新的实例，从不原地修改。

    Example:
        >>> ref = ImageRef.from_url("https://example.com/bg.jpg")
        >>> ref.is_inline
        False
        >>> ImageRef.from_bytes(b"...", "image/png").is_inline
        True
    """

    url: Optional[str] = Field(default=None, description="远程定位符")
    data: Optional[bytes] = Field(default=None, description="内联数据")
    media_type: Optional[str] = Field(default=None, description="内联数据的媒体类型")

    @model_validator(mode="before")
    @classmethod
    def coerce_locator(cls, value: Any) -> Any:
        """允许直接用字符串（URL 或 data URI）构造."""
        if isinstance(value, str):
            if value.startswith("data:"):
                media_type, data = parse_data_uri(value)
                return {"data": data, "media_type": media_type}
            return {"url": value}
        return value

    @model_validator(mode="after")
    def check_source(self) -> "ImageRef":
        if (self.url is None) == (self.data is None):
            raise ValueError("图片引用必须且只能指定 url 或 data 之一")
        if self.url is not None and not self.url.strip():
            raise ValueError("图片地址不能为空")
        if self.data is not None and not self.media_type:
            raise ValueError("内联图片必须声明媒体类型")
        return self

    @model_serializer
    def serialize_locator(self) -> str:
        return self.locator

    @property
    def is_inline(self) -> bool:
        """是否为内联数据."""
        return self.data is not None

    @property
    def locator(self) -> str:
        """字符串形式（URL 或 data URI），用于持久化."""
        if self.data is not None:
            return self.to_data_uri()
        return self.url or ""

    def to_data_uri(self) -> str:
        """转换为 data URI.

        Raises:
            ValueError: 远程引用尚未内联
        """
        if self.data is None or self.media_type is None:
            raise ValueError(f"图片尚未内联: {self.url}")
        return to_data_uri(self.data, self.media_type)

    def describe(self) -> str:
        """用于日志的简短描述."""
        if self.data is not None:
            return f"<inline {self.media_type}, {len(self.data)} bytes>"
        return self.url or ""

    @classmethod
    def from_url(cls, url: str) -> "ImageRef":
        """从远程定位符创建."""
        return cls(url=url)

    @classmethod
    def from_bytes(cls, data: bytes, media_type: str) -> "ImageRef":
        """从字节数据创建内联引用."""
        return cls(data=data, media_type=media_type)

    @classmethod
    def from_data_uri(cls, uri: str) -> "ImageRef":
        """从 data URI 创建内联引用."""
        media_type, data = parse_data_uri(uri)
        return cls(data=data, media_type=media_type)


# ===================
# 定位
# ===================


class PlacementPercent(_FrozenModel):
    """元素中心点位置（画布宽/高的百分比）.

    取值总是被钳制到 [0, 100]。锚点为元素中心，而不是左上角。

    Example:
        >>> PlacementPercent(x=150, y=-20)
        PlacementPercent(x=100.0, y=0.0)
    """

    x: float = Field(default=50.0, description="水平位置 (%)")
    y: float = Field(default=50.0, description="垂直位置 (%)")

    @field_validator("x", "y")
    @classmethod
    def clamp(cls, v: float) -> float:
        """钳制到 [0, 100]."""
        if math.isnan(v):
            raise ValueError("位置不能为 NaN")
        return max(0.0, min(100.0, v))

    @classmethod
    def from_named(cls, name: str) -> Optional["PlacementPercent"]:
        """从命名位置（如 top-left）转换，未知名称返回 None."""
        from banner_studio.models.presets import placement_from_name

        return placement_from_name(name)


# ===================
# Logo 图层
# ===================


class LogoLayer(_FrozenModel):
    """Logo 图层.

    Logo 区域视为正方形，边长 = 画布宽度 × size_percent / 100。

    Attributes:
        image: Logo 图片引用
        position: 中心点位置
        size_percent: 尺寸（画布宽度百分比，5-50）
    """

    image: ImageRef
    position: PlacementPercent = Field(
        default_factory=lambda: PlacementPercent(
            x=DEFAULT_LOGO_POSITION[0], y=DEFAULT_LOGO_POSITION[1]
        )
    )
    size_percent: float = Field(default=DEFAULT_LOGO_SIZE_PERCENT, description="Logo 尺寸 (%)")

    @field_validator("size_percent")
    @classmethod
    def clamp_size(cls, v: float) -> float:
        """钳制到 [5, 50]."""
        if math.isnan(v):
            raise ValueError("Logo 尺寸不能为 NaN")
        return max(MIN_LOGO_SIZE_PERCENT, min(MAX_LOGO_SIZE_PERCENT, v))

    def side_px(self, canvas: CanvasSpec) -> float:
        """Logo 边长（原生画布像素）."""
        return canvas.width * self.size_percent / 100


# ===================
# 文字图层
# ===================


class TextStyle(_FrozenModel):
    """文字样式."""

    font_family: str = Field(default=DEFAULT_FONT_FAMILY, min_length=1, description="字体")
    size_px: int = Field(
        default=DEFAULT_FONT_SIZE_PX,
        ge=MIN_FONT_SIZE_PX,
        le=MAX_FONT_SIZE_PX,
        description="字号",
    )
    color_hex: str = Field(default=DEFAULT_TEXT_COLOR, description="文字颜色")

    @field_validator("color_hex")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """验证颜色值."""
        return validate_color_hex(v)

    @property
    def rgba(self) -> RGBAColor:
        """RGBA 颜色."""
        return color_to_rgba(self.color_hex)


class ShadowEffect(_FrozenModel):
    """文字阴影（CSS text-shadow 语义）."""

    enabled: bool = True
    color_hex: str = DEFAULT_EFFECT_COLOR
    offset_x_px: int = 2
    offset_y_px: int = 2
    blur_px: int = Field(default=4, ge=0)

    @field_validator("color_hex")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """验证颜色值."""
        return validate_color_hex(v)

    @property
    def rgba(self) -> RGBAColor:
        """RGBA 颜色."""
        return color_to_rgba(self.color_hex)


class StrokeEffect(_FrozenModel):
    """文字描边（CSS -webkit-text-stroke 语义）."""

    enabled: bool = False
    color_hex: str = DEFAULT_EFFECT_COLOR
    width_px: float = Field(default=1.0, ge=0)

    @field_validator("color_hex")
    @classmethod
    def validate_color(cls, v: str) -> str:
        """验证颜色值."""
        return validate_color_hex(v)

    @property
    def rgba(self) -> RGBAColor:
        """RGBA 颜色."""
        return color_to_rgba(self.color_hex)


class TextEffects(_FrozenModel):
    """文字效果."""

    shadow: ShadowEffect = Field(default_factory=ShadowEffect)
    stroke: StrokeEffect = Field(default_factory=StrokeEffect)


class TextLayer(_FrozenModel):
    """文字图层.

    单行渲染，不自动换行；过长的文字会越出锚点区域。

    Attributes:
        content: 文字内容
        position: 中心点位置
        style: 文字样式
        effects: 阴影与描边
    """

    content: str = Field(default="", description="文字内容")
    position: PlacementPercent = Field(
        default_factory=lambda: PlacementPercent(
            x=DEFAULT_TEXT_POSITION[0], y=DEFAULT_TEXT_POSITION[1]
        )
    )
    style: TextStyle = Field(default_factory=TextStyle)
    effects: TextEffects = Field(default_factory=TextEffects)

    @property
    def has_content(self) -> bool:
        """是否有可渲染的文字."""
        return bool(self.content.strip())


# ===================
# 场景
# ===================


class Scene(_FrozenModel):
    """横幅场景（聚合根）.

    导出流水线把它当作不可变值处理，每次导出一个快照。

    Example:
        >>> scene = Scene(
        ...     canvas=CanvasSpec(width=851, height=315),
        ...     background=ImageRef.from_url("https://example.com/bg.jpg"),
        ...     text=TextLayer(content="SALE"),
        ... )
        >>> scene.has_background
        True
    """

    canvas: CanvasSpec
    background: Optional[ImageRef] = None
    logo: Optional[LogoLayer] = None
    text: Optional[TextLayer] = None

    @property
    def has_background(self) -> bool:
        """是否设置了背景图."""
        return self.background is not None

    @property
    def text_content(self) -> str:
        """文字内容（无文字图层时为空字符串）."""
        return self.text.content if self.text else ""

    def image_refs(self) -> Iterator[tuple[str, ImageRef]]:
        """遍历场景中的全部图片引用.

        Yields:
            (角色, 图片引用)，角色为 background 或 logo
        """
        if self.background is not None:
            yield "background", self.background
        if self.logo is not None:
            yield "logo", self.logo.image

    def font_families(self) -> set[str]:
        """场景中引用的字体."""
        if self.text is not None and self.text.has_content:
            return {self.text.style.font_family}
        return set()

    def to_json(self, indent: int = 2) -> str:
        """序列化为JSON字符串."""
        return json.dumps(self.model_dump(), ensure_ascii=False, indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> "Scene":
        """从JSON字符串反序列化."""
        return cls.model_validate(json.loads(json_str))

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> "Scene":
        """从文件加载场景."""
        return cls.from_json(Path(file_path).read_text(encoding="utf-8"))

    def save_to_file(self, file_path: Union[str, Path]) -> None:
        """保存场景到文件."""
        Path(file_path).write_text(self.to_json(), encoding="utf-8")


# ===================
# 场景构建器
# ===================


class SceneBuilder:
    """可变的场景构建器（编辑器侧持有）.

    编辑器持续修改构建器，导出时调用 snapshot() 生成不可变快照，
    流水线从不接触构建器本身。

    Example:
        >>> builder = SceneBuilder()
        >>> builder.set_text("SALE")
        >>> builder.set_text_position(150, -20)
        >>> builder.snapshot().text.position
        PlacementPercent(x=100.0, y=0.0)
    """

    def __init__(self, canvas: Optional[CanvasSpec] = None) -> None:
        """初始化构建器（默认 Facebook 封面尺寸与编辑器默认样式）."""
        from banner_studio.models.presets import DEFAULT_PRESET, resolve_canvas

        self.preset: str = DEFAULT_PRESET
        self.canvas: CanvasSpec = canvas or resolve_canvas(DEFAULT_PRESET)
        self.background: Optional[ImageRef] = None
        self.logo_image: Optional[ImageRef] = None
        self.logo_position = PlacementPercent(
            x=DEFAULT_LOGO_POSITION[0], y=DEFAULT_LOGO_POSITION[1]
        )
        self.logo_size_percent: float = DEFAULT_LOGO_SIZE_PERCENT
        self.text: str = DEFAULT_TEXT_CONTENT
        self.text_position = PlacementPercent(
            x=DEFAULT_TEXT_POSITION[0], y=DEFAULT_TEXT_POSITION[1]
        )
        self.text_style = TextStyle()
        self.text_effects = TextEffects()

    # --- 画布 ---

    def set_preset(self, preset: str, custom: Optional[CanvasSpec] = None) -> None:
        """切换画布预设（custom 使用自定义尺寸）."""
        from banner_studio.models.presets import resolve_canvas

        self.preset = preset
        self.canvas = resolve_canvas(preset, custom)

    def set_canvas(self, width: int, height: int) -> None:
        """设置自定义画布尺寸."""
        from banner_studio.models.presets import CUSTOM_PRESET

        self.preset = CUSTOM_PRESET
        self.canvas = CanvasSpec(width=width, height=height)

    # --- 图片 ---

    def set_background(self, image: Union[ImageRef, str, None]) -> None:
        """设置背景图."""
        self.background = _coerce_image(image)

    def set_logo(self, image: Union[ImageRef, str, None]) -> None:
        """设置 Logo 图片."""
        self.logo_image = _coerce_image(image)

    def set_logo_position(self, x: float, y: float) -> None:
        """设置 Logo 中心位置（百分比）."""
        self.logo_position = PlacementPercent(x=x, y=y)

    def set_logo_size(self, size_percent: float) -> None:
        """设置 Logo 尺寸（画布宽度百分比）."""
        self.logo_size_percent = max(
            MIN_LOGO_SIZE_PERCENT, min(MAX_LOGO_SIZE_PERCENT, size_percent)
        )

    # --- 文字 ---

    def set_text(self, content: str) -> None:
        """设置文字内容."""
        self.text = content

    def set_text_position(self, x: float, y: float) -> None:
        """设置文字中心位置（百分比）."""
        self.text_position = PlacementPercent(x=x, y=y)

    def set_text_style(self, **changes: Any) -> None:
        """更新文字样式（font_family / size_px / color_hex）."""
        self.text_style = TextStyle.model_validate({**self.text_style.model_dump(), **changes})

    def set_shadow(self, **changes: Any) -> None:
        """更新阴影效果."""
        shadow = ShadowEffect.model_validate({**self.text_effects.shadow.model_dump(), **changes})
        self.text_effects = self.text_effects.model_copy(update={"shadow": shadow})

    def set_stroke(self, **changes: Any) -> None:
        """更新描边效果."""
        stroke = StrokeEffect.model_validate({**self.text_effects.stroke.model_dump(), **changes})
        self.text_effects = self.text_effects.model_copy(update={"stroke": stroke})

    # --- 快照 ---

    def snapshot(self) -> Scene:
        """生成不可变场景快照."""
        logo = None
        if self.logo_image is not None:
            logo = LogoLayer(
                image=self.logo_image,
                position=self.logo_position,
                size_percent=self.logo_size_percent,
            )

        text = None
        if self.text:
            text = TextLayer(
                content=self.text,
                position=self.text_position,
                style=self.text_style,
                effects=self.text_effects,
            )

        return Scene(canvas=self.canvas, background=self.background, logo=logo, text=text)

    @classmethod
    def from_scene(cls, scene: Scene) -> "SceneBuilder":
        """从已有场景创建构建器（例如加载已保存的横幅）."""
        from banner_studio.models.presets import find_preset

        builder = cls(canvas=scene.canvas)
        builder.preset = find_preset(scene.canvas)
        builder.background = scene.background
        if scene.logo is not None:
            builder.logo_image = scene.logo.image
            builder.logo_position = scene.logo.position
            builder.logo_size_percent = scene.logo.size_percent
        else:
            builder.logo_image = None
        if scene.text is not None:
            builder.text = scene.text.content
            builder.text_position = scene.text.position
            builder.text_style = scene.text.style
            builder.text_effects = scene.text.effects
        else:
            builder.text = ""
        return builder


def _coerce_image(image: Union[ImageRef, str, None]) -> Optional[ImageRef]:
    if image is None or isinstance(image, ImageRef):
        return image
    return ImageRef.model_validate(image)
