"""持久化横幅记录模型.

与存储文档结构一致（camelCase 字段），负责与场景模型互相转换。
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from banner_studio.models.presets import CUSTOM_PRESET, DEFAULT_PRESET, find_preset, resolve_canvas
from banner_studio.models.scene import (
    DEFAULT_EFFECT_COLOR,
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE_PX,
    DEFAULT_LOGO_POSITION,
    DEFAULT_LOGO_SIZE_PERCENT,
    DEFAULT_TEXT_COLOR,
    DEFAULT_TEXT_POSITION,
    CanvasSpec,
    ImageRef,
    LogoLayer,
    PlacementPercent,
    Scene,
    ShadowEffect,
    StrokeEffect,
    TextEffects,
    TextLayer,
    TextStyle,
)
from banner_studio.utils.exceptions import SceneError


class _RecordModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RecordPosition(_RecordModel):
    """百分比位置."""

    x: float
    y: float


class RecordDimensions(_RecordModel):
    """自定义画布尺寸."""

    width: int
    height: int


class RecordTextStyle(_RecordModel):
    """文字样式."""

    font: str = DEFAULT_FONT_FAMILY
    size: int = DEFAULT_FONT_SIZE_PX
    color: str = DEFAULT_TEXT_COLOR


class RecordShadow(_RecordModel):
    """阴影."""

    enabled: bool = True
    color: str = DEFAULT_EFFECT_COLOR
    offset_x: int = Field(default=2, alias="offsetX")
    offset_y: int = Field(default=2, alias="offsetY")
    blur: int = 4


class RecordStroke(_RecordModel):
    """描边."""

    enabled: bool = False
    color: str = DEFAULT_EFFECT_COLOR
    width: float = 1


class RecordTextEffects(_RecordModel):
    """文字效果."""

    shadow: RecordShadow = Field(default_factory=RecordShadow)
    stroke: RecordStroke = Field(default_factory=RecordStroke)


class BannerRecord(_RecordModel):
    """横幅存储记录.

    缺失字段使用编辑器默认值。

    Example:
        >>> record = BannerRecord.from_dict({"text": "SALE", "preset": "instagramPost"})
        >>> record.to_scene().canvas.size
        (1080, 1080)
    """

    banner_image: Optional[str] = Field(default=None, alias="bannerImage")
    logo_image: Optional[str] = Field(default=None, alias="logoImage")
    logo_position: RecordPosition = Field(
        default_factory=lambda: RecordPosition(x=DEFAULT_LOGO_POSITION[0], y=DEFAULT_LOGO_POSITION[1]),
        alias="logoPosition",
    )
    logo_size: float = Field(default=DEFAULT_LOGO_SIZE_PERCENT, alias="logoSize")
    text: str = ""
    text_position: RecordPosition = Field(
        default_factory=lambda: RecordPosition(x=DEFAULT_TEXT_POSITION[0], y=DEFAULT_TEXT_POSITION[1]),
        alias="textPosition",
    )
    text_style: RecordTextStyle = Field(default_factory=RecordTextStyle, alias="textStyle")
    text_effects: RecordTextEffects = Field(default_factory=RecordTextEffects, alias="textEffects")
    preset: str = DEFAULT_PRESET
    custom_dimensions: Optional[RecordDimensions] = Field(default=None, alias="customDimensions")
    user_id: Optional[str] = Field(default=None, alias="userId")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @classmethod
    def from_scene(
        cls,
        scene: Scene,
        preset: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> "BannerRecord":
        """从场景创建记录.

        Args:
            scene: 场景
            preset: 预设名称，None 时按画布尺寸推断
            user_id: 所属用户
        """
        preset = preset or find_preset(scene.canvas)
        custom = None
        if preset == CUSTOM_PRESET:
            custom = RecordDimensions(width=scene.canvas.width, height=scene.canvas.height)

        data: dict[str, Any] = {
            "banner_image": scene.background.locator if scene.background else None,
            "preset": preset,
            "custom_dimensions": custom,
            "user_id": user_id,
        }

        if scene.logo is not None:
            data["logo_image"] = scene.logo.image.locator
            data["logo_position"] = RecordPosition(x=scene.logo.position.x, y=scene.logo.position.y)
            data["logo_size"] = scene.logo.size_percent

        if scene.text is not None:
            text = scene.text
            data["text"] = text.content
            data["text_position"] = RecordPosition(x=text.position.x, y=text.position.y)
            data["text_style"] = RecordTextStyle(
                font=text.style.font_family,
                size=text.style.size_px,
                color=text.style.color_hex,
            )
            shadow = text.effects.shadow
            stroke = text.effects.stroke
            data["text_effects"] = RecordTextEffects(
                shadow=RecordShadow(
                    enabled=shadow.enabled,
                    color=shadow.color_hex,
                    offset_x=shadow.offset_x_px,
                    offset_y=shadow.offset_y_px,
                    blur=shadow.blur_px,
                ),
                stroke=RecordStroke(
                    enabled=stroke.enabled,
                    color=stroke.color_hex,
                    width=stroke.width_px,
                ),
            )

        return cls(**data)

    def canvas(self) -> CanvasSpec:
        """记录对应的画布尺寸."""
        custom = None
        if self.custom_dimensions is not None:
            custom = CanvasSpec(
                width=self.custom_dimensions.width,
                height=self.custom_dimensions.height,
            )
        return resolve_canvas(self.preset, custom)

    def to_scene(self) -> Scene:
        """转换为场景.

        Raises:
            SceneError: 记录中的数据无法构成有效场景
        """
        try:
            logo = None
            if self.logo_image:
                logo = LogoLayer(
                    image=ImageRef.model_validate(self.logo_image),
                    position=PlacementPercent(x=self.logo_position.x, y=self.logo_position.y),
                    size_percent=self.logo_size,
                )

            text = None
            if self.text:
                shadow = self.text_effects.shadow
                stroke = self.text_effects.stroke
                text = TextLayer(
                    content=self.text,
                    position=PlacementPercent(x=self.text_position.x, y=self.text_position.y),
                    style=TextStyle(
                        font_family=self.text_style.font,
                        size_px=self.text_style.size,
                        color_hex=self.text_style.color,
                    ),
                    effects=TextEffects(
                        shadow=ShadowEffect(
                            enabled=shadow.enabled,
                            color_hex=shadow.color,
                            offset_x_px=shadow.offset_x,
                            offset_y_px=shadow.offset_y,
                            blur_px=shadow.blur,
                        ),
                        stroke=StrokeEffect(
                            enabled=stroke.enabled,
                            color_hex=stroke.color,
                            width_px=stroke.width,
                        ),
                    ),
                )

            background = ImageRef.model_validate(self.banner_image) if self.banner_image else None
            return Scene(canvas=self.canvas(), background=background, logo=logo, text=text)
        except (ValidationError, ValueError) as e:
            raise SceneError(f"横幅记录无效: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        """转换为存储文档（camelCase 字段）."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BannerRecord":
        """从存储文档创建."""
        return cls.model_validate(data)
