"""资源内联结果模型."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from banner_studio.models.scene import Scene

if TYPE_CHECKING:
    from banner_studio.services.fonts import FontBook


@dataclass(frozen=True)
class InlinedFont:
    """已嵌入的字体二进制."""

    family: str
    data: bytes
    media_type: str = "font/ttf"


@dataclass(frozen=True)
class ResourceFailure:
    """单个资源获取失败记录.

    Attributes:
        kind: 资源类型（background / logo / font）
        locator: 资源地址或字体族
        reason: 失败原因
    """

    kind: str
    locator: str
    reason: str

    def __str__(self) -> str:
        return f"{self.kind}: {self.locator} ({self.reason})"


@dataclass(frozen=True)
class InlinedScene:
    """资源已内联的场景.

    获取失败的图片保留原始远程引用，渲染时按缺失处理。
    """

    scene: Scene
    fonts: dict[str, InlinedFont] = field(default_factory=dict)
    failures: tuple[ResourceFailure, ...] = ()

    @property
    def has_failures(self) -> bool:
        """是否有资源获取失败."""
        return bool(self.failures)

    @property
    def warnings(self) -> list[str]:
        """失败记录的文字描述."""
        return [str(failure) for failure in self.failures]

    def font_book(self) -> "FontBook":
        """创建使用已嵌入字体的字体库."""
        from banner_studio.services.fonts import FontBook

        return FontBook(self.fonts.values())
