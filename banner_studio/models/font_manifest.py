"""字体清单模型.

声明式列出字体族与其二进制文件地址，资源内联器据此下载并嵌入字体。
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field

_GOOGLE_FONTS_BASE = "https://raw.githubusercontent.com/google/fonts/main"


class FontSource(BaseModel):
    """字体文件来源.

    Attributes:
        locator: 字体文件地址（URL、file:// 地址或本地路径）
        media_type: 媒体类型
    """

    locator: str = Field(min_length=1, description="字体文件地址")
    media_type: str = Field(default="font/ttf", description="媒体类型")


class FontManifest(BaseModel):
    """字体清单（字体族 -> 文件来源）.

    查找时字体族名称大小写不敏感。
    """

    fonts: dict[str, FontSource] = Field(default_factory=dict)

    def lookup(self, family: str) -> Optional[FontSource]:
        """查找字体来源.

        Args:
            family: 字体族名称

        Returns:
            字体来源，未声明返回 None
        """
        source = self.fonts.get(family)
        if source is not None:
            return source
        wanted = family.strip().casefold()
        for name, candidate in self.fonts.items():
            if name.casefold() == wanted:
                return candidate
        return None

    def merged(self, other: "FontManifest") -> "FontManifest":
        """合并另一个清单，other 中的条目优先."""
        return FontManifest(fonts={**self.fonts, **other.fonts})

    def to_json(self, indent: int = 2) -> str:
        """序列化为JSON字符串."""
        return json.dumps(self.model_dump(), ensure_ascii=False, indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> "FontManifest":
        """从JSON字符串反序列化."""
        return cls.model_validate(json.loads(json_str))

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> "FontManifest":
        """从文件加载清单."""
        return cls.from_json(Path(file_path).read_text(encoding="utf-8"))


def _google_font(path: str) -> FontSource:
    return FontSource(locator=f"{_GOOGLE_FONTS_BASE}/{path}")


# 编辑器字体与模板字体
DEFAULT_FONT_MANIFEST = FontManifest(
    fonts={
        "Poppins": _google_font("ofl/poppins/Poppins-Bold.ttf"),
        "PT Sans": _google_font("ofl/ptsans/PT_Sans-Web-Bold.ttf"),
        "Roboto": _google_font("ofl/roboto/Roboto%5Bwdth,wght%5D.ttf"),
        "Montserrat": _google_font("ofl/montserrat/Montserrat%5Bwght%5D.ttf"),
        "Lora": _google_font("ofl/lora/Lora%5Bwght%5D.ttf"),
        "Playfair Display": _google_font("ofl/playfairdisplay/PlayfairDisplay%5Bwght%5D.ttf"),
        "Oswald": _google_font("ofl/oswald/Oswald%5Bwght%5D.ttf"),
        "Dancing Script": _google_font("ofl/dancingscript/DancingScript%5Bwght%5D.ttf"),
        "Bebas Neue": _google_font("ofl/bebasneue/BebasNeue-Regular.ttf"),
        "Raleway": _google_font("ofl/raleway/Raleway%5Bwght%5D.ttf"),
    }
)
