"""字体管理单元测试."""

from __future__ import annotations

import pytest
from PIL import ImageFont

from banner_studio.models.font_manifest import DEFAULT_FONT_MANIFEST, FontManifest, FontSource
from banner_studio.models.resources import InlinedFont
from banner_studio.services.fonts import FontBook, PillowTextMeasurer, find_font


# ===================
# 系统字体查找
# ===================
class TestFindFont:
    """测试系统字体查找."""

    def test_unknown_font_falls_back(self) -> None:
        """测试找不到的字体返回默认字体."""
        font = find_font("No Such Font Family", 24)
        assert font is not None
        assert font.getlength("abc") > 0

    def test_empty_family(self) -> None:
        """测试未指定字体."""
        assert find_font(None, 24) is not None


# ===================
# FontBook
# ===================
class TestFontBook:
    """测试内嵌字体库."""

    def test_loads_inlined_font(self, font_bytes: bytes) -> None:
        """测试加载内嵌字体."""
        book = FontBook([InlinedFont("Brand", font_bytes)])
        font = book.get_font("Brand", 32)
        assert isinstance(font, ImageFont.FreeTypeFont)
        assert font.size == 32
        assert book.has_family("brand")

    def test_cache_by_family_and_size(self, font_bytes: bytes) -> None:
        """测试按字体族和字号缓存."""
        book = FontBook([InlinedFont("Brand", font_bytes)])
        assert book.get_font("Brand", 20) is book.get_font("brand", 20.2)
        assert book.get_font("Brand", 20) is not book.get_font("Brand", 40)

    def test_missing_family_falls_back(self) -> None:
        """测试缺失字体不抛出异常."""
        font = FontBook().get_font("Poppins", 48)
        assert font.getlength("Hello") > 0

    def test_corrupt_font_falls_back(self) -> None:
        """测试损坏的字体数据回退到系统字体."""
        book = FontBook([InlinedFont("Broken", b"not a font")])
        font = book.get_font("Broken", 24)
        assert font.getlength("x") > 0

    def test_minimum_size(self) -> None:
        """测试字号至少为 1."""
        assert FontBook().get_font("Poppins", 0.2) is not None


class TestPillowTextMeasurer:
    """测试文字测量."""

    def test_width_grows_with_text(self, font_bytes: bytes) -> None:
        """测试文字越长越宽."""
        measurer = PillowTextMeasurer(FontBook([InlinedFont("Brand", font_bytes)]))
        short = measurer.measure("Hi", "Brand", 40)
        long = measurer.measure("Hello world", "Brand", 40)
        assert long.width > short.width > 0

    def test_height_uses_line_height(self, font_bytes: bytes) -> None:
        """测试高度为字号 × 1.2."""
        measurer = PillowTextMeasurer(FontBook([InlinedFont("Brand", font_bytes)]))
        assert measurer.measure("Hi", "Brand", 50).height == pytest.approx(60)

    def test_matches_font_book_metrics(self, font_bytes: bytes) -> None:
        """测试与字体库度量一致."""
        book = FontBook([InlinedFont("Brand", font_bytes)])
        measurer = PillowTextMeasurer(book)
        assert measurer.measure("SALE", "Brand", 48).width == pytest.approx(
            book.get_font("Brand", 48).getlength("SALE")
        )


# ===================
# 字体清单
# ===================
class TestFontManifest:
    """测试字体清单."""

    def test_default_manifest_covers_editor_fonts(self) -> None:
        """测试内置清单包含编辑器字体."""
        for family in ("Poppins", "PT Sans", "Roboto", "Montserrat", "Lora", "Playfair Display"):
            assert DEFAULT_FONT_MANIFEST.lookup(family) is not None

    def test_lookup_case_insensitive(self) -> None:
        """测试查找大小写不敏感."""
        assert DEFAULT_FONT_MANIFEST.lookup("playfair display") is not None
        assert DEFAULT_FONT_MANIFEST.lookup("Comic Sans") is None

    def test_json_and_merge(self, temp_dir) -> None:
        """测试文件加载与合并."""
        manifest = FontManifest(fonts={"Brand": FontSource(locator="/fonts/brand.ttf")})
        path = temp_dir / "fonts.json"
        path.write_text(manifest.to_json(), encoding="utf-8")

        loaded = FontManifest.from_file(path)
        assert loaded == manifest

        merged = DEFAULT_FONT_MANIFEST.merged(loaded)
        assert merged.lookup("brand") == FontSource(locator="/fonts/brand.ttf")
        assert merged.lookup("Poppins") is not None
