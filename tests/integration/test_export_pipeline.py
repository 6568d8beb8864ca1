"""导出流水线集成测试.

测试从场景到文件字节的完整流程。
"""

from __future__ import annotations

import io
import re

import httpx
import pytest
from PIL import Image

from banner_studio.core.export_orchestrator import ExportOrchestrator
from banner_studio.models.app_settings import Settings
from banner_studio.models.artifact import ExportFormat, SizeTier
from banner_studio.models.font_manifest import FontManifest, FontSource
from banner_studio.models.presets import BANNER_PRESETS
from banner_studio.models.scene import (
    CanvasSpec,
    ImageRef,
    LogoLayer,
    PlacementPercent,
    Scene,
    TextLayer,
)

pytestmark = pytest.mark.integration

BG_URL = "https://cdn.example.com/bg.png"
LOGO_URL = "https://cdn.example.com/logo.png"
RED = (220, 30, 30, 255)
BLUE = (20, 60, 200, 255)


def decode(data: bytes) -> Image.Image:
    return Image.open(io.BytesIO(data)).convert("RGBA")


class TestDeterminism:
    """测试导出结果可复现."""

    @pytest.mark.asyncio
    async def test_png_idempotent(
        self, settings: Settings, empty_manifest: FontManifest, inline_scene: Scene
    ) -> None:
        """测试同一场景两次导出字节一致."""
        orchestrator = ExportOrchestrator(settings, empty_manifest)
        first = await orchestrator.export(inline_scene, ExportFormat.PNG, SizeTier.MEDIUM)
        second = await orchestrator.export(inline_scene, ExportFormat.PNG, SizeTier.MEDIUM)
        assert first.data == second.data

    @pytest.mark.asyncio
    async def test_pdf_idempotent(
        self, settings: Settings, empty_manifest: FontManifest, inline_scene: Scene
    ) -> None:
        """测试 PDF 两次导出字节一致."""
        orchestrator = ExportOrchestrator(settings, empty_manifest)
        first = await orchestrator.export(inline_scene, ExportFormat.PDF, SizeTier.SMALL)
        second = await orchestrator.export(inline_scene, ExportFormat.PDF, SizeTier.SMALL)
        assert first.data == second.data


class TestDimensions:
    """测试输出尺寸."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("preset", sorted(BANNER_PRESETS))
    @pytest.mark.parametrize("tier", list(SizeTier))
    async def test_tier_sizes(
        self,
        settings: Settings,
        empty_manifest: FontManifest,
        background_png: bytes,
        preset: str,
        tier: SizeTier,
    ) -> None:
        """测试各预设在各档位的输出尺寸."""
        canvas = BANNER_PRESETS[preset].canvas
        scene = Scene(canvas=canvas, background=ImageRef.from_bytes(background_png, "image/png"))
        artifact = await ExportOrchestrator(settings, empty_manifest).export(scene, "png", tier)

        scale = tier.target_width / canvas.width
        expected = (round(canvas.width * scale), round(canvas.height * scale))
        assert decode(artifact.data).size == expected
        assert expected[0] == tier.target_width

    @pytest.mark.asyncio
    async def test_facebook_medium_logo_center(
        self, settings: Settings, empty_manifest: FontManifest, inline_scene: Scene
    ) -> None:
        """测试 Facebook 封面中尺寸导出的 Logo 位置."""
        artifact = await ExportOrchestrator(settings, empty_manifest).export(
            inline_scene, ExportFormat.PNG, SizeTier.MEDIUM
        )
        image = decode(artifact.data)
        assert image.size == (1080, 400)
        assert image.getpixel((162, 60)) == RED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tier", list(SizeTier))
    async def test_logo_scales_linearly(
        self,
        settings: Settings,
        empty_manifest: FontManifest,
        inline_scene: Scene,
        tier: SizeTier,
    ) -> None:
        """测试 Logo 中心随输出比例线性缩放."""
        artifact = await ExportOrchestrator(settings, empty_manifest).export(
            inline_scene, ExportFormat.PNG, tier
        )
        scale = tier.target_width / 851
        center = (round(0.15 * 851 * scale), round(0.15 * 315 * scale))
        assert decode(artifact.data).getpixel(center) == RED

    @pytest.mark.asyncio
    async def test_pdf_orientation(
        self, settings: Settings, empty_manifest: FontManifest, background_png: bytes
    ) -> None:
        """测试 PDF 页面方向跟随画布."""
        story = Scene(
            canvas=BANNER_PRESETS["instagramStory"].canvas,
            background=ImageRef.from_bytes(background_png, "image/png"),
        )
        artifact = await ExportOrchestrator(settings, empty_manifest).export(
            story, ExportFormat.PDF, SizeTier.SMALL
        )
        match = re.search(rb"/MediaBox \[\s*0 0 ([\d.]+) ([\d.]+)\s*\]", artifact.data)
        assert match is not None
        width, height = float(match.group(1)), float(match.group(2))
        assert (width, height) == pytest.approx((450, 800.25))


class TestClamping:
    """测试越界参数被钳制."""

    @pytest.mark.asyncio
    async def test_oversized_logo_matches_max(
        self, settings: Settings, empty_manifest: FontManifest, inline_scene: Scene
    ) -> None:
        """测试超出上限的 Logo 尺寸与上限渲染一致."""
        assert inline_scene.logo is not None
        oversized = inline_scene.model_copy(
            update={"logo": LogoLayer(image=inline_scene.logo.image, size_percent=80)}
        )
        maximum = inline_scene.model_copy(
            update={"logo": LogoLayer(image=inline_scene.logo.image, size_percent=50)}
        )
        orchestrator = ExportOrchestrator(settings, empty_manifest)
        first = await orchestrator.export(oversized, ExportFormat.PNG, SizeTier.SMALL)
        second = await orchestrator.export(maximum, ExportFormat.PNG, SizeTier.SMALL)
        assert first.data == second.data

    @pytest.mark.asyncio
    async def test_out_of_range_position(
        self, settings: Settings, empty_manifest: FontManifest, inline_scene: Scene
    ) -> None:
        """测试越界位置钳制到画布边缘."""
        text = TextLayer(content="EDGE", position=PlacementPercent(x=150, y=-20))
        edge = TextLayer(content="EDGE", position=PlacementPercent(x=100, y=0))
        orchestrator = ExportOrchestrator(settings, empty_manifest)
        first = await orchestrator.export(
            inline_scene.model_copy(update={"text": text}), ExportFormat.PNG, SizeTier.SMALL
        )
        second = await orchestrator.export(
            inline_scene.model_copy(update={"text": edge}), ExportFormat.PNG, SizeTier.SMALL
        )
        assert first.data == second.data


class TestDegradedResources:
    """测试资源失败时降级导出."""

    @pytest.mark.asyncio
    async def test_unreachable_background(
        self,
        settings: Settings,
        empty_manifest: FontManifest,
        remote_scene: Scene,
        logo_png: bytes,
        client_factory,
    ) -> None:
        """测试背景不可达时使用占位背景并返回警告."""
        routes = {
            BG_URL: httpx.Response(503),
            LOGO_URL: httpx.Response(200, content=logo_png),
        }
        async with client_factory(routes) as client:
            orchestrator = ExportOrchestrator(settings, empty_manifest, client)
            artifact = await orchestrator.export(remote_scene, ExportFormat.PNG, SizeTier.SMALL)

        image = decode(artifact.data)
        assert image.size == (600, 222)
        assert image.getpixel((599, 221)) in ((224, 224, 230, 255), (236, 236, 240, 255))
        assert any(w.startswith("background:") and "503" in w for w in artifact.warnings)

    @pytest.mark.asyncio
    async def test_everything_unreachable(
        self, settings: Settings, remote_scene: Scene, client_factory
    ) -> None:
        """测试全部资源失败仍生成有效文件."""
        manifest = FontManifest(fonts={"Poppins": FontSource(locator="https://fonts.example.com/p.ttf")})
        async with client_factory({}) as client:
            orchestrator = ExportOrchestrator(settings, manifest, client)
            artifact = await orchestrator.export(remote_scene, ExportFormat.JPEG, SizeTier.SMALL)

        assert decode(artifact.data).size == (600, 222)
        kinds = sorted(w.split(":")[0] for w in artifact.warnings)
        assert kinds == ["background", "font", "logo"]

    @pytest.mark.asyncio
    async def test_remote_font_used(
        self,
        settings: Settings,
        remote_scene: Scene,
        background_png: bytes,
        logo_png: bytes,
        font_bytes: bytes,
        client_factory,
    ) -> None:
        """测试清单字体被下载并嵌入."""
        font_url = "https://fonts.example.com/poppins.ttf"
        manifest = FontManifest(fonts={"Poppins": FontSource(locator=font_url)})
        routes = {
            BG_URL: httpx.Response(200, content=background_png),
            LOGO_URL: httpx.Response(200, content=logo_png),
            font_url: httpx.Response(200, content=font_bytes),
        }
        async with client_factory(routes) as client:
            orchestrator = ExportOrchestrator(settings, manifest, client)
            artifact = await orchestrator.export(remote_scene, ExportFormat.PNG, SizeTier.SMALL)

        assert artifact.warnings == ()
        assert artifact.suggested_file_name == "Summer Sale-small.png"


class TestSavedArtifact:
    """测试产物写入磁盘."""

    @pytest.mark.asyncio
    async def test_save(
        self, settings: Settings, empty_manifest: FontManifest, inline_scene: Scene, temp_dir
    ) -> None:
        """测试保存到目录."""
        artifact = await ExportOrchestrator(settings, empty_manifest).export(
            inline_scene, ExportFormat.JPEG, SizeTier.SMALL
        )
        path = artifact.save(temp_dir / "out")
        assert path.name == "SALE-small.jpg"
        assert path.read_bytes() == artifact.data
        assert Image.open(path).size == (600, 222)


class TestLogoOnly:
    """测试只有 Logo 的场景."""

    @pytest.mark.asyncio
    async def test_logo_on_placeholder(
        self, settings: Settings, empty_manifest: FontManifest, logo_png: bytes
    ) -> None:
        """测试无背景时 Logo 画在占位背景上."""
        scene = Scene(
            canvas=CanvasSpec(width=600, height=600),
            logo=LogoLayer(
                image=ImageRef.from_bytes(logo_png, "image/png"),
                position=PlacementPercent(x=50, y=50),
                size_percent=20,
            ),
        )
        artifact = await ExportOrchestrator(settings, empty_manifest).export(
            scene, ExportFormat.PNG, SizeTier.SMALL
        )
        image = decode(artifact.data)
        assert image.getpixel((300, 300)) == RED
        assert image.getpixel((5, 5)) != BLUE
