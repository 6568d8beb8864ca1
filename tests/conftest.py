"""Pytest 配置和共享 fixtures."""

from __future__ import annotations

import io
import tempfile
from pathlib import Path
from typing import Callable, Generator, Optional

import httpx
import pytest
from PIL import Image, ImageFont

from banner_studio.models.app_settings import Settings
from banner_studio.models.font_manifest import FontManifest
from banner_studio.models.scene import (
    CanvasSpec,
    ImageRef,
    LogoLayer,
    PlacementPercent,
    Scene,
    TextLayer,
)


def make_png(
    size: tuple[int, int] = (100, 100),
    color: tuple[int, ...] = (255, 0, 0, 255),
    mode: str = "RGBA",
) -> bytes:
    """生成纯色 PNG 字节."""
    img = Image.new(mode, size, color)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def mock_client(
    routes: dict[str, httpx.Response],
    calls: Optional[list[str]] = None,
) -> httpx.AsyncClient:
    """创建使用 MockTransport 的 HTTP 客户端，未注册的地址返回 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if calls is not None:
            calls.append(url)
        response = routes.get(url)
        if response is None:
            return httpx.Response(404)
        return response

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """临时目录 fixture."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings() -> Settings:
    """测试用应用设置."""
    return Settings(
        fetch_timeout=2.0,
        jpeg_quality=0.95,
        render_text_without_background=False,
        font_manifest_path=None,
        asset_dir=None,
    )


@pytest.fixture
def empty_manifest() -> FontManifest:
    """空字体清单（全部使用回退字体）."""
    return FontManifest()


@pytest.fixture
def font_bytes() -> bytes:
    """Pillow 内置 TrueType 字体的字节数据."""
    font = ImageFont.load_default(size=12)
    return font.font_bytes


@pytest.fixture
def background_png() -> bytes:
    """蓝色背景图."""
    return make_png((1000, 400), (20, 60, 200, 255))


@pytest.fixture
def logo_png() -> bytes:
    """红色 Logo（宽图）."""
    return make_png((200, 100), (220, 30, 30, 255))


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    """PNG 生成函数."""
    return make_png


@pytest.fixture
def client_factory() -> Callable[..., httpx.AsyncClient]:
    """MockTransport HTTP 客户端工厂."""
    return mock_client


@pytest.fixture
def inline_scene(background_png: bytes, logo_png: bytes) -> Scene:
    """资源全部内联的 Facebook 封面场景."""
    return Scene(
        canvas=CanvasSpec(width=851, height=315),
        background=ImageRef.from_bytes(background_png, "image/png"),
        logo=LogoLayer(
            image=ImageRef.from_bytes(logo_png, "image/png"),
            position=PlacementPercent(x=15, y=15),
            size_percent=15,
        ),
        text=TextLayer(content="SALE"),
    )


@pytest.fixture
def remote_scene() -> Scene:
    """资源全部为远程地址的场景."""
    return Scene(
        canvas=CanvasSpec(width=851, height=315),
        background=ImageRef.from_url("https://cdn.example.com/bg.png"),
        logo=LogoLayer(image=ImageRef.from_url("https://cdn.example.com/logo.png")),
        text=TextLayer(content="Summer Sale"),
    )
