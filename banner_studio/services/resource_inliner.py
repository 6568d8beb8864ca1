"""资源内联服务.

导出前把场景中的所有外部资源（背景图、Logo、字体）下载并嵌入，
使渲染阶段完全不依赖网络。

Features:
    - http/https 通过 httpx 异步下载，本地路径和 file:// 在线程中读取
    - 所有资源并发获取，每个资源独立超时
    - 单个资源失败只记录警告，元素降级渲染
    - 取消等待中的任务会取消全部进行中的下载
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx

from banner_studio.models.app_settings import Settings
from banner_studio.models.font_manifest import DEFAULT_FONT_MANIFEST, FontManifest
from banner_studio.models.resources import InlinedFont, InlinedScene, ResourceFailure
from banner_studio.models.scene import ImageRef, Scene
from banner_studio.utils.error_handler import ErrorCollector
from banner_studio.utils.exceptions import ResourceFetchError, UpstreamTimeoutError
from banner_studio.utils.image_utils import parse_data_uri, sniff_image_media_type
from banner_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

# 获取结果：原始字节 + 声明的媒体类型
FetchResult = tuple[bytes, Optional[str]]


class ResourceInliner:
    """资源内联器.

    Example:
        >>> inliner = ResourceInliner(settings)
        >>> inlined = await inliner.inline(scene)
        >>> inlined.scene.background.is_inline
        True
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        manifest: Optional[FontManifest] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """初始化内联器.

        Args:
            settings: 应用设置
            manifest: 字体清单
            client: 外部提供的 HTTP 客户端（不会被关闭）
        """
        self.settings = settings or Settings()
        self.manifest = manifest if manifest is not None else DEFAULT_FONT_MANIFEST
        self._client = client

    @asynccontextmanager
    async def _http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        """获取 HTTP 客户端（未提供时为本次内联临时创建）."""
        if self._client is not None:
            yield self._client
            return

        async with httpx.AsyncClient(
            follow_redirects=True,
            headers={"User-Agent": self.settings.user_agent},
        ) as client:
            yield client

    # ===================
    # 内联入口
    # ===================

    async def inline(self, scene: Scene) -> InlinedScene:
        """内联场景中的全部资源.

        等待所有获取完成（成功或失败）后返回。

        Args:
            scene: 场景快照

        Returns:
            资源已内联的场景；失败的图片保留原始引用
        """
        collector = ErrorCollector()

        async with self._http_client() as client:
            background_task = self._inline_optional_image(
                "background", scene.background, client, collector
            )
            logo_task = self._inline_optional_image(
                "logo", scene.logo.image if scene.logo else None, client, collector
            )
            font_tasks = [
                self._inline_optional_font(family, client, collector)
                for family in sorted(scene.font_families())
            ]

            background, logo_image, *fonts = await asyncio.gather(
                background_task, logo_task, *font_tasks
            )

        update: dict[str, object] = {"background": background}
        if scene.logo is not None and logo_image is not None:
            update["logo"] = scene.logo.model_copy(update={"image": logo_image})
        inlined = scene.model_copy(update=update)

        failures = tuple(
            ResourceFailure(
                kind=context,
                locator=error.locator,
                reason=error.reason,
            )
            for error, context in collector.errors
        )

        if collector.has_errors:
            logger.info(f"资源内联部分失败\n{collector.summary}")
        else:
            logger.debug("资源内联完成")

        return InlinedScene(
            scene=inlined,
            fonts={font.family: font for font in fonts if font is not None},
            failures=failures,
        )

    async def _inline_optional_image(
        self,
        kind: str,
        ref: Optional[ImageRef],
        client: httpx.AsyncClient,
        collector: ErrorCollector,
    ) -> Optional[ImageRef]:
        if ref is None:
            return None
        try:
            return await self.inline_image(ref, client)
        except ResourceFetchError as e:
            collector.add(e, context=kind)
            return ref

    async def _inline_optional_font(
        self,
        family: str,
        client: httpx.AsyncClient,
        collector: ErrorCollector,
    ) -> Optional[InlinedFont]:
        try:
            return await self.inline_font(family, client)
        except ResourceFetchError as e:
            collector.add(e, context="font")
            return None

    # ===================
    # 单个资源
    # ===================

    async def inline_image(
        self,
        ref: ImageRef,
        client: Optional[httpx.AsyncClient] = None,
    ) -> ImageRef:
        """把图片引用转换为内联引用.

        Raises:
            ResourceFetchError: 获取失败或内容不是图片
        """
        if ref.is_inline:
            return ref

        locator = ref.url or ""
        data, declared = await self._fetch_with_timeout(locator, client)

        media_type = sniff_image_media_type(data)
        if media_type is None and declared and declared.startswith("image/"):
            media_type = declared
        if media_type is None:
            raise ResourceFetchError(locator, f"内容不是图片 ({declared or '未知类型'})")

        logger.debug(f"图片已内联: {locator} ({media_type}, {len(data)} bytes)")
        return ImageRef.from_bytes(data, media_type)

    async def inline_font(
        self,
        family: str,
        client: Optional[httpx.AsyncClient] = None,
    ) -> InlinedFont:
        """下载字体清单中声明的字体.

        Raises:
            ResourceFetchError: 清单中没有该字体或下载失败
        """
        source = self.manifest.lookup(family)
        if source is None:
            raise ResourceFetchError(family, "字体清单中未声明该字体")

        data, _ = await self._fetch_with_timeout(source.locator, client)
        logger.debug(f"字体已内联: {family} ({len(data)} bytes)")
        return InlinedFont(family=family, data=data, media_type=source.media_type)

    async def _fetch_with_timeout(
        self,
        locator: str,
        client: Optional[httpx.AsyncClient],
    ) -> FetchResult:
        timeout = self.settings.fetch_timeout
        try:
            if client is None:
                async with self._http_client() as own_client:
                    return await asyncio.wait_for(self.fetch(locator, own_client), timeout)
            return await asyncio.wait_for(self.fetch(locator, client), timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamTimeoutError(locator, timeout) from e

    # ===================
    # 获取
    # ===================

    async def fetch(self, locator: str, client: httpx.AsyncClient) -> FetchResult:
        """获取资源原始字节.

        Args:
            locator: data URI、http(s) 地址、file:// 地址或本地路径
            client: HTTP 客户端

        Returns:
            (字节数据, 声明的媒体类型)

        Raises:
            ResourceFetchError: 获取失败或地址无效
        """
        try:
            return await self._dispatch(locator, client)
        except (ValueError, httpx.InvalidURL) as e:
            raise ResourceFetchError(locator, f"无效的资源地址: {e}") from e

    async def _dispatch(self, locator: str, client: httpx.AsyncClient) -> FetchResult:
        if locator.startswith("data:"):
            try:
                media_type, data = parse_data_uri(locator)
            except ValueError as e:
                raise ResourceFetchError(locator[:48], str(e)) from e
            return data, media_type

        scheme = urlparse(locator).scheme.lower()
        if scheme in ("http", "https"):
            return await self._fetch_http(locator, client)
        if scheme == "file":
            path = Path(url2pathname(urlparse(locator).path))
            return await self._read_file(locator, path)
        # Windows 盘符会被解析成单字母 scheme
        if scheme and len(scheme) > 1:
            raise ResourceFetchError(locator, f"不支持的协议: {scheme}")
        return await self._read_file(locator, self._resolve_path(locator))

    async def _fetch_http(self, url: str, client: httpx.AsyncClient) -> FetchResult:
        limit = self.settings.max_resource_bytes
        try:
            async with client.stream("GET", url) as response:
                if response.status_code != 200:
                    raise ResourceFetchError(url, f"HTTP {response.status_code}")

                content_length = response.headers.get("content-length")
                if content_length and content_length.isdigit() and int(content_length) > limit:
                    raise ResourceFetchError(url, f"资源超过 {limit} 字节")

                chunks = []
                received = 0
                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if received > limit:
                        raise ResourceFetchError(url, f"资源超过 {limit} 字节")
                    chunks.append(chunk)

                content_type = response.headers.get("content-type")
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(url, self.settings.fetch_timeout) from e
        except httpx.HTTPError as e:
            raise ResourceFetchError(url, f"网络错误: {e}") from e

        media_type = content_type.split(";")[0].strip().lower() if content_type else None
        return b"".join(chunks), media_type or None

    def _resolve_path(self, locator: str) -> Path:
        """本地路径解析（站点根路径和相对路径基于 asset_dir）."""
        path = Path(locator).expanduser()
        asset_dir = self.settings.asset_dir
        if asset_dir is None:
            return path
        if not path.is_absolute():
            return asset_dir / path
        if not path.exists():
            return asset_dir / locator.lstrip("/\\")
        return path

    async def _read_file(self, locator: str, path: Path) -> FetchResult:
        limit = self.settings.max_resource_bytes

        def read() -> bytes:
            if path.stat().st_size > limit:
                raise ResourceFetchError(locator, f"资源超过 {limit} 字节")
            return path.read_bytes()

        try:
            data = await asyncio.to_thread(read)
        except OSError as e:
            raise ResourceFetchError(locator, f"无法读取文件: {e.strerror or e}") from e
        except ValueError as e:
            raise ResourceFetchError(locator, f"无效的文件路径: {e}") from e
        return data, None


async def inline_scene(
    scene: Scene,
    settings: Optional[Settings] = None,
    manifest: Optional[FontManifest] = None,
) -> InlinedScene:
    """内联场景资源的便捷函数."""
    return await ResourceInliner(settings, manifest).inline(scene)
