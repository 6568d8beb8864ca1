"""导出编排器.

串联导出流水线：快照 -> 资源内联 -> 布局解析 -> 渲染 -> 编码。

Features:
    - 导出前先校验输出比例（失败时不做任何 I/O）
    - 每次导出使用场景快照，编辑器可以继续修改构建器
    - 渲染和编码在线程池中执行，不阻塞事件循环
    - 多个格式/尺寸并发导出，互不共享可变状态
    - 进度回调 (progress: int, message: str)
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import Callable, Iterable, NamedTuple, Optional, Union

import httpx

from banner_studio.core.layout_resolver import LayoutResolver, validate_scale
from banner_studio.models.app_settings import Settings
from banner_studio.models.artifact import ExportFormat, RenderedArtifact, SizeTier
from banner_studio.models.banner_record import BannerRecord
from banner_studio.models.font_manifest import FontManifest
from banner_studio.models.resources import InlinedScene
from banner_studio.models.scene import Scene, SceneBuilder
from banner_studio.services.banner_renderer import BannerRenderer
from banner_studio.services.encoder import BannerEncoder
from banner_studio.services.fonts import PillowTextMeasurer
from banner_studio.services.resource_inliner import ResourceInliner
from banner_studio.utils.constants import DEFAULT_FILE_NAME, FILE_NAME_TEXT_LENGTH
from banner_studio.utils.exceptions import RenderError
from banner_studio.utils.file_utils import sanitize_file_name
from banner_studio.utils.logger import setup_logger

logger = setup_logger(__name__)

# 进度回调类型
ProgressCallback = Callable[[int, str], None]

SceneSource = Union[Scene, SceneBuilder, BannerRecord]


class ExportRequest(NamedTuple):
    """一次导出请求（格式 + 尺寸档位）."""

    format: ExportFormat
    size: SizeTier


def build_file_name(text: str, label: str, fmt: ExportFormat) -> str:
    """生成建议文件名.

    取文字前 20 个字符，去掉文件名非法字符，为空时使用 banner。

    Example:
        >>> build_file_name("Summer Sale", "medium", ExportFormat.PNG)
        'Summer Sale-medium.png'
    """
    stem = sanitize_file_name(text[:FILE_NAME_TEXT_LENGTH]) or DEFAULT_FILE_NAME
    return f"{stem}-{label}.{fmt.extension}"


def snapshot_scene(source: SceneSource) -> Scene:
    """获取不可变场景快照."""
    if isinstance(source, SceneBuilder):
        return source.snapshot()
    if isinstance(source, BannerRecord):
        return source.to_scene()
    return source


class ExportOrchestrator:
    """导出编排器.

    Example:
        >>> orchestrator = ExportOrchestrator()
        >>> artifact = await orchestrator.export(scene, ExportFormat.PNG, SizeTier.MEDIUM)
        >>> artifact.suggested_file_name
        'SALE-medium.png'
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        manifest: Optional[FontManifest] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """初始化编排器.

        Args:
            settings: 应用设置
            manifest: 字体清单
            client: HTTP 客户端（用于注入测试传输层或共享连接池）
        """
        self.settings = settings or Settings()
        self.inliner = ResourceInliner(self.settings, manifest, client)
        self.renderer = BannerRenderer(self.settings)
        self.encoder = BannerEncoder(self.settings)

    async def export(
        self,
        scene: SceneSource,
        fmt: Union[ExportFormat, str] = ExportFormat.PNG,
        size: Union[SizeTier, str] = SizeTier.MEDIUM,
        quality: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> RenderedArtifact:
        """按尺寸档位导出.

        Args:
            scene: 场景、构建器或存储记录
            fmt: 导出格式
            size: 尺寸档位
            quality: JPEG 质量 (0-1)
            on_progress: 进度回调函数

        Returns:
            导出产物

        Raises:
            InvalidScaleError: 输出比例无效
            RenderError: 渲染失败
            EncodeError: 编码失败
        """
        snapshot = snapshot_scene(scene)
        tier = SizeTier(size)
        return await self.export_scaled(
            snapshot,
            fmt,
            tier.scale_for(snapshot.canvas.width),
            label=tier.value,
            quality=quality,
            on_progress=on_progress,
        )

    async def export_scaled(
        self,
        scene: SceneSource,
        fmt: Union[ExportFormat, str],
        output_scale: float,
        label: Optional[str] = None,
        quality: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> RenderedArtifact:
        """按任意输出比例导出.

        Args:
            scene: 场景、构建器或存储记录
            fmt: 导出格式
            output_scale: 输出比例（输出像素 / 画布像素）
            label: 文件名中的尺寸标签，默认为比例（如 2x）
            quality: JPEG 质量 (0-1)
            on_progress: 进度回调函数

        Returns:
            导出产物
        """
        def report_progress(progress: int, message: str) -> None:
            if on_progress:
                on_progress(progress, message)
            logger.debug(f"进度 {progress}%: {message}")

        # Step 1: 校验参数 (5%)
        report_progress(5, "校验导出参数")
        scale = validate_scale(output_scale)
        fmt = ExportFormat.parse(fmt)
        snapshot = snapshot_scene(scene)
        label = label or f"{scale:g}x"

        logger.info(f"开始导出: {fmt.value}, {label}, scale={scale:.4f}")

        # Step 2: 内联资源 (10% -> 50%)
        report_progress(10, "加载图片和字体")
        inlined = await self.inliner.inline(snapshot)
        if inlined.has_failures:
            report_progress(50, f"{len(inlined.failures)} 个资源加载失败，降级渲染")
        else:
            report_progress(50, "资源加载完成")

        # Step 3-5: 布局、渲染、编码 (60% -> 100%)
        artifact = await self._produce(inlined, fmt, scale, label, quality, report_progress)

        report_progress(100, "完成")
        logger.info(
            f"导出完成: {artifact.suggested_file_name} "
            f"({artifact.width}x{artifact.height}, {artifact.size_bytes} bytes)"
        )
        return artifact

    async def export_many(
        self,
        scene: SceneSource,
        requests: Iterable[Union[ExportRequest, tuple[str, str]]],
        quality: Optional[float] = None,
    ) -> list[RenderedArtifact]:
        """并发导出多个格式/尺寸.

        资源只内联一次，之后每个请求独立布局、渲染和编码。

        Args:
            scene: 场景、构建器或存储记录
            requests: (格式, 尺寸档位) 列表
            quality: JPEG 质量 (0-1)

        Returns:
            与请求顺序一致的导出产物
        """
        snapshot = snapshot_scene(scene)
        jobs = []
        for fmt, size in requests:
            tier = SizeTier(size)
            scale = validate_scale(tier.scale_for(snapshot.canvas.width))
            jobs.append((ExportFormat.parse(fmt), scale, tier.value))

        if not jobs:
            return []

        logger.info(f"开始批量导出: {len(jobs)} 个文件")
        inlined = await self.inliner.inline(snapshot)

        return list(
            await asyncio.gather(
                *(
                    self._produce(inlined, fmt, scale, label, quality)
                    for fmt, scale, label in jobs
                )
            )
        )

    async def _produce(
        self,
        inlined: InlinedScene,
        fmt: ExportFormat,
        scale: float,
        label: str,
        quality: Optional[float],
        report_progress: Optional[ProgressCallback] = None,
    ) -> RenderedArtifact:
        """布局、渲染并编码一个输出."""
        def report(progress: int, message: str) -> None:
            if report_progress:
                report_progress(progress, message)

        loop = asyncio.get_running_loop()
        font_book = inlined.font_book()

        report(60, "计算布局")
        geometry = LayoutResolver(PillowTextMeasurer(font_book)).resolve(inlined.scene, scale)

        report(70, "渲染横幅")
        warnings = list(inlined.warnings)
        try:
            image = await loop.run_in_executor(
                None,
                partial(self.renderer.render, inlined, geometry, warnings, font_book),
            )
        except (OSError, ValueError) as e:
            logger.exception("渲染横幅失败")
            raise RenderError(f"渲染横幅失败: {e}") from e

        report(90, "编码文件")
        file_name = build_file_name(inlined.scene.text_content, label, fmt)
        return await loop.run_in_executor(
            None,
            partial(
                self.encoder.encode,
                image,
                fmt,
                quality,
                file_name,
                tuple(warnings),
            ),
        )


def export_banner(
    scene: SceneSource,
    fmt: Union[ExportFormat, str] = ExportFormat.PNG,
    size: Union[SizeTier, str] = SizeTier.MEDIUM,
    settings: Optional[Settings] = None,
    manifest: Optional[FontManifest] = None,
) -> RenderedArtifact:
    """同步导出横幅的便捷函数."""
    orchestrator = ExportOrchestrator(settings, manifest)
    return asyncio.run(orchestrator.export(scene, fmt, size))
