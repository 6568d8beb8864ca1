"""横幅合成与导出工具 - 命令行入口."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from banner_studio import __version__
from banner_studio.core.config_manager import get_config
from banner_studio.core.export_orchestrator import ExportOrchestrator, ExportRequest
from banner_studio.models.artifact import ExportFormat, RenderedArtifact, SizeTier
from banner_studio.models.banner_record import BannerRecord
from banner_studio.models.presets import BANNER_PRESETS, FONT_OPTIONS
from banner_studio.models.scene import Scene
from banner_studio.utils.error_handler import get_error_details, get_user_friendly_message
from banner_studio.utils.exceptions import AppException, SceneError
from banner_studio.utils.logger import set_log_level, setup_logger

logger = setup_logger(__name__)

_ALL_SIZES = "all"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="banner-studio",
        description="横幅合成与导出工具",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="输出调试日志")

    subparsers = parser.add_subparsers(dest="command", required=True)

    export_parser = subparsers.add_parser("export", help="导出横幅")
    export_parser.add_argument("scene", type=Path, help="场景 JSON 文件")
    export_parser.add_argument(
        "--record",
        action="store_true",
        help="输入文件为存储记录格式（camelCase 字段）",
    )
    export_parser.add_argument(
        "-f",
        "--format",
        choices=[fmt.value for fmt in ExportFormat],
        default=ExportFormat.PNG.value,
        help="导出格式",
    )
    export_parser.add_argument(
        "-s",
        "--size",
        choices=[tier.value for tier in SizeTier] + [_ALL_SIZES],
        default=SizeTier.MEDIUM.value,
        help="尺寸档位",
    )
    export_parser.add_argument(
        "--scale",
        type=float,
        default=None,
        help="任意输出比例（指定时忽略 --size）",
    )
    export_parser.add_argument(
        "--quality",
        type=float,
        default=None,
        help="JPEG 质量 (0-1)",
    )
    export_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("."),
        help="输出目录",
    )

    subparsers.add_parser("presets", help="列出画布预设与字体")

    return parser


def _load_scene(path: Path, is_record: bool) -> Scene:
    """加载场景文件."""
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SceneError(f"无法读取场景文件: {path} ({e})") from e

    try:
        if is_record:
            return BannerRecord.from_dict(json.loads(content)).to_scene()
        return Scene.from_json(content)
    except (ValidationError, json.JSONDecodeError) as e:
        raise SceneError(f"场景文件格式无效: {path} ({e})") from e


async def _run_export(args: argparse.Namespace) -> list[RenderedArtifact]:
    config = get_config()
    scene = _load_scene(args.scene, args.record)
    orchestrator = ExportOrchestrator(config.settings, config.font_manifest)

    if args.scale is not None:
        artifact = await orchestrator.export_scaled(
            scene, args.format, args.scale, quality=args.quality
        )
        return [artifact]

    if args.size == _ALL_SIZES:
        requests = [
            ExportRequest(ExportFormat.parse(args.format), tier) for tier in SizeTier
        ]
        return await orchestrator.export_many(scene, requests, quality=args.quality)

    artifact = await orchestrator.export(
        scene, args.format, args.size, quality=args.quality
    )
    return [artifact]


def _print_presets() -> None:
    print("画布预设:")
    for key, preset in BANNER_PRESETS.items():
        print(f"  {key:<16} {preset.name:<22} {preset.canvas.width}x{preset.canvas.height}")
    print("\n字体:")
    for option in FONT_OPTIONS:
        kind = "标题" if option.is_headline else "正文"
        print(f"  {option.label:<18} {kind}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """命令行主入口函数.

    Returns:
        退出码，0 表示正常退出
    """
    args = _build_parser().parse_args(argv)

    if args.command == "presets":
        _print_presets()
        return 0

    try:
        # 加载设置时会应用配置中的日志级别
        get_config().settings
        if args.verbose:
            set_log_level("DEBUG")

        artifacts = asyncio.run(_run_export(args))
        for artifact in artifacts:
            path = artifact.save(args.output)
            print(f"{path} ({artifact.width}x{artifact.height})")
            for warning in artifact.warnings:
                print(f"  警告: {warning}")
    except AppException as e:
        logger.error(f"导出失败: {e}")
        logger.debug(f"错误详情: {get_error_details(e)}")
        print(get_user_friendly_message(e), file=sys.stderr)
        return 1
    except OSError as e:
        logger.error(f"写入导出文件失败: {e}")
        print(f"写入导出文件失败: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
