"""核心业务逻辑模块."""

from banner_studio.core.config_manager import ConfigManager, get_config
from banner_studio.core.export_orchestrator import (
    ExportOrchestrator,
    ExportRequest,
    ProgressCallback,
    build_file_name,
    export_banner,
    snapshot_scene,
)
from banner_studio.core.layout_resolver import LayoutResolver, validate_scale

__all__ = [
    # 配置
    "ConfigManager",
    "get_config",
    # 布局
    "LayoutResolver",
    "validate_scale",
    # 导出
    "ExportOrchestrator",
    "ExportRequest",
    "ProgressCallback",
    "build_file_name",
    "export_banner",
    "snapshot_scene",
]
