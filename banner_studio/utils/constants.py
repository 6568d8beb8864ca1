"""应用常量定义."""

import os
from pathlib import Path

# ===================
# 应用信息
# ===================
APP_NAME = "Banner Studio"
APP_VERSION = "1.0.0"

# ===================
# 路径常量
# ===================
# 应用数据目录（可通过 BANNER_STUDIO_HOME 覆盖）
APP_DATA_DIR = Path(
    os.environ.get("BANNER_STUDIO_HOME", str(Path.home() / ".banner-studio"))
).expanduser()

# 日志目录
LOG_DIR = APP_DATA_DIR / "logs"

# 字体清单文件
FONT_MANIFEST_FILE = APP_DATA_DIR / "fonts.json"

# ===================
# 导出常量
# ===================
# 尺寸档位 -> 目标输出宽度（像素）
SIZE_TIER_WIDTHS = {
    "small": 600,
    "medium": 1080,
    "large": 1920,
}

# JPEG 默认质量 (0-1)
DEFAULT_JPEG_QUALITY = 0.95

# 导出背景色（JPEG 不支持透明）
EXPORT_BACKGROUND_COLOR = (255, 255, 255)

# 文件名中保留的文字长度
FILE_NAME_TEXT_LENGTH = 20
DEFAULT_FILE_NAME = "banner"

# PDF 单位换算（1px = 72/96 pt）
PDF_POINTS_PER_PIXEL = 72 / 96

# ===================
# 资源内联常量
# ===================
# 单个资源获取超时（秒）
DEFAULT_FETCH_TIMEOUT = 5.0

# 单个资源最大字节数 (25MB)
MAX_RESOURCE_BYTES = 25 * 1024 * 1024

DEFAULT_USER_AGENT = f"{APP_NAME}/{APP_VERSION}"

# ===================
# 排版常量
# ===================
# 文字容器内边距（像素）
TEXT_PADDING_PX = 8

# 文字行高倍数
TEXT_LINE_HEIGHT = 1.2

# 占位背景棋盘格尺寸（像素，按输出比例缩放）
PLACEHOLDER_CELL_PX = 16
PLACEHOLDER_COLORS = ((236, 236, 240), (224, 224, 230))
