"""文件工具函数模块."""

from __future__ import annotations

import re
from pathlib import Path

# 文件名中不允许的字符（兼容 Windows）
_INVALID_FILE_NAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def ensure_directory(path: Path) -> Path:
    """确保目录存在.

    Args:
        path: 目录路径

    Returns:
        目录路径
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def sanitize_file_name(name: str) -> str:
    """清理文件名中的非法字符.

    换行等控制字符和路径分隔符会被移除，首尾空白与点号会被去掉。

    Args:
        name: 原始文件名

    Returns:
        清理后的文件名，可能为空字符串
    """
    cleaned = _INVALID_FILE_NAME_CHARS.sub("", name)
    return cleaned.strip().strip(".")
