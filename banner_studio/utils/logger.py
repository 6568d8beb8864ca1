"""日志工具模块.

Features:
    - 所有模块挂在 banner_studio 包日志记录器下，不修改宿主应用的根日志记录器
    - 终端中彩色输出，重定向时输出纯文本
    - 导出日志与错误日志分别轮转
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from banner_studio.utils.constants import LOG_DIR

PACKAGE_LOGGER = "banner_studio"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10MB
LOG_FILE_BACKUP_COUNT = 5

_log_level: int = logging.INFO
_configured: bool = False


class ColoredFormatter(logging.Formatter):
    """彩色日志格式化器（只给级别名上色）."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # 文件处理器共享同一条记录，上色前先复制
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelno, "")
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(_log_level)
    if sys.stderr.isatty():
        handler.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def _file_handler(file_name: str, level: int) -> logging.Handler:
    handler = RotatingFileHandler(
        LOG_DIR / file_name,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def _configure_package_logger() -> None:
    """为 banner_studio 包日志记录器安装处理器（只执行一次）."""
    global _configured
    if _configured:
        return
    _configured = True

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(_log_level)
    package_logger.propagate = False
    package_logger.addHandler(_console_handler())

    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        package_logger.warning(f"无法创建日志目录 {LOG_DIR}，仅输出到控制台: {e}")
        return

    package_logger.addHandler(_file_handler("banner-studio.log", _log_level))
    package_logger.addHandler(_file_handler("error.log", logging.ERROR))


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """获取模块日志记录器.

    Args:
        name: 日志记录器名称，通常使用 __name__（位于 banner_studio 包下）
        level: 单独指定的日志级别，默认跟随全局级别

    Returns:
        日志记录器
    """
    _configure_package_logger()
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def set_log_level(level: int | str) -> None:
    """设置全局日志级别（错误日志文件始终只记录 ERROR 及以上）."""
    global _log_level
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    _log_level = level

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    for handler in package_logger.handlers:
        if handler.level != logging.ERROR:
            handler.setLevel(level)
