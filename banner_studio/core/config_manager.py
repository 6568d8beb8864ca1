"""配置管理器模块."""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError

from banner_studio.models.app_settings import Settings
from banner_studio.models.font_manifest import DEFAULT_FONT_MANIFEST, FontManifest
from banner_studio.utils.exceptions import ConfigError
from banner_studio.utils.logger import set_log_level, setup_logger

logger = setup_logger(__name__)


class ConfigManager:
    """配置管理器.

    负责应用设置和字体清单的加载、保存和管理。

    Attributes:
        settings: 应用设置
        font_manifest: 字体清单（内置清单合并用户清单）
    """

    _instance: Optional["ConfigManager"] = None

    def __new__(cls) -> "ConfigManager":
        """单例模式."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        """初始化配置管理器."""
        if self._initialized:
            return

        self._settings: Optional[Settings] = None
        self._font_manifest: Optional[FontManifest] = None
        self._initialized = True

        logger.debug("配置管理器初始化完成")

    @property
    def settings(self) -> Settings:
        """获取应用设置."""
        if self._settings is None:
            self._settings = self._load_settings()
        return self._settings

    @property
    def font_manifest(self) -> FontManifest:
        """获取字体清单."""
        if self._font_manifest is None:
            self._font_manifest = self._load_font_manifest()
        return self._font_manifest

    def _load_settings(self) -> Settings:
        """加载应用设置.

        从环境变量和 .env 文件加载。

        Returns:
            Settings 实例
        """
        try:
            settings = Settings()
        except ValidationError as e:
            logger.error(f"加载应用设置失败: {e}")
            raise ConfigError(f"加载应用设置失败: {e}") from e

        set_log_level(settings.log_level)
        logger.debug(f"应用设置加载完成: log_level={settings.log_level}")
        return settings

    def _load_font_manifest(self) -> FontManifest:
        """加载字体清单.

        用户清单文件存在时与内置清单合并，否则只使用内置清单。

        Returns:
            FontManifest 实例
        """
        path = self.settings.manifest_path
        if path.exists():
            try:
                user_manifest = FontManifest.from_file(path)
                logger.debug(f"从文件加载字体清单: {path}")
                return DEFAULT_FONT_MANIFEST.merged(user_manifest)
            except (OSError, ValueError) as e:
                logger.warning(f"加载字体清单失败，使用内置清单: {e}")

        return DEFAULT_FONT_MANIFEST

    def save_font_manifest(self, manifest: FontManifest) -> None:
        """保存用户字体清单.

        Args:
            manifest: 字体清单
        """
        path = self.settings.manifest_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(manifest.to_json(), encoding="utf-8")
        except OSError as e:
            logger.error(f"保存字体清单失败: {e}")
            raise ConfigError(f"保存字体清单失败: {e}") from e

        self._font_manifest = DEFAULT_FONT_MANIFEST.merged(manifest)
        logger.info(f"字体清单已保存: {path}")

    def reload(self) -> None:
        """重新加载所有配置."""
        self._settings = None
        self._font_manifest = None
        logger.info("配置已重新加载")


def get_config() -> ConfigManager:
    """获取配置管理器实例.

    Returns:
        ConfigManager 单例实例
    """
    return ConfigManager()
