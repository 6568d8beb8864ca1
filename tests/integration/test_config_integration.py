"""配置管理与命令行集成测试.

测试 ConfigManager 的加载、保存、重载流程以及命令行导出。
"""

import json
import os
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest
from PIL import Image

from banner_studio.core.config_manager import ConfigManager, get_config
from banner_studio.main import main
from banner_studio.models.banner_record import BannerRecord
from banner_studio.models.font_manifest import FontManifest, FontSource
from banner_studio.models.scene import Scene
from banner_studio.utils.exceptions import ConfigError

pytestmark = pytest.mark.integration


@pytest.fixture
def fresh_config(temp_dir: Path) -> Generator[ConfigManager, None, None]:
    """隔离的配置管理器（清单文件位于临时目录）."""
    ConfigManager._instance = None
    env = {"BANNER_FONT_MANIFEST_PATH": str(temp_dir / "fonts.json")}
    with patch.dict(os.environ, env):
        yield get_config()
    ConfigManager._instance = None


class TestConfigManager:
    """测试配置管理器."""

    def test_singleton(self, fresh_config: ConfigManager) -> None:
        """测试单例."""
        assert get_config() is fresh_config

    def test_settings_from_environment(self, fresh_config: ConfigManager, temp_dir: Path) -> None:
        """测试从环境变量加载设置."""
        with patch.dict(os.environ, {"BANNER_FETCH_TIMEOUT": "7.5", "BANNER_LOG_LEVEL": "warning"}):
            fresh_config.reload()
            settings = fresh_config.settings

        assert settings.fetch_timeout == 7.5
        assert settings.log_level == "WARNING"
        assert settings.manifest_path == temp_dir / "fonts.json"

    def test_invalid_settings(self, fresh_config: ConfigManager) -> None:
        """测试无效设置."""
        with patch.dict(os.environ, {"BANNER_JPEG_QUALITY": "3"}):
            fresh_config.reload()
            with pytest.raises(ConfigError):
                _ = fresh_config.settings

    def test_builtin_manifest_without_file(self, fresh_config: ConfigManager) -> None:
        """测试没有用户清单时使用内置清单."""
        assert fresh_config.font_manifest.lookup("Poppins") is not None

    def test_save_and_reload_manifest(self, fresh_config: ConfigManager, temp_dir: Path) -> None:
        """测试保存用户清单后合并加载."""
        manifest = FontManifest(fonts={"Brand": FontSource(locator=str(temp_dir / "brand.ttf"))})
        fresh_config.save_font_manifest(manifest)
        assert (temp_dir / "fonts.json").exists()

        fresh_config.reload()
        loaded = fresh_config.font_manifest
        assert loaded.lookup("brand") is not None
        assert loaded.lookup("Roboto") is not None

    def test_corrupt_manifest_falls_back(self, fresh_config: ConfigManager, temp_dir: Path) -> None:
        """测试损坏的清单文件回退到内置清单."""
        (temp_dir / "fonts.json").write_text("{not json", encoding="utf-8")
        fresh_config.reload()
        manifest = fresh_config.font_manifest
        assert manifest.lookup("Poppins") is not None
        assert manifest.lookup("Brand") is None


class TestCommandLine:
    """测试命令行入口."""

    def test_presets(self, capsys: pytest.CaptureFixture[str]) -> None:
        """测试列出预设."""
        assert main(["presets"]) == 0
        output = capsys.readouterr().out
        assert "facebookCover" in output
        assert "851x315" in output
        assert "Playfair Display" in output

    def test_export_scene(
        self,
        fresh_config: ConfigManager,
        inline_scene: Scene,
        temp_dir: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """测试导出场景文件."""
        # 纯内联场景，未声明的字体不会触发下载
        scene = inline_scene.model_copy(
            update={"text": inline_scene.text.model_copy(update={"content": "CLI Sale"})}
        )
        scene_file = temp_dir / "scene.json"
        scene.save_to_file(scene_file)
        out_dir = temp_dir / "out"

        fresh_config._font_manifest = FontManifest()
        code = main(["export", str(scene_file), "-f", "jpg", "-s", "small", "-o", str(out_dir)])

        assert code == 0
        output_file = out_dir / "CLI Sale-small.jpg"
        assert output_file.exists()
        assert Image.open(output_file).size == (600, 222)
        assert "CLI Sale-small.jpg" in capsys.readouterr().out

    def test_export_all_sizes_from_record(
        self,
        fresh_config: ConfigManager,
        temp_dir: Path,
    ) -> None:
        """测试从存储记录导出全部尺寸."""
        record = BannerRecord.from_dict({"text": "", "preset": "twitterHeader"})
        record_file = temp_dir / "record.json"
        record_file.write_text(json.dumps(record.to_dict()), encoding="utf-8")
        out_dir = temp_dir / "out"

        fresh_config._font_manifest = FontManifest()
        code = main(["export", str(record_file), "--record", "-s", "all", "-o", str(out_dir)])

        assert code == 0
        sizes = sorted(Image.open(path).size for path in out_dir.glob("banner-*.png"))
        assert sizes == [(600, 200), (1080, 360), (1920, 640)]

    def test_invalid_scene_file(
        self,
        fresh_config: ConfigManager,
        temp_dir: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """测试无效场景文件."""
        scene_file = temp_dir / "broken.json"
        scene_file.write_text('{"canvas": {"width": -1}}', encoding="utf-8")

        assert main(["export", str(scene_file), "-o", str(temp_dir)]) == 1
        assert capsys.readouterr().err.strip() != ""

    def test_invalid_scale(
        self,
        fresh_config: ConfigManager,
        inline_scene: Scene,
        temp_dir: Path,
    ) -> None:
        """测试无效输出比例."""
        scene_file = temp_dir / "scene.json"
        scene_file.write_text(inline_scene.to_json(), encoding="utf-8")
        fresh_config._font_manifest = FontManifest()

        assert main(["export", str(scene_file), "--scale", "0", "-o", str(temp_dir)]) == 1
        assert list(temp_dir.glob("*.png")) == []
