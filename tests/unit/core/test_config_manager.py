"""Configuration manager unit tests."""

import pytest

from inkora.core.config_manager import ConfigManager, get_config, get_settings
from inkora.utils.exceptions import ConfigError


class TestConfigManager:
    """Settings and user config."""

    def test_should_be_singleton(self):
        assert get_config() is get_config()
        assert ConfigManager() is get_config()

    def test_should_load_settings_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("INKORA_OUTPUT_QUALITY", "0.5")

        settings = get_settings()

        assert settings.data_dir == tmp_path
        assert settings.templates_dir == tmp_path / "templates"
        assert settings.output_quality == 0.5
        assert settings.max_rows == 1000

    def test_should_raise_config_error_on_invalid_value(self, monkeypatch):
        monkeypatch.setenv("INKORA_LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigError):
            get_settings()

    def test_should_reload_settings(self, monkeypatch):
        config = get_config()
        assert config.settings.max_rows == 1000

        monkeypatch.setenv("INKORA_MAX_ROWS", "10")
        assert config.settings.max_rows == 1000

        config.reload()
        assert config.settings.max_rows == 10

    def test_should_store_user_config(self, tmp_path):
        config = get_config()
        config.set_user_config("last_template", "template_1")
        config.set_user_config("zoom", 0.5)

        assert config.get_user_config("last_template") == "template_1"
        assert config.get_user_config("zoom") == 0.5
        assert config.get_user_config("missing", "default") == "default"
        assert (tmp_path / "config.json").exists()

    def test_should_ignore_corrupt_user_config(self, tmp_path):
        (tmp_path / "config.json").write_text("{not json", encoding="utf-8")

        assert get_config().get_user_config("zoom", 1.0) == 1.0

