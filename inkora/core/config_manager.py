"""Configuration manager."""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import ValidationError

from inkora.models.app_settings import Settings
from inkora.utils.exceptions import ConfigError
from inkora.utils.logger import set_log_level, setup_logger

logger = setup_logger(__name__)


class ConfigManager:
    """Configuration manager.

    Loads application settings and the user config file.

    Attributes:
        settings: Application settings
    """

    _instance: Optional["ConfigManager"] = None

    def __new__(cls) -> "ConfigManager":
        """Singleton."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        """Initialize the configuration manager."""
        if self._initialized:
            return

        self._settings: Optional[Settings] = None
        self._initialized = True

        logger.debug("Configuration manager initialized")

    @property
    def settings(self) -> Settings:
        """Application settings."""
        if self._settings is None:
            self._settings = self._load_settings()
        return self._settings

    def _load_settings(self) -> Settings:
        """Load application settings from the environment and ``.env``.

        Returns:
            Settings instance

        Raises:
            ConfigError: Invalid settings
        """
        try:
            settings = Settings()
        except ValidationError as e:
            logger.error(f"Failed to load settings: {e}")
            raise ConfigError(f"Failed to load settings: {e}") from e

        set_log_level(settings.log_level)
        logger.debug(f"Settings loaded: log_level={settings.log_level}")
        return settings

    def save_user_config(self, config: dict[str, Any]) -> None:
        """Merge values into the user config file.

        Args:
            config: Values to store

        Raises:
            ConfigError: The file could not be written
        """
        path = self.settings.user_config_file
        try:
            existing = self._load_user_config()
            existing.update(config)

            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                json.dumps(existing, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            logger.debug("User config saved")
        except OSError as e:
            logger.error(f"Failed to save user config: {e}")
            raise ConfigError(f"Failed to save user config: {e}") from e

    def _load_user_config(self) -> dict[str, Any]:
        """Load the user config file."""
        path = self.settings.user_config_file
        if path.exists():
            try:
                content = path.read_text(encoding="utf-8")
                return json.loads(content)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Failed to load user config: {e}")
        return {}

    def get_user_config(self, key: str, default: Any = None) -> Any:
        """Get a user config value.

        Args:
            key: Config key
            default: Default value

        Returns:
            Config value
        """
        config = self._load_user_config()
        return config.get(key, default)

    def set_user_config(self, key: str, value: Any) -> None:
        """Set a user config value."""
        self.save_user_config({key: value})

    def reload(self) -> None:
        """Reload all configuration."""
        self._settings = None
        logger.info("Configuration reloaded")


def get_config() -> ConfigManager:
    """Get the configuration manager.

    Returns:
        ConfigManager singleton
    """
    return ConfigManager()


def get_settings() -> Settings:
    """Get the shared application settings."""
    return get_config().settings
