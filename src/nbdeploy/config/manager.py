"""Configuration manager for nbdeploy."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from ..exceptions import ConfigError
from ..models.config import Settings

CONFIG_DIR_ENV = "NBDEPLOY_CONFIG_DIR"


def default_config_dir() -> Path:
    """Return the base configuration directory.

    Honors ``NBDEPLOY_CONFIG_DIR`` so deployments can be driven from a
    container or a test sandbox.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "nbdeploy"


class ConfigManager:
    """Manage nbdeploy settings."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize config manager.

        Args:
            config_dir: Custom config directory (defaults to ~/.config/nbdeploy)
        """
        if config_dir is None:
            config_dir = default_config_dir()
        self.config_dir = config_dir
        self.config_file = self.config_dir / "config.yaml"
        self._settings: Settings | None = None

    @property
    def credentials_dir(self) -> Path:
        """Directory holding the cached provider credentials."""
        return self.config_dir / "credentials"

    @property
    def deploy_dir(self) -> Path:
        """Directory holding generated deployment descriptors."""
        return self.config_dir / "deploy"

    def _ensure_config_dir(self) -> None:
        """Create config directory if it doesn't exist."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(self.config_dir, 0o700)

    def exists(self) -> bool:
        """Check if config file exists.

        Returns:
            True if config file exists
        """
        return self.config_file.exists()

    def load(self) -> Settings:
        """Load settings from file, falling back to defaults.

        Returns:
            Loaded settings

        Raises:
            ConfigError: If the config file is invalid
        """
        if not self.exists():
            self._settings = Settings()
            return self._settings

        try:
            with open(self.config_file) as f:
                data = yaml.safe_load(f) or {}
            self._settings = Settings(**data)
            return self._settings
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file: {e}")
        except ValidationError as e:
            raise ConfigError(f"Invalid settings in {self.config_file}: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to load config: {e}")

    def save(self, settings: Settings) -> None:
        """Save settings to file.

        Args:
            settings: Settings to save

        Raises:
            ConfigError: If save fails
        """
        self._ensure_config_dir()
        try:
            data = settings.model_dump(mode="json", exclude_none=True)
            with open(self.config_file, "w") as f:
                yaml.safe_dump(data, f, default_flow_style=False)
            os.chmod(self.config_file, 0o600)
            self._settings = settings
        except OSError as e:
            raise ConfigError(f"Failed to save config: {e}")

    def get(self) -> Settings:
        """Get current settings, loading if necessary.

        Returns:
            Current settings
        """
        if self._settings is None:
            self._settings = self.load()
        return self._settings

    def set_value(self, key: str, value: Any) -> Settings:
        """Set a single setting addressed by a dotted key.

        Args:
            key: Dotted setting name (e.g. ``gcp.poll_interval``)
            value: New value, coerced by the settings model

        Returns:
            Updated settings

        Raises:
            ConfigError: If the key is unknown or the value invalid
        """
        parts = key.split(".")
        _check_key(Settings, parts, key)

        data = self.get().model_dump(mode="json")
        node = data
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value

        try:
            settings = Settings(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid value for '{key}': {e.errors()[0]['msg']}")

        self.save(settings)
        return settings

    def reset(self) -> None:
        """Remove the config file so defaults apply again."""
        if self.exists():
            self.config_file.unlink()
        self._settings = None


def _check_key(model: type[BaseModel], parts: list[str], key: str) -> None:
    """Raise ConfigError unless the dotted key names a leaf setting."""
    current: Any = model
    for i, part in enumerate(parts):
        fields = getattr(current, "model_fields", None)
        if fields is None or part not in fields:
            raise ConfigError(f"Unknown setting '{key}'")
        current = fields[part].annotation
        is_last = i == len(parts) - 1
        is_group = isinstance(current, type) and issubclass(current, BaseModel)
        if is_last and is_group:
            raise ConfigError(f"'{key}' is a group; set one of its fields instead")
