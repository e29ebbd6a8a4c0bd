"""Configuration management."""

from .credentials import CredentialStore, should_reuse
from .manager import ConfigManager, default_config_dir
from ..models.config import Settings

__all__ = ["ConfigManager", "CredentialStore", "Settings", "default_config_dir", "should_reuse"]
