"""CLI commands."""

from . import config, main

__all__ = ["config", "main"]
