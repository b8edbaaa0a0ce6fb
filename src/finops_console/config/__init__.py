"""Configuration management for the FinOps console."""

from .settings import ConsoleConfig, get_config, reload_config

__all__ = ["ConsoleConfig", "get_config", "reload_config"]
