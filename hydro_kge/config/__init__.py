"""Configuration module."""

from .settings import BatchConfig, KGEConfig, LoggingConfig, Settings, default_settings

__all__ = [
    "Settings",
    "KGEConfig",
    "BatchConfig",
    "LoggingConfig",
    "default_settings",
]
