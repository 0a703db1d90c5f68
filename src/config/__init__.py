"""Configuration module - settings and environment management."""

from src.config.settings import (
    ConfigurationError,
    DEFAULT_CORS_ORIGINS,
    Settings,
    load_settings,
)

__all__ = [
    "ConfigurationError",
    "DEFAULT_CORS_ORIGINS",
    "Settings",
    "load_settings",
]
