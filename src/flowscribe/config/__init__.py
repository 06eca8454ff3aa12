"""
Configuration module - Centralized settings management.

Usage:
    from flowscribe.config import get_settings, load_config
    
    settings = get_settings()
    settings = load_config(generator={"output_dir": "./e2e"})

Environment Variables:
    FLOWSCRIBE__RECORDER__PLATFORM=d365
    FLOWSCRIBE__CAPTURE__INPUT_DEBOUNCE_MS=800
    FLOWSCRIBE__GENERATOR__OUTPUT_DIR=./generated
"""

from flowscribe.config.settings import (
    Settings,
    BrowserSettings,
    CaptureSettings,
    RecorderSettings,
    GeneratorSettings,
    LoggingSettings,
)
from flowscribe.config.loader import ConfigLoader, load_config

_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).
    
    Call reset_settings() to reload.
    """
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings


def reset_settings() -> None:
    """Reset the global settings (forces reload on next get_settings())."""
    global _settings
    _settings = None


__all__ = [
    "Settings",
    "BrowserSettings",
    "CaptureSettings",
    "RecorderSettings",
    "GeneratorSettings",
    "LoggingSettings",
    "ConfigLoader",
    "load_config",
    "get_settings",
    "reset_settings",
]
