"""Configuration loading and validation."""

from .models import (
    # Enums
    BrowserType,
    # Config models
    AppConfig,
    RunnerConfig,
    StoreConfig,
    CheckerConfig,
    BrowserConfig,
    LoggingConfig,
)
from .loader import ConfigError, load_app_config, validate_config_file, write_default_config

__all__ = [
    # Enums
    "BrowserType",
    # Config models
    "AppConfig",
    "RunnerConfig",
    "StoreConfig",
    "CheckerConfig",
    "BrowserConfig",
    "LoggingConfig",
    # Loaders
    "ConfigError",
    "load_app_config",
    "validate_config_file",
    "write_default_config",
]
