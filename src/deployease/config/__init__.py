"""Configuration loading and validation."""

from .loader import load_config, load_config_or_default
from .schema import (
    AutoFixConfig,
    BuildConfig,
    DeployConfig,
    DeployEaseConfig,
    FileLoggingConfig,
    LoggingConfig,
)

__all__ = [
    # Loader
    "load_config",
    "load_config_or_default",
    # Root config
    "DeployEaseConfig",
    # Sections
    "BuildConfig",
    "AutoFixConfig",
    "DeployConfig",
    "LoggingConfig",
    "FileLoggingConfig",
]
