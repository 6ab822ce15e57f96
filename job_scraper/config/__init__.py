"""Configuration management for the job scraper."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config
from .models import (
    DEFAULT_MAX_HOURS_WINDOW,
    AppConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    NotificationConfig,
    OutputConfig,
    ScraperConfig,
    SelectorConfig,
    ServiceDescriptor,
    StorageBackend,
    StorageConfig,
    TimeAssignment,
)

__all__ = [
    # Loader functions
    "load_config",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "ServiceDescriptor",
    "ScraperConfig",
    "SelectorConfig",
    "StorageConfig",
    "OutputConfig",
    "NotificationConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "StorageBackend",
    "TimeAssignment",
    "LogLevel",
    "LogFormat",
    "DEFAULT_MAX_HOURS_WINDOW",
    # Exceptions
    "ConfigurationError",
]
