"""
Configuration management for the tick stream pipeline.

This module handles loading and validating configuration from a YAML file.
All configuration values are validated using Pydantic models to ensure
type safety and catch configuration errors early.

The configuration system supports:
- Stream naming and retention (shared by both services)
- Generator symbol universe, cadence and price range
- Analyzer spike threshold and polling bounds
- Startup connection retries
- Logging format and level

Configuration is loaded from config/pipeline.yaml.

Environment variables can override connection and logging settings:
    - REDIS_URL: Redis connection URL
    - LOG_LEVEL: Application log level
    - LOG_FORMAT: json or text

Example:
    >>> from tickstream.config import load_config
    >>> config = load_config()
    >>> print(f"Spike threshold: {config.analyzer.threshold:.0%}")
    Spike threshold: 5%
"""

from tickstream.config.loader import ConfigLoadError, ConfigLoader, load_config
from tickstream.config.models import (
    # Enums
    LogFormat,
    LogLevel,
    # Sections
    AnalyzerConfig,
    ConnectionSettings,
    GeneratorConfig,
    LoggingConfig,
    RedisConnectionConfig,
    StreamConfig,
    # Root config
    AppConfig,
)

__all__: list[str] = [
    # Loader
    "load_config",
    "ConfigLoader",
    "ConfigLoadError",
    # Enums
    "LogFormat",
    "LogLevel",
    # Sections
    "StreamConfig",
    "GeneratorConfig",
    "AnalyzerConfig",
    "ConnectionSettings",
    "RedisConnectionConfig",
    "LoggingConfig",
    # Root config
    "AppConfig",
]
