"""
Configuration loader for YAML-based pipeline configuration.

This module provides utilities to load and validate configuration from a
YAML file. All configuration is validated using Pydantic models to ensure
type safety and catch configuration errors early.

Configuration file expected:
    - config/pipeline.yaml: Stream, generator, analyzer, connection and
      logging settings

Environment variables override:
    - REDIS_URL: Redis connection URL
    - LOG_LEVEL: Application log level
    - LOG_FORMAT: Log output format (json or text)

Example:
    >>> from tickstream.config.loader import load_config
    >>> config = load_config("config")
    >>> print(config.stream.name)
    stock-stream
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from tickstream.config.models import (
    AnalyzerConfig,
    AppConfig,
    ConnectionSettings,
    GeneratorConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    RedisConnectionConfig,
    StreamConfig,
)

CONFIG_FILENAME = "pipeline.yaml"


class ConfigLoadError(Exception):
    """
    Raised when configuration loading fails.

    Attributes:
        message: Error message describing what went wrong.
        file_path: Path to the file that caused the error, if applicable.
        cause: Original exception that caused the error, if any.
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[Path] = None,
        cause: Optional[Exception] = None,
    ):
        self.message = message
        self.file_path = file_path
        self.cause = cause
        super().__init__(message)


class ConfigLoader:
    """
    Loads and validates pipeline configuration from a YAML file.

    Expects the following directory structure:
        config/
        └── pipeline.yaml    - stream, generator, analyzer, connection, logging

    Example:
        >>> loader = ConfigLoader("config")
        >>> config = loader.load()
        >>> config.generator.symbols
        ['AAPL', 'TSLA', 'NVDA', 'MSFT', 'GOOGL']
    """

    def __init__(self, config_dir: Path | str = "config"):
        """
        Initialize config loader.

        Args:
            config_dir: Path to configuration directory (default: 'config').

        Raises:
            ConfigLoadError: If config directory does not exist.
        """
        self.config_dir = Path(config_dir)
        if not self.config_dir.exists():
            raise ConfigLoadError(
                f"Configuration directory not found: {self.config_dir}",
                file_path=self.config_dir,
            )
        if not self.config_dir.is_dir():
            raise ConfigLoadError(
                f"Configuration path is not a directory: {self.config_dir}",
                file_path=self.config_dir,
            )

    @property
    def config_file(self) -> Path:
        """Path to the pipeline configuration file."""
        return self.config_dir / CONFIG_FILENAME

    def _load_yaml(self) -> Dict[str, Any]:
        """
        Load the pipeline YAML file.

        Returns:
            Dict containing parsed YAML content.

        Raises:
            ConfigLoadError: If file not found, empty, or invalid YAML.
        """
        file_path = self.config_file
        if not file_path.exists():
            raise ConfigLoadError(
                f"Configuration file not found: {file_path}",
                file_path=file_path,
            )

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigLoadError(
                f"Invalid YAML syntax in {file_path}: {e}",
                file_path=file_path,
                cause=e,
            ) from e
        except OSError as e:
            raise ConfigLoadError(
                f"Error reading {file_path}: {e}",
                file_path=file_path,
                cause=e,
            ) from e

        if data is None:
            raise ConfigLoadError(
                f"Configuration file is empty: {file_path}",
                file_path=file_path,
            )
        if not isinstance(data, dict):
            raise ConfigLoadError(
                f"Configuration root must be a mapping in {file_path}",
                file_path=file_path,
            )
        return data

    def _section(self, data: Dict[str, Any], name: str) -> Dict[str, Any]:
        """Return a named top-level section, defaulting to empty."""
        section = data.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigLoadError(
                f"Section '{name}' must be a mapping",
                file_path=self.config_file,
            )
        return section

    def _load_redis_connection(self, data: Dict[str, Any]) -> RedisConnectionConfig:
        """
        Build Redis connection configuration.

        Environment variables:
            - REDIS_URL: Redis connection URL (overrides the file)

        Returns:
            RedisConnectionConfig object.
        """
        redis_data = dict(data)
        redis_url = os.getenv("REDIS_URL")
        if redis_url:
            redis_data["url"] = redis_url
        return RedisConnectionConfig(**redis_data)

    def _load_logging(self, data: Dict[str, Any]) -> LoggingConfig:
        """
        Build logging configuration.

        Environment variables:
            - LOG_LEVEL: Log level (invalid values are ignored)
            - LOG_FORMAT: json or text (invalid values are ignored)

        Returns:
            LoggingConfig object.
        """
        level: Any = data.get("level", LogLevel.INFO.value)
        fmt: Any = data.get("format", LogFormat.JSON.value)

        level_env = os.getenv("LOG_LEVEL", "").upper()
        if level_env in LogLevel.__members__:
            level = level_env

        format_env = os.getenv("LOG_FORMAT", "").lower()
        if format_env in {f.value for f in LogFormat}:
            fmt = format_env

        return LoggingConfig(format=fmt, level=level)

    def load(self) -> AppConfig:
        """
        Load and validate the pipeline configuration.

        Returns:
            AppConfig: Validated application configuration.

        Raises:
            ConfigLoadError: If the configuration is invalid or missing.
        """
        try:
            data = self._load_yaml()

            return AppConfig(
                stream=StreamConfig(**self._section(data, "stream")),
                generator=GeneratorConfig(**self._section(data, "generator")),
                analyzer=AnalyzerConfig(**self._section(data, "analyzer")),
                connection=ConnectionSettings(**self._section(data, "connection")),
                redis=self._load_redis_connection(self._section(data, "redis")),
                logging=self._load_logging(self._section(data, "logging")),
            )

        except ConfigLoadError:
            raise
        except ValidationError as e:
            raise ConfigLoadError(
                f"Configuration validation failed: {e}",
                file_path=self.config_file,
                cause=e,
            ) from e
        except TypeError as e:
            raise ConfigLoadError(
                f"Unexpected configuration structure: {e}",
                file_path=self.config_file,
                cause=e,
            ) from e


def load_config(config_dir: Path | str = "config") -> AppConfig:
    """
    Convenience function to load application configuration.

    Args:
        config_dir: Path to configuration directory (default: 'config').

    Returns:
        AppConfig: Validated application configuration.

    Raises:
        ConfigLoadError: If configuration loading fails.
    """
    loader = ConfigLoader(config_dir)
    return loader.load()
