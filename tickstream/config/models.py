"""
Pydantic models for application configuration.

This module defines all configuration models that are validated when loading
the YAML pipeline configuration. The models ensure type safety and provide
sensible defaults for optional settings.

Configuration file:
    - config/pipeline.yaml: Stream, generator, analyzer, connection and
      logging settings

Example:
    >>> from tickstream.config.models import AppConfig
    >>> config = AppConfig()
    >>> config.analyzer.threshold
    0.05
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class LogFormat(str, Enum):
    """Logging format options."""

    JSON = "json"
    TEXT = "text"


class LogLevel(str, Enum):
    """Logging level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# =============================================================================
# STREAM CONFIGURATION
# =============================================================================


class StreamConfig(BaseModel):
    """Shared stream settings used by both the generator and the analyzer."""

    model_config = {"frozen": True, "extra": "forbid"}

    name: str = Field(
        default="stock-stream",
        description="Redis stream key",
        min_length=1,
    )
    payload_field: str = Field(
        default="event",
        description="Entry field carrying the serialized tick",
        min_length=1,
    )
    maxlen: int = Field(
        default=10000,
        description="Approximate cap on stream length (XADD MAXLEN ~)",
        ge=1,
    )


# =============================================================================
# GENERATOR CONFIGURATION
# =============================================================================


class GeneratorConfig(BaseModel):
    """Synthetic tick generator settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    symbols: List[str] = Field(
        default_factory=lambda: ["AAPL", "TSLA", "NVDA", "MSFT", "GOOGL"],
        description="Universe of tradable symbols",
        min_length=1,
    )
    interval_seconds: float = Field(
        default=1.0,
        description="Seconds between generated ticks",
        gt=0,
    )
    price_min: float = Field(
        default=100.0,
        description="Inclusive lower bound of generated prices",
        gt=0,
    )
    price_max: float = Field(
        default=600.0,
        description="Exclusive upper bound of generated prices",
        gt=0,
    )

    @field_validator("symbols")
    @classmethod
    def validate_symbols(cls, v: List[str]) -> List[str]:
        """Reject blank or duplicated symbols."""
        cleaned = [s.strip() for s in v]
        if any(not s for s in cleaned):
            raise ValueError("symbols must be non-empty strings")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("symbols must be unique")
        return cleaned

    @model_validator(mode="after")
    def validate_price_range(self) -> "GeneratorConfig":
        """Ensure the price range is not empty."""
        if self.price_min >= self.price_max:
            raise ValueError(
                f"price_min ({self.price_min}) must be less than "
                f"price_max ({self.price_max})"
            )
        return self


# =============================================================================
# ANALYZER CONFIGURATION
# =============================================================================


class AnalyzerConfig(BaseModel):
    """Spike analyzer settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    threshold: float = Field(
        default=0.05,
        description="Relative change (as a ratio) above which a tick is a spike",
        gt=0,
    )
    block_ms: int = Field(
        default=2000,
        description="Maximum XREAD block time in milliseconds",
        ge=1,
        le=60000,
    )
    batch_size: int = Field(
        default=10,
        description="Maximum entries returned per XREAD",
        ge=1,
        le=10000,
    )
    error_backoff_seconds: float = Field(
        default=1.0,
        description="Pause after a transient read error",
        ge=0,
        le=60,
    )


# =============================================================================
# CONNECTION CONFIGURATION
# =============================================================================


class ConnectionSettings(BaseModel):
    """Startup connection retry settings."""

    model_config = {"frozen": True, "extra": "forbid"}

    max_connect_attempts: int = Field(
        default=5,
        description="Connection attempts before startup is considered failed",
        ge=1,
        le=100,
    )
    connect_retry_delay_seconds: float = Field(
        default=1.0,
        description="Base delay for exponential connection backoff",
        ge=0,
        le=60,
    )


class RedisConnectionConfig(BaseModel):
    """Redis connection configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL",
    )
    db: int = Field(
        default=0,
        description="Redis database number",
        ge=0,
    )
    max_connections: int = Field(
        default=10,
        description="Maximum connection pool size",
        ge=1,
    )
    socket_timeout: int = Field(
        default=5,
        description="Socket timeout in seconds",
        ge=1,
    )


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    format: LogFormat = Field(
        default=LogFormat.JSON,
        description="Log output format",
    )
    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Default log level",
    )


# =============================================================================
# ROOT CONFIGURATION
# =============================================================================


class AppConfig(BaseModel):
    """
    Root application configuration.

    Aggregates all configuration sections into a single validated object.
    Both services load the same configuration so the generator and the
    analyzer always agree on the stream name and payload field.

    Example:
        >>> config = AppConfig()
        >>> config.stream.name
        'stock-stream'
    """

    model_config = {"frozen": True, "extra": "forbid"}

    stream: StreamConfig = Field(
        default_factory=StreamConfig,
        description="Stream settings",
    )
    generator: GeneratorConfig = Field(
        default_factory=GeneratorConfig,
        description="Generator settings",
    )
    analyzer: AnalyzerConfig = Field(
        default_factory=AnalyzerConfig,
        description="Analyzer settings",
    )
    connection: ConnectionSettings = Field(
        default_factory=ConnectionSettings,
        description="Connection retry settings",
    )
    redis: RedisConnectionConfig = Field(
        default_factory=RedisConnectionConfig,
        description="Redis connection config",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )

    @model_validator(mode="after")
    def validate_config(self) -> "AppConfig":
        """Validate cross-section constraints."""
        # A blocking XREAD must return before the socket read times out
        if self.redis.socket_timeout * 1000 <= self.analyzer.block_ms:
            raise ValueError(
                f"redis.socket_timeout ({self.redis.socket_timeout}s) must exceed "
                f"analyzer.block_ms ({self.analyzer.block_ms}ms)"
            )
        return self
