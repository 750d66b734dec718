"""
Price Generator Service entry point.

This service is responsible for:
- Producing one synthetic price tick per interval
- Appending each tick to the Redis stream as a single JSON payload field
- Logging and skipping failed appends (the next interval is the retry)

Usage:
    tickstream-generator
    python -m tickstream.services.generator

Environment Variables:
    REDIS_URL: Redis connection URL (default: redis://localhost:6379)
    LOG_LEVEL: Logging level (default: INFO)
    LOG_FORMAT: json or text (default: json)
    CONFIG_PATH: Path to config directory (default: config)
"""

from __future__ import annotations

import asyncio
import os
import random
import sys
from typing import Optional

import structlog

from tickstream import __version__
from tickstream.config import AppConfig, ConfigLoadError, load_config
from tickstream.generation import TickFactory
from tickstream.services.base import ServiceRunner, setup_logging
from tickstream.storage.redis_client import RedisClient, RedisClientError

logger = structlog.get_logger(__name__)


class PriceGeneratorService(ServiceRunner):
    """
    Synthetic tick producer.

    Ticks are scheduled against a monotonic deadline. When an append runs
    long enough to miss whole intervals, the missed slots are skipped
    rather than produced in a burst.

    Attributes:
        factory: Tick factory for the configured universe and price range.
        published_count: Ticks appended successfully.
        failed_count: Ticks whose append failed.
    """

    def __init__(
        self,
        config_path: str = "config",
        config: Optional[AppConfig] = None,
        redis_client: Optional[RedisClient] = None,
        install_signal_handlers: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Initialize the price generator service."""
        super().__init__(config_path, config, redis_client, install_signal_handlers)
        self.factory: Optional[TickFactory] = None
        self.published_count = 0
        self.failed_count = 0
        self._rng = rng

    @property
    def service_name(self) -> str:
        """Return service name."""
        return "price-generator"

    async def _initialize(self) -> None:
        """Build the tick factory."""
        if self.config is None:
            raise RuntimeError("Configuration not loaded")

        self.factory = TickFactory.from_config(self.config.generator, rng=self._rng)

        self.logger.info(
            "generator_initialized",
            stream=self.config.stream.name,
            symbols=self.factory.symbols,
            interval_seconds=self.config.generator.interval_seconds,
            price_min=self.factory.price_min,
            price_max=self.factory.price_max,
        )

    async def tick(self) -> Optional[str]:
        """
        Generate one tick and append it to the stream.

        Returns:
            Optional[str]: The new entry id, or None if the append failed.
        """
        if self.config is None or self.redis_client is None or self.factory is None:
            raise RuntimeError("Service not properly initialized")

        stream = self.config.stream
        tick = self.factory.create()

        try:
            entry_id = await self.redis_client.append(
                stream.name,
                {stream.payload_field: tick.to_payload()},
                maxlen=stream.maxlen,
            )
        except RedisClientError as e:
            self.failed_count += 1
            self.logger.error(
                "publish_failed",
                category="error",
                symbol=tick.symbol,
                price=round(tick.price, 2),
                error=str(e),
            )
            return None

        self.published_count += 1
        self.logger.info(
            "price_published",
            category="publish",
            symbol=tick.symbol,
            price=round(tick.price, 2),
            timestamp=tick.timestamp,
            entry_id=entry_id,
        )
        return entry_id

    async def _run(self) -> None:
        """Main service loop - one tick per interval until shutdown."""
        if self.config is None:
            raise RuntimeError("Configuration not loaded")

        loop = asyncio.get_running_loop()
        interval = self.config.generator.interval_seconds
        next_tick = loop.time() + interval

        while not self.shutdown_event.is_set():
            if await self.wait_for_shutdown(next_tick - loop.time()):
                break

            await self.tick()

            next_tick += interval
            now = loop.time()
            if next_tick < now:
                skipped = int((now - next_tick) // interval) + 1
                next_tick += skipped * interval
                self.logger.warning(
                    "ticks_skipped",
                    skipped=skipped,
                    interval_seconds=interval,
                )

    async def _cleanup(self) -> None:
        """Log final counters."""
        self.logger.info(
            "generator_summary",
            published=self.published_count,
            failed=self.failed_count,
        )


async def main() -> None:
    """Main entry point."""
    config_path = os.getenv("CONFIG_PATH", "config")

    try:
        config = load_config(config_path)
    except ConfigLoadError as e:
        setup_logging()
        logger.error("config_load_failed", config_path=config_path, error=e.message)
        sys.exit(1)

    setup_logging(config.logging)

    logger.info(
        "price_generator_service_starting",
        version=__version__,
        config_path=config_path,
    )

    service = PriceGeneratorService(config=config)

    try:
        await service.run()
    except Exception as e:
        logger.error("service_failed", error=str(e))
        sys.exit(1)


def cli() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    cli()
