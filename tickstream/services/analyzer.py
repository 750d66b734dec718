"""
Spike Analyzer Service entry point.

This service is responsible for:
- Tailing the Redis tick stream from "latest" (no history replay)
- Decoding each entry into a PriceTick, dropping malformed entries
- Comparing every tick with the last price seen for its symbol
- Logging a spike alert when the relative move exceeds the threshold

Usage:
    tickstream-analyzer
    python -m tickstream.services.analyzer

Environment Variables:
    REDIS_URL: Redis connection URL (default: redis://localhost:6379)
    LOG_LEVEL: Logging level (default: INFO)
    LOG_FORMAT: json or text (default: json)
    CONFIG_PATH: Path to config directory (default: config)
"""

from __future__ import annotations

import asyncio
import os
import sys
from typing import List, Optional

import structlog

from tickstream import __version__
from tickstream.config import AppConfig, ConfigLoadError, load_config
from tickstream.detection import SpikeDetector
from tickstream.models.detection import ChangeKind, PriceChange
from tickstream.models.stream import StreamEntry
from tickstream.models.tick import (
    MissingPayloadError,
    PayloadTypeError,
    PriceTick,
    TickDecodeError,
    extract_payload,
)
from tickstream.services.base import ServiceRunner, ShutdownRequested, setup_logging
from tickstream.storage import RedisClient, RedisClientError, StreamTail

logger = structlog.get_logger(__name__)


class SpikeAnalyzerService(ServiceRunner):
    """
    Stream consumer that flags per-symbol price spikes.

    A single coroutine polls the stream and processes entries one at a
    time in arrival order, so the detector's last-price table has exactly
    one writer.

    Attributes:
        tail: Cursor-tracking stream reader.
        detector: Spike detector owning the last-price table.
        processed_count: Entries decoded and classified.
        malformed_count: Entries dropped as malformed.
        spike_count: Entries classified as spikes.
    """

    def __init__(
        self,
        config_path: str = "config",
        config: Optional[AppConfig] = None,
        redis_client: Optional[RedisClient] = None,
        install_signal_handlers: bool = True,
    ) -> None:
        """Initialize the spike analyzer service."""
        super().__init__(config_path, config, redis_client, install_signal_handlers)
        self.tail: Optional[StreamTail] = None
        self.detector: Optional[SpikeDetector] = None
        self.processed_count = 0
        self.malformed_count = 0
        self.spike_count = 0

    @property
    def service_name(self) -> str:
        """Return service name."""
        return "spike-analyzer"

    async def _initialize(self) -> None:
        """Open the stream tail at "latest" and start with an empty table."""
        if self.config is None or self.redis_client is None:
            raise RuntimeError("Service not properly initialized")

        analyzer = self.config.analyzer
        self.tail = StreamTail(
            self.redis_client,
            self.config.stream.name,
            block_ms=analyzer.block_ms,
            batch_size=analyzer.batch_size,
        )
        self.detector = SpikeDetector(threshold=analyzer.threshold)

        self.logger.info(
            "analyzer_listening",
            stream=self.config.stream.name,
            cursor=self.tail.cursor,
            threshold=analyzer.threshold,
            block_ms=analyzer.block_ms,
            batch_size=analyzer.batch_size,
        )

    async def poll(self) -> List[StreamEntry]:
        """
        Wait for the next batch of entries.

        Returns:
            List[StreamEntry]: New entries in arrival order; empty on timeout.

        Raises:
            RedisClientError: If the read fails.
        """
        if self.tail is None:
            raise RuntimeError("Service not properly initialized")
        return await self.tail.poll()

    async def _run(self) -> None:
        """Main service loop - poll, process in order, repeat until shutdown."""
        if self.config is None:
            raise RuntimeError("Configuration not loaded")

        backoff = self.config.analyzer.error_backoff_seconds

        while not self.shutdown_event.is_set():
            try:
                entries = await self.until_shutdown(self.poll())
            except ShutdownRequested:
                break
            except RedisClientError as e:
                if self.shutdown_event.is_set():
                    break
                self.logger.error(
                    "stream_read_failed",
                    category="error",
                    error=str(e),
                )
                await self.wait_for_shutdown(backoff)
                continue

            for entry in entries:
                self.process_entry(entry)

    def process_entry(self, entry: StreamEntry) -> Optional[PriceChange]:
        """
        Decode one entry and classify its tick.

        Malformed entries are logged and skipped; they never reach the
        last-price table.

        Args:
            entry: Stream entry to process.

        Returns:
            Optional[PriceChange]: Classification, or None if the entry was dropped.
        """
        if self.config is None or self.detector is None:
            raise RuntimeError("Service not properly initialized")

        payload_field = self.config.stream.payload_field

        try:
            payload = extract_payload(entry.fields, payload_field, entry.entry_id)
            tick = PriceTick.from_payload(payload, entry.entry_id)
        except MissingPayloadError as e:
            self.malformed_count += 1
            self.logger.warning(
                "entry_missing_payload",
                category="error",
                entry_id=entry.entry_id,
                field=payload_field,
                error=str(e),
            )
            return None
        except PayloadTypeError as e:
            self.malformed_count += 1
            self.logger.warning(
                "entry_payload_wrong_type",
                category="error",
                entry_id=entry.entry_id,
                field=payload_field,
                error=str(e),
            )
            return None
        except TickDecodeError as e:
            self.malformed_count += 1
            self.logger.error(
                "entry_decode_failed",
                category="error",
                entry_id=entry.entry_id,
                error=str(e),
            )
            return None

        result = self.detector.observe(tick)
        self.processed_count += 1
        self._report(result, entry.entry_id)
        return result

    def _report(self, result: PriceChange, entry_id: str) -> None:
        """Log a classification at the level its kind calls for."""
        if result.is_spike:
            self.spike_count += 1
            self.logger.warning(
                "price_spike_detected",
                category="spike",
                symbol=result.symbol,
                change_percent=f"{result.change_percent:.2f}%",
                old_price=result.old_price,
                new_price=result.new_price,
                threshold=result.threshold,
                entry_id=entry_id,
            )
        elif result.kind == ChangeKind.STABLE:
            self.logger.debug(
                "price_stable",
                category="stable",
                symbol=result.symbol,
                price=result.new_price,
                change_percent=f"{result.change_percent:.2f}%",
                entry_id=entry_id,
            )
        elif result.kind == ChangeKind.INVALID_PRIOR:
            self.logger.warning(
                "invalid_prior_price",
                category="error",
                symbol=result.symbol,
                old_price=result.old_price,
                new_price=result.new_price,
                entry_id=entry_id,
            )
        else:
            self.logger.debug(
                "first_observation",
                category="stable",
                symbol=result.symbol,
                price=result.new_price,
                entry_id=entry_id,
            )

    async def _cleanup(self) -> None:
        """Log final counters."""
        self.logger.info(
            "analyzer_summary",
            processed=self.processed_count,
            malformed=self.malformed_count,
            spikes=self.spike_count,
            symbols_tracked=len(self.detector.table) if self.detector else 0,
            duplicates_dropped=self.tail.duplicates_dropped if self.tail else 0,
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
        "spike_analyzer_service_starting",
        version=__version__,
        config_path=config_path,
    )

    service = SpikeAnalyzerService(config=config)

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
