"""
Shared service runtime for the generator and analyzer processes.

Each process is one ``ServiceRunner`` subclass driven by a single asyncio
loop. The runner owns the lifecycle:

    load config -> connect Redis (with retry) -> _initialize -> _run
    -> _cleanup -> disconnect

SIGINT and SIGTERM set ``shutdown_event``. Subclasses check it at the top
of every loop iteration and use ``wait_for_shutdown`` / ``until_shutdown``
so that a pending wait is released as soon as the event fires.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from abc import ABC, abstractmethod
from typing import Awaitable, Optional, TypeVar

import structlog

from tickstream.config import AppConfig, LogFormat, LoggingConfig, load_config
from tickstream.storage.redis_client import RedisClient

T = TypeVar("T")

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownRequested(Exception):
    """Raised by ``until_shutdown`` when shutdown wins the race."""

    pass


def setup_logging(logging_config: Optional[LoggingConfig] = None) -> None:
    """
    Configure structured logging for a service process.

    Args:
        logging_config: Level and output format. Defaults to INFO/JSON.
    """
    logging_config = logging_config or LoggingConfig()

    renderer = (
        structlog.dev.ConsoleRenderer(colors=False)
        if logging_config.format == LogFormat.TEXT
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, logging_config.level.value),
    )

    # redis-py logs reconnect chatter at DEBUG
    logging.getLogger("redis").setLevel(logging.WARNING)


class ServiceRunner(ABC):
    """
    Base class for long-running pipeline services.

    Attributes:
        config_path: Directory holding pipeline.yaml.
        config: Loaded configuration (loaded in ``run`` if not given).
        redis_client: Redis transport (created in ``run`` if not given).
        shutdown_event: Set when the service should stop.
        logger: Logger bound with the service name.
    """

    def __init__(
        self,
        config_path: str = "config",
        config: Optional[AppConfig] = None,
        redis_client: Optional[RedisClient] = None,
        install_signal_handlers: bool = True,
    ) -> None:
        self.config_path = config_path
        self.config = config
        self.redis_client = redis_client
        self.shutdown_event = asyncio.Event()
        self.logger = structlog.get_logger(__name__).bind(service=self.service_name)
        self._install_signal_handlers = install_signal_handlers
        self._signals_installed: list[signal.Signals] = []

    @property
    @abstractmethod
    def service_name(self) -> str:
        """Return service name."""

    async def _initialize(self) -> None:
        """Service-specific setup, run after Redis is connected."""

    @abstractmethod
    async def _run(self) -> None:
        """Main service loop; returns once shutdown is requested."""

    async def _cleanup(self) -> None:
        """Service-specific cleanup, run before Redis is disconnected."""

    # =========================================================================
    # SHUTDOWN
    # =========================================================================

    def request_shutdown(self, reason: str = "requested") -> None:
        """Ask the service to stop after the current iteration."""
        if not self.shutdown_event.is_set():
            self.logger.info("shutdown_requested", reason=reason)
            self.shutdown_event.set()

    def _add_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_shutdown, sig.name)
                self._signals_installed.append(sig)
            except (NotImplementedError, RuntimeError) as e:
                # add_signal_handler is unavailable on Windows event loops
                self.logger.warning(
                    "signal_handler_unavailable",
                    signal=sig.name,
                    error=str(e),
                )

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in self._signals_installed:
            loop.remove_signal_handler(sig)
        self._signals_installed.clear()

    async def wait_for_shutdown(self, timeout: float) -> bool:
        """
        Sleep for up to ``timeout`` seconds, waking early on shutdown.

        Returns:
            bool: True if shutdown was requested.
        """
        if self.shutdown_event.is_set():
            return True
        try:
            await asyncio.wait_for(self.shutdown_event.wait(), timeout=max(0.0, timeout))
            return True
        except asyncio.TimeoutError:
            return False

    async def until_shutdown(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless shutdown is requested first.

        The awaitable is cancelled if shutdown wins. If both complete
        together, the awaitable's outcome is used.

        Returns:
            The awaitable's result.

        Raises:
            ShutdownRequested: If shutdown fired before the awaitable finished.
            Exception: Whatever the awaitable raised.
        """
        task = asyncio.ensure_future(awaitable)
        stopper = asyncio.ensure_future(self.shutdown_event.wait())

        try:
            await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stopper.cancel()
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                except Exception as e:
                    # the torn-down read usually fails on its way out
                    self.logger.debug("cancelled_operation_failed", error=str(e))

        if task.cancelled():
            raise ShutdownRequested()
        return task.result()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def run(self) -> None:
        """
        Run the service until shutdown.

        Raises:
            ConfigLoadError: If configuration cannot be loaded.
            RedisConnectionException: If Redis stays unreachable after all
                connection attempts.
        """
        if self.config is None:
            self.config = load_config(self.config_path)

        if self._install_signal_handlers:
            self._add_signal_handlers()

        try:
            if self.redis_client is None:
                self.redis_client = RedisClient(self.config.redis)

            if not self.redis_client.is_connected:
                try:
                    await self.until_shutdown(
                        self.redis_client.connect_with_retry(self.config.connection)
                    )
                except ShutdownRequested:
                    self.logger.info("shutdown_before_connect")
                    return

            await self._initialize()
            self.logger.info("service_started")

            await self._run()

        finally:
            try:
                await self._cleanup()
            finally:
                if self.redis_client is not None:
                    await self.redis_client.disconnect()
                if self._install_signal_handlers:
                    self._remove_signal_handlers()
                self.logger.info("service_stopped")
