"""Shared fixtures: pipeline config and an in-memory stream transport."""

import asyncio
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional

import pytest

from tickstream.config.models import (
    AnalyzerConfig,
    AppConfig,
    ConnectionSettings,
    GeneratorConfig,
    StreamConfig,
)
from tickstream.models.stream import LATEST_ID, StreamEntry, parse_entry_id
from tickstream.models.tick import PriceTick
from tickstream.storage.redis_client import RedisOperationError


class FakeStreamClient:
    """
    In-memory stand-in for RedisClient's stream surface.

    Reads honour "$" and block_ms the way XREAD does; queued exceptions in
    ``read_errors`` / ``append_errors`` are raised by the next calls.
    """

    def __init__(self) -> None:
        self.streams: Dict[str, List[StreamEntry]] = defaultdict(list)
        self.is_connected = True
        self.disconnect_calls = 0
        self.reads_started = 0
        self.read_errors: List[Exception] = []
        self.append_errors: List[Exception] = []
        self._seq = 0

    async def connect_with_retry(self, settings: ConnectionSettings) -> None:
        self.is_connected = True

    async def disconnect(self) -> None:
        self.is_connected = False
        self.disconnect_calls += 1

    async def append(
        self, stream: str, fields: Dict[str, Any], maxlen: Optional[int] = None
    ) -> str:
        if self.append_errors:
            raise self.append_errors.pop(0)
        self._seq += 1
        # values come back from the server as bytes
        raw = {k: v.encode("utf-8") if isinstance(v, str) else v for k, v in fields.items()}
        entry = StreamEntry(entry_id=f"{1700000000000 + self._seq}-0", fields=raw)
        self.streams[stream].append(entry)
        return entry.entry_id

    async def read_entries(
        self, stream: str, cursor: str, block_ms: int, count: int = 10
    ) -> List[StreamEntry]:
        self.reads_started += 1
        if self.read_errors:
            raise self.read_errors.pop(0)

        entries = self.streams[stream]
        if cursor == LATEST_ID:
            after = entries[-1].sort_key if entries else (0, 0)
        else:
            after = parse_entry_id(cursor)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + block_ms / 1000
        while True:
            batch = [e for e in entries if e.sort_key > after][:count]
            if batch:
                return batch
            if loop.time() >= deadline:
                return []
            await asyncio.sleep(0.005)

    async def push_tick(
        self, stream: str, symbol: str, price: float, field: str = "event"
    ) -> str:
        tick = PriceTick(symbol=symbol, price=price, timestamp=1700000000)
        return await self.append(stream, {field: tick.to_payload()})


async def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` until true or fail the test after ``timeout``."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() >= deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def wait_until() -> Callable[..., Awaitable[None]]:
    return _wait_until


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        stream=StreamConfig(name="test-stream", payload_field="event", maxlen=100),
        generator=GeneratorConfig(
            symbols=["AAPL", "TSLA", "NVDA"],
            interval_seconds=0.01,
            price_min=100.0,
            price_max=600.0,
        ),
        analyzer=AnalyzerConfig(
            threshold=0.05,
            block_ms=50,
            batch_size=10,
            error_backoff_seconds=0.01,
        ),
        connection=ConnectionSettings(max_connect_attempts=2, connect_retry_delay_seconds=0),
    )


@pytest.fixture
def fake_client() -> FakeStreamClient:
    return FakeStreamClient()


@pytest.fixture
def read_error() -> Exception:
    return RedisOperationError("Failed to read from stream test-stream: boom")
