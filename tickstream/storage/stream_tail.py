"""
Cursor-tracking tail reader over a Redis stream.

A ``StreamTail`` starts at "$" so it only sees entries appended after the
first read is issued, then moves its cursor to the last id it returned.
The cursor never moves backwards, and entries at or below it are dropped
if the transport ever redelivers them.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import structlog

from tickstream.models.stream import LATEST_ID, StreamEntry
from tickstream.storage.redis_client import RedisClient

logger = structlog.get_logger(__name__)


class StreamTail:
    """
    Follows a stream from "latest", one bounded blocking read at a time.

    Attributes:
        client: Connected Redis client.
        stream: Stream key being tailed.
        block_ms: Maximum wait per poll.
        batch_size: Maximum entries per poll.

    Example:
        >>> tail = StreamTail(client, "stock-stream", block_ms=2000, batch_size=10)
        >>> entries = await tail.poll()   # [] if nothing arrived within 2s
    """

    def __init__(
        self,
        client: RedisClient,
        stream: str,
        block_ms: int = 2000,
        batch_size: int = 10,
    ) -> None:
        self.client = client
        self.stream = stream
        self.block_ms = block_ms
        self.batch_size = batch_size
        self._cursor: str = LATEST_ID
        self._last_key: Optional[Tuple[int, int]] = None
        self._duplicates_dropped = 0

    @property
    def cursor(self) -> str:
        """Id passed to the next read ("$" until the first entry arrives)."""
        return self._cursor

    @property
    def duplicates_dropped(self) -> int:
        """Entries discarded because they were at or behind the cursor."""
        return self._duplicates_dropped

    async def poll(self) -> List[StreamEntry]:
        """
        Wait up to ``block_ms`` for entries after the cursor.

        Returns:
            List[StreamEntry]: New entries in arrival order, possibly empty.

        Raises:
            RedisClientError: If the read fails.
        """
        entries = await self.client.read_entries(
            self.stream,
            self._cursor,
            block_ms=self.block_ms,
            count=self.batch_size,
        )

        fresh: List[StreamEntry] = []
        for entry in entries:
            key = entry.sort_key
            if self._last_key is not None and key <= self._last_key:
                self._duplicates_dropped += 1
                logger.warning(
                    "stream_entry_duplicate_dropped",
                    stream=self.stream,
                    entry_id=entry.entry_id,
                    cursor=self._cursor,
                )
                continue
            self._last_key = key
            self._cursor = entry.entry_id
            fresh.append(entry)

        return fresh
