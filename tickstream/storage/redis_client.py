"""
Async Redis client for the tick stream.

This module provides the Redis Streams transport shared by the generator
and the analyzer. The generator appends one entry per tick; the analyzer
tails the stream with blocking reads from a moving cursor.

Key Patterns:
    - Tick stream: `{stream.name}` (stream, approximate MAXLEN trimming)
    - Entry layout: one field (`{stream.payload_field}`) holding tick JSON

Note:
    Responses are read as raw bytes. Entry ids and field names are decoded
    here; field values are passed through untouched so a payload that is
    not valid UTF-8 fails decoding for its own entry only.

Example:
    >>> from tickstream.config.models import RedisConnectionConfig
    >>> from tickstream.storage.redis_client import RedisClient
    >>>
    >>> client = RedisClient(RedisConnectionConfig(url="redis://localhost:6379"))
    >>> await client.connect()
    >>> entry_id = await client.append("stock-stream", {"event": tick.to_payload()})
    >>> entries = await client.read_entries("stock-stream", "$", block_ms=2000)
"""

from __future__ import annotations

import asyncio
import random
from typing import Dict, List, Optional

import structlog
from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, TimeoutError as RedisTimeoutError

from tickstream.config.models import ConnectionSettings, RedisConnectionConfig
from tickstream.models.stream import StreamEntry

logger = structlog.get_logger(__name__)

# Ceiling for a single backoff sleep between connection attempts
MAX_RETRY_DELAY_SECONDS = 30.0


def _text(value: str | bytes) -> str:
    """Decode an entry id or field name read from the server."""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


class RedisClientError(Exception):
    """Base exception for Redis client errors."""

    pass


class RedisConnectionException(RedisClientError):
    """Raised when Redis connection fails."""

    pass


class RedisOperationError(RedisClientError):
    """Raised when a Redis operation fails."""

    pass


class RedisClient:
    """
    Async Redis client for the tick stream.

    Attributes:
        config: Redis connection configuration.
        _pool: Connection pool for efficient connection reuse.
        _client: Redis client instance.
        _connected: Whether the client is connected.

    Example:
        >>> client = RedisClient(RedisConnectionConfig())
        >>> await client.connect()
        >>> try:
        ...     await client.append("stock-stream", {"event": payload})
        ... finally:
        ...     await client.disconnect()
    """

    def __init__(self, config: RedisConnectionConfig) -> None:
        """
        Initialize the Redis client.

        Args:
            config: Redis connection configuration containing URL, db, and pool settings.
        """
        self.config = config
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[Redis] = None  # type: ignore[type-arg]
        self._connected: bool = False

        logger.info(
            "redis_client_initialized",
            url=config.url,
            db=config.db,
            max_connections=config.max_connections,
        )

    @property
    def is_connected(self) -> bool:
        """
        Check if the client is connected to Redis.

        Returns:
            bool: True if connected, False otherwise.
        """
        return self._connected and self._client is not None

    async def connect(self) -> None:
        """
        Establish connection to Redis.

        Creates a connection pool, initializes the Redis client and verifies
        the server answers PING.

        Raises:
            RedisConnectionException: If connection fails.
        """
        if self._connected:
            logger.warning("redis_already_connected")
            return

        try:
            self._pool = ConnectionPool.from_url(
                self.config.url,
                db=self.config.db,
                max_connections=self.config.max_connections,
                socket_timeout=self.config.socket_timeout,
                socket_connect_timeout=self.config.socket_timeout,
                decode_responses=False,
            )
            self._client = Redis(connection_pool=self._pool)

            # Verify connection with ping
            await self._client.ping()
            self._connected = True

            logger.info(
                "redis_connected",
                url=self.config.url,
                db=self.config.db,
            )

        except (RedisConnectionError, RedisTimeoutError, OSError) as e:
            self._connected = False
            await self._release()
            logger.error(
                "redis_connection_failed",
                url=self.config.url,
                error=str(e),
            )
            raise RedisConnectionException(
                f"Failed to connect to Redis at {self.config.url}: {e}"
            ) from e

    async def connect_with_retry(self, settings: ConnectionSettings) -> None:
        """
        Connect, retrying with exponential backoff and jitter.

        Args:
            settings: Attempt limit and base delay.

        Raises:
            RedisConnectionException: If every attempt fails.
        """
        last_error: Optional[RedisConnectionException] = None

        for attempt in range(settings.max_connect_attempts):
            try:
                await self.connect()
                return
            except RedisConnectionException as e:
                last_error = e

            if attempt + 1 >= settings.max_connect_attempts:
                break

            delay = min(
                settings.connect_retry_delay_seconds * (2**attempt),
                MAX_RETRY_DELAY_SECONDS,
            )
            total_delay = delay + random.uniform(0, delay * 0.1)

            logger.info(
                "redis_reconnecting",
                url=self.config.url,
                attempt=attempt + 1,
                max_attempts=settings.max_connect_attempts,
                delay_seconds=round(total_delay, 3),
            )
            await asyncio.sleep(total_delay)

        logger.error(
            "redis_max_connect_attempts_exceeded",
            url=self.config.url,
            max_attempts=settings.max_connect_attempts,
        )
        raise RedisConnectionException(
            f"Max connection attempts ({settings.max_connect_attempts}) exceeded"
        ) from last_error

    async def _release(self) -> None:
        """Close client and pool without raising."""
        if self._client is not None:
            try:
                await self._client.aclose()
            except RedisError as e:
                logger.warning("redis_close_error", error=str(e))
            finally:
                self._client = None

        if self._pool is not None:
            try:
                await self._pool.aclose()
            except Exception as e:
                logger.warning("redis_pool_close_error", error=str(e))
            finally:
                self._pool = None

    async def disconnect(self) -> None:
        """
        Close Redis connection and release resources.

        Safe to call multiple times.
        """
        await self._release()
        self._connected = False
        logger.info("redis_disconnected")

    def _require_connection(self) -> Redis:  # type: ignore[type-arg]
        """
        Ensure client is connected and return the Redis instance.

        Returns:
            Redis: The Redis client instance.

        Raises:
            RedisConnectionException: If not connected.
        """
        if not self._connected or self._client is None:
            raise RedisConnectionException("Redis client is not connected")
        return self._client

    # =========================================================================
    # STREAMS
    # =========================================================================

    async def append(
        self,
        stream: str,
        fields: Dict[str, str],
        maxlen: Optional[int] = None,
    ) -> str:
        """
        Append one entry to a stream (XADD).

        The append is atomic on the server: either the whole entry is
        written with a fresh id or nothing is.

        Args:
            stream: Stream key.
            fields: Entry field/value mapping.
            maxlen: Optional approximate length cap for trimming.

        Returns:
            str: The id assigned to the new entry.

        Raises:
            RedisConnectionException: If not connected.
            RedisOperationError: If the operation fails.
        """
        client = self._require_connection()

        try:
            entry_id = await client.xadd(
                stream,
                fields,
                maxlen=maxlen,
                approximate=True,
            )

            logger.debug(
                "stream_entry_appended",
                stream=stream,
                entry_id=entry_id,
            )

            return _text(entry_id)

        except RedisError as e:
            logger.error(
                "stream_append_failed",
                stream=stream,
                error=str(e),
            )
            raise RedisOperationError(
                f"Failed to append to stream {stream}: {e}"
            ) from e

    async def read_entries(
        self,
        stream: str,
        cursor: str,
        block_ms: int,
        count: int = 10,
    ) -> List[StreamEntry]:
        """
        Read entries appended after a cursor (XREAD BLOCK).

        Args:
            stream: Stream key.
            cursor: Last id already seen, or "$" for entries appended after
                the call is issued.
            block_ms: Maximum time to wait for new entries.
            count: Maximum entries to return.

        Returns:
            List[StreamEntry]: Entries in arrival order; empty on timeout.

        Raises:
            RedisConnectionException: If not connected.
            RedisOperationError: If the operation fails.
        """
        client = self._require_connection()

        try:
            response = await client.xread(
                {stream: cursor},
                count=count,
                block=block_ms,
            )
        except RedisError as e:
            logger.error(
                "stream_read_failed",
                stream=stream,
                cursor=cursor,
                error=str(e),
            )
            raise RedisOperationError(
                f"Failed to read from stream {stream}: {e}"
            ) from e

        if not response:
            return []

        entries: List[StreamEntry] = []
        for _name, messages in response:
            for entry_id, fields in messages:
                entries.append(
                    StreamEntry(
                        entry_id=_text(entry_id),
                        fields={_text(k): v for k, v in (fields or {}).items()},
                    )
                )

        logger.debug(
            "stream_entries_read",
            stream=stream,
            cursor=cursor,
            count=len(entries),
        )

        return entries
