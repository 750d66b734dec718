"""
Stream storage for the tick pipeline.

This module provides the Redis Streams transport and the cursor-tracking
reader the analyzer tails it with.

Components:
    redis_client: Async Redis client for appends and blocking reads
    stream_tail: Read-from-latest tail with monotonic cursor
"""

from tickstream.storage.redis_client import (
    RedisClient,
    RedisClientError,
    RedisConnectionException,
    RedisOperationError,
)
from tickstream.storage.stream_tail import StreamTail

__all__: list[str] = [
    "RedisClient",
    "RedisClientError",
    "RedisConnectionException",
    "RedisOperationError",
    "StreamTail",
]
