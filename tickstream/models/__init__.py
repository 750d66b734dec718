"""
Shared Pydantic data models for the tick stream pipeline.

Modules:
    tick: Price tick, its wire format and decode errors
    stream: Stream entry envelope and id ordering
    detection: Spike classification results

Example:
    >>> from tickstream.models import PriceTick, StreamEntry, PriceChange
"""

# Tick models
from tickstream.models.tick import (
    MalformedEntryError,
    MissingPayloadError,
    PayloadTypeError,
    PriceTick,
    TickDecodeError,
    extract_payload,
)

# Stream models
from tickstream.models.stream import (
    LATEST_ID,
    StreamEntry,
    parse_entry_id,
)

# Detection models
from tickstream.models.detection import (
    ChangeKind,
    PriceChange,
)

__all__: list[str] = [
    # Tick
    "PriceTick",
    "extract_payload",
    "MalformedEntryError",
    "MissingPayloadError",
    "PayloadTypeError",
    "TickDecodeError",
    # Stream
    "StreamEntry",
    "LATEST_ID",
    "parse_entry_id",
    # Detection
    "ChangeKind",
    "PriceChange",
]
