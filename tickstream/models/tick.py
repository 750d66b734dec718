"""
Price tick model and its stream wire format.

A tick travels through the stream as a single entry field holding UTF-8
JSON with exactly three meaningful keys: ``symbol``, ``price`` and
``timestamp``. Decoders ignore any additional keys so producers can add
fields without breaking running analyzers.

Reading a tick out of a stream entry is a two-stage contract:

1. ``extract_payload`` checks the payload field is present and textual
   (``MissingPayloadError`` / ``PayloadTypeError``).
2. ``PriceTick.from_payload`` validates the JSON document
   (``TickDecodeError``).

All three failures derive from ``MalformedEntryError`` so callers can
drop a bad entry with a single handler while still logging which stage
rejected it.

Models:
    PriceTick: One price observation for one symbol
"""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError


class MalformedEntryError(Exception):
    """Base exception for stream entries that cannot be turned into a tick."""

    def __init__(self, message: str, entry_id: Optional[str] = None):
        self.entry_id = entry_id
        super().__init__(message)


class MissingPayloadError(MalformedEntryError):
    """Raised when the payload field is absent from a stream entry."""

    pass


class PayloadTypeError(MalformedEntryError):
    """Raised when the payload field is present but not text."""

    pass


class TickDecodeError(MalformedEntryError):
    """Raised when the payload is not a valid serialized PriceTick."""

    pass


class PriceTick(BaseModel):
    """
    One price observation for one symbol at one point in time.

    Attributes:
        symbol: Ticker symbol (e.g., "AAPL").
        price: Current price, strictly positive.
        timestamp: Producer wall-clock time in whole seconds since epoch.

    Example:
        >>> tick = PriceTick(symbol="AAPL", price=187.5, timestamp=1700000000)
        >>> tick.to_payload()
        '{"symbol":"AAPL","price":187.5,"timestamp":1700000000}'
    """

    model_config = {"frozen": True, "extra": "ignore"}

    symbol: str = Field(
        ...,
        description="Ticker symbol",
        min_length=1,
        examples=["AAPL", "TSLA"],
    )
    price: float = Field(
        ...,
        description="Current price",
        gt=0,
        allow_inf_nan=False,
    )
    timestamp: int = Field(
        ...,
        description="Seconds since epoch, set by the producer",
        ge=0,
    )

    def to_payload(self) -> str:
        """Serialize to the JSON wire format."""
        return self.model_dump_json()

    @classmethod
    def from_payload(
        cls, payload: str | bytes, entry_id: Optional[str] = None
    ) -> "PriceTick":
        """
        Decode a tick from its JSON wire format.

        Args:
            payload: UTF-8 JSON document.
            entry_id: Stream entry id, carried on the error for diagnostics.

        Returns:
            PriceTick: The decoded tick.

        Raises:
            TickDecodeError: If the payload is not valid JSON, is missing a
                required field, or violates a field constraint.
        """
        if isinstance(payload, bytes):
            try:
                payload = payload.decode("utf-8")
            except UnicodeDecodeError as e:
                raise TickDecodeError(
                    f"Invalid tick payload: not UTF-8 ({e.reason} at byte {e.start})",
                    entry_id=entry_id,
                ) from e

        try:
            return cls.model_validate_json(payload)
        except ValidationError as e:
            raise TickDecodeError(
                f"Invalid tick payload: {e.error_count()} validation error(s): "
                + "; ".join(
                    f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                    for err in e.errors()
                ),
                entry_id=entry_id,
            ) from e


def extract_payload(
    fields: Mapping[str, Any],
    field_name: str,
    entry_id: Optional[str] = None,
) -> str | bytes:
    """
    Pull the serialized tick out of a stream entry's fields.

    Args:
        fields: Field mapping of a stream entry.
        field_name: Name of the payload field.
        entry_id: Stream entry id, carried on the error for diagnostics.

    Returns:
        The raw payload (str, or bytes when responses are not decoded).

    Raises:
        MissingPayloadError: If the field is absent.
        PayloadTypeError: If the field is not str or bytes.
    """
    if field_name not in fields:
        raise MissingPayloadError(
            f"Entry has no '{field_name}' field (fields: {sorted(fields)})",
            entry_id=entry_id,
        )

    payload = fields[field_name]
    if not isinstance(payload, (str, bytes)):
        raise PayloadTypeError(
            f"Field '{field_name}' must be text, got {type(payload).__name__}",
            entry_id=entry_id,
        )
    return payload
