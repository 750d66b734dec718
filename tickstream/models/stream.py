"""
Stream entry envelope.

Redis assigns every stream entry an id of the form ``<ms>-<seq>``. Ids are
strictly increasing within one stream, which is what the analyzer's cursor
relies on to never hand out the same entry twice.

Models:
    StreamEntry: One immutable entry read from the stream
"""

from typing import Any, Dict, Tuple

from pydantic import BaseModel, Field, field_validator

# Cursor meaning "only entries appended after the read is issued"
LATEST_ID = "$"


def parse_entry_id(entry_id: str) -> Tuple[int, int]:
    """
    Split a stream entry id into its ordering key.

    Args:
        entry_id: Id such as "1700000000000-0".

    Returns:
        Tuple[int, int]: (milliseconds, sequence).

    Raises:
        ValueError: If the id is not in ``<ms>-<seq>`` form.
    """
    ms, sep, seq = entry_id.partition("-")
    if not sep or not ms.isdigit() or not seq.isdigit():
        raise ValueError(f"Invalid stream entry id: {entry_id!r}")
    return int(ms), int(seq)


class StreamEntry(BaseModel):
    """
    One entry read from the stream.

    Attributes:
        entry_id: Server-assigned id used for ordering and cursor advancement.
        fields: The entry's field/value mapping.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    entry_id: str = Field(
        ...,
        description="Server-assigned entry id (<ms>-<seq>)",
    )
    fields: Dict[str, Any] = Field(
        default_factory=dict,
        description="Entry field/value mapping",
    )

    @field_validator("entry_id")
    @classmethod
    def validate_entry_id(cls, v: str) -> str:
        parse_entry_id(v)
        return v

    @property
    def sort_key(self) -> Tuple[int, int]:
        """Ordering key derived from the entry id."""
        return parse_entry_id(self.entry_id)
