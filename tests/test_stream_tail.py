"""Tests for StreamTail cursor discipline and stream entry ids."""

from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from tickstream.models.stream import LATEST_ID, StreamEntry, parse_entry_id
from tickstream.storage import RedisOperationError, StreamTail


def entry(entry_id: str) -> StreamEntry:
    return StreamEntry(entry_id=entry_id, fields={"event": "{}"})


def test_parse_entry_id_orders_numerically():
    assert parse_entry_id("1700000000000-2") == (1700000000000, 2)
    assert parse_entry_id("9-10") > parse_entry_id("9-9")
    assert parse_entry_id("10-0") > parse_entry_id("9-99")


@pytest.mark.parametrize("bad", ["", "$", "12", "a-b", "1-", "-1"])
def test_parse_entry_id_rejects_malformed(bad):
    with pytest.raises(ValueError):
        parse_entry_id(bad)


def test_stream_entry_validates_id():
    with pytest.raises(ValidationError):
        StreamEntry(entry_id="oops")


async def test_first_poll_reads_from_latest_then_advances():
    client = AsyncMock()
    client.read_entries.side_effect = [
        [entry("1-0"), entry("1-1")],
        [],
        [entry("2-0")],
    ]
    tail = StreamTail(client, "stock-stream", block_ms=2000, batch_size=10)
    assert tail.cursor == LATEST_ID

    assert [e.entry_id for e in await tail.poll()] == ["1-0", "1-1"]
    assert tail.cursor == "1-1"

    assert await tail.poll() == []
    assert tail.cursor == "1-1"

    assert [e.entry_id for e in await tail.poll()] == ["2-0"]

    cursors = [call.args[1] for call in client.read_entries.await_args_list]
    assert cursors == [LATEST_ID, "1-1", "1-1"]
    assert client.read_entries.await_args_list[0].kwargs == {"block_ms": 2000, "count": 10}


async def test_redelivered_entries_are_dropped():
    client = AsyncMock()
    client.read_entries.side_effect = [
        [entry("5-0"), entry("5-1")],
        [entry("5-1"), entry("4-9"), entry("6-0")],
    ]
    tail = StreamTail(client, "stock-stream")

    await tail.poll()
    fresh = await tail.poll()

    assert [e.entry_id for e in fresh] == ["6-0"]
    assert tail.duplicates_dropped == 2
    assert tail.cursor == "6-0"


async def test_read_errors_propagate_without_moving_cursor():
    client = AsyncMock()
    client.read_entries.side_effect = [[entry("1-0")], RedisOperationError("down")]
    tail = StreamTail(client, "stock-stream")

    await tail.poll()
    with pytest.raises(RedisOperationError):
        await tail.poll()
    assert tail.cursor == "1-0"
