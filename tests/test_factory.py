"""Tests for synthetic tick construction."""

import random

import pytest

from tickstream.config.models import GeneratorConfig
from tickstream.generation import TickFactory


def test_ticks_fall_inside_configured_universe_and_range():
    factory = TickFactory(["AAPL", "TSLA"], 100.0, 600.0, rng=random.Random(1))
    ticks = [factory.create() for _ in range(500)]

    assert {t.symbol for t in ticks} == {"AAPL", "TSLA"}
    assert all(100.0 <= t.price < 600.0 for t in ticks)


def test_same_seed_same_sequence():
    a = TickFactory(["A", "B", "C"], 1.0, 2.0, rng=random.Random(42), clock=lambda: 0)
    b = TickFactory(["A", "B", "C"], 1.0, 2.0, rng=random.Random(42), clock=lambda: 0)
    assert [a.create() for _ in range(20)] == [b.create() for _ in range(20)]


def test_timestamp_is_whole_seconds_from_clock():
    factory = TickFactory(["AAPL"], 100.0, 600.0, clock=lambda: 1700000123.987)
    assert factory.create().timestamp == 1700000123


def test_from_config():
    factory = TickFactory.from_config(
        GeneratorConfig(symbols=["MSFT"], price_min=10.0, price_max=20.0)
    )
    tick = factory.create()
    assert tick.symbol == "MSFT"
    assert 10.0 <= tick.price < 20.0


@pytest.mark.parametrize(
    "symbols, low, high",
    [([], 1.0, 2.0), (["A"], 2.0, 1.0), (["A"], 0.0, 1.0)],
)
def test_invalid_arguments(symbols, low, high):
    with pytest.raises(ValueError):
        TickFactory(symbols, low, high)
