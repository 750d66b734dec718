"""Tests for SpikeDetector and LastPriceTable."""

import math

import pytest

from tickstream.detection import LastPriceTable, SpikeDetector, relative_change
from tickstream.models.detection import ChangeKind
from tickstream.models.tick import PriceTick


def tick(symbol: str, price: float, ts: int = 1700000000) -> PriceTick:
    return PriceTick(symbol=symbol, price=price, timestamp=ts)


def test_first_observation_never_spikes():
    detector = SpikeDetector(threshold=0.05)
    result = detector.observe(tick("AAPL", 999.0))
    assert result.kind == ChangeKind.FIRST_OBSERVATION
    assert not result.is_spike
    assert result.old_price is None
    assert result.change is None
    assert result.change_percent is None


def test_aapl_scenario_stable_then_spike():
    detector = SpikeDetector(threshold=0.05)
    detector.observe(tick("AAPL", 200.0))

    stable = detector.observe(tick("AAPL", 190.0))
    assert stable.kind == ChangeKind.STABLE
    assert stable.change == pytest.approx(-0.05)

    spike = detector.observe(tick("AAPL", 180.0))
    assert spike.kind == ChangeKind.SPIKE
    assert spike.old_price == 190.0
    assert spike.new_price == 180.0
    assert spike.change_percent == pytest.approx(-5.263157, rel=1e-5)


@pytest.mark.parametrize(
    "new_price, expected",
    [
        (105.0001, ChangeKind.SPIKE),
        (105.0, ChangeKind.STABLE),
        (94.9999, ChangeKind.SPIKE),
        (95.0, ChangeKind.STABLE),
    ],
)
def test_threshold_boundary_is_strict(new_price, expected):
    detector = SpikeDetector(threshold=0.05)
    detector.observe(tick("AAPL", 100.0))
    assert detector.observe(tick("AAPL", new_price)).kind == expected


def test_equal_price_is_zero_change():
    detector = SpikeDetector(threshold=0.05)
    detector.observe(tick("MSFT", 321.0))
    result = detector.observe(tick("MSFT", 321.0))
    assert result.kind == ChangeKind.STABLE
    assert result.change == 0.0


def test_table_updated_regardless_of_classification():
    detector = SpikeDetector(threshold=0.05)
    for price in (100.0, 101.0, 150.0, 149.0):
        detector.observe(tick("TSLA", price))
        assert detector.table.get("TSLA") == price


def test_each_tick_compared_with_immediately_prior_tick_of_same_symbol():
    detector = SpikeDetector(threshold=0.05)
    sequence = [
        ("AAPL", 100.0),
        ("TSLA", 500.0),
        ("AAPL", 110.0),
        ("TSLA", 505.0),
        ("AAPL", 111.0),
    ]
    results = [detector.observe(tick(s, p)) for s, p in sequence]

    assert results[2].old_price == 100.0
    assert results[2].is_spike
    assert results[3].old_price == 500.0
    assert results[3].kind == ChangeKind.STABLE
    assert results[4].old_price == 110.0
    assert results[4].kind == ChangeKind.STABLE


def test_symbols_are_independent():
    detector = SpikeDetector(threshold=0.05)
    detector.observe(tick("AAPL", 100.0))
    result = detector.observe(tick("NVDA", 500.0))
    assert result.kind == ChangeKind.FIRST_OBSERVATION


def test_zero_prior_price_is_treated_as_no_prior():
    table = LastPriceTable({"GOOGL": 0.0})
    detector = SpikeDetector(threshold=0.05, table=table)

    result = detector.observe(tick("GOOGL", 150.0))

    assert result.kind == ChangeKind.INVALID_PRIOR
    assert not result.is_spike
    assert result.change is None
    assert table.get("GOOGL") == 150.0

    follow_up = detector.observe(tick("GOOGL", 150.0))
    assert follow_up.kind == ChangeKind.STABLE
    assert math.isfinite(follow_up.change)


def test_fresh_detector_has_no_history():
    first = SpikeDetector()
    first.observe(tick("AAPL", 100.0))

    restarted = SpikeDetector()
    assert restarted.observe(tick("AAPL", 200.0)).kind == ChangeKind.FIRST_OBSERVATION


def test_relative_change_rejects_non_positive_base():
    assert relative_change(200.0, 190.0) == pytest.approx(-0.05)
    with pytest.raises(ValueError):
        relative_change(0.0, 10.0)


def test_threshold_must_be_positive():
    with pytest.raises(ValueError):
        SpikeDetector(threshold=0)


def test_last_price_table_basics():
    table = LastPriceTable()
    assert len(table) == 0
    assert "AAPL" not in table

    table.update("AAPL", 1.5)
    table.update("AAPL", 2.5)

    assert "AAPL" in table
    assert list(table) == ["AAPL"]
    assert table.get("AAPL") == 2.5
