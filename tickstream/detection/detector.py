"""
Single-step relative price spike detection.

This module provides the SpikeDetector class which compares each tick
against the last price seen for its symbol and classifies the move.

Key Features:
    - Signed relative change c = (new - old) / old
    - Spike when |c| is strictly greater than the threshold
    - First tick per symbol is never compared
    - Non-positive prior prices are treated as no prior observation
    - The last-price table is updated for every tick, whatever the outcome

The detector does no logging; callers report each PriceChange themselves.
``relative_change`` is public and rejects a non-positive old price for
direct callers. ``SpikeDetector.observe`` never reaches that guard because
it classifies such priors as INVALID_PRIOR first.

Example:
    >>> detector = SpikeDetector(threshold=0.05)
    >>> detector.observe(PriceTick(symbol="AAPL", price=200.0, timestamp=0)).kind
    <ChangeKind.FIRST_OBSERVATION: 'first_observation'>
    >>> detector.observe(PriceTick(symbol="AAPL", price=190.0, timestamp=1)).kind
    <ChangeKind.STABLE: 'stable'>
    >>> detector.observe(PriceTick(symbol="AAPL", price=180.0, timestamp=2)).kind
    <ChangeKind.SPIKE: 'spike'>
"""

from typing import Optional

from tickstream.detection.table import LastPriceTable
from tickstream.models.detection import ChangeKind, PriceChange
from tickstream.models.tick import PriceTick

DEFAULT_THRESHOLD = 0.05


def relative_change(old_price: float, new_price: float) -> float:
    """
    Signed relative change from old_price to new_price.

    Raises:
        ValueError: If old_price is not positive.
    """
    if old_price <= 0:
        raise ValueError(f"old_price must be positive, got {old_price}")
    return (new_price - old_price) / old_price


class SpikeDetector:
    """
    Classifies ticks against the last observed price of their symbol.

    The detector owns its LastPriceTable. It is meant to be driven by one
    consumer loop; ticks must be observed in stream order.

    Attributes:
        threshold: Spike threshold as a ratio (0.05 == 5%).
        table: The last-price table.
    """

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        table: Optional[LastPriceTable] = None,
    ) -> None:
        if threshold <= 0:
            raise ValueError(f"threshold must be positive, got {threshold}")
        self.threshold = threshold
        self.table = table if table is not None else LastPriceTable()

    def observe(self, tick: PriceTick) -> PriceChange:
        """
        Classify a tick and record its price.

        Args:
            tick: The decoded tick.

        Returns:
            PriceChange: Classification with old/new price and change.
        """
        old_price = self.table.get(tick.symbol)

        try:
            if old_price is None:
                return PriceChange(
                    kind=ChangeKind.FIRST_OBSERVATION,
                    symbol=tick.symbol,
                    new_price=tick.price,
                    threshold=self.threshold,
                    timestamp=tick.timestamp,
                )

            if old_price <= 0:
                return PriceChange(
                    kind=ChangeKind.INVALID_PRIOR,
                    symbol=tick.symbol,
                    new_price=tick.price,
                    old_price=old_price,
                    threshold=self.threshold,
                    timestamp=tick.timestamp,
                )

            change = relative_change(old_price, tick.price)
            kind = ChangeKind.SPIKE if abs(change) > self.threshold else ChangeKind.STABLE

            return PriceChange(
                kind=kind,
                symbol=tick.symbol,
                new_price=tick.price,
                old_price=old_price,
                change=change,
                threshold=self.threshold,
                timestamp=tick.timestamp,
            )

        finally:
            self.table.update(tick.symbol, tick.price)
