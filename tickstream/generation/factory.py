"""
Synthetic price tick construction.

Symbols are drawn uniformly from a fixed universe and prices uniformly
from ``[price_min, price_max)``. The random source and the clock are
injectable so generated sequences can be reproduced in tests.
"""

import random
import time
from typing import Callable, Optional, Sequence

from tickstream.config.models import GeneratorConfig
from tickstream.models.tick import PriceTick


class TickFactory:
    """
    Builds random PriceTicks.

    Attributes:
        symbols: Universe of tradable symbols.
        price_min: Inclusive lower price bound.
        price_max: Exclusive upper price bound.

    Example:
        >>> factory = TickFactory(["AAPL", "TSLA"], 100.0, 600.0, rng=random.Random(7))
        >>> tick = factory.create()
        >>> 100.0 <= tick.price < 600.0
        True
    """

    def __init__(
        self,
        symbols: Sequence[str],
        price_min: float,
        price_max: float,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not symbols:
            raise ValueError("symbols must not be empty")
        if not 0 < price_min < price_max:
            raise ValueError(
                f"expected 0 < price_min < price_max, got [{price_min}, {price_max})"
            )
        self.symbols = list(symbols)
        self.price_min = price_min
        self.price_max = price_max
        self._rng = rng or random.Random()
        self._clock = clock

    @classmethod
    def from_config(
        cls,
        config: GeneratorConfig,
        rng: Optional[random.Random] = None,
    ) -> "TickFactory":
        """Create a factory from generator configuration."""
        return cls(config.symbols, config.price_min, config.price_max, rng=rng)

    def create(self) -> PriceTick:
        """Create one tick stamped with the current clock second."""
        symbol = self._rng.choice(self.symbols)
        price = self.price_min + self._rng.random() * (self.price_max - self.price_min)
        # random() is in [0, 1) but the scaled sum can round up to price_max
        if price >= self.price_max:
            price = self.price_min
        return PriceTick(symbol=symbol, price=price, timestamp=int(self._clock()))
