"""
Last-price table: the analyzer's per-symbol comparison baseline.

The table is process-local and owned by a single ``SpikeDetector``; it is
never shared between tasks, so it carries no locking. It starts empty on
every analyzer start.
"""

from typing import Dict, Iterator, Optional


class LastPriceTable:
    """
    Mapping of symbol to the most recently processed price.

    Example:
        >>> table = LastPriceTable()
        >>> table.get("AAPL") is None
        True
        >>> table.update("AAPL", 200.0)
        >>> table.get("AAPL")
        200.0
    """

    def __init__(self, initial: Optional[Dict[str, float]] = None) -> None:
        self._prices: Dict[str, float] = dict(initial or {})

    def get(self, symbol: str) -> Optional[float]:
        """Return the last price for a symbol, or None if never seen."""
        return self._prices.get(symbol)

    def update(self, symbol: str, price: float) -> None:
        """Record the latest price for a symbol, overwriting any prior value."""
        self._prices[symbol] = price

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._prices

    def __len__(self) -> int:
        return len(self._prices)

    def __iter__(self) -> Iterator[str]:
        return iter(self._prices)
