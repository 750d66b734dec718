"""
Spike detection result models.

Models:
    ChangeKind: How a tick was classified against the prior price
    PriceChange: Result of classifying one tick
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ChangeKind(str, Enum):
    """
    Classification of a tick relative to the last price for its symbol.

    Attributes:
        FIRST_OBSERVATION: No prior price for the symbol, nothing to compare.
        INVALID_PRIOR: Prior price was not positive, comparison skipped.
        STABLE: Relative change within the threshold.
        SPIKE: Relative change strictly above the threshold.
    """

    FIRST_OBSERVATION = "first_observation"
    INVALID_PRIOR = "invalid_prior"
    STABLE = "stable"
    SPIKE = "spike"


class PriceChange(BaseModel):
    """
    Result of classifying one tick.

    Attributes:
        kind: Classification outcome.
        symbol: Ticker symbol.
        new_price: Price carried by the tick.
        old_price: Prior price from the last-price table, if any.
        change: Signed relative change (new - old) / old, when computed.
        threshold: Threshold the change was compared against.
        timestamp: Producer timestamp of the tick.

    Example:
        >>> result = PriceChange(
        ...     kind=ChangeKind.SPIKE,
        ...     symbol="AAPL",
        ...     new_price=180.0,
        ...     old_price=190.0,
        ...     change=-0.0526,
        ...     threshold=0.05,
        ...     timestamp=1700000000,
        ... )
        >>> result.is_spike
        True
    """

    model_config = {"frozen": True, "extra": "forbid"}

    kind: ChangeKind = Field(
        ...,
        description="Classification outcome",
    )
    symbol: str = Field(
        ...,
        description="Ticker symbol",
        min_length=1,
    )
    new_price: float = Field(
        ...,
        description="Price carried by the tick",
    )
    old_price: Optional[float] = Field(
        default=None,
        description="Prior price for the symbol",
    )
    change: Optional[float] = Field(
        default=None,
        description="Signed relative change as a ratio",
    )
    threshold: float = Field(
        ...,
        description="Spike threshold as a ratio",
    )
    timestamp: int = Field(
        ...,
        description="Producer timestamp of the tick",
    )

    @property
    def is_spike(self) -> bool:
        """Check if the tick was classified as a spike."""
        return self.kind == ChangeKind.SPIKE

    @property
    def change_percent(self) -> Optional[float]:
        """Signed relative change as a percentage."""
        if self.change is None:
            return None
        return self.change * 100
