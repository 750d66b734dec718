"""
Spike detection for the tick pipeline.

Components:
    table: LastPriceTable, the per-symbol comparison baseline
    detector: SpikeDetector, single-step relative change classification

Example:
    >>> from tickstream.detection import SpikeDetector
    >>> detector = SpikeDetector(threshold=0.05)
    >>> result = detector.observe(tick)
    >>> if result.is_spike:
    ...     print(f"{result.symbol} moved {result.change_percent:.2f}%")
"""

from tickstream.detection.detector import (
    DEFAULT_THRESHOLD,
    SpikeDetector,
    relative_change,
)
from tickstream.detection.table import LastPriceTable

__all__: list[str] = [
    "DEFAULT_THRESHOLD",
    "LastPriceTable",
    "SpikeDetector",
    "relative_change",
]
