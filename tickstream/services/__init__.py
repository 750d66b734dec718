"""
Long-running pipeline services.

Components:
    base: ServiceRunner lifecycle, shutdown handling and logging setup
    generator: PriceGeneratorService, the synthetic tick producer
    analyzer: SpikeAnalyzerService, the stream-tailing spike detector
"""

from tickstream.services.base import ServiceRunner, ShutdownRequested, setup_logging

__all__: list[str] = [
    "ServiceRunner",
    "ShutdownRequested",
    "setup_logging",
]
