"""
Tick stream spike detection pipeline.

A synthetic price generator appends ticks to a Redis stream; an analyzer
tails the stream and flags abrupt per-symbol price moves.

This package provides:
- Data models for price ticks, stream entries and spike classifications
- Configuration management
- The Redis Streams transport and a cursor-tracking tail reader
- The generator and analyzer services
"""

__version__ = "0.1.0"
