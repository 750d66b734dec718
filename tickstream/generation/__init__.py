"""Synthetic tick generation."""

from tickstream.generation.factory import TickFactory

__all__: list[str] = ["TickFactory"]
