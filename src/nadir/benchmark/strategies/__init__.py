"""Sweep ordering strategies."""

from .base import SweepStrategy
from .grid_search import GridSweepStrategy

__all__ = ["GridSweepStrategy", "SweepStrategy"]
