"""Base classes and interfaces for sweep ordering strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, Protocol


class ParameterSampler(Protocol):
    """Protocol describing the minimal interface required from a parameter source."""

    def grid(self) -> Dict[str, tuple[Any, ...]]:
        """Return a mapping of parameter names to sweep values."""

    def size(self) -> int:
        """Return the number of points in the full cartesian product."""


@dataclass
class StrategyState:
    """Mutable state shared between strategy iterations."""

    iterations: int = 0


class SweepStrategy(ABC):
    """Abstract base class for strategies that enumerate parameter tuples."""

    def __init__(self, sampler: ParameterSampler) -> None:
        self.sampler = sampler
        self.state = StrategyState()

    @abstractmethod
    def generate(self) -> Iterator[tuple[Any, ...]]:
        """Produce an iterator over parameter tuples in slot order."""

    def total(self) -> int:
        """Number of tuples a full pass of :meth:`generate` yields."""
        return self.sampler.size()

    def reset(self) -> None:
        self.state = StrategyState()

    def __iter__(self) -> Iterable[tuple[Any, ...]]:
        """Allow strategies to be used directly in for-loops."""
        self.reset()
        return self.generate()
