"""Deterministic exhaustive sweep."""

from __future__ import annotations

from itertools import product
from typing import Any, Iterator

from .base import SweepStrategy


class GridSweepStrategy(SweepStrategy):
    """Traverse the full cartesian product of the parameter domains, last slot fastest."""

    def generate(self) -> Iterator[tuple[Any, ...]]:
        grid_definition = self.sampler.grid()
        for combination in product(*grid_definition.values()):
            self.state.iterations += 1
            yield tuple(combination)
