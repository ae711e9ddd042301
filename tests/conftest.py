"""Shared fixtures for the nadir test-suite."""

from __future__ import annotations

import math
from enum import Enum

import pytest

from nadir.benchmark.parameter_space import ParameterSpace
from nadir.benchmark.results_store import MeasurementTable


class Direction(Enum):
    ASC = 0
    DESC = 1


class FakeClock:
    """Deterministic clock advancing by ``step`` seconds on every read."""

    def __init__(self, step: float = 0.5) -> None:
        self.step = step
        self.now = 0.0
        self.reads = 0

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        self.reads += 1
        return value


# Synthetic scaling constants: a*n**2 and b*n*ln(n) cross at n = 64.
N2_COEFFICIENT = 1e-9
NLOGN_COEFFICIENT = N2_COEFFICIENT * 64 / math.log(64)
CROSSOVER_SIZES = (1, 2, 5, 10, 20, 50, 64, 100, 200, 500, 1000)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def size_space() -> ParameterSpace:
    space = ParameterSpace()
    space.add_parameter("size", int, [1, 2, 3, 4])
    return space


@pytest.fixture
def mixed_space() -> ParameterSpace:
    space = ParameterSpace()
    space.add_parameter("size", int, [10, 100, 1000])
    space.add_parameter("direction", Direction)
    return space


@pytest.fixture
def crossover_table() -> MeasurementTable:
    """Sealed table where "n2" wins below size 64 and "nlogn" above."""
    space = ParameterSpace()
    space.add_parameter("size", int, CROSSOVER_SIZES)
    records = []
    for size in CROSSOVER_SIZES:
        records.append(("n2", size, N2_COEFFICIENT * size * size))
    for size in CROSSOVER_SIZES:
        records.append(("nlogn", size, NLOGN_COEFFICIENT * size * math.log(size)))
    return MeasurementTable.from_records(tuple(space), records)


@pytest.fixture
def mixed_table(mixed_space: ParameterSpace) -> MeasurementTable:
    """Option "a" is fast for ascending input only; "b" is direction-agnostic."""
    records = []
    for size, direction in mixed_space.iter_grid():
        records.append(("a", size, direction, (1e-6 if direction is Direction.ASC else 1e-4) * size))
    for size, direction in mixed_space.iter_grid():
        records.append(("b", size, direction, 1e-5 * size))
    return MeasurementTable.from_records(tuple(mixed_space), records)
