"""Per-option regression of duration against the numeric parameters."""

from __future__ import annotations

from dataclasses import dataclass, field
from math import log
from typing import Any, Dict, Iterable, Mapping, Sequence

import numpy as np

from ..benchmark.parameter_space import ParameterSpec
from ..benchmark.results_store import Measurement

CategoryKey = tuple[int, ...]


def numeric_features(values: Sequence[float]) -> list[float]:
    """
    Regression features of one numeric parameter vector.

    An intercept, then for every numeric slot ``x``, ``x*ln(x)`` and ``x**2``, which
    covers the linear, linearithmic and quadratic growth of typical algorithms.
    """
    features = [1.0]
    for x in values:
        features.extend((x, x * log(x) if x >= 1.0 else 0.0, x * x))
    return features


@dataclass(frozen=True)
class LinearFit:
    """Least-squares coefficients over :func:`numeric_features`."""

    coefficients: tuple[float, ...]
    rows: int

    @classmethod
    def fit(cls, features: Sequence[Sequence[float]], durations: Sequence[float]) -> "LinearFit":
        design = np.asarray(features, dtype=float)
        target = np.asarray(durations, dtype=float)
        # Features span many orders of magnitude; solve on unit-scaled columns.
        scale = np.abs(design).max(axis=0)
        scale[scale == 0] = 1.0
        solution, *_ = np.linalg.lstsq(design / scale, target, rcond=None)
        return cls(coefficients=tuple(float(value) for value in solution / scale), rows=len(target))

    def predict(self, features: Sequence[float]) -> float:
        return float(np.dot(self.coefficients, features))


@dataclass(frozen=True)
class CostModel:
    """
    Predicted duration of one option as a function of the parameter tuple.

    Enumerated parameters select a sub-model fit only on rows with the same
    choices; combinations without rows fall back to the pooled model.
    """

    option: str
    parameters: tuple[ParameterSpec, ...]
    pooled: LinearFit
    by_category: Mapping[CategoryKey, LinearFit] = field(default_factory=dict)

    def predict(self, values: Sequence[Any]) -> float:
        numeric, category = split_parameters(self.parameters, values)
        fit = self.by_category.get(category, self.pooled)
        return max(0.0, fit.predict(numeric_features(numeric)))


def fit_cost_model(option: str, parameters: Sequence[ParameterSpec], measurements: Iterable[Measurement]) -> CostModel:
    """Fit the pooled model and one sub-model per enumerated combination."""
    specs = tuple(parameters)
    rows = list(measurements)
    if not rows:
        raise ValueError(f"Option '{option}' has no measurements to fit")

    grouped: Dict[CategoryKey, tuple[list[list[float]], list[float]]] = {}
    all_features: list[list[float]] = []
    all_durations: list[float] = []
    for row in rows:
        numeric, category = split_parameters(specs, row.parameters)
        features = numeric_features(numeric)
        all_features.append(features)
        all_durations.append(row.duration)
        group_features, group_durations = grouped.setdefault(category, ([], []))
        group_features.append(features)
        group_durations.append(row.duration)

    pooled = LinearFit.fit(all_features, all_durations)
    by_category: Dict[CategoryKey, LinearFit] = {}
    if any(spec.is_enumerated for spec in specs):
        by_category = {key: LinearFit.fit(features, durations) for key, (features, durations) in grouped.items()}
    return CostModel(option=option, parameters=specs, pooled=pooled, by_category=by_category)


def split_parameters(parameters: Sequence[ParameterSpec], values: Sequence[Any]) -> tuple[list[float], CategoryKey]:
    """Separate a parameter tuple into numeric values and the enumerated choice indices."""
    numeric: list[float] = []
    category: list[int] = []
    for spec, value in zip(parameters, values):
        if spec.is_enumerated:
            category.append(spec.index_of(value))
        else:
            numeric.append(float(spec.encode(value)))
    return numeric, tuple(category)
