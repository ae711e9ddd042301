"""Reporting utilities for measurement tables."""

from __future__ import annotations

from dataclasses import dataclass
from statistics import mean
from typing import Any, Dict, List

import math

import pandas as pd

from .results_store import DURATION_COLUMN, OPTION_COLUMN, MeasurementTable


@dataclass
class BenchmarkReporter:
    """Produce tabular and aggregated views of a measurement table."""

    table: MeasurementTable

    def to_table(self) -> pd.DataFrame:
        """
        Pivot durations: one row per parameter tuple, one column per option.

        Rows keep sweep order and columns keep registration order.
        """
        frame = self.table.to_frame()
        names = self.table.names()
        if frame.empty:
            return pd.DataFrame(columns=[*names, *self.table.options()])
        if not names:
            return frame.set_index(OPTION_COLUMN)[[DURATION_COLUMN]].T.reset_index(drop=True)
        pivot = frame.pivot_table(
            index=names,
            columns=OPTION_COLUMN,
            values=DURATION_COLUMN,
            aggfunc="first",
            sort=False,
        )
        return pivot[self.table.options()].reset_index()

    def fastest(self) -> List[Dict[str, Any]]:
        """Measured winner per parameter tuple; ties keep the earlier-registered option."""
        winners: Dict[tuple[Any, ...], Dict[str, Any]] = {}
        for measurement in self.table:
            current = winners.get(measurement.parameters)
            if current is None or measurement.duration < current["duration"]:
                winners[measurement.parameters] = {
                    "parameters": dict(zip(self.table.names(), measurement.parameters)),
                    "option": measurement.option,
                    "duration": measurement.duration,
                }
        return list(winners.values())

    def summary(self) -> Dict[str, Any]:
        """Return per-option duration statistics and how many parameter tuples each option wins."""
        wins: Dict[str, int] = {option: 0 for option in self.table.options()}
        for entry in self.fastest():
            wins[entry["option"]] += 1

        distributions: Dict[str, Dict[str, float]] = {}
        for option in self.table.options():
            durations = [item.duration for item in self.table.rows_for(option)]
            distributions[option] = {
                "min": min(durations),
                "max": max(durations),
                "mean": mean(durations),
                "rows": len(durations),
            }

        best_overall = min(distributions, key=lambda key: distributions[key]["mean"], default=None)
        return {
            "rows": len(self.table),
            "options": self.table.options(),
            "wins": wins,
            "distributions": distributions,
            "best_mean": best_overall,
            "total_seconds": math.fsum(item.duration for item in self.table),
        }
