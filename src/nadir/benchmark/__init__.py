"""Sweep phase: parameter domains, candidate options, measurement and persistence."""

from .executor import Benchmarker
from .parameter_space import DEFAULT_SIZE_LADDER, ParameterKind, ParameterSpace, ParameterSpec
from .registry import CandidateOption, CandidateRegistry
from .reporting import BenchmarkReporter
from .results_store import Measurement, MeasurementTable, load_table
from .strategies.base import SweepStrategy
from .strategies.grid_search import GridSweepStrategy

__all__ = [
    "Benchmarker",
    "BenchmarkReporter",
    "CandidateOption",
    "CandidateRegistry",
    "DEFAULT_SIZE_LADDER",
    "GridSweepStrategy",
    "Measurement",
    "MeasurementTable",
    "ParameterKind",
    "ParameterSpace",
    "ParameterSpec",
    "SweepStrategy",
    "load_table",
]
