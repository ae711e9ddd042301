"""
nadir
=====

Empirical algorithm selection. Benchmark interchangeable implementations of
one problem over a parameter grid, persist the measurements, then choose the
implementation predicted fastest for a given input.

Usage:
    from nadir import Benchmarker, choose, load_table

    benchmarker = Benchmarker()
    benchmarker.add_parameter("size", int)
    benchmarker.add_option("sort_n2", insertion_sort)
    benchmarker.add_option("sort_nlogn", merge_sort)
    path = benchmarker.run("sort_benchmarks.json")

    table = load_table(path)
    choose(table, {"size": 5000})
"""

from .benchmark import (
    Benchmarker,
    BenchmarkReporter,
    CandidateOption,
    CandidateRegistry,
    Measurement,
    MeasurementTable,
    ParameterKind,
    ParameterSpace,
    ParameterSpec,
    load_table,
)
from .config import BenchmarkConfig
from .errors import (
    DuplicateIdentifier,
    EmptyTable,
    ExperimentFailed,
    IncompleteTable,
    InvalidDomain,
    InvalidQuery,
    NadirError,
    RegistrationError,
    SelectionError,
    SinkUnavailable,
    SweepError,
    UnknownOption,
    UnsupportedParameterType,
)
from .selection import StrategySelector, choose

__version__ = "0.1.0"

__all__ = [
    "BenchmarkConfig",
    "BenchmarkReporter",
    "Benchmarker",
    "CandidateOption",
    "CandidateRegistry",
    "DuplicateIdentifier",
    "EmptyTable",
    "ExperimentFailed",
    "IncompleteTable",
    "InvalidDomain",
    "InvalidQuery",
    "Measurement",
    "MeasurementTable",
    "NadirError",
    "ParameterKind",
    "ParameterSpace",
    "ParameterSpec",
    "RegistrationError",
    "SelectionError",
    "SinkUnavailable",
    "StrategySelector",
    "SweepError",
    "UnknownOption",
    "UnsupportedParameterType",
    "choose",
    "load_table",
]
