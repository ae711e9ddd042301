"""Configuration loading and validation utilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

import logging

import yaml

from .benchmark.executor import DEFAULT_OUTPUT, DEFAULT_REPEATS
from .benchmark.parameter_space import ParameterSpace


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class BenchmarkConfig:
    """
    Sweep settings for a host application.

    Example YAML::

        repeats: 20
        max_workers: 1
        output_path: build/sort_benchmarks.json
        parameters:
          size: {kind: numeric, values: [1, 10, 100, 1000]}
          direction: {kind: enumerated, choices: [ASC, DESC]}
        logging:
          level: DEBUG
    """

    repeats: int = DEFAULT_REPEATS
    max_workers: int = 1
    output_path: Path = DEFAULT_OUTPUT
    parameters: Dict[str, Any] = field(default_factory=dict)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self) -> None:
        self.output_path = Path(self.output_path)
        self.validate()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "BenchmarkConfig":
        data = dict(data or {})
        unknown = sorted(set(data) - {"repeats", "max_workers", "output_path", "parameters", "logging"})
        if unknown:
            raise ValueError(f"Unknown configuration key(s): {', '.join(unknown)}")
        logging_config = LoggingConfig(**(data.pop("logging", None) or {}))
        return cls(logging=logging_config, **data)

    @staticmethod
    def from_yaml(path: str | Path) -> "BenchmarkConfig":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return BenchmarkConfig.from_mapping(data)

    def validate(self) -> None:
        if isinstance(self.repeats, bool) or not isinstance(self.repeats, int) or self.repeats < 1:
            raise ValueError(f"repeats must be a positive integer, got {self.repeats!r}")
        if isinstance(self.max_workers, bool) or not isinstance(self.max_workers, int) or self.max_workers < 1:
            raise ValueError(f"max_workers must be a positive integer, got {self.max_workers!r}")
        if not isinstance(self.parameters, Mapping):
            raise ValueError("parameters must be a mapping of parameter name to definition")
        if logging.getLevelName(self.logging.level.upper()) not in range(0, 51):
            raise ValueError(f"Unknown logging level: {self.logging.level}")

    def build_parameter_space(self) -> ParameterSpace:
        return ParameterSpace.from_config({"parameters": self.parameters})

    def configure_logging(self) -> None:
        """Apply the configured level and format to the root logger."""
        logging.basicConfig(level=self.logging.level.upper(), format=self.logging.format)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repeats": self.repeats,
            "max_workers": self.max_workers,
            "output_path": str(self.output_path),
            "parameters": dict(self.parameters),
            "logging": {"level": self.logging.level, "format": self.logging.format},
        }
