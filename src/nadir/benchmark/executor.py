"""Sweep driver: measure every option at every parameter tuple and persist the table."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any, Callable, Iterable, Iterator, Sequence, cast

import logging
import time

from ..errors import ExperimentFailed, SinkUnavailable
from .parameter_space import ParameterSpace, ParameterSpec, Slot
from .registry import CandidateOption, CandidateRegistry, Experiment, Setup
from .results_store import Measurement, MeasurementTable, format_for
from .strategies.base import SweepStrategy
from .strategies.grid_search import GridSweepStrategy

if TYPE_CHECKING:  # pragma: no cover
    from ..config import BenchmarkConfig

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = Path("nadir_benchmarks.csv")
DEFAULT_REPEATS = 10

Callback = Callable[[Measurement], None]
Clock = Callable[[], float]


@dataclass
class Benchmarker:
    """
    Drive a sweep: every registered option at every point of the parameter grid.

    Options are visited in registration order and, for each option, parameter
    tuples in slot order with the last slot varying fastest. Each cell runs the
    optional setup, one untimed warmup call and ``repeats`` timed calls; the
    recorded duration is the mean per call.

    ``max_workers`` above 1 measures cells on a thread pool. Contention between
    concurrent cells skews timings, so the default is strictly sequential.
    """

    parameter_space: ParameterSpace = field(default_factory=ParameterSpace)
    registry: CandidateRegistry = field(default_factory=CandidateRegistry)
    repeats: int = DEFAULT_REPEATS
    output_path: Path = DEFAULT_OUTPUT
    max_workers: int = 1
    clock: Clock = time.perf_counter
    callbacks: Iterable[Callback] = field(default_factory=tuple)
    strategy: SweepStrategy | None = None

    def __post_init__(self) -> None:
        self.set_repeats(self.repeats)
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.output_path = Path(self.output_path)
        if self.strategy is None:
            self.strategy = GridSweepStrategy(self.parameter_space)

    @classmethod
    def from_config(cls, config: "BenchmarkConfig", registry: CandidateRegistry | None = None) -> "Benchmarker":
        """Build a benchmarker from a loaded configuration."""
        return cls(
            parameter_space=config.build_parameter_space(),
            registry=registry if registry is not None else CandidateRegistry(),
            repeats=config.repeats,
            output_path=config.output_path,
            max_workers=config.max_workers,
        )

    # Registration ------------------------------------------------------

    def add_option(self, identifier: str, experiment: Experiment, setup: Setup[Any] | None = None) -> CandidateOption[Any]:
        return self.registry.add_option(identifier, experiment, setup)

    def add_parameter(self, name: str, kind: Any = int, values: Sequence[Any] | None = None, **kwargs: Any) -> ParameterSpec:
        return self.parameter_space.add_parameter(name, kind, values, **kwargs)

    def set_repeats(self, repeats: int) -> None:
        if isinstance(repeats, bool) or not isinstance(repeats, int) or repeats < 1:
            raise ValueError(f"repeats must be a positive integer, got {repeats!r}")
        self.repeats = repeats

    def set_parameter_domain(self, slot: Slot, values: Sequence[Any]) -> tuple[Any, ...]:
        return self.parameter_space.override(slot, values)

    def register_default(self, slot: Slot) -> tuple[Any, ...]:
        return self.parameter_space.register_default(slot)

    def expected_rows(self) -> int:
        return len(self.registry) * cast(SweepStrategy, self.strategy).total()

    # Execution ---------------------------------------------------------

    def sweep(self) -> MeasurementTable:
        """
        Measure every cell and return the sealed table.

        Raises:
            ExperimentFailed: when a setup or experiment raises. The sweep stops at
                once; the exception carries the unsealed partial table.
        """
        table = MeasurementTable(tuple(self.parameter_space))
        total = self.expected_rows()
        logger.info(
            "Starting sweep: %d option(s) x %d parameter tuple(s), repeats=%d, max_workers=%d",
            len(self.registry),
            total // len(self.registry) if len(self.registry) else 0,
            self.repeats,
            self.max_workers,
        )
        started = time.perf_counter()
        if self.max_workers > 1:
            self._sweep_parallel(table, total)
        else:
            self._sweep_sequential(table, total)
        table.seal()
        logger.info("Completed sweep with %d measurement(s) in %.2f seconds", len(table), time.perf_counter() - started)
        return table

    def run(self, destination: str | Path | None = None) -> Path:
        """
        Run the sweep and persist the table; the format follows the file suffix.

        The sink is opened before measuring and only replaces ``destination``
        once the sweep has completed. An aborted sweep leaves no table behind and
        removes the table of an earlier run at ``destination``.

        Raises:
            SinkUnavailable: when the destination cannot be opened for writing.
            ExperimentFailed: when a setup or experiment raises.
        """
        path = Path(destination) if destination is not None else self.output_path
        table_format = format_for(path)
        with _scoped_sink(path) as handle:
            table = self.sweep()
            table.write(handle, table_format)
        logger.info("Wrote %d measurement(s) to %s", len(table), path)
        return path

    def _cells(self) -> Iterator[tuple[CandidateOption[Any], tuple[Any, ...]]]:
        strategy = cast(SweepStrategy, self.strategy)
        for option in self.registry:
            for parameters in strategy:
                yield option, parameters

    def _sweep_sequential(self, table: MeasurementTable, total: int) -> None:
        for index, (option, parameters) in enumerate(self._cells(), start=1):
            try:
                duration = self._measure(option, parameters)
            except Exception as exc:
                raise self._failure(table, index, total, option, parameters, exc) from exc
            self._record(table, index, total, option, parameters, duration)

    def _sweep_parallel(self, table: MeasurementTable, total: int) -> None:
        cells = list(self._cells())
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [pool.submit(self._measure, option, parameters) for option, parameters in cells]
            # Rows are recorded in iteration order regardless of completion order.
            for index, ((option, parameters), future) in enumerate(zip(cells, futures), start=1):
                try:
                    duration = future.result()
                except Exception as exc:
                    for pending in futures[index:]:
                        pending.cancel()
                    raise self._failure(table, index, total, option, parameters, exc) from exc
                self._record(table, index, total, option, parameters, duration)

    def _measure(self, option: CandidateOption[Any], parameters: tuple[Any, ...]) -> float:
        call = option.prepare(parameters)
        call()  # warmup
        start = self.clock()
        for _ in range(self.repeats):
            call()
        elapsed = self.clock() - start
        return max(elapsed, 0.0) / self.repeats

    def _record(
        self,
        table: MeasurementTable,
        index: int,
        total: int,
        option: CandidateOption[Any],
        parameters: tuple[Any, ...],
        duration: float,
    ) -> None:
        measurement = table.record(option.identifier, parameters, duration)
        logger.debug("[%d/%d] %s %r: %.6g s", index, total, option.identifier, parameters, duration)
        for callback in self.callbacks:
            callback(measurement)

    def _failure(
        self,
        table: MeasurementTable,
        index: int,
        total: int,
        option: CandidateOption[Any],
        parameters: tuple[Any, ...],
        exc: Exception,
    ) -> ExperimentFailed:
        logger.error("[%d/%d] %s %r failed: %s; aborting sweep", index, total, option.identifier, parameters, exc)
        return ExperimentFailed(option.identifier, parameters, table, exc)


@contextmanager
def _scoped_sink(path: Path) -> Iterator[IO[str]]:
    """
    Open a temporary sibling of ``path``; move it into place only on success.

    On failure the table of any earlier run at ``path`` is removed as well, so
    the destination never holds data older than the last attempt.
    """
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handle = tmp_path.open("w", encoding="utf-8", newline="")
    except OSError as exc:
        raise SinkUnavailable(path, exc) from exc

    try:
        yield handle
    except BaseException:
        handle.close()
        tmp_path.unlink(missing_ok=True)
        path.unlink(missing_ok=True)
        raise

    handle.close()
    try:
        tmp_path.replace(path)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        raise SinkUnavailable(path, exc) from exc
