"""Measurement table and its persisted forms."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from types import ModuleType
from typing import IO, Any, Callable, Dict, Iterable, Iterator, List, Mapping, Sequence

import json
import math

import pandas as pd

from ..errors import DuplicateMeasurement, TableSealed
from .parameter_space import ParameterKind, ParameterSpace, ParameterSpec

OPTION_COLUMN = "option"
DURATION_COLUMN = "duration_seconds"
TABLE_FORMAT = "nadir.measurements"
TABLE_VERSION = 1


@dataclass(frozen=True)
class Measurement:
    """Mean duration, in seconds, of one option at one parameter tuple."""

    option: str
    parameters: tuple[Any, ...]
    duration: float

    def key(self) -> tuple[str, tuple[Any, ...]]:
        return self.option, self.parameters


class MeasurementTable:
    """
    Ordered, append-only collection of measurements.

    The table is open while a sweep appends to it and read-only once sealed.
    Only sealed tables are complete; the leftover of an aborted sweep stays open.
    """

    def __init__(self, parameters: Sequence[ParameterSpec], measurements: Iterable[Measurement] = ()) -> None:
        self.parameters: tuple[ParameterSpec, ...] = tuple(parameters)
        self._items: List[Measurement] = []
        self._keys: set[tuple[str, tuple[Any, ...]]] = set()
        self._sealed = False
        self._lock = Lock()
        for measurement in measurements:
            self.append(measurement)

    # Construction ------------------------------------------------------

    @classmethod
    def from_records(
        cls,
        parameters: Sequence[ParameterSpec],
        records: Iterable[Sequence[Any]],
        *,
        encoded: bool = False,
    ) -> "MeasurementTable":
        """
        Build a sealed table from flat rows ``(option, param_0, ..., param_k, duration)``.

        Args:
            parameters: slot descriptions, in slot order.
            records: flat rows.
            encoded: True when enumerated values are stored as choice indices.
        """
        table = cls(parameters)
        width = len(table.parameters) + 2
        for record in records:
            row = list(record)
            if len(row) != width:
                raise ValueError(f"Expected rows of {width} fields, got {len(row)}: {row!r}")
            values = row[1:-1]
            if encoded:
                values = [spec.decode(value) for spec, value in zip(table.parameters, values)]
            table.record(str(row[0]), tuple(values), float(row[-1]))
        return table.seal()

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], parameters: Sequence[ParameterSpec] | None = None) -> "MeasurementTable":
        """Instantiate a sealed table from its JSON document."""
        if payload.get("format", TABLE_FORMAT) != TABLE_FORMAT:
            raise ValueError(f"Not a measurement table document: format={payload.get('format')!r}")
        specs = parameters if parameters is not None else specs_from_config(payload.get("parameters", []))
        return cls.from_records(specs, payload.get("rows", []), encoded=True)

    @classmethod
    def from_module(cls, module: ModuleType, parameters: Sequence[ParameterSpec] | None = None) -> "MeasurementTable":
        """Load the table embedded in a module generated by :meth:`export_python`."""
        specs = parameters if parameters is not None else specs_from_config(getattr(module, "PARAMETERS"))
        return cls.from_records(specs, getattr(module, "MEASUREMENTS"), encoded=True)

    # Sweep phase -------------------------------------------------------

    def append(self, measurement: Measurement) -> None:
        if len(measurement.parameters) != len(self.parameters):
            raise ValueError(
                f"Measurement has {len(measurement.parameters)} parameter value(s), table has {len(self.parameters)} slot(s)"
            )
        if not math.isfinite(measurement.duration) or measurement.duration < 0:
            raise ValueError(f"Duration must be a finite, non-negative number of seconds: {measurement.duration!r}")
        with self._lock:
            if self._sealed:
                raise TableSealed("Cannot append to a sealed measurement table")
            key = measurement.key()
            if key in self._keys:
                raise DuplicateMeasurement(
                    f"Option '{measurement.option}' already has a measurement for {measurement.parameters!r}"
                )
            self._keys.add(key)
            self._items.append(measurement)

    def record(self, option: str, parameters: tuple[Any, ...], duration: float) -> Measurement:
        measurement = Measurement(option=option, parameters=tuple(parameters), duration=float(duration))
        self.append(measurement)
        return measurement

    def seal(self) -> "MeasurementTable":
        """End the sweep phase. The table is read-only afterwards."""
        with self._lock:
            self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    # Read-only views ---------------------------------------------------

    def __iter__(self) -> Iterator[Measurement]:
        with self._lock:
            return iter(list(self._items))

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __repr__(self) -> str:
        state = "sealed" if self._sealed else "open"
        return f"{self.__class__.__name__}(parameters={self.names()!r}, rows={len(self)}, {state})"

    def names(self) -> list[str]:
        return [spec.name for spec in self.parameters]

    def options(self) -> list[str]:
        """Option identifiers in order of first appearance."""
        return list(dict.fromkeys(item.option for item in self))

    def rows_for(self, option: str) -> list[Measurement]:
        return [item for item in self if item.option == option]

    def rows(self) -> list[tuple[Any, ...]]:
        """Flat persisted rows, enumerated values encoded as choice indices."""
        return [
            (item.option, *(spec.encode(value) for spec, value in zip(self.parameters, item.parameters)), item.duration)
            for item in self
        ]

    def columns(self) -> list[str]:
        return [OPTION_COLUMN, *self.names(), DURATION_COLUMN]

    def to_frame(self, *, encoded: bool = False) -> pd.DataFrame:
        """Return the table as a DataFrame, one row per measurement."""
        if encoded:
            records: list[Sequence[Any]] = self.rows()
        else:
            records = [
                (item.option, *(_display(spec, value) for spec, value in zip(self.parameters, item.parameters)), item.duration)
                for item in self
            ]
        return pd.DataFrame.from_records(records, columns=self.columns())

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": TABLE_FORMAT,
            "version": TABLE_VERSION,
            "parameters": [dict(name=spec.name, **spec.to_config()) for spec in self.parameters],
            "columns": self.columns(),
            "rows": [list(row) for row in self.rows()],
        }

    # Persistence -------------------------------------------------------

    def write(self, handle: IO[str], table_format: str) -> None:
        """Write the table to an already opened text handle in ``csv``, ``json`` or ``py`` format."""
        writer = _WRITERS.get(table_format.lower().lstrip("."))
        if writer is None:
            raise ValueError(f"Unsupported table format: {table_format!r}. Expected one of: {', '.join(_WRITERS)}")
        writer(self, handle)

    def export(self, destination: str | Path) -> Path:
        """Write the table to ``destination``; the format follows the file suffix."""
        destination_path = Path(destination)
        table_format = format_for(destination_path)
        destination_path.parent.mkdir(parents=True, exist_ok=True)
        with destination_path.open("w", encoding="utf-8", newline="") as handle:
            self.write(handle, table_format)
        return destination_path

    def export_csv(self, destination: str | Path) -> Path:
        return self.export(Path(destination).with_suffix(".csv"))

    def export_json(self, destination: str | Path) -> Path:
        return self.export(Path(destination).with_suffix(".json"))

    def export_python(self, destination: str | Path) -> Path:
        return self.export(Path(destination).with_suffix(".py"))


def format_for(path: str | Path) -> str:
    """Table format implied by a file suffix."""
    suffix = Path(path).suffix.lower().lstrip(".")
    if suffix not in _WRITERS:
        raise ValueError(f"Cannot infer table format from '{path}'. Use one of: {', '.join('.' + key for key in _WRITERS)}")
    return suffix


def load_table(source: str | Path, parameters: Sequence[ParameterSpec] | None = None) -> MeasurementTable:
    """
    Load a persisted table as a sealed MeasurementTable.

    CSV files carry no parameter schema: pass ``parameters`` for enumerated slots,
    otherwise every parameter column is treated as numeric.
    """
    path = Path(source)
    table_format = format_for(path)
    if table_format == "json":
        payload = json.loads(path.read_text(encoding="utf-8"))
        return MeasurementTable.from_dict(payload, parameters)
    if table_format == "csv":
        return _read_csv(path, parameters)
    raise ValueError(f"Loading '{path}' is not supported; import the generated module and use MeasurementTable.from_module")


def specs_from_config(items: Iterable[Mapping[str, Any]]) -> tuple[ParameterSpec, ...]:
    """Rebuild parameter specs from their persisted descriptions."""
    space = ParameterSpace()
    for item in items:
        space.add_parameter(
            item["name"],
            item.get("kind", ParameterKind.NUMERIC.value),
            item.get("values"),
            choices=item.get("choices"),
        )
    return tuple(space)


def _read_csv(path: Path, parameters: Sequence[ParameterSpec] | None) -> MeasurementTable:
    frame = pd.read_csv(path, dtype={OPTION_COLUMN: str}, float_precision="round_trip")
    if frame.columns.empty or frame.columns[0] != OPTION_COLUMN or frame.columns[-1] != DURATION_COLUMN:
        raise ValueError(f"'{path}' does not have the columns {OPTION_COLUMN},<parameters>,{DURATION_COLUMN}")
    names = list(frame.columns[1:-1])
    if parameters is None:
        space = ParameterSpace()
        for name in names:
            values = sorted(set(frame[name].tolist()))
            space.add_parameter(name, ParameterKind.NUMERIC, values or None)
        parameters = tuple(space)
    elif [spec.name for spec in parameters] != names:
        raise ValueError(f"Parameter columns {names!r} do not match {[spec.name for spec in parameters]!r}")

    columns = [frame[column].tolist() for column in frame.columns]
    return MeasurementTable.from_records(parameters, zip(*columns), encoded=True)


def _write_csv(table: MeasurementTable, handle: IO[str]) -> None:
    table.to_frame(encoded=True).to_csv(handle, index=False, lineterminator="\n")


def _write_json(table: MeasurementTable, handle: IO[str]) -> None:
    handle.write(json.dumps(table.to_dict(), indent=2))
    handle.write("\n")


def _write_python(table: MeasurementTable, handle: IO[str]) -> None:
    handle.write('"""Benchmark data generated by the nadir benchmarker."""\n\n')
    handle.write(f"COLUMNS = {table.columns()!r}\n\n")
    handle.write("PARAMETERS = [\n")
    for spec in table.parameters:
        handle.write(f"    {dict(name=spec.name, **spec.to_config())!r},\n")
    handle.write("]\n\n")
    # One tuple per row: option, parameters in slot order, seconds.
    handle.write("MEASUREMENTS = [\n")
    for row in table.rows():
        handle.write(f"    {tuple(row)!r},\n")
    handle.write("]\n")


def _display(spec: ParameterSpec, value: Any) -> Any:
    if spec.kind is ParameterKind.ENUMERATED:
        return spec.labels()[spec.index_of(value)]
    return value


_WRITERS: Dict[str, Callable[[MeasurementTable, IO[str]], None]] = {
    "csv": _write_csv,
    "json": _write_json,
    "py": _write_python,
}
