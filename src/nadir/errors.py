"""Exception hierarchy shared by the benchmarking and selection phases."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover
    from .benchmark.results_store import MeasurementTable


class NadirError(Exception):
    """Base class for every error raised by nadir."""


# Registration ----------------------------------------------------------------

class RegistrationError(NadirError, ValueError):
    """Invalid input supplied while configuring a sweep. The caller may retry."""


class DuplicateIdentifier(RegistrationError):
    def __init__(self, identifier: str) -> None:
        super().__init__(f"Option '{identifier}' is already registered")
        self.identifier = identifier


class InvalidDomain(RegistrationError):
    """A parameter domain is empty or holds values the slot cannot take."""


class UnsupportedParameterType(RegistrationError):
    """Neither numeric nor a finite enumeration: no default domain or encoding exists."""


# Sweep -----------------------------------------------------------------------

class SweepError(NadirError, RuntimeError):
    """Fatal failure of an in-progress sweep. No usable table is produced."""


class ExperimentFailed(SweepError):
    def __init__(
        self,
        option: str,
        parameters: tuple[Any, ...],
        table: "MeasurementTable",
        cause: BaseException,
    ) -> None:
        super().__init__(
            f"Experiment '{option}' failed for parameters {parameters!r}: {cause!r}"
        )
        self.option = option
        self.parameters = parameters
        # Unsealed: holds only the rows recorded before the failure.
        self.table = table


class SinkUnavailable(SweepError):
    def __init__(self, path: Path, cause: BaseException) -> None:
        super().__init__(f"Cannot open '{path}' for writing: {cause}")
        self.path = path


# Selection -------------------------------------------------------------------

class SelectionError(NadirError, LookupError):
    """The selector cannot answer. The caller may fall back to a default option."""


class EmptyTable(SelectionError):
    def __init__(self) -> None:
        super().__init__("Measurement table has no rows to choose from")


class UnknownOption(SelectionError):
    def __init__(self, identifier: str) -> None:
        super().__init__(f"Option '{identifier}' is not present")
        self.identifier = identifier


class IncompleteTable(SelectionError):
    """The table was never sealed, e.g. it is the leftover of an aborted sweep."""


class InvalidQuery(SelectionError):
    """Query parameters do not fit the table's parameter slots."""


# Table -----------------------------------------------------------------------

class TableError(NadirError):
    """Misuse of a MeasurementTable."""


class TableSealed(TableError):
    """Append attempted after the sweep phase ended."""


class DuplicateMeasurement(TableError):
    """A second row for an (option, parameters) pair that already has one."""
