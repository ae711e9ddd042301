"""
Registry of candidate options competing to solve the same problem.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, TypeVar

from ..errors import DuplicateIdentifier, UnknownOption

FixtureT = TypeVar("FixtureT")

Experiment = Callable[..., Any]
Setup = Callable[..., FixtureT]


@dataclass(frozen=True)
class CandidateOption(Generic[FixtureT]):
    """
    One interchangeable implementation.

    Without a setup callable the experiment is called as ``experiment(*params)``.
    With one, ``setup(*params)`` builds a fixture outside of timing and the
    experiment is called as ``experiment(fixture, *params)``.
    """

    identifier: str
    experiment: Experiment
    setup: Optional[Setup[FixtureT]] = None

    def prepare(self, parameters: tuple[Any, ...]) -> Callable[[], Any]:
        """Run setup (if any) and return a zero-argument call of the experiment."""
        experiment = self.experiment
        if self.setup is None:
            return lambda: experiment(*parameters)
        fixture = self.setup(*parameters)
        return lambda: experiment(fixture, *parameters)


class CandidateRegistry:
    """Ordered registry of options. Registration order is sweep order and tie-break order."""

    def __init__(self) -> None:
        self._options: Dict[str, CandidateOption[Any]] = {}

    def add_option(
        self,
        identifier: str,
        experiment: Experiment,
        setup: Optional[Setup[Any]] = None,
    ) -> CandidateOption[Any]:
        """
        Register an option the selector may later return.

        Args:
            identifier: unique name the option is recognised by, both in the
                persisted table and in the output of ``choose``.
            experiment: callable to benchmark; receives the parameter values.
            setup: optional callable building a fixture that is excluded from timing.

        Raises:
            DuplicateIdentifier: if ``identifier`` is already registered.
        """
        if identifier in self._options:
            raise DuplicateIdentifier(identifier)
        if not callable(experiment):
            raise TypeError(f"Experiment for option '{identifier}' must be callable")
        if setup is not None and not callable(setup):
            raise TypeError(f"Setup for option '{identifier}' must be callable")
        option: CandidateOption[Any] = CandidateOption(identifier=identifier, experiment=experiment, setup=setup)
        self._options[identifier] = option
        return option

    def option(self, identifier: str, setup: Optional[Setup[Any]] = None):
        """
        Decorator form of :meth:`add_option`.

        Usage:
            @registry.option("sort_n2")
            def sort_n2(size):
                ...
        """

        def decorator(experiment: Experiment) -> Experiment:
            self.add_option(identifier, experiment, setup)
            return experiment

        return decorator

    def get(self, identifier: str) -> CandidateOption[Any]:
        if identifier not in self._options:
            raise UnknownOption(identifier)
        return self._options[identifier]

    def identifiers(self) -> List[str]:
        return list(self._options)

    def __len__(self) -> int:
        return len(self._options)

    def __iter__(self) -> Iterator[CandidateOption[Any]]:
        return iter(list(self._options.values()))

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._options

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(options={self.identifiers()!r})"
