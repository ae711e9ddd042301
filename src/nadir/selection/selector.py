"""Decision phase: pick the option with the lowest predicted duration."""

from __future__ import annotations

from threading import Lock
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Sequence
from weakref import WeakKeyDictionary

import logging
import math

from ..benchmark.parameter_space import ParameterSpace
from ..benchmark.results_store import Measurement, MeasurementTable
from ..errors import EmptyTable, IncompleteTable, InvalidDomain, InvalidQuery, UnknownOption
from .cost_model import CostModel, fit_cost_model

logger = logging.getLogger(__name__)

# Predictions this close count as equal; the earlier-registered option wins.
RELATIVE_TOLERANCE = 1e-9
ABSOLUTE_TOLERANCE = 1e-15

Query = Mapping[str, Any] | Sequence[Any]


class StrategySelector:
    """
    Choose between the options of a sealed measurement table.

    Cost models are fit on first use, once, and are immutable afterwards, so a
    selector can be shared by concurrent callers.
    """

    def __init__(self, table: MeasurementTable) -> None:
        self.table = table
        self._space = ParameterSpace(parameters=list(table.parameters))
        self._models: Mapping[str, CostModel] | None = None
        self._lock = Lock()

    def models(self) -> Mapping[str, CostModel]:
        """Cost model per option, in registration order."""
        models = self._models
        if models is None:
            with self._lock:
                if self._models is None:
                    self._models = MappingProxyType(self._fit_models())
                models = self._models
        return models

    def options(self) -> List[str]:
        return list(self.models())

    def predict(self, identifier: str, query: Query) -> float:
        """
        Predicted duration in seconds of one option.

        Raises:
            UnknownOption: when ``identifier`` has no rows in the table.
        """
        models = self.models()
        if identifier not in models:
            raise UnknownOption(identifier)
        return models[identifier].predict(self._normalise(query))

    def predict_all(self, query: Query) -> Dict[str, float]:
        models = self.models()
        values = self._normalise(query)
        return {identifier: model.predict(values) for identifier, model in models.items()}

    def ranking(self, query: Query) -> List[tuple[str, float]]:
        """Options from fastest to slowest; ``sorted`` is stable so ties keep registration order."""
        return sorted(self.predict_all(query).items(), key=lambda item: item[1])

    def choose(self, query: Query) -> str:
        """
        Identifier of the option predicted fastest for ``query``.

        Raises:
            EmptyTable: when the table has no rows.
            IncompleteTable: when the table was never sealed.
            InvalidQuery: when ``query`` does not fit the table's parameter slots.
        """
        # models() raises EmptyTable before it could return an empty mapping.
        predictions = iter(self.predict_all(query).items())
        best_identifier, best_duration = next(predictions)
        for identifier, predicted in predictions:
            if predicted < best_duration and not math.isclose(
                predicted, best_duration, rel_tol=RELATIVE_TOLERANCE, abs_tol=ABSOLUTE_TOLERANCE
            ):
                best_identifier, best_duration = identifier, predicted
        return best_identifier

    def _normalise(self, query: Query) -> tuple[Any, ...]:
        try:
            values = self._space.normalise(query)
            for spec, value in zip(self._space, values):
                spec.encode(value)
        except InvalidDomain as exc:
            raise InvalidQuery(str(exc)) from exc
        return values

    def _fit_models(self) -> Dict[str, CostModel]:
        if len(self.table) == 0:
            raise EmptyTable()
        if not self.table.sealed:
            raise IncompleteTable("Measurement table is not sealed; it may be the remainder of an aborted sweep")

        grouped: Dict[str, List[Measurement]] = {}
        for measurement in self.table:
            grouped.setdefault(measurement.option, []).append(measurement)

        models: Dict[str, CostModel] = {}
        for identifier, rows in grouped.items():
            models[identifier] = fit_cost_model(identifier, self.table.parameters, rows)
            logger.debug("Fitted cost model for '%s' over %d row(s)", identifier, len(rows))
        return models


_selectors: "WeakKeyDictionary[MeasurementTable, StrategySelector]" = WeakKeyDictionary()
_selectors_lock = Lock()


def selector_for(table: MeasurementTable) -> StrategySelector:
    """Shared selector of ``table``, created once per table."""
    with _selectors_lock:
        selector = _selectors.get(table)
        if selector is None:
            selector = StrategySelector(table)
            _selectors[table] = selector
        return selector


def choose(table: MeasurementTable, query: Query) -> str:
    """Identifier of the option predicted fastest for ``query``; models are cached per table."""
    return selector_for(table).choose(query)
