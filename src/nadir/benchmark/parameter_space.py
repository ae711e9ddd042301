"""Parameter slots and their sweep domains."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from itertools import product
from numbers import Integral, Real
from typing import Any, Callable, Dict, Iterator, Mapping, Sequence

from ..errors import InvalidDomain, UnsupportedParameterType

_DECIMAL_TOLERANCE = Decimal("1e-12")

# Spans several orders of magnitude so one sweep covers small and large regimes.
DEFAULT_SIZE_LADDER: tuple[int, ...] = (0, 1, 5, 10, 25, 50, 100, 500, 1000, 5000, 10000, 50000, 100000)

Slot = int | str


class ParameterKind(str, Enum):
    """Closed set of supported parameter kinds."""

    NUMERIC = "numeric"
    ENUMERATED = "enumerated"


@dataclass(frozen=True)
class ParameterSpec:
    """Immutable description of a single parameter slot."""

    name: str
    kind: ParameterKind
    values: tuple[Any, ...] = ()
    choices: tuple[Any, ...] | None = None

    @property
    def is_enumerated(self) -> bool:
        return self.kind is ParameterKind.ENUMERATED

    def default_values(self) -> tuple[Any, ...]:
        """Return the built-in sweep domain for this slot's kind."""
        return _DEFAULT_DOMAINS[self.kind](self)

    def check_values(self, values: Sequence[Any]) -> tuple[Any, ...]:
        """
        Validate a candidate domain for this slot.

        Raises:
            InvalidDomain: when the domain is empty, holds values the slot cannot take,
                or repeats a value.
        """
        candidates = tuple(values)
        if not candidates:
            raise InvalidDomain(f"Parameter {self.name} must define at least one sweep value")
        checked = tuple(_VALUE_CHECKS[self.kind](self, value) for value in candidates)
        # Every value must yield a distinct grid point; 1 and 1.0 are the same point.
        seen: set[Any] = set()
        for value in checked:
            key = self.encode(value)
            if key in seen:
                raise InvalidDomain(f"Parameter {self.name} repeats the sweep value {value!r}")
            seen.add(key)
        return checked

    def encode(self, value: Any) -> Any:
        """Persisted form of a value: the number itself, or the index into ``choices``."""
        if not self.is_enumerated:
            value = _check_numeric(self, value)
            return int(value) if isinstance(value, Integral) else float(value)
        return self.index_of(value)

    def decode(self, code: Any) -> Any:
        """Inverse of :meth:`encode`."""
        if not self.is_enumerated:
            return code
        choices = self.choices or ()
        index = int(code)
        if not 0 <= index < len(choices):
            raise InvalidDomain(f"Index {code!r} is out of range for parameter {self.name}")
        return choices[index]

    def index_of(self, value: Any) -> int:
        """Position of ``value`` in ``choices``, matching by equality first and by label second."""
        choices = self.choices or ()
        for index, choice in enumerate(choices):
            if value == choice:
                return index
        wanted = choice_label(value)
        for index, choice in enumerate(choices):
            if choice_label(choice) == wanted:
                return index
        allowed = ", ".join(choice_label(choice) for choice in choices)
        raise InvalidDomain(f"Value {value!r} is not permitted for parameter {self.name}. Allowed: {allowed}")

    def labels(self) -> tuple[str, ...]:
        return tuple(choice_label(choice) for choice in self.choices or ())

    def to_config(self) -> dict[str, Any]:
        item: dict[str, Any] = {"kind": self.kind.value}
        if self.is_enumerated:
            item["choices"] = list(self.labels())
            item["values"] = [choice_label(value) for value in self.values]
        else:
            item["values"] = list(self.values)
        return item


def choice_label(value: Any) -> str:
    """Stable text label of an enumerated choice."""
    if isinstance(value, Enum):
        return value.name
    return str(value)


def resolve_kind(kind_or_type: Any) -> tuple[ParameterKind, tuple[Any, ...] | None]:
    """
    Map a parameter kind or Python type onto a supported kind.

    ``int`` and ``float`` are numeric; an ``Enum`` subclass is enumerated with its
    members as choices. Anything else has no default domain and no persisted encoding.
    """
    if isinstance(kind_or_type, ParameterKind):
        return kind_or_type, None
    if isinstance(kind_or_type, str):
        try:
            return ParameterKind(kind_or_type), None
        except ValueError:
            pass
    elif isinstance(kind_or_type, type):
        if issubclass(kind_or_type, Enum):
            return ParameterKind.ENUMERATED, tuple(kind_or_type)
        if issubclass(kind_or_type, Real) and not issubclass(kind_or_type, bool):
            return ParameterKind.NUMERIC, None
    raise UnsupportedParameterType(
        f"Unsupported parameter type {kind_or_type!r}: expected a numeric type or an Enum subclass"
    )


@dataclass
class ParameterSpace:
    """Ordered parameter slots. Slot order is the order of every parameter tuple."""

    parameters: list[ParameterSpec] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "ParameterSpace":
        """
        Load a parameter space from a YAML/JSON style mapping.

        Example::

            parameters:
              size: {kind: numeric, values: [10, 100, 1000]}
              depth: {kind: numeric, lower_bound: 1, upper_bound: 4, step: 1}
              direction: {kind: enumerated, choices: [ASC, DESC]}
        """
        space = cls()
        parameters_config = config.get("parameters", {}) if config else {}
        for name, raw in parameters_config.items():
            raw = raw or {}
            kind = raw.get("kind", ParameterKind.NUMERIC.value)
            values = raw.get("values")
            if values is None and raw.get("lower_bound") is not None:
                values = _range_values(name, raw.get("lower_bound"), raw.get("upper_bound"), raw.get("step"))
            space.add_parameter(name, kind, values, choices=raw.get("choices"))
        return space

    def to_config(self) -> dict[str, Any]:
        return {"parameters": {spec.name: spec.to_config() for spec in self.parameters}}

    def add_parameter(
        self,
        name: str,
        kind: Any = int,
        values: Sequence[Any] | None = None,
        *,
        choices: Sequence[Any] | None = None,
    ) -> ParameterSpec:
        """
        Register a new slot at the end of the slot order.

        Args:
            name: Unique slot name.
            kind: ``ParameterKind``, its string value, a numeric type or an ``Enum`` subclass.
            values: Sweep domain. The kind's default domain is installed when omitted.
            choices: Exhaustive choice set for enumerated slots not backed by an ``Enum``.

        Raises:
            UnsupportedParameterType: when ``kind`` is neither numeric nor enumerated.
            InvalidDomain: on a duplicate name, empty choices or an invalid domain.
        """
        resolved, enum_choices = resolve_kind(kind)
        if name in self.names():
            raise InvalidDomain(f"Duplicate parameter definition: {name}")

        resolved_choices: tuple[Any, ...] | None = None
        if resolved is ParameterKind.ENUMERATED:
            resolved_choices = tuple(choices) if choices is not None else enum_choices
            if not resolved_choices:
                raise InvalidDomain(f"Enumerated parameter {name} must declare a finite, non-empty choice set")
            if len(set(choice_label(choice) for choice in resolved_choices)) != len(resolved_choices):
                raise InvalidDomain(f"Enumerated parameter {name} has duplicate choices")
        elif choices is not None:
            raise InvalidDomain(f"Numeric parameter {name} cannot declare choices")

        spec = ParameterSpec(name=name, kind=resolved, choices=resolved_choices)
        domain = spec.default_values() if values is None else values
        spec = replace(spec, values=spec.check_values(domain))
        self.parameters.append(spec)
        return spec

    def names(self) -> list[str]:
        return [spec.name for spec in self.parameters]

    def slot_index(self, slot: Slot) -> int:
        if isinstance(slot, str):
            try:
                return self.names().index(slot)
            except ValueError:
                raise InvalidDomain(f"Unknown parameter: {slot}") from None
        if not 0 <= slot < len(self.parameters):
            raise InvalidDomain(f"Parameter slot {slot} is out of range (0..{len(self.parameters) - 1})")
        return slot

    def register_default(self, slot: Slot) -> tuple[Any, ...]:
        """Install the built-in domain for a slot's kind. Idempotent."""
        index = self.slot_index(slot)
        spec = self.parameters[index]
        self.parameters[index] = replace(spec, values=spec.default_values())
        return self.parameters[index].values

    def override(self, slot: Slot, values: Sequence[Any]) -> tuple[Any, ...]:
        """Replace a slot's domain. An empty or out-of-kind domain raises ``InvalidDomain``."""
        index = self.slot_index(slot)
        spec = self.parameters[index]
        self.parameters[index] = replace(spec, values=spec.check_values(values))
        return self.parameters[index].values

    def grid(self) -> Dict[str, tuple[Any, ...]]:
        """Ordered mapping of slot name to its sweep domain."""
        return {spec.name: spec.values for spec in self.parameters}

    def size(self) -> int:
        total = 1
        for spec in self.parameters:
            total *= len(spec.values)
        return total

    def iter_grid(self) -> Iterator[tuple[Any, ...]]:
        """Iterate over the full cartesian product, last slot varying fastest."""
        return product(*(spec.values for spec in self.parameters))

    def normalise(self, parameters: Mapping[str, Any] | Sequence[Any]) -> tuple[Any, ...]:
        """
        Turn a mapping by name or a positional sequence into a tuple in slot order.

        Raises:
            InvalidDomain: when parameters are missing, unknown or of the wrong arity.
        """
        if isinstance(parameters, Mapping):
            missing = [name for name in self.names() if name not in parameters]
            if missing:
                raise InvalidDomain(f"Missing required parameter(s): {', '.join(missing)}")
            extra_keys = sorted(set(parameters) - set(self.names()))
            if extra_keys:
                raise InvalidDomain(f"Unknown parameter(s): {', '.join(extra_keys)}")
            return tuple(parameters[name] for name in self.names())

        values = tuple(parameters)
        if len(values) != len(self.parameters):
            raise InvalidDomain(f"Expected {len(self.parameters)} parameter value(s), got {len(values)}")
        return values

    def contains(self, parameters: Mapping[str, Any] | Sequence[Any]) -> bool:
        """Return True when the tuple is a member of the configured cartesian product."""
        try:
            values = self.normalise(parameters)
        except InvalidDomain:
            return False
        return all(value in spec.values for spec, value in zip(self.parameters, values))

    def __len__(self) -> int:
        return len(self.parameters)

    def __iter__(self) -> Iterator[ParameterSpec]:
        return iter(self.parameters)

    def __getitem__(self, slot: Slot) -> ParameterSpec:
        return self.parameters[self.slot_index(slot)]


def _check_numeric(spec: ParameterSpec, value: Any) -> Any:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidDomain(f"Parameter {spec.name} expects numeric values, got {type(value).__name__}")
    return value


def _check_choice(spec: ParameterSpec, value: Any) -> Any:
    return spec.decode(spec.index_of(value))


_DEFAULT_DOMAINS: Dict[ParameterKind, Callable[[ParameterSpec], tuple[Any, ...]]] = {
    ParameterKind.NUMERIC: lambda spec: DEFAULT_SIZE_LADDER,
    ParameterKind.ENUMERATED: lambda spec: tuple(spec.choices or ()),
}

_VALUE_CHECKS: Dict[ParameterKind, Callable[[ParameterSpec, Any], Any]] = {
    ParameterKind.NUMERIC: _check_numeric,
    ParameterKind.ENUMERATED: _check_choice,
}


def _range_values(name: str, lower: Any, upper: Any, step: Any) -> tuple[Any, ...]:
    """Expand a bounded range with step into grid values."""
    if lower is None or upper is None or step is None:
        raise InvalidDomain(f"Parameter {name} must define either values or lower_bound, upper_bound and step")
    if upper < lower:
        raise InvalidDomain(f"Parameter {name} has upper_bound < lower_bound")

    step_decimal = Decimal(str(step))
    if step_decimal <= 0:
        raise InvalidDomain(f"Parameter {name} requires a positive step size")

    current = Decimal(str(lower))
    upper_decimal = Decimal(str(upper))
    values: list[Decimal] = []
    max_iterations = 1_000_000
    while current <= upper_decimal + _DECIMAL_TOLERANCE:
        values.append(current)
        current += step_decimal
        if len(values) > max_iterations:
            raise InvalidDomain(
                f"Parameter {name} produced more than {max_iterations} grid values. "
                "Check range and step configuration."
            )
    return tuple(_coerce_decimal(value) for value in values)


def _coerce_decimal(value: Decimal) -> Any:
    """Convert Decimal back to int or float, preserving integer representations."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)
