"""Tests for parameter slots and sweep domains."""

import pytest

from conftest import Direction
from nadir.benchmark.parameter_space import (
    DEFAULT_SIZE_LADDER,
    ParameterKind,
    ParameterSpace,
)
from nadir.errors import InvalidDomain, RegistrationError, UnsupportedParameterType


class TestDefaults:
    """Tests for the built-in domains."""

    def test_numeric_default_is_size_ladder(self):
        space = ParameterSpace()
        spec = space.add_parameter("size", int)

        assert spec.kind is ParameterKind.NUMERIC
        assert spec.values == DEFAULT_SIZE_LADDER
        assert spec.values[0] == 0 and spec.values[-1] == 100000

    def test_enum_default_is_every_member(self):
        space = ParameterSpace()
        spec = space.add_parameter("direction", Direction)

        assert spec.kind is ParameterKind.ENUMERATED
        assert spec.values == (Direction.ASC, Direction.DESC)
        assert spec.choices == (Direction.ASC, Direction.DESC)

    def test_register_default_is_idempotent(self):
        space = ParameterSpace()
        space.add_parameter("size", int, [3, 7])
        space.add_parameter("direction", Direction, [Direction.DESC])

        first = (space.register_default(0), space.register_default("direction"))
        second = (space.register_default(0), space.register_default("direction"))

        assert first == second
        assert space.grid() == {"size": DEFAULT_SIZE_LADDER, "direction": (Direction.ASC, Direction.DESC)}

    def test_explicit_choices_without_enum(self):
        space = ParameterSpace()
        spec = space.add_parameter("layout", ParameterKind.ENUMERATED, choices=["row", "column"])

        assert spec.values == ("row", "column")


class TestRegistrationErrors:
    """Tests for invalid slot registrations."""

    @pytest.mark.parametrize("kind", [str, bool, list, object(), "matrix"])
    def test_unsupported_type(self, kind):
        space = ParameterSpace()
        with pytest.raises(UnsupportedParameterType):
            space.add_parameter("thing", kind)
        assert len(space) == 0

    def test_registration_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            ParameterSpace().add_parameter("thing", dict)
        assert issubclass(InvalidDomain, RegistrationError)

    def test_enumerated_without_choices(self):
        with pytest.raises(InvalidDomain, match="finite, non-empty choice set"):
            ParameterSpace().add_parameter("layout", ParameterKind.ENUMERATED)

    def test_duplicate_name(self):
        space = ParameterSpace()
        space.add_parameter("size", int)
        with pytest.raises(InvalidDomain, match="Duplicate parameter"):
            space.add_parameter("size", float)

    def test_numeric_domain_rejects_non_numbers(self):
        with pytest.raises(InvalidDomain, match="expects numeric values"):
            ParameterSpace().add_parameter("size", int, [1, "two"])


class TestOverride:
    """Tests for replacing a slot's domain."""

    def test_override_replaces_domain(self, size_space):
        size_space.override(0, [10, 20])
        assert size_space.grid() == {"size": (10, 20)}

    def test_override_empty_fails(self, size_space):
        with pytest.raises(InvalidDomain, match="at least one sweep value"):
            size_space.override("size", [])
        assert size_space["size"].values == (1, 2, 3, 4)

    def test_override_enum_outside_choices(self, mixed_space):
        with pytest.raises(InvalidDomain, match="not permitted"):
            mixed_space.override("direction", ["SIDEWAYS"])

    def test_override_enum_by_label(self, mixed_space):
        mixed_space.override("direction", ["DESC"])
        assert mixed_space["direction"].values == (Direction.DESC,)

    def test_unknown_slot(self, size_space):
        with pytest.raises(InvalidDomain):
            size_space.override(3, [1])
        with pytest.raises(InvalidDomain):
            size_space.override("depth", [1])

    @pytest.mark.parametrize(
        "slot, values",
        [
            ("size", [10, 10]),
            ("size", [1, 1.0]),
            ("direction", ["ASC", Direction.ASC]),
        ],
    )
    def test_override_rejects_repeated_values(self, mixed_space, slot, values):
        before = mixed_space.grid()
        with pytest.raises(InvalidDomain, match="repeats the sweep value"):
            mixed_space.override(slot, values)
        assert mixed_space.grid() == before

    def test_add_parameter_rejects_repeated_values(self):
        space = ParameterSpace()
        with pytest.raises(InvalidDomain, match="repeats"):
            space.add_parameter("size", int, [5, 50, 5])
        assert len(space) == 0


class TestGrid:
    """Tests for cartesian product iteration."""

    def test_last_slot_varies_fastest(self):
        space = ParameterSpace()
        space.add_parameter("size", int, [1, 2])
        space.add_parameter("direction", Direction)

        assert list(space.iter_grid()) == [
            (1, Direction.ASC),
            (1, Direction.DESC),
            (2, Direction.ASC),
            (2, Direction.DESC),
        ]
        assert space.size() == 4

    def test_contains(self, mixed_space):
        assert mixed_space.contains((100, Direction.DESC))
        assert mixed_space.contains({"size": 10, "direction": Direction.ASC})
        assert not mixed_space.contains((50, Direction.ASC))
        assert not mixed_space.contains((10,))

    def test_normalise_mapping(self, mixed_space):
        assert mixed_space.normalise({"direction": Direction.ASC, "size": 5}) == (5, Direction.ASC)
        with pytest.raises(InvalidDomain, match="Unknown parameter"):
            mixed_space.normalise({"direction": Direction.ASC, "size": 5, "depth": 1})
        with pytest.raises(InvalidDomain, match="Missing required"):
            mixed_space.normalise({"size": 5})


class TestEncoding:
    """Tests for persisted value encoding."""

    def test_enum_encodes_as_index(self, mixed_space):
        spec = mixed_space["direction"]
        assert spec.encode(Direction.DESC) == 1
        assert spec.decode(0) is Direction.ASC

    def test_decode_out_of_range(self, mixed_space):
        with pytest.raises(InvalidDomain):
            mixed_space["direction"].decode(2)

    def test_numeric_encodes_as_number(self, size_space):
        spec = size_space["size"]
        assert spec.encode(3) == 3
        assert spec.encode(2.5) == 2.5


class TestConfig:
    """Tests for mapping based configuration."""

    def test_from_config(self):
        space = ParameterSpace.from_config(
            {
                "parameters": {
                    "size": {"kind": "numeric", "values": [1, 10]},
                    "depth": {"lower_bound": 1, "upper_bound": 2, "step": 0.5},
                    "direction": {"kind": "enumerated", "choices": ["ASC", "DESC"]},
                    "ladder": {},
                }
            }
        )

        assert space.names() == ["size", "depth", "direction", "ladder"]
        assert space["depth"].values == (1, 1.5, 2)
        assert space["direction"].values == ("ASC", "DESC")
        assert space["ladder"].values == DEFAULT_SIZE_LADDER

    def test_to_config_round_trip(self, mixed_space):
        config = mixed_space.to_config()
        assert config["parameters"]["direction"] == {
            "kind": "enumerated",
            "choices": ["ASC", "DESC"],
            "values": ["ASC", "DESC"],
        }

        rebuilt = ParameterSpace.from_config(config)
        assert rebuilt.names() == mixed_space.names()
        assert rebuilt["size"].values == (10, 100, 1000)

    def test_bad_range(self):
        with pytest.raises(InvalidDomain, match="positive step"):
            ParameterSpace.from_config({"parameters": {"depth": {"lower_bound": 1, "upper_bound": 2, "step": 0}}})
