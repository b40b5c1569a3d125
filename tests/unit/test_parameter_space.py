"""Unit tests for parameter combinations and spaces."""

import pytest

from validation.errors import ConfigurationError
from validation.parameters import ParameterCombination, ParameterDefinition, ParameterSpace


class TestParameterCombination:
    """Immutable combinations with an order-independent stable hash."""

    def test_hash_is_order_independent(self):
        a = ParameterCombination({"fast": 5, "slow": 20})
        b = ParameterCombination({"slow": 20, "fast": 5})

        assert a.stable_hash == b.stable_hash
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1

    def test_hash_is_type_sensitive(self):
        """1, 1.0, True and '1' are distinct values."""
        hashes = {
            ParameterCombination(x=value).stable_hash
            for value in (1, 1.0, True, "1")
        }

        assert len(hashes) == 4

    def test_hash_is_stable_across_instances(self):
        """The hash is a pure function of the values."""
        first = ParameterCombination(x=3, mode="long_only").stable_hash
        second = ParameterCombination({"mode": "long_only", "x": 3}).stable_hash

        assert first == second
        assert len(first) == 64

    def test_different_values_differ(self):
        assert ParameterCombination(x=1) != ParameterCombination(x=2)

    def test_mapping_interface(self):
        combination = ParameterCombination({"b": 2, "a": 1})

        assert combination["a"] == 1
        assert list(combination) == ["a", "b"]
        assert len(combination) == 2
        assert dict(combination) == {"a": 1, "b": 2}
        assert combination.to_dict() == {"a": 1, "b": 2}

    def test_immutable(self):
        combination = ParameterCombination(x=1)

        with pytest.raises(TypeError):
            combination["x"] = 2
        with pytest.raises(TypeError):
            combination.extra = 1

    def test_empty_name_rejected(self):
        with pytest.raises(ConfigurationError):
            ParameterCombination({"": 1})


class TestParameterDefinition:
    """Range and choice definitions."""

    def test_integer_range(self):
        definition = ParameterDefinition(name="fast", min_value=5, max_value=20, step=5)

        assert definition.is_integer
        assert definition.values() == [5, 10, 15, 20]

    def test_float_range_includes_max(self):
        definition = ParameterDefinition(name="stop", min_value=0.1, max_value=0.5, step=0.1)

        assert definition.values() == [0.1, 0.2, 0.3, 0.4, 0.5]

    def test_choices(self):
        definition = ParameterDefinition(name="mode", choices=["long_only", "long_short"])

        assert not definition.is_integer
        assert definition.values() == ["long_only", "long_short"]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_value": 1, "max_value": 5},
            {"min_value": 5, "max_value": 1, "step": 1},
            {"min_value": 1, "max_value": 5, "step": 0},
            {"choices": []},
            {"choices": [1], "min_value": 1, "max_value": 2, "step": 1},
        ],
    )
    def test_invalid_definitions(self, kwargs):
        with pytest.raises(ValueError):
            ParameterDefinition(name="p", **kwargs)


class TestParameterSpace:
    """Cartesian enumeration of definitions."""

    def test_size_and_order(self):
        space = ParameterSpace.from_dict(
            {
                "fast": {"min_value": 5, "max_value": 10, "step": 5},
                "mode": {"choices": ["a", "b", "c"]},
            }
        )

        combinations = list(space.combinations())

        assert len(space) == 6
        assert len(combinations) == 6
        assert combinations[0].to_dict() == {"fast": 5, "mode": "a"}
        assert combinations[1].to_dict() == {"fast": 5, "mode": "b"}
        assert combinations[-1].to_dict() == {"fast": 10, "mode": "c"}
        assert len({c.stable_hash for c in combinations}) == 6

    def test_combination_at_matches_enumeration(self):
        space = ParameterSpace.from_dict(
            {
                "a": {"min_value": 1, "max_value": 3, "step": 1},
                "b": {"choices": [True, False]},
                "c": {"min_value": 0.5, "max_value": 1.0, "step": 0.25},
            }
        )

        for index, combination in enumerate(space.combinations()):
            assert space.combination_at(index) == combination

        with pytest.raises(IndexError):
            space.combination_at(len(space))

    def test_empty_space(self):
        space = ParameterSpace()

        assert len(space) == 0
        assert space.is_empty
        assert list(space.combinations()) == []

    def test_duplicate_names_rejected(self):
        definition = ParameterDefinition(name="x", choices=[1])

        with pytest.raises(ConfigurationError):
            ParameterSpace([definition, definition])

    def test_invalid_dict_raises_configuration_error(self):
        with pytest.raises(ConfigurationError):
            ParameterSpace.from_dict({"x": {"min_value": 1}})
