"""Parameter combinations and parameter spaces.

A ParameterCombination is an immutable name -> value mapping with a
content hash that is stable across processes and independent of the
order in which parameters were given. It is the unit the optimizer
returns and the backtest runner replays.
"""

import hashlib
import itertools
import json
import math
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional, Tuple

from pydantic import Field, model_validator

from config.base import BaseConfig
from validation.errors import ConfigurationError

FLOAT_PRECISION = 10


def _canonical_value(value: Any) -> Any:
    """JSON-friendly value that keeps type distinctions (1, 1.0, True, '1')."""
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int):
        return {"int": value}
    if isinstance(value, float):
        return {"float": repr(value)}
    if isinstance(value, Decimal):
        return {"decimal": str(value)}
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return [_canonical_value(v) for v in value]
    return {type(value).__name__: str(value)}


class ParameterCombination(Mapping):
    """
    Immutable mapping of parameter names to values.

    Equality and hashing are defined by content, so two combinations built
    from the same values in a different order are interchangeable as
    dictionary keys.
    """

    __slots__ = ("_items", "_hash")

    def __init__(self, values: Optional[Mapping[str, Any]] = None, **kwargs: Any):
        merged = dict(values or {})
        merged.update(kwargs)
        for name in merged:
            if not isinstance(name, str) or not name:
                raise ConfigurationError(f"Parameter names must be non-empty strings, got {name!r}")
        object.__setattr__(self, "_items", tuple(sorted(merged.items(), key=lambda item: item[0])))
        object.__setattr__(self, "_hash", None)

    def __getitem__(self, name: str) -> Any:
        for key, value in self._items:
            if key == name:
                return value
        raise KeyError(name)

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __setattr__(self, name: str, value: Any) -> None:
        raise TypeError("ParameterCombination is immutable")

    def __delattr__(self, name: str) -> None:
        raise TypeError("ParameterCombination is immutable")

    @property
    def stable_hash(self) -> str:
        """SHA-256 hex digest of the canonical, name-sorted content."""
        if self._hash is None:
            payload = [[key, _canonical_value(value)] for key, value in self._items]
            serialized = json.dumps(payload, sort_keys=True, separators=(",", ":"))
            digest = hashlib.sha256(serialized.encode("utf-8")).hexdigest()
            object.__setattr__(self, "_hash", digest)
        return self._hash

    def __hash__(self) -> int:
        return int(self.stable_hash[:16], 16)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterCombination):
            return NotImplemented
        return self.stable_hash == other.stable_hash

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._items)

    def __repr__(self) -> str:
        inner = ", ".join(f"{key}={value!r}" for key, value in self._items)
        return f"ParameterCombination({inner})"


class ParameterDefinition(BaseConfig):
    """
    One optimizable parameter.

    Either a numeric range (`min_value`, `max_value`, `step`) or an
    explicit list of `choices`.
    """

    name: str = Field(description="Parameter name", min_length=1)
    min_value: Optional[float | int] = Field(default=None, description="Lowest value (inclusive)")
    max_value: Optional[float | int] = Field(default=None, description="Highest value (inclusive)")
    step: Optional[float | int] = Field(default=None, description="Increment between values (> 0)")
    choices: Optional[List[Any]] = Field(default=None, description="Explicit candidate values")

    @model_validator(mode="after")
    def validate_shape(self) -> "ParameterDefinition":
        """Exactly one of range or choices, with a consistent range."""
        has_range = any(v is not None for v in (self.min_value, self.max_value, self.step))
        if self.choices is not None:
            if has_range:
                raise ValueError(f"Parameter '{self.name}': give either choices or a range, not both")
            if len(self.choices) == 0:
                raise ValueError(f"Parameter '{self.name}': choices must not be empty")
            return self

        if self.min_value is None or self.max_value is None or self.step is None:
            raise ValueError(f"Parameter '{self.name}': range needs min_value, max_value and step")
        if self.step <= 0:
            raise ValueError(f"Parameter '{self.name}': step must be > 0, got {self.step}")
        if self.min_value > self.max_value:
            raise ValueError(
                f"Parameter '{self.name}': min_value ({self.min_value}) > max_value ({self.max_value})"
            )
        return self

    @property
    def is_integer(self) -> bool:
        """True when the range is made only of integers."""
        if self.choices is not None:
            return False
        return all(
            isinstance(v, int) and not isinstance(v, bool)
            for v in (self.min_value, self.max_value, self.step)
        )

    def values(self) -> List[Any]:
        """Ordered candidate values."""
        if self.choices is not None:
            return list(self.choices)

        if self.is_integer:
            return list(range(self.min_value, self.max_value + 1, self.step))

        count = int(math.floor((self.max_value - self.min_value) / self.step + 1e-9)) + 1
        return [round(self.min_value + i * self.step, FLOAT_PRECISION) for i in range(count)]


class ParameterSpace:
    """
    Cartesian product of parameter definitions.

    Combinations are enumerated lazily in a fixed order: the last
    definition varies fastest.
    """

    def __init__(self, definitions: Optional[List[ParameterDefinition]] = None):
        self.definitions: Tuple[ParameterDefinition, ...] = tuple(definitions or ())

        names = [d.name for d in self.definitions]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate parameter names: {duplicates}")

        self._values: List[List[Any]] = [d.values() for d in self.definitions]

    @classmethod
    def from_dict(cls, space: Mapping[str, Mapping[str, Any]]) -> "ParameterSpace":
        """
        Build a space from a config mapping.

        Example:
            >>> ParameterSpace.from_dict({"fast": {"min_value": 5, "max_value": 20, "step": 5}})
        """
        definitions = []
        for name, settings in space.items():
            try:
                definitions.append(ParameterDefinition(name=name, **dict(settings)))
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid parameter '{name}': {e}") from e
        return cls(definitions)

    @property
    def names(self) -> List[str]:
        return [d.name for d in self.definitions]

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def __len__(self) -> int:
        if not self.definitions:
            return 0
        return math.prod(len(values) for values in self._values)

    def combinations(self) -> Iterator[ParameterCombination]:
        """Yield every combination in Cartesian order."""
        if not self.definitions:
            return
        for values in itertools.product(*self._values):
            yield ParameterCombination(dict(zip(self.names, values)))

    def combination_at(self, index: int) -> ParameterCombination:
        """Combination at a position of the Cartesian order."""
        total = len(self)
        if index < 0 or index >= total:
            raise IndexError(f"Combination index {index} out of range (size {total})")

        chosen = []
        for values in reversed(self._values):
            index, position = divmod(index, len(values))
            chosen.append(values[position])
        return ParameterCombination(dict(zip(self.names, reversed(chosen))))

    def __repr__(self) -> str:
        return f"ParameterSpace(names={self.names}, combinations={len(self)})"
