from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping

from jsondriven.exceptions import AssertionMismatch, InvalidTestShape, UnrecognizedResultAspect


def as_int64(value: Any) -> int:
    """Reads an expected count the way extended JSON writes it."""
    if isinstance(value, bool):
        raise InvalidTestShape(f"Expected an integer, got {value!r}.")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, Mapping) and set(value) in ({"$numberLong"}, {"$numberInt"}):
        return int(next(iter(value.values())))
    raise InvalidTestShape(f"Expected an integer, got {value!r}.")


def as_is(value: Any) -> Any:
    return value


def values_equal(expected: Any, actual: Any) -> bool:
    # bool is an int subclass; True must not match 1
    if isinstance(expected, bool) or isinstance(actual, bool):
        return type(expected) is type(actual) and expected == actual
    return expected == actual


@dataclass(frozen=True)
class Aspect:
    """One named sub-check: how to read the actual value and normalize the expected one."""
    extract: Callable[[Any], Any]
    coerce: Callable[[Any], Any] = as_is


class AspectTable:
    """Named result aspects of one operation."""

    def __init__(self, operation: str, aspects: Mapping[str, Aspect]):
        self.operation = operation
        self._aspects: Dict[str, Aspect] = dict(aspects)

    def names(self):
        return list(self._aspects)

    def check(self, expected_result: Any, outcome: Any):
        """
        Compares every expected aspect against the outcome, in field order.

        The first failing aspect stops the walk: a mismatch raises
        AssertionMismatch, an unknown name raises UnrecognizedResultAspect.
        """
        if not isinstance(expected_result, Mapping):
            raise InvalidTestShape(
                f"Expected {self.operation} result must be a document, got {type(expected_result).__name__}.",
                field="result",
            )
        for name, expected_value in expected_result.items():
            self.check_aspect(name, expected_value, outcome)

    def check_aspect(self, name: str, expected_value: Any, outcome: Any):
        aspect = self._aspects.get(name)
        if aspect is None:
            raise UnrecognizedResultAspect(self.operation, name)
        expected = aspect.coerce(expected_value)
        actual = aspect.extract(outcome)
        if not values_equal(expected, actual):
            raise AssertionMismatch(name, expected, actual)
