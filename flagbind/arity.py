import sys
from typing import Any

from attrs import field

from flagbind.utils import frozen

INF = sys.maxsize
"""Stands in for an unbounded maximum; never reachable by a real token stream."""


def _non_negative(instance, attribute, value):
    if value < 0:
        raise ValueError(f"Arity {attribute.name} must be non-negative; got {value}.")


@frozen
class Arity:
    """Closed range ``[min, max]`` of tokens a slot may consume."""

    min: int = field(validator=_non_negative)
    max: int = field(validator=_non_negative)

    def __attrs_post_init__(self):
        if self.min > self.max:
            raise ValueError(f"Arity min ({self.min}) exceeds max ({self.max}).")

    @property
    def is_unbounded(self) -> bool:
        return self.max == INF

    @property
    def is_optional(self) -> bool:
        return self.min == 0

    def __str__(self):
        for symbol, preset in _SYMBOLS.items():
            if preset == self:
                return symbol
        if self.min == self.max:
            return str(self.min)
        maximum = "inf" if self.is_unbounded else str(self.max)
        return f"{self.min}..{maximum}"

    @classmethod
    def parse(cls, value: Any) -> "Arity":
        """Interpret an arity given as an :class:`Arity`, an ``int``, a ``(min, max)`` pair or ``"?"``/``"+"``/``"*"``.

        Raises
        ------
        ValueError
            If ``value`` does not describe a valid arity.
        """
        if isinstance(value, Arity):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid arity: {value!r}.")
        if isinstance(value, int):
            return cls(value, value)
        if isinstance(value, str):
            try:
                return _SYMBOLS[value]
            except KeyError:
                pass
            if value.isdigit():
                return cls(int(value), int(value))
            raise ValueError(f'Invalid arity: {value!r}. Expected "?", "+", "*" or an integer.')
        if isinstance(value, tuple) and len(value) == 2:
            return cls(*value)
        raise ValueError(f"Invalid arity: {value!r}.")


NONE = Arity(0, 0)
EXACTLY_ONE = Arity(1, 1)
OPTIONAL = Arity(0, 1)
ONE_OR_MORE = Arity(1, INF)
ZERO_OR_MORE = Arity(0, INF)

_SYMBOLS = {
    "?": OPTIONAL,
    "+": ONE_OR_MORE,
    "*": ZERO_OR_MORE,
}
