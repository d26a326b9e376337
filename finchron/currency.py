"""
Money values for the simulation.

Purpose
-------
Currency wraps a float amount and serves both as a running accumulator
(mutating ``add``/``subtract``/...) and as an immutable value in
expressions (``plus``/``minus``/...). Full precision is kept through every
intermediate step; rounding to cents happens only when formatting or
serializing, so hundreds of simulated months do not compound rounding
error.

Rules
-----
- Arithmetic never skips a zero operand.
- Dividing by zero logs a warning and leaves the value unchanged
  (``divided_by(0)`` returns zero).
- ``Currency.parse`` never raises: unparseable text is zero.

Example
-------
>>> balance = Currency.parse("$1,234.56")
>>> balance.add(100).to_fixed()
1334.56
>>> str(balance.times(2))
'$2669.12'
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Union

from .types import CurrencyDict
from .utils import get_logger

__all__ = ["Currency"]

logger = get_logger()

Operand = Union["Currency", float, int]


def _amount_of(value: Operand) -> float:
    if isinstance(value, Currency):
        return value.amount
    if isinstance(value, Real) and not isinstance(value, bool):
        return float(value)
    raise TypeError(f"Expected Currency or number, got {type(value).__name__}")


class Currency:
    """
    Money amount with mutating and immutable arithmetic.

    Parameters
    ----------
    amount : float, default 0.0
        Initial amount. Non-numeric or non-finite input becomes 0.0.
    """

    __slots__ = ("amount",)

    def __init__(self, amount: float = 0.0):
        if isinstance(amount, Currency):
            amount = amount.amount
        if isinstance(amount, Real) and not isinstance(amount, bool) and math.isfinite(amount):
            self.amount = float(amount)
        else:
            self.amount = 0.0

    @classmethod
    def parse(cls, text: object) -> "Currency":
        """Parse "$1,234.56" or "1234.56"; anything unparseable is zero."""
        if isinstance(text, Currency):
            return text.copy()
        if isinstance(text, Real) and not isinstance(text, bool):
            return cls(float(text))
        if not isinstance(text, str):
            return cls()
        cleaned = text.replace("$", "").replace(",", "").strip()
        try:
            return cls(float(cleaned))
        except ValueError:
            return cls()

    @classmethod
    def from_dict(cls, data: CurrencyDict) -> "Currency":
        return cls(data.get("amount", 0.0))

    def copy(self) -> "Currency":
        return Currency(self.amount)

    # ------------------------------------------------------------------
    # Mutating arithmetic
    # ------------------------------------------------------------------

    def add(self, other: Operand) -> "Currency":
        self.amount += _amount_of(other)
        return self

    def subtract(self, other: Operand) -> "Currency":
        self.amount -= _amount_of(other)
        return self

    def multiply(self, factor: float) -> "Currency":
        self.amount *= float(factor)
        return self

    def divide(self, divisor: float) -> "Currency":
        if divisor == 0:
            logger.warning("Currency.divide: division by zero ignored (amount %.2f)", self.amount)
            return self
        self.amount /= float(divisor)
        return self

    def flip_sign(self) -> "Currency":
        self.amount = -self.amount
        return self

    def zero(self) -> "Currency":
        self.amount = 0.0
        return self

    # ------------------------------------------------------------------
    # Immutable arithmetic
    # ------------------------------------------------------------------

    def plus(self, other: Operand) -> "Currency":
        return Currency(self.amount + _amount_of(other))

    def minus(self, other: Operand) -> "Currency":
        return Currency(self.amount - _amount_of(other))

    def times(self, factor: float) -> "Currency":
        return Currency(self.amount * float(factor))

    def divided_by(self, divisor: float) -> "Currency":
        if divisor == 0:
            logger.warning("Currency.divided_by: division by zero, returning zero")
            return Currency()
        return Currency(self.amount / float(divisor))

    def negated(self) -> "Currency":
        return Currency(-self.amount)

    def abs(self) -> "Currency":
        return Currency(abs(self.amount))

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def is_positive(self) -> bool:
        return self.amount > 0

    def is_negative(self) -> bool:
        return self.amount < 0

    def is_zero(self) -> bool:
        return self.amount == 0

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def to_fixed(self) -> float:
        return round(self.amount, 2)

    def __str__(self) -> str:
        return f"${self.to_fixed():.2f}"

    def to_plain_string(self) -> str:
        """Two-decimal text without the currency symbol, for numeric fields."""
        return f"{self.to_fixed():.2f}"

    def __repr__(self) -> str:
        return f"Currency({self.amount!r})"

    def to_dict(self) -> CurrencyDict:
        return {"amount": self.to_fixed()}
