"""
Decimal Arithmetic Utilities

All money, rate and percentage values flow through these helpers.
Money is rounded to cents with ROUND_HALF_UP; binary floats never
reach the calculators.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from .errors import InvalidInputError

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Inputs stay below this so quantized products fit the default 28-digit context
MAX_MAGNITUDE = Decimal("1e10")


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places using ROUND_HALF_UP."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_percentage(value: Decimal) -> Decimal:
    """Percentages keep 2 decimal places (e.g. 33.33)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def format_money(value: Decimal) -> str:
    """Canonical string form for serialised output ("1234.50")."""
    return str(quantize_money(value))


def to_decimal(value, field: str) -> Decimal:
    """
    Parse a stored or transmitted number into a Decimal.

    Strings and ints are parsed exactly. Floats (as produced by JSON
    decoders) go through their shortest repr, so 0.1 becomes Decimal("0.1")
    rather than the binary approximation.
    """
    if value is None:
        raise InvalidInputError(f"{field} is required")
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be a number, got boolean: {value}")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidInputError(f"{field} is not a valid number: {value!r}") from None
    else:
        raise InvalidInputError(f"{field} has unsupported type {type(value).__name__}")

    if not result.is_finite():
        raise InvalidInputError(f"{field} must be finite, got: {value}")
    if abs(result) >= MAX_MAGNITUDE:
        raise InvalidInputError(f"{field} is out of range, got: {value}")
    return result


def to_quantity(value, field: str) -> int:
    """Parse a non-negative whole number of units."""
    amount = to_decimal(value, field)
    if amount != amount.to_integral_value():
        raise InvalidInputError(f"{field} must be a whole number of units, got: {value}")
    if amount < 0:
        raise InvalidInputError(f"{field} cannot be negative, got: {value}")
    return int(amount)
