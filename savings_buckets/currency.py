"""
Currency Arithmetic

Every monetary value in the ledger goes through this module.

DESIGN DECISION: Money is a Decimal quantized to the cent.
Floats are converted through str() first, so 0.1 + 0.2 becomes
Decimal("0.30000000000000004") and rounds to 0.30 rather than
carrying binary noise into the ledger.

Rounding is half away from zero (ROUND_HALF_UP in decimal terms).
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Union

Number = Union[Decimal, float, int, str]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without rounding."""
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise ValueError("Booleans are not currency values")
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"Not a currency value: {value!r}")
    else:
        raise ValueError(f"Not a currency value: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Currency values must be finite, got {value!r}")
    return result


def round_to_cents(value: Number) -> Decimal:
    """Round to the nearest cent, halves away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def add_currency(a: Number, b: Number) -> Decimal:
    return round_to_cents(to_decimal(a) + to_decimal(b))


def subtract_currency(a: Number, b: Number) -> Decimal:
    return round_to_cents(to_decimal(a) - to_decimal(b))


def multiply_currency(value: Number, factor: Number) -> Decimal:
    return round_to_cents(to_decimal(value) * to_decimal(factor))


def sum_currency(values: Iterable[Number]) -> Decimal:
    """Sum a collection of amounts, rounding the result."""
    total = ZERO
    for value in values:
        total += to_decimal(value)
    return round_to_cents(total)


def format_currency(value: Number) -> str:
    """
    Render an amount with two decimals and thousands separators.

    Always uses "," for grouping and "." as the decimal point,
    regardless of locale.
    """
    return f"{round_to_cents(value):,.2f}"
