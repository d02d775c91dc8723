"""
Pricing helpers

All order arithmetic is done on integer cents. Decimal amounts only appear
when reading product prices and when rendering the order document.
"""
import math
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Union

CENT = Decimal("0.01")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def to_cents(amount: Union[Decimal, float, int, str]) -> int:
    """
    Convert a decimal currency amount to integer cents.

    Rounds half away from zero on the cent boundary, e.g. 9.995 -> 1000.
    """
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return int(value.quantize(CENT, rounding=ROUND_HALF_UP) * 100)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a two-decimal amount."""
    return (Decimal(cents) / 100).quantize(CENT)


def coerce_quantity(value: Any) -> int:
    """
    Turn a client-supplied quantity into a positive integer.

    Integers are kept, floats are truncated, strings are read up to their
    first non-digit ("3 units" -> 3). Anything else counts as 1, and the
    result is never below 1.
    """
    quantity = 1
    if isinstance(value, bool):
        quantity = 1
    elif isinstance(value, int):
        quantity = value
    elif isinstance(value, float):
        quantity = int(value) if math.isfinite(value) else 1
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            quantity = int(match.group(1))
    return max(1, quantity)
