"""
Decimal helpers for cost and money arithmetic.

Costs never pass through binary float: values coming from JSON, the database
driver or callers are normalized with to_decimal() before any multiplication.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[None, int, float, str, Decimal]

ZERO = Decimal("0")


def to_decimal(value: Number) -> Decimal:
    """
    Normalize a numeric value to Decimal.

    - None -> 0
    - float goes through str() so 0.1 stays 0.1, not 0.1000000000000000055...
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def quantize(value: Number, places: int) -> Decimal:
    """Round half-up to a fixed number of fractional digits."""
    exp = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exp, rounding=ROUND_HALF_UP)
