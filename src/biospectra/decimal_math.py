"""Half-up decimal arithmetic for reproducible feature values.

Binary float rounding drifts on ties (``round(2.675, 2) == 2.67``), so every
rounded feature is computed from the exact decimal expansion of its float
operands and quantized with ``ROUND_HALF_UP``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Union

# Wide enough to hold any double's full decimal expansion plus the scale.
DECIMAL_CONTEXT = Context(prec=400, rounding=ROUND_HALF_UP)

DecimalLike = Union[int, float, Decimal]


def _quantum(places: int) -> Decimal:
    return Decimal(1).scaleb(-places, context=DECIMAL_CONTEXT)


def to_decimal(value: DecimalLike) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


def divide_decimal(numerator: DecimalLike, denominator: DecimalLike, places: int) -> Decimal:
    quotient = DECIMAL_CONTEXT.divide(to_decimal(numerator), to_decimal(denominator))
    return quotient.quantize(_quantum(places), context=DECIMAL_CONTEXT)


def divide(numerator: DecimalLike, denominator: DecimalLike, places: int) -> float:
    """
    Return ``numerator / denominator`` rounded half-up to ``places`` digits.

    Non-finite numerators skip the decimal path and yield the plain float
    quotient (``-inf / 9 == -inf``).
    """
    num = to_decimal(numerator)
    if not num.is_finite():
        return float(num) / float(denominator)
    return float(divide_decimal(num, denominator, places))


__all__ = ["DECIMAL_CONTEXT", "divide", "divide_decimal", "to_decimal"]
