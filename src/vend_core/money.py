"""Fixed-point helpers for money, percentages and guarded ratios.

All arithmetic in the engine goes through Decimal. Every ratio uses
``safe_div`` so a zero denominator yields 0 instead of an error, and
no NaN or Infinity can reach a report.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

Number = Union[int, float, str, Decimal]

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_money(value: Number | None) -> Decimal:
    """Convert a raw amount to Decimal.

    Missing values (None, NaN) become zero. Floats are converted through
    their string form so ``0.1`` stays ``Decimal("0.1")``.

    Args:
        value: Raw amount as int, float, str or Decimal.

    Returns:
        Decimal amount.

    Raises:
        ValueError: If the value cannot be parsed or is infinite.

    Examples:
        >>> to_money(10000)
        Decimal('10000')
        >>> to_money(None)
        Decimal('0')
        >>> to_money(0.1)
        Decimal('0.1')

    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        if math.isnan(value):
            return ZERO
        result = Decimal(str(value))
    else:
        text = str(value).strip()
        if not text:
            return ZERO
        try:
            result = Decimal(text)
        except InvalidOperation as e:
            raise ValueError(f"Invalid amount: {value!r}") from e
    if result.is_nan():
        return ZERO
    if result.is_infinite():
        raise ValueError(f"Invalid amount: {value!r}")
    return result


def safe_div(numerator: Number, denominator: Number) -> Decimal:
    """Divide, returning 0 when the denominator is zero."""
    denominator = Decimal(denominator)
    if denominator == 0:
        return ZERO
    return Decimal(numerator) / denominator


def round_percent(value: Decimal) -> Decimal:
    """Round a percentage to 2 decimals (half up)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent(part: Number, whole: Number) -> Decimal:
    """Return part/whole*100 rounded to 2 decimals, 0 when whole is 0.

    Ratios below 0.005% round to 0.00 whatever their sign, so a thin
    positive or negative margin only shows in the absolute profit.
    A negative zero is reported as plain 0.00.

    Examples:
        >>> percent(1, 3)
        Decimal('33.33')
        >>> percent(5, 0)
        Decimal('0.00')
        >>> percent(-1, 100000)
        Decimal('0.00')

    """
    return round_percent(safe_div(part, whole) * HUNDRED) + 0


def round_money(value: Decimal, quantum: Decimal = CENT) -> Decimal:
    """Quantize a money value (half up)."""
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def average(total: Number, count: int, quantum: Decimal = CENT) -> Decimal:
    """Average per item, 0 when count is 0."""
    return round_money(safe_div(total, count), quantum)
