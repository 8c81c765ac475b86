"""Integer-cent rounding and currency/percent formatting."""

from __future__ import annotations

import math
from fractions import Fraction
from typing import Union

Number = Union[int, float, str, Fraction]


def _exact(value: Number) -> Fraction:
    if isinstance(value, Fraction):
        return value
    if isinstance(value, float):
        # Read the float as its shortest decimal literal, not its binary expansion
        return Fraction(repr(float(value)))
    return Fraction(value)


def round_half_up(value: Number) -> int:
    """Round to the nearest whole cent, ties away from zero.

    Example:
        >>> round_half_up(Fraction(5, 2))
        3
        >>> round_half_up(-2.5)
        -3
    """
    exact = _exact(value)
    magnitude = math.floor(abs(exact) + Fraction(1, 2))
    return magnitude if exact >= 0 else -magnitude


def apply_percentage(amount_cents: int, percentage: Number) -> int:
    """Return ``percentage`` percent of ``amount_cents`` rounded half-up.

    Example:
        >>> apply_percentage(10000, 70)
        7000
        >>> apply_percentage(333, 50)
        167
    """
    return round_half_up(Fraction(amount_cents) * _exact(percentage) / 100)


def format_currency(cents: int, include_sign: bool = True) -> str:
    """Format a cents amount as whole dollars.

    Example:
        >>> format_currency(123456)
        '$1,235'
        >>> format_currency(-50000)
        '-$500'
        >>> format_currency(123456, include_sign=False)
        '1,235'
    """
    dollars = round_half_up(Fraction(abs(cents), 100))
    formatted = f"{dollars:,}"
    if include_sign:
        formatted = f"${formatted}"
    return f"-{formatted}" if cents < 0 else formatted


def format_percent(value: float) -> str:
    """Format a 0-100 value as a whole percentage, e.g. ``'42%'``."""
    return f"{round_half_up(value)}%"
