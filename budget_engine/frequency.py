"""Convert recurring amounts between payment frequencies.

Amounts are normalised to a monthly figure first and then scaled to the
target frequency.  The intermediate value is kept exact and rounding to
whole cents happens once, at the end.
"""

from __future__ import annotations

import logging
from fractions import Fraction
from typing import Dict

from .money import round_half_up

logger = logging.getLogger(__name__)

# Multiplier that turns one payment at each frequency into a monthly amount
MONTHLY_FACTORS: Dict[str, Fraction] = {
    'weekly': Fraction(4),
    'fortnightly': Fraction(2),
    'monthly': Fraction(1),
    'quarterly': Fraction(1, 3),
    'yearly': Fraction(1, 12),
}


def _monthly_factor(frequency: str) -> Fraction:
    factor = MONTHLY_FACTORS.get(frequency)
    if factor is None:
        logger.debug("Unknown frequency %r, treating as monthly", frequency)
        return MONTHLY_FACTORS['monthly']
    return factor


def convert_frequency(amount_cents: int, from_frequency: str, to_frequency: str) -> int:
    """Convert ``amount_cents`` paid at ``from_frequency`` to ``to_frequency``.

    Args:
        amount_cents: Amount of one payment in cents
        from_frequency: Frequency the amount is paid at
        to_frequency: Frequency to express it in

    Returns:
        Equivalent amount in whole cents, rounded half-up

    Example:
        >>> convert_frequency(1000, 'weekly', 'monthly')
        4000
        >>> convert_frequency(120000, 'yearly', 'fortnightly')
        5000
    """
    if from_frequency == to_frequency:
        return amount_cents
    monthly = Fraction(amount_cents) * _monthly_factor(from_frequency)
    return round_half_up(monthly / _monthly_factor(to_frequency))


def prorate_monthly_amount(monthly_cents: int, period_type: str) -> int:
    """Scale a monthly budget down to a weekly or fortnightly period."""
    return convert_frequency(monthly_cents, 'monthly', period_type)
