"""Rollover between budget periods and per-category status.

Carryover policies are plain functions registered by name.  ``none`` is the
default, so every period starts from zero regardless of how the previous one
closed.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from .config import DEFAULT_CARRYOVER_MODE
from .models import PreviousPeriod

logger = logging.getLogger(__name__)

# A category is "at" budget once this share of its assignment is spent
AT_BUDGET_RATIO = 0.95

CarryoverStrategy = Callable[[PreviousPeriod], int]


def _no_rollover(previous: PreviousPeriod) -> int:
    return 0


def _carry_positive_leftover(previous: PreviousPeriod) -> int:
    return max(0, previous.tbb)


def _carry_full_balance(previous: PreviousPeriod) -> int:
    return previous.tbb


CARRYOVER_STRATEGIES: Dict[str, CarryoverStrategy] = {
    'none': _no_rollover,
    'positive-only': _carry_positive_leftover,
    'full': _carry_full_balance,
}


def calculate_carryover(previous: Optional[PreviousPeriod], mode: str = DEFAULT_CARRYOVER_MODE) -> int:
    """Amount brought forward from ``previous`` under the named policy.

    Args:
        previous: Closing totals of the previous period, or None for the first period
        mode: One of ``CARRYOVER_STRATEGIES``

    Returns:
        Carryover in cents

    Raises:
        ValueError: If ``mode`` is not a registered policy
    """
    strategy = CARRYOVER_STRATEGIES.get(mode)
    if strategy is None:
        raise ValueError(
            f"Unknown carryover mode {mode!r}; expected one of {sorted(CARRYOVER_STRATEGIES)}"
        )
    if previous is None:
        return 0
    return strategy(previous)


def to_be_budgeted(income: int, carryover: int, budgeted: int) -> int:
    """Money not yet given a job: income plus carryover minus budgeted."""
    return income + carryover - budgeted


def category_status(spent_cents: int, assigned_cents: int) -> str:
    """Classify a category's spending against its assignment.

    Returns 'none' when nothing is assigned, 'over' at 100% or more,
    'at' from 95%, otherwise 'under'.
    """
    if assigned_cents <= 0:
        return 'none'
    ratio = spent_cents / assigned_cents
    if ratio >= 1:
        return 'over'
    if ratio >= AT_BUDGET_RATIO:
        return 'at'
    return 'under'
