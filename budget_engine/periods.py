"""Calendar-aligned budget period boundaries.

Weekly and fortnightly periods are buckets inside a calendar month rather
than rolling 7/14-day windows, so every period belongs to exactly one month:

    weekly:       1-7, 8-14, 15-21, 22-end of month
    fortnightly:  1-14, 15-end of month
    monthly:      the whole month

Boundaries fall on local midnight in the budget's timezone and a period ends
one millisecond before the next one starts.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

import pandas as pd

from .config import DEFAULT_BUDGET_TIMEZONE
from .models import PeriodRange
from .tz_calendar import components_in_zone, local_midnight

logger = logging.getLogger(__name__)

# First day of each bucket within a month
BUCKET_START_DAYS: Dict[str, Tuple[int, ...]] = {
    'weekly': (1, 8, 15, 22),
    'fortnightly': (1, 15),
    'monthly': (1,),
}

_ONE_MS = pd.Timedelta(milliseconds=1)


def _bucket_starts(period_type: str) -> Tuple[int, ...]:
    starts = BUCKET_START_DAYS.get(period_type)
    if starts is None:
        logger.debug("Unknown period type %r, using monthly boundaries", period_type)
        starts = BUCKET_START_DAYS['monthly']
    return starts


def _bucket_start_day(day: int, starts: Tuple[int, ...]) -> int:
    return max(s for s in starts if s <= day)


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _next_bucket(year: int, month: int, start_day: int, starts: Tuple[int, ...]) -> Tuple[int, int, int]:
    position = starts.index(start_day)
    if position + 1 < len(starts):
        return year, month, starts[position + 1]
    next_year, next_month = _shift_month(year, month, 1)
    return next_year, next_month, starts[0]


def _previous_bucket(year: int, month: int, start_day: int, starts: Tuple[int, ...]) -> Tuple[int, int, int]:
    position = starts.index(start_day)
    if position > 0:
        return year, month, starts[position - 1]
    prev_year, prev_month = _shift_month(year, month, -1)
    return prev_year, prev_month, starts[-1]


def _label(start: pd.Timestamp, end: pd.Timestamp, period_type: str) -> str:
    if period_type == 'weekly':
        return f"Week of {start.day} {start.strftime('%b')}"
    if period_type == 'fortnightly':
        return f"{start.day} {start.strftime('%b')} - {end.day} {end.strftime('%b')}"
    return start.strftime('%B %Y')


def period_range(date: Any, period_type: str, tz: str = DEFAULT_BUDGET_TIMEZONE) -> PeriodRange:
    """Return the budget period containing ``date``.

    Args:
        date: Any instant inside the period (ISO string, datetime or Timestamp)
        period_type: 'weekly', 'fortnightly' or 'monthly'
        tz: IANA timezone whose wall clock defines the boundaries

    Returns:
        PeriodRange with local-midnight ``start`` and ``end`` one millisecond
        before the next period starts

    Example:
        >>> r = period_range('2026-02-10T03:00:00Z', 'weekly', 'UTC')
        >>> r.start, r.label
        (Timestamp('2026-02-08 00:00:00+0000', tz='UTC'), 'Week of 8 Feb')
    """
    starts = _bucket_starts(period_type)
    parts = components_in_zone(date, tz)
    start_day = _bucket_start_day(parts.day, starts)

    start = local_midnight(parts.year, parts.month, start_day, tz)
    end = local_midnight(*_next_bucket(parts.year, parts.month, start_day, starts), tz) - _ONE_MS
    return PeriodRange(start=start, end=end, label=_label(start, end.tz_convert(tz), period_type))


def next_period_start(date: Any, period_type: str, tz: str = DEFAULT_BUDGET_TIMEZONE) -> pd.Timestamp:
    """Return the start instant of the period after the one containing ``date``."""
    starts = _bucket_starts(period_type)
    parts = components_in_zone(date, tz)
    start_day = _bucket_start_day(parts.day, starts)
    return local_midnight(*_next_bucket(parts.year, parts.month, start_day, starts), tz)


def previous_period_start(date: Any, period_type: str, tz: str = DEFAULT_BUDGET_TIMEZONE) -> pd.Timestamp:
    """Return the start instant of the period before the one containing ``date``."""
    starts = _bucket_starts(period_type)
    parts = components_in_zone(date, tz)
    start_day = _bucket_start_day(parts.day, starts)
    return local_midnight(*_previous_bucket(parts.year, parts.month, start_day, starts), tz)
