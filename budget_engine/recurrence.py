"""Project recurring expense due dates onto date windows.

Weekly and fortnightly expenses step in whole days from their anchor.
Monthly, quarterly and yearly expenses sit on an absolute month grid
anchored at the due date's month, with the day of month clamped to the
length of each month (a 31st anchor lands on the 28th/29th in February
and returns to the 31st in March).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence

import pandas as pd

from .config import DEFAULT_BUDGET_TIMEZONE
from .models import ExpenseDefinition
from .tz_calendar import components_in_zone, days_in_month, local_midnight, to_instant, zone_of

logger = logging.getLogger(__name__)

DAY_INTERVALS: Dict[str, int] = {
    'weekly': 7,
    'fortnightly': 14,
}

MONTH_INTERVALS: Dict[str, int] = {
    'monthly': 1,
    'quarterly': 3,
    'yearly': 12,
}

# Urgency buckets keyed by the maximum number of days until due
URGENCY_WINDOWS = (
    (3, 'due-soon'),
    (7, 'upcoming'),
)


@dataclass(frozen=True)
class ProjectedOccurrence:
    """A single projected due date for an expense."""
    expense: ExpenseDefinition
    due: pd.Timestamp
    occurrence_index: int
    is_projection: bool


@dataclass(frozen=True)
class TimelineGroup:
    """Projected occurrences falling in one calendar month."""
    key: str
    label: str
    occurrences: List[ProjectedOccurrence]
    total_cents: int
    is_past: bool


def _shift_days(instant: pd.Timestamp, days: int) -> pd.Timestamp:
    # Calendar days keep the wall-clock time across DST changes
    return instant + pd.DateOffset(days=days)


def _iter_day_steps(anchor: pd.Timestamp, interval: int, start: pd.Timestamp,
                    end: pd.Timestamp) -> Iterator[pd.Timestamp]:
    # Jump to the first step on or after start, then settle any DST hour
    gap_days = (start - anchor) / pd.Timedelta(days=1)
    candidate = _shift_days(anchor, math.ceil(gap_days / interval) * interval)
    while candidate < start:
        candidate = _shift_days(candidate, interval)
    while _shift_days(candidate, -interval) >= start:
        candidate = _shift_days(candidate, -interval)
    while candidate <= end:
        yield candidate
        candidate = _shift_days(candidate, interval)


def _iter_month_grid(anchor: pd.Timestamp, interval: int, start: pd.Timestamp,
                     end: pd.Timestamp, tz: str) -> Iterator[pd.Timestamp]:
    anchor_parts = components_in_zone(anchor, tz)
    start_parts = components_in_zone(start, tz)
    end_parts = components_in_zone(end, tz)

    anchor_month = anchor_parts.year * 12 + anchor_parts.month - 1
    start_month = start_parts.year * 12 + start_parts.month - 1
    end_month = end_parts.year * 12 + end_parts.month - 1

    offset = start_month - anchor_month
    if offset < 0:
        offset = 0
    else:
        offset = math.ceil(offset / interval) * interval

    month_index = anchor_month + offset
    while month_index <= end_month:
        year, month = divmod(month_index, 12)
        month += 1
        day = min(anchor_parts.day, days_in_month(year, month))
        occurrence = local_midnight(year, month, day, tz)
        if start <= occurrence <= end:
            yield occurrence
        month_index += interval


def iter_occurrences(anchor: Any, recurrence_type: str, window_start: Any, window_end: Any,
                     tz: Optional[str] = None) -> Iterator[pd.Timestamp]:
    """Yield each due instant of a recurring expense within the window.

    Date-only values are read as local midnight in ``tz``; when ``tz`` is not
    given it is taken from ``window_start`` if that is timezone-aware, else
    UTC.  An unparseable anchor yields nothing.
    """
    zone = tz or zone_of(window_start)
    start = to_instant(window_start, zone)
    end = to_instant(window_end, zone)
    anchor_ts = to_instant(anchor, zone)
    if anchor_ts is None or start is None or end is None:
        logger.debug("Skipping recurrence with unreadable dates: anchor=%r window=%r..%r",
                     anchor, window_start, window_end)
        return

    if recurrence_type == 'one-time':
        if start <= anchor_ts <= end:
            yield anchor_ts
        return

    if recurrence_type in DAY_INTERVALS:
        yield from _iter_day_steps(anchor_ts, DAY_INTERVALS[recurrence_type], start, end)
        return

    if recurrence_type not in MONTH_INTERVALS:
        logger.debug("Unknown recurrence type %r, treating as monthly", recurrence_type)
    interval = MONTH_INTERVALS.get(recurrence_type, 1)
    yield from _iter_month_grid(anchor_ts, interval, start, end, zone)


def count_occurrences(anchor: Any, recurrence_type: str, period_start: Any, period_end: Any,
                      tz: Optional[str] = None) -> int:
    """Count how many times a recurring expense falls due within a period.

    Args:
        anchor: Any known due date of the expense
        recurrence_type: weekly, fortnightly, monthly, quarterly, yearly or one-time
        period_start: Inclusive start of the window
        period_end: Inclusive end of the window
        tz: Timezone for reading date-only values and month boundaries

    Returns:
        Number of due dates in the window (0 when the anchor is unreadable)

    Example:
        >>> count_occurrences('2026-01-31', 'monthly', '2026-02-01', '2026-02-28')
        1
        >>> count_occurrences('2026-02-02', 'weekly', '2026-02-01', '2026-02-28')
        4
    """
    return sum(1 for _ in iter_occurrences(anchor, recurrence_type, period_start, period_end, tz))


def advance_due_date(due: Any, recurrence_type: str,
                     tz: str = DEFAULT_BUDGET_TIMEZONE) -> Optional[pd.Timestamp]:
    """Return the due date one recurrence after ``due``.

    Month-based recurrences clamp to the end of shorter months, so
    31 January advances to 28 February.  One-time expenses do not move.
    """
    current = to_instant(due, tz)
    if current is None:
        return None
    if recurrence_type == 'one-time':
        return current
    if recurrence_type in DAY_INTERVALS:
        return _shift_days(current, DAY_INTERVALS[recurrence_type])
    return current + pd.DateOffset(months=MONTH_INTERVALS.get(recurrence_type, 1))


def project_occurrences(expense: ExpenseDefinition, window_start: Any, window_end: Any,
                        limit: Optional[int] = None,
                        tz: str = DEFAULT_BUDGET_TIMEZONE) -> List[ProjectedOccurrence]:
    """Project an expense's upcoming due dates into a timeline window.

    The first occurrence is the expense's actual next due date; later ones
    are flagged as projections.
    """
    if not expense.next_due_date:
        return []

    projected: List[ProjectedOccurrence] = []
    occurrences = iter_occurrences(expense.next_due_date, expense.recurrence_type,
                                   window_start, window_end, tz)
    for index, due in enumerate(occurrences):
        if limit is not None and index >= limit:
            break
        projected.append(ProjectedOccurrence(
            expense=expense,
            due=due,
            occurrence_index=index,
            is_projection=index > 0,
        ))
    return projected


def group_by_month(projections: Sequence[ProjectedOccurrence], reference_instant: Any,
                   tz: str = DEFAULT_BUDGET_TIMEZONE) -> List[TimelineGroup]:
    """Bucket projected occurrences by local calendar month.

    The reference month is keyed ``this-month`` and the one after it
    ``next-month``; other months use ``YYYY-MM``.  Groups come back in
    chronological order with occurrences sorted by due date.
    """
    reference = components_in_zone(reference_instant, tz)
    reference_index = reference.year * 12 + reference.month - 1

    buckets: Dict[int, List[ProjectedOccurrence]] = {}
    for occurrence in sorted(projections, key=lambda o: o.due):
        parts = components_in_zone(occurrence.due, tz)
        buckets.setdefault(parts.year * 12 + parts.month - 1, []).append(occurrence)

    groups: List[TimelineGroup] = []
    for month_index in sorted(buckets):
        year, month = divmod(month_index, 12)
        month += 1
        if month_index == reference_index:
            key, label = 'this-month', 'This Month'
        elif month_index == reference_index + 1:
            key, label = 'next-month', 'Next Month'
        else:
            key = f"{year:04d}-{month:02d}"
            label = pd.Timestamp(year=year, month=month, day=1).strftime('%B %Y')
        items = buckets[month_index]
        groups.append(TimelineGroup(
            key=key,
            label=label,
            occurrences=items,
            total_cents=sum(o.expense.expected_amount_cents for o in items),
            is_past=month_index < reference_index,
        ))
    return groups


def expense_urgency(due: Any, reference_instant: Any,
                    tz: str = DEFAULT_BUDGET_TIMEZONE) -> Optional[str]:
    """Classify a due date relative to ``reference_instant``.

    Returns one of 'overdue', 'due-today', 'due-soon' (within 3 days),
    'upcoming' (within a week) or 'future'.  Days are counted between local
    calendar dates.  An unreadable due date has no urgency and returns None.
    """
    due_ts = to_instant(due, tz)
    if due_ts is None:
        logger.debug("No urgency for unreadable due date %r", due)
        return None
    due_parts = components_in_zone(due_ts, tz)
    ref_parts = components_in_zone(reference_instant, tz)
    days_until = (pd.Timestamp(due_parts.year, due_parts.month, due_parts.day)
                  - pd.Timestamp(ref_parts.year, ref_parts.month, ref_parts.day)).days

    if days_until < 0:
        return 'overdue'
    if days_until == 0:
        return 'due-today'
    for max_days, label in URGENCY_WINDOWS:
        if days_until <= max_days:
            return label
    return 'future'
