"""Timezone-aware calendar helpers.

Budget periods begin at midnight on the user's wall clock, not at UTC
midnight.  These helpers convert instants to local calendar components and
resolve the instant at which a local calendar day begins, correcting for
daylight-saving transitions.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Optional

import pandas as pd

from .config import DEFAULT_BUDGET_TIMEZONE
from .models import DateParts

logger = logging.getLogger(__name__)


def _utc_offset(instant: pd.Timestamp, tz: str) -> dt.timedelta:
    return instant.tz_convert(tz).utcoffset()


def local_midnight(year: int, month: int, day: int, tz: str = DEFAULT_BUDGET_TIMEZONE) -> pd.Timestamp:
    """Return the instant at which ``year-month-day`` begins in ``tz``.

    Guesses UTC midnight, subtracts the zone offset measured at the guess,
    then re-measures the offset at the result.  If the two offsets differ the
    day straddles a DST transition and the second offset is used instead.

    Example:
        >>> local_midnight(2026, 3, 1, 'Australia/Sydney').tz_convert('UTC')
        Timestamp('2026-02-28 13:00:00+0000', tz='UTC')
    """
    guess = pd.Timestamp(year=year, month=month, day=day, tz='UTC')
    offset = _utc_offset(guess, tz)
    result = guess - offset
    corrected = _utc_offset(result, tz)
    if corrected != offset:
        result = guess - corrected
    return result.tz_convert(tz)


def to_instant(value: Any, tz: str = 'UTC') -> Optional[pd.Timestamp]:
    """Coerce an ISO string, datetime or timestamp to a tz-aware instant.

    Naive values are read as wall-clock time in ``tz``; a date without a time
    of day becomes local midnight.  Unparseable values return ``None``.
    """
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        parsed = value
    else:
        try:
            parsed = pd.to_datetime(value, errors='coerce')
        except (TypeError, ValueError):
            parsed = pd.NaT
    if parsed is None or pd.isna(parsed):
        logger.debug("Could not parse %r as a date", value)
        return None
    if parsed.tzinfo is not None:
        return parsed
    if parsed == parsed.normalize():
        return local_midnight(parsed.year, parsed.month, parsed.day, tz)
    return parsed.tz_localize(tz, ambiguous=True, nonexistent='shift_forward')


def zone_of(instant: Any, default: str = 'UTC') -> str:
    """Return the IANA zone name carried by ``instant``, else ``default``."""
    tzinfo = getattr(instant, 'tzinfo', None)
    if tzinfo is None:
        return default
    return str(getattr(tzinfo, 'key', None) or getattr(tzinfo, 'zone', None) or tzinfo)


def components_in_zone(instant: Any, tz: str = DEFAULT_BUDGET_TIMEZONE) -> DateParts:
    """Return the wall-clock calendar date of ``instant`` in ``tz``.

    Naive values are read in ``tz`` itself, so a bare date maps to that date.

    Example:
        >>> components_in_zone('2026-02-28T14:00:00Z', 'Australia/Sydney')
        DateParts(year=2026, month=3, day=1)
    """
    ts = to_instant(instant, tz)
    if ts is None:
        raise ValueError(f"Cannot read a calendar date from {instant!r}")
    local = ts.tz_convert(tz)
    return DateParts(local.year, local.month, local.day)


def days_in_month(year: int, month: int) -> int:
    return pd.Timestamp(year=year, month=month, day=1).days_in_month


def month_key(instant: Any, tz: str = DEFAULT_BUDGET_TIMEZONE) -> str:
    """Return ``YYYY-MM-01`` for the local month containing ``instant``."""
    parts = components_in_zone(instant, tz)
    return f"{parts.year:04d}-{parts.month:02d}-01"
