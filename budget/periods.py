"""Period keys for weekly, monthly and yearly buckets.

Week numbers follow ``ceil((days_since_jan1 + weekday_of_jan1 + 1) / 7)`` with
weekday 0 = Sunday, so weeks start on Sunday and week 1 is the (possibly
partial) week holding January 1st. This is not ISO-8601 numbering.
Only the calendar date counts: days since January 1st are whole days, so the
time of day never moves a timestamp into the next week.

Nothing here reads the clock; callers pass ``now`` explicitly.
"""
import math
from datetime import date, datetime
from functools import lru_cache
from typing import Any, Optional

from budget.domain import Period
from budget.functional import Maybe, Nothing, Some

# English abbreviations regardless of the process locale.
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@lru_cache(maxsize=4096)
def _parse_iso(ts: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(ts.strip())
    except ValueError:
        return None


def parse_timestamp(ts: Any) -> Maybe[datetime]:
    """Accept an ISO string, a datetime or a date; anything else is Nothing."""
    if isinstance(ts, datetime):
        return Some(ts)
    if isinstance(ts, date):
        return Some(datetime(ts.year, ts.month, ts.day))
    if isinstance(ts, str) and ts.strip():
        return Maybe.of(_parse_iso(ts))
    return Nothing()


def week_number(d: date) -> int:
    if isinstance(d, datetime):
        d = d.date()
    jan1 = date(d.year, 1, 1)
    days_since_jan1 = (d - jan1).days
    weekday_of_jan1 = (jan1.weekday() + 1) % 7
    return math.ceil((days_since_jan1 + weekday_of_jan1 + 1) / 7)


def week_key(d: date) -> str:
    return f"Week {week_number(d)} {d.year}"


def month_key(d: date) -> str:
    return f"{MONTH_ABBR[d.month - 1]} {d.year:04d}"


def year_key(d: date) -> str:
    return f"{d.year:04d}"


_KEY_FUNCS = {
    Period.WEEK: week_key,
    Period.MONTH: month_key,
    Period.YEAR: year_key,
}


def period_key(d: date, period: Period) -> str:
    return _KEY_FUNCS[Period(period)](d)


def period_key_for(ts: Any, period: Period) -> Maybe[str]:
    """Key of the bucket a raw timestamp falls into, or Nothing if it does not parse."""
    return parse_timestamp(ts).map(lambda dt: period_key(dt, period))


def current_period_key(now: datetime, period: Period) -> str:
    return period_key(now, period)


def period_rolled_over(last_reset: Optional[datetime], now: datetime, period: Period) -> bool:
    """True when ``now`` sits in a different period than ``last_reset`` (or there was none)."""
    if last_reset is None:
        return True
    return period_key(last_reset, period) != period_key(now, period)
