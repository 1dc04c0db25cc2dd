"""Chronological ordering of summaries for display.

Period keys do not sort lexically ("Week 10 2025" < "Week 9 2025"), so keys
are parsed back into (year, index) tuples.
"""
import re
from typing import Iterable, List, Tuple

from budget.domain import Period, PeriodSummary
from budget.functional import Maybe, Nothing, Some
from budget.periods import MONTH_ABBR

_WEEK_RE = re.compile(r"^Week (\d{1,2}) (\d{4})$")
_MONTH_RE = re.compile(r"^([A-Z][a-z]{2}) (\d{4})$")
_YEAR_RE = re.compile(r"^(\d{4})$")


def parse_period_key(key: str, period: Period) -> Maybe[Tuple[int, int]]:
    """(year, index within year) for a key, index being the week or month number."""
    period = Period(period)
    if period is Period.WEEK:
        m = _WEEK_RE.match(key)
        return Some((int(m.group(2)), int(m.group(1)))) if m else Nothing()
    if period is Period.MONTH:
        m = _MONTH_RE.match(key)
        if m and m.group(1) in MONTH_ABBR:
            return Some((int(m.group(2)), MONTH_ABBR.index(m.group(1)) + 1))
        return Nothing()
    m = _YEAR_RE.match(key)
    return Some((int(m.group(1)), 0)) if m else Nothing()


def period_sort_key(key: str, period: Period) -> Tuple[int, int, int]:
    # unparsable keys get a leading 1 so they sort after every real period
    return parse_period_key(key, period).map(lambda yi: (0,) + yi).get_or_else((1, 0, 0))


def sort_summaries(
    summaries: Iterable[PeriodSummary], period: Period, reverse: bool = False
) -> List[PeriodSummary]:
    """Oldest first (newest first with ``reverse``). Unparsable keys always go last."""
    items = list(summaries)
    parsed = [s for s in items if parse_period_key(s.period_key, period).is_some()]
    unparsed = [s for s in items if parse_period_key(s.period_key, period).is_none()]
    parsed.sort(key=lambda s: period_sort_key(s.period_key, period), reverse=reverse)
    return parsed + unparsed
