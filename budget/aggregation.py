"""Fold transactions into weekly, monthly and yearly PeriodSummary buckets.

Pure functions: no I/O, no clock, no logging, inputs are never mutated and
every call builds fresh summaries. Records that cannot be bucketed (bad
timestamp, non-positive amount, unknown kind, empty or blank category) are skipped;
reporting them is the caller's job (see ``budget.transforms``).
"""
import math
from collections.abc import Iterable, Mapping
from numbers import Real
from typing import Any, Dict, Optional, Tuple

from budget.domain import Period, PeriodSummary, Summaries, TransactionKind
from budget.errors import AggregationInputError
from budget.functional import safe_kind
from budget.periods import period_key_for

_TOTAL_FIELD = {
    TransactionKind.INCOME: "total_income",
    TransactionKind.EXPENSE: "total_expenses",
    TransactionKind.SAVINGS: "total_savings",
}

_CATEGORY_FIELD = {
    TransactionKind.INCOME: "income_by_category",
    TransactionKind.EXPENSE: "expenses_by_category",
    TransactionKind.SAVINGS: "savings_by_category",
}


def _checked(transactions: Any) -> Iterable:
    if transactions is None:
        raise AggregationInputError("transactions must be a collection, got None")
    if isinstance(transactions, (str, bytes, Mapping)) or not isinstance(transactions, Iterable):
        raise AggregationInputError(
            f"transactions must be a collection of Transaction, got {type(transactions).__name__}"
        )
    return transactions


def valid_amount(amount: Any) -> bool:
    return (
        isinstance(amount, Real)
        and not isinstance(amount, bool)
        and math.isfinite(amount)
        and amount > 0
    )


def bucket_entry(t: Any, period: Period) -> Optional[Tuple[str, TransactionKind, str, float]]:
    """(period_key, kind, category, amount) for an aggregatable record, else None."""
    amount = getattr(t, "amount", None)
    if not valid_amount(amount):
        return None

    kind = safe_kind(getattr(t, "kind", None)).get_or_else(None)
    if kind is None:
        return None

    category = getattr(t, "category", None)
    if not isinstance(category, str) or not category.strip():
        return None

    key = period_key_for(getattr(t, "ts", None), period).get_or_else(None)
    if key is None:
        return None

    return key, kind, category, float(amount)


def _empty_bucket() -> Dict[str, Any]:
    bucket: Dict[str, Any] = {field: 0.0 for field in _TOTAL_FIELD.values()}
    bucket.update({field: {} for field in _CATEGORY_FIELD.values()})
    return bucket


def aggregate(transactions: Iterable, period: Period) -> Tuple[PeriodSummary, ...]:
    """One PeriodSummary per distinct period key, in first-encounter order."""
    period = Period(period)
    buckets: Dict[str, Dict[str, Any]] = {}

    for t in _checked(transactions):
        entry = bucket_entry(t, period)
        if entry is None:
            continue
        key, kind, category, amount = entry

        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = _empty_bucket()

        bucket[_TOTAL_FIELD[kind]] += amount
        by_category = bucket[_CATEGORY_FIELD[kind]]
        by_category[category] = by_category.get(category, 0.0) + amount

    return tuple(PeriodSummary(period_key=key, **bucket) for key, bucket in buckets.items())


def aggregate_all(transactions: Iterable) -> Summaries:
    """Weekly, monthly and yearly summaries of the same snapshot."""
    snapshot = tuple(_checked(transactions))
    return Summaries(
        weekly=aggregate(snapshot, Period.WEEK),
        monthly=aggregate(snapshot, Period.MONTH),
        yearly=aggregate(snapshot, Period.YEAR),
    )


def grand_totals(transactions: Iterable) -> Dict[str, float]:
    """Totals per kind over the whole snapshot, skipping the same records ``aggregate`` skips."""
    totals = {kind.value: 0.0 for kind in TransactionKind}
    for t in _checked(transactions):
        entry = bucket_entry(t, Period.YEAR)
        if entry is not None:
            totals[entry[1].value] += entry[3]
    return totals
