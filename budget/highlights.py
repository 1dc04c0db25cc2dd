from typing import Callable, Iterable, Iterator, Optional, Tuple

from budget.aggregation import bucket_entry
from budget.domain import Household, Period, PeriodSummary, Transaction, TransactionKind

WELL_MANAGED = "Well-Managed"
HIGH_SPENDING = "High Spending"
OVERSPENDING = "Overspending Alert"


def iter_transactions(
    trans: Iterable[Transaction], pred: Callable[[Transaction], bool]
) -> Iterator[Transaction]:
    for t in trans:
        if pred(t):
            yield t


def top_expense_categories(trans: Iterable[Transaction], k: int) -> Iterator[Tuple[str, float]]:
    """Largest expense categories over a snapshot, biggest first."""
    totals: dict[str, float] = {}
    for t in trans:
        entry = bucket_entry(t, Period.YEAR)
        if entry is None or entry[1] is not TransactionKind.EXPENSE:
            continue
        totals[entry[2]] = totals.get(entry[2], 0.0) + entry[3]

    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    for name, total in ordered[: max(0, k)]:
        yield name, total


def max_expense_category(summary: PeriodSummary) -> Tuple[str, float]:
    """("", 0.0) when the period has no expenses."""
    best = ("", 0.0)
    for category, amount in summary.expenses_by_category.items():
        if amount > best[1]:
            best = (category, amount)
    return best


def max_expense_period(summaries: Iterable[PeriodSummary]) -> Optional[PeriodSummary]:
    best = None
    for s in summaries:
        if best is None or s.total_expenses > best.total_expenses:
            best = s
    return best


def high_expense_advice(summary: PeriodSummary, currency: str = "$") -> str:
    category, amount = max_expense_category(summary)
    if not category:
        return "No expenses recorded for this period."
    return (
        f"The highest expense category is {category} with a total of {currency}{amount:.2f}. "
        f"Consider reducing costs in this category."
    )


def expense_percentage(summary: PeriodSummary) -> Optional[float]:
    """Expenses as a percentage of income, rounded to one decimal.

    None when there are expenses but no income to measure them against.
    """
    if summary.total_income <= 0:
        return 0.0 if summary.total_expenses <= 0 else None
    return round(summary.total_expenses / summary.total_income * 100, 1)


def spending_status(percentage: Optional[float], high: float = 70.0, over: float = 90.0) -> str:
    if percentage is None or percentage > over:
        return OVERSPENDING
    if percentage > high:
        return HIGH_SPENDING
    return WELL_MANAGED


def average_expense_per_person(total_expenses: float, household: Optional[Household]) -> float:
    size = household.size if household is not None else 0
    return total_expenses / (size or 1)


def recommended_savings(balance: float, rate: float = 0.2) -> float:
    return balance * rate
