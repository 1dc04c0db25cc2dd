"""Category spending limits expressed as fractions of income."""
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

MONTHLY_THRESHOLDS: Dict[str, float] = {
    "housing": 0.3,
    "food": 0.15,
    "transportation": 0.15,
    "healthcare": 0.1,
    "other_necessities": 0.1,
    "childcare": 0.1,
    "taxes": 0.25,
}

# Rough weekly share of the monthly limits.
WEEKLY_THRESHOLDS: Dict[str, float] = {
    "food": MONTHLY_THRESHOLDS["food"] / 4,
    "transportation": MONTHLY_THRESHOLDS["transportation"] / 4,
    "other_necessities": MONTHLY_THRESHOLDS["other_necessities"] / 4,
}


@dataclass(frozen=True)
class CategoryWarning:
    category: str
    amount: float
    threshold: float
    actual_percent: Optional[float]   # None when the period has no income

    @property
    def threshold_percent(self) -> float:
        return self.threshold * 100

    @property
    def missing_income(self) -> bool:
        return self.actual_percent is None

    @property
    def message(self) -> str:
        if self.missing_income:
            return (
                f"Your {self.category} expenses total ${self.amount:.2f} but no income is recorded "
                f"for this period (recommended limit {self.threshold_percent:.1f}% of income)."
            )
        return (
            f"Your {self.category} expenses are {self.actual_percent:.1f}% of your income, "
            f"exceeding the recommended {self.threshold_percent:.1f}%."
        )


def evaluate_thresholds(
    expenses_by_category: Mapping[str, float],
    total_income: float,
    thresholds: Mapping[str, float],
) -> List[CategoryWarning]:
    """Warnings for categories spending more than ``threshold * total_income``.

    Categories without a threshold are skipped. Order follows
    ``expenses_by_category``.
    """
    found: List[CategoryWarning] = []
    for category, amount in expenses_by_category.items():
        threshold = thresholds.get(category)
        if threshold is None:
            continue

        if total_income <= 0:
            if amount > 0:
                found.append(CategoryWarning(category, amount, threshold, None))
            continue

        if amount > threshold * total_income:
            found.append(
                CategoryWarning(category, amount, threshold, amount / total_income * 100)
            )
    return found


def category_warnings(
    expenses_by_category: Mapping[str, float],
    total_income: float,
    thresholds: Mapping[str, float],
) -> List[str]:
    return [w.message for w in evaluate_thresholds(expenses_by_category, total_income, thresholds)]


def summary_warnings(summary, thresholds: Mapping[str, float]) -> List[CategoryWarning]:
    return evaluate_thresholds(summary.expenses_by_category, summary.total_income, thresholds)
