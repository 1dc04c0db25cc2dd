from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, NamedTuple, Optional, Tuple


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"
    SAVINGS = "savings"


class Period(str, Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


# Allowed category names per kind, checked at the boundary only.
EXPENSE_CATEGORIES: Tuple[str, ...] = (
    "housing",
    "food",
    "transportation",
    "healthcare",
    "other_necessities",
    "childcare",
    "taxes",
)
INCOME_CATEGORIES: Tuple[str, ...] = ("median_family_income", "other")
SAVINGS_CATEGORIES: Tuple[str, ...] = ("emergency_fund", "retirement", "other")

CATEGORIES_BY_KIND: Dict[TransactionKind, Tuple[str, ...]] = {
    TransactionKind.INCOME: INCOME_CATEGORIES,
    TransactionKind.EXPENSE: EXPENSE_CATEGORIES,
    TransactionKind.SAVINGS: SAVINGS_CATEGORIES,
}


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: float             # always positive; kind carries the direction
    kind: TransactionKind
    category: str
    ts: str                   # ISO timestamp, e.g. "2025-03-05T10:00:00"
    note: str = ""


@dataclass(frozen=True)
class PeriodSummary:
    period_key: str
    total_income: float = 0.0
    total_expenses: float = 0.0
    total_savings: float = 0.0
    income_by_category: Dict[str, float] = field(default_factory=dict)
    expenses_by_category: Dict[str, float] = field(default_factory=dict)
    savings_by_category: Dict[str, float] = field(default_factory=dict)

    @property
    def balance(self) -> float:
        return self.total_income - self.total_expenses - self.total_savings


class Summaries(NamedTuple):
    weekly: Tuple[PeriodSummary, ...]
    monthly: Tuple[PeriodSummary, ...]
    yearly: Tuple[PeriodSummary, ...]

    def for_period(self, period: Period) -> Tuple[PeriodSummary, ...]:
        return {
            Period.WEEK: self.weekly,
            Period.MONTH: self.monthly,
            Period.YEAR: self.yearly,
        }[Period(period)]


@dataclass(frozen=True)
class Household:
    user_id: str
    num_adults: int
    num_children: int
    last_updated: Optional[str] = None

    @property
    def size(self) -> int:
        return self.num_adults + self.num_children


@dataclass(frozen=True)
class SavingsTarget:
    user_id: str
    year: int
    target_amount: float
    updated_at: Optional[str] = None
