"""Financial health scoring, expense suggestions and the advice / prediction seams.

The advice service and the predictor are opaque callables supplied by the
host application:

    advisor:   (prompt: str) -> str
    predictor: (features: list[float]) -> float
"""
import math
from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Sequence

from budget.domain import EXPENSE_CATEGORIES, Household, PeriodSummary
from budget.logs import get_logger
from budget.thresholds import MONTHLY_THRESHOLDS

logger = get_logger(__name__)

Advisor = Callable[[str], str]
Predictor = Callable[[Sequence[float]], float]

NO_ADVICE = "No advice available at this moment."
ALL_WITHIN_LIMITS = "All expenses are within acceptable limits."

EXCELLENT, GOOD, FAIR, POOR = "Excellent", "Good", "Fair", "Poor"

SUGGESTIONS = {
    "housing": "Housing costs are too high.",
    "food": "Food costs are too high.",
    "transportation": "Transportation costs are too high.",
    "healthcare": "Healthcare costs are too high.",
    "other_necessities": "Other necessities are too high.",
    "childcare": "Childcare costs are too high.",
    "taxes": "Tax liability is too high.",
}


@dataclass(frozen=True)
class FinancialProfile:
    housing: float = 0.0
    food: float = 0.0
    transportation: float = 0.0
    healthcare: float = 0.0
    other_necessities: float = 0.0
    childcare: float = 0.0
    taxes: float = 0.0
    total_cost: float = 0.0
    median_family_income: float = 0.0

    @classmethod
    def from_summary(cls, summary: PeriodSummary) -> "FinancialProfile":
        costs = {c: summary.expenses_by_category.get(c, 0.0) for c in EXPENSE_CATEGORIES}
        return cls(
            **costs,
            total_cost=summary.total_expenses,
            median_family_income=summary.total_income,
        )

    def cost(self, category: str) -> float:
        return getattr(self, category, 0.0)


def financial_health_score(profile: FinancialProfile, household: Optional[Household]) -> str:
    """Expense-to-income ratio graded against limits that loosen by 30% per child."""
    if profile.median_family_income <= 0:
        return POOR

    ratio = profile.total_cost / profile.median_family_income
    children = household.num_children if household is not None else 0
    dependent_factor = 1 + 0.3 * children

    if ratio < 0.5 * dependent_factor:
        return EXCELLENT
    if ratio < 0.7 * dependent_factor:
        return GOOD
    if ratio < 0.85 * dependent_factor:
        return FAIR
    return POOR


def expense_suggestions(
    profile: FinancialProfile, thresholds: Mapping[str, float] = MONTHLY_THRESHOLDS
) -> List[str]:
    suggestions = []
    for category, message in SUGGESTIONS.items():
        threshold = thresholds.get(category)
        if threshold is not None and profile.cost(category) > threshold * profile.median_family_income:
            suggestions.append(message)
    return suggestions


def suggestions_text(suggestions: Sequence[str]) -> str:
    return " ".join(suggestions) or ALL_WITHIN_LIMITS


def build_advice_prompt(
    profile: FinancialProfile, household: Optional[Household], score: str, currency: str = "$"
) -> str:
    adults = household.num_adults if household is not None else 0
    children = household.num_children if household is not None else 0
    c = currency
    return (
        f"Given our household's financial details ({adults} adults and {children} children) "
        f"with a housing cost of {c}{profile.housing:.2f}, food cost of {c}{profile.food:.2f}, "
        f"transportation cost of {c}{profile.transportation:.2f}, "
        f"healthcare cost of {c}{profile.healthcare:.2f}, "
        f"costs for other necessities at {c}{profile.other_necessities:.2f}, "
        f"childcare expenses of {c}{profile.childcare:.2f}, and taxes of {c}{profile.taxes:.2f}, "
        f"totaling {c}{profile.total_cost:.2f} in expenses against a median family income of "
        f"{c}{profile.median_family_income:.2f}: how can we optimize our budget to improve our "
        f"financial health status from '{score}'? What specific strategies would you recommend for "
        f"reducing expenses and enhancing savings, particularly in areas where we are overspending? "
        f"Additionally, are there adjustments we should consider in our investment strategy to "
        f"secure our long-term financial stability?"
    )


def request_advice(advisor: Optional[Advisor], prompt: str) -> str:
    if advisor is None:
        return NO_ADVICE
    try:
        advice = advisor(prompt)
    except Exception:
        logger.exception("Advice request failed")
        return NO_ADVICE
    return advice or NO_ADVICE


def prediction_features(profile: FinancialProfile, household: Optional[Household]) -> List[float]:
    """[adults, children, housing, food, transportation, healthcare, other_necessities,
    childcare, taxes, total_cost]"""
    adults = household.num_adults if household is not None else 0
    children = household.num_children if household is not None else 0
    return [float(adults), float(children)] + [profile.cost(c) for c in EXPENSE_CATEGORIES] + [
        profile.total_cost
    ]


def predict_health(
    predictor: Optional[Predictor], profile: FinancialProfile, household: Optional[Household]
) -> Optional[float]:
    if predictor is None:
        return None
    value = float(predictor(prediction_features(profile, household)))
    if not math.isfinite(value):
        logger.warning("Predictor returned a non-finite value: %r", value)
        return None
    return value
