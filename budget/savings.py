"""Yearly savings targets: what is left to save and whether the trend gets there.

The projector is an opaque callable supplied by the host application:

    projector: (monthly_net_savings: list[float]) -> float   # next month's net savings

``linear_trend`` is a plain least-squares projector for when nothing better
is configured.
"""
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Sequence

import numpy as np

from budget.domain import Period, PeriodSummary, SavingsTarget, Summaries
from budget.logs import get_logger
from budget.ordering import parse_period_key, sort_summaries
from budget.periods import year_key

logger = get_logger(__name__)

Projector = Callable[[Sequence[float]], float]

ALREADY_MET = "Congratulations! You have already met or exceeded your savings target."
EXCEEDS = "You are likely to exceed your savings target by a significant margin. Excellent progress!"
ON_TRACK = "You are currently on track to meet your savings target. Keep up the good work!"
MINOR_ADJUSTMENTS = (
    "The target is achievable with minor adjustments. "
    "Slightly increase your monthly savings to stay on track."
)
MODERATE_ADJUSTMENTS = (
    "The target is achievable with moderate adjustments. Consider a more focused savings plan."
)
AT_RISK = "You are at risk of not meeting your target. Significant adjustments are recommended."


@dataclass(frozen=True)
class SavingsPlan:
    target_amount: float
    current_savings: float
    remaining: float
    monthly_suggestion: float
    months_left: int

    @property
    def already_met(self) -> bool:
        return self.remaining <= 0


def target_year(now: datetime) -> int:
    # in December the plan is for the coming year
    return now.year + 1 if now.month == 12 else now.year


def months_left(now: datetime) -> int:
    """Whole months remaining after the current one; a full year in December."""
    if now.month == 12:
        return 12
    return 12 - now.month


def current_savings(yearly: Iterable[PeriodSummary], year: int) -> float:
    """Net savings (income minus expenses) recorded so far in ``year``."""
    key = year_key(datetime(year, 1, 1))
    for s in yearly:
        if s.period_key == key:
            return s.total_income - s.total_expenses
    return 0.0


def monthly_net_savings(monthly: Iterable[PeriodSummary], year: int) -> List[float]:
    """Income minus expenses per month of ``year``, oldest first."""
    return [
        s.total_income - s.total_expenses
        for s in sort_summaries(monthly, Period.MONTH)
        if parse_period_key(s.period_key, Period.MONTH).map(lambda yi: yi[0]).get_or_else(None) == year
    ]


def savings_plan(target_amount: float, savings: float, months: int) -> SavingsPlan:
    remaining = max(target_amount - savings, 0.0)
    suggestion = remaining / months if remaining > 0 and months > 0 else remaining
    return SavingsPlan(
        target_amount=target_amount,
        current_savings=savings,
        remaining=remaining,
        monthly_suggestion=suggestion,
        months_left=months,
    )


def plan_for_target(target: SavingsTarget, summaries: Summaries, now: datetime) -> SavingsPlan:
    return savings_plan(
        target.target_amount, current_savings(summaries.yearly, target.year), months_left(now)
    )


def linear_trend(history: Sequence[float]) -> float:
    """Least-squares line through the history, evaluated one step ahead."""
    if not history:
        return 0.0
    if len(history) == 1:
        return float(history[0])
    x = np.arange(1, len(history) + 1, dtype=float)
    slope, intercept = np.polyfit(x, np.asarray(history, dtype=float), 1)
    return float(slope * (len(history) + 1) + intercept)


def project_savings(
    projector: Optional[Projector], history: Sequence[float], savings: float
) -> Optional[float]:
    """Savings expected after next month, or None without a projector or history."""
    if projector is None or not history:
        return None
    predicted = float(projector(list(history)))
    if not math.isfinite(predicted):
        logger.warning("Projector returned a non-finite value: %r", predicted)
        return None
    return savings + predicted


def projection_status(projected: float, target_amount: float) -> str:
    difference = projected - target_amount
    if difference >= 0:
        return EXCEEDS if difference >= target_amount * 0.1 else ON_TRACK
    if projected >= target_amount * 0.95:
        return MINOR_ADJUSTMENTS
    if projected >= target_amount * 0.8:
        return MODERATE_ADJUSTMENTS
    return AT_RISK


def plan_status(plan: SavingsPlan, projected: Optional[float]) -> Optional[str]:
    if plan.already_met:
        return ALREADY_MET
    if projected is None:
        return None
    return projection_status(projected, plan.target_amount)
