from datetime import datetime

import pytest

from budget.aggregation import aggregate_all
from budget.domain import SavingsTarget, Transaction, TransactionKind
from budget.savings import (
    ALREADY_MET,
    AT_RISK,
    EXCEEDS,
    MINOR_ADJUSTMENTS,
    MODERATE_ADJUSTMENTS,
    ON_TRACK,
    current_savings,
    linear_trend,
    monthly_net_savings,
    months_left,
    plan_for_target,
    plan_status,
    project_savings,
    projection_status,
    savings_plan,
    target_year,
)


def make_tx(id, amount, kind, category, ts):
    return Transaction(id=id, amount=amount, kind=kind, category=category, ts=ts)


def sample_summaries():
    return aggregate_all([
        make_tx("t0", 900, TransactionKind.INCOME, "other", "2024-12-10"),
        make_tx("t1", 1000, TransactionKind.INCOME, "median_family_income", "2025-01-03"),
        make_tx("t2", 400, TransactionKind.EXPENSE, "housing", "2025-01-04"),
        make_tx("t3", 100, TransactionKind.SAVINGS, "retirement", "2025-01-28"),
        make_tx("t4", 500, TransactionKind.INCOME, "median_family_income", "2025-02-03"),
        make_tx("t5", 200, TransactionKind.EXPENSE, "food", "2025-02-10"),
    ])


def test_target_year_moves_forward_in_december():
    assert target_year(datetime(2025, 3, 20)) == 2025
    assert target_year(datetime(2025, 12, 5)) == 2026


def test_months_left():
    assert months_left(datetime(2025, 1, 15)) == 11
    assert months_left(datetime(2025, 3, 20)) == 9
    assert months_left(datetime(2025, 11, 30)) == 1
    assert months_left(datetime(2025, 12, 1)) == 12


def test_current_savings_is_net_of_the_year():
    yearly = sample_summaries().yearly
    assert current_savings(yearly, 2025) == 900
    assert current_savings(yearly, 2024) == 900
    assert current_savings(yearly, 2030) == 0.0


def test_monthly_net_savings_for_one_year():
    assert monthly_net_savings(sample_summaries().monthly, 2025) == [600, 300]
    assert monthly_net_savings(sample_summaries().monthly, 2023) == []


def test_savings_plan_spreads_remaining_over_months():
    plan = savings_plan(1200, 300, 9)
    assert plan.remaining == 900
    assert plan.monthly_suggestion == 100
    assert not plan.already_met


def test_savings_plan_already_met():
    plan = savings_plan(500, 600, 9)
    assert plan.remaining == 0
    assert plan.monthly_suggestion == 0
    assert plan.already_met
    assert plan_status(plan, 10.0) == ALREADY_MET


def test_savings_plan_without_months_left():
    assert savings_plan(1000, 400, 0).monthly_suggestion == 600


def test_plan_for_target():
    target = SavingsTarget(user_id="alice", year=2025, target_amount=1800.0)
    plan = plan_for_target(target, sample_summaries(), datetime(2025, 3, 20))
    assert plan.current_savings == 900
    assert plan.months_left == 9
    assert plan.monthly_suggestion == 100


def test_linear_trend():
    assert linear_trend([100, 200, 300]) == pytest.approx(400)
    assert linear_trend([50]) == 50
    assert linear_trend([]) == 0.0


def test_project_savings():
    assert project_savings(None, [100], 500) is None
    assert project_savings(lambda h: 100, [], 500) is None
    assert project_savings(lambda h: 100, [100], 500) == 600
    assert project_savings(lambda h: float("inf"), [100], 500) is None


@pytest.mark.parametrize(
    "projected, status",
    [(1100, EXCEEDS), (1050, ON_TRACK), (1000, ON_TRACK), (960, MINOR_ADJUSTMENTS),
     (850, MODERATE_ADJUSTMENTS), (500, AT_RISK)],
)
def test_projection_status(projected, status):
    assert projection_status(projected, 1000) == status


def test_plan_status_needs_a_projection():
    plan = savings_plan(1000, 200, 9)
    assert plan_status(plan, None) is None
    assert plan_status(plan, 300) == AT_RISK
