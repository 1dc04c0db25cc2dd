from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence

from budget.aggregation import aggregate_all, grand_totals
from budget.domain import Period, Summaries, TransactionKind
from budget.functional import pipe
from budget.highlights import expense_percentage, max_expense_category, spending_status
from budget.ordering import sort_summaries
from budget.periods import current_period_key
from budget.thresholds import MONTHLY_THRESHOLDS, WEEKLY_THRESHOLDS, summary_warnings
from budget.transforms import ALL_KINDS, partition_transactions


class SummaryService:
    """Facade turning a transaction snapshot into everything the dashboard renders.

    thresholds: period -> {category: fraction of income}; yearly summaries use
    the monthly limits unless given their own.
    extra_steps: functions taking (summaries, acc) -> dict, run after the
    built-in steps; their output is merged into the report.
    """

    def __init__(
        self,
        kinds: Sequence[TransactionKind] = ALL_KINDS,
        thresholds: Optional[Mapping[Period, Mapping[str, float]]] = None,
        high_spending_percent: float = 70.0,
        overspending_percent: float = 90.0,
        extra_steps: Sequence[Callable[..., Dict[str, Any]]] = (),
    ):
        self.kinds = tuple(kinds)
        self.thresholds = {
            Period.WEEK: WEEKLY_THRESHOLDS,
            Period.MONTH: MONTHLY_THRESHOLDS,
            Period.YEAR: MONTHLY_THRESHOLDS,
        }
        self.thresholds.update({Period(k): v for k, v in (thresholds or {}).items()})
        self.high_spending_percent = high_spending_percent
        self.overspending_percent = overspending_percent
        self.extra_steps = extra_steps

    @classmethod
    def from_config(cls, config) -> "SummaryService":
        return cls(
            kinds=tuple(TransactionKind(k) for k in config.enabled_kinds),
            thresholds={
                Period.WEEK: config.weekly_thresholds,
                Period.MONTH: config.monthly_thresholds,
                Period.YEAR: config.monthly_thresholds,
            },
            high_spending_percent=config.high_spending_percent,
            overspending_percent=config.overspending_percent,
        )

    def summarize(self, transactions: Iterable) -> Summaries:
        valid, _ = partition_transactions(transactions, self.kinds)
        return aggregate_all(valid)

    def highlights(self, summaries: Summaries, period: Period) -> list:
        rows = []
        for s in sort_summaries(summaries.for_period(period), period):
            pct = expense_percentage(s)
            rows.append({
                "period_key": s.period_key,
                "total_income": s.total_income,
                "total_expenses": s.total_expenses,
                "expense_percent": pct,
                "status": spending_status(pct, self.high_spending_percent, self.overspending_percent),
                "top_category": max_expense_category(s),
                "warnings": summary_warnings(s, self.thresholds[Period(period)]),
            })
        return rows

    def dashboard_report(self, transactions: Iterable, now: datetime) -> Dict[str, Any]:
        """Validation, summaries, highlights and the current-period view in one pass."""
        snapshot = tuple(transactions)
        valid, issues = partition_transactions(snapshot, self.kinds)
        summaries = pipe(valid, aggregate_all)

        report: Dict[str, Any] = {
            "issues": list(issues),
            "totals": grand_totals(valid),
            "summaries": summaries,
            "steps": [],
            "result": {},
        }

        acc: Dict[str, Any] = {}
        for period in Period:
            key = current_period_key(now, period)
            ordered = sort_summaries(summaries.for_period(period), period)
            acc[period.value] = {
                "ordered": ordered,
                "current": next((s for s in ordered if s.period_key == key), None),
                "current_key": key,
                "highlights": self.highlights(summaries, period),
            }
        report["steps"].append({"step": "periods", "output": acc})

        for step in self.extra_steps:
            out = step(summaries, dict(acc))
            report["steps"].append({"step": getattr(step, "__name__", str(step)), "output": out})
            if isinstance(out, dict):
                acc.update(out)

        report["result"] = acc
        return report
