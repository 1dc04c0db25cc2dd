from datetime import datetime

from budget.domain import Period, PeriodSummary, Transaction, TransactionKind
from budget.events import (
    CATEGORY_WARNING,
    PERIOD_ROLLOVER,
    TRANSACTIONS_CHANGED,
    Event,
    EventBus,
    category_warning_handler,
    event_bus,
    period_rollover_handler,
    recompute_summaries_handler,
    register_default_handlers,
)
from budget.thresholds import MONTHLY_THRESHOLDS

FIXED_NOW = datetime(2025, 3, 20, 12, 0)


def make_event(name, payload):
    return Event(name=name, ts=FIXED_NOW.isoformat(), payload=payload)


def test_publish_uses_injected_clock():
    bus = EventBus(clock=lambda: FIXED_NOW)
    seen = []

    def handler(event, payload):
        seen.append(event)
        return {"ok": True}

    bus.subscribe("PING", handler)
    assert bus.publish("PING", {"x": 1}) == [{"ok": True}]
    assert seen[0].ts == "2025-03-20T12:00:00"
    assert seen[0].payload == {"x": 1}


def test_publish_without_subscribers():
    assert EventBus().publish("NOBODY", {}) == []


def test_unsubscribe():
    bus = EventBus()
    handler = lambda event, payload: {"called": True}
    bus.subscribe("PING", handler)
    bus.unsubscribe("PING", handler)
    bus.unsubscribe("PING", handler)
    assert bus.publish("PING", {}) == []


def test_multiple_handlers_run_in_subscription_order():
    bus = EventBus()
    bus.subscribe("PING", lambda e, p: {"n": 1})
    bus.subscribe("PING", lambda e, p: {"n": 2})
    assert bus.publish("PING", {}) == [{"n": 1}, {"n": 2}]


def test_recompute_summaries_handler():
    trans = [
        Transaction("t1", 100, TransactionKind.INCOME, "median_family_income", "2025-03-05"),
        Transaction("t2", 0, TransactionKind.EXPENSE, "food", "2025-03-05"),
    ]
    out = recompute_summaries_handler(make_event(TRANSACTIONS_CHANGED, {}), {"transactions": trans})
    assert out["summaries"].monthly[0].total_income == 100
    assert [i["transaction_id"] for i in out["issues"]] == ["t2"]


def test_category_warning_handler():
    summary = PeriodSummary("Mar 2025", total_income=1000, total_expenses=500,
                            expenses_by_category={"housing": 500})
    payload = {"summary": summary, "thresholds": MONTHLY_THRESHOLDS}
    out = category_warning_handler(make_event(CATEGORY_WARNING, payload), payload)
    assert out["period_key"] == "Mar 2025"
    assert out["warnings"] == [
        "Your housing expenses are 50.0% of your income, exceeding the recommended 30.0%."
    ]
    assert category_warning_handler(make_event(CATEGORY_WARNING, {}), {}) == {}


def test_period_rollover_handler():
    payload = {"period": Period.MONTH, "last_reset": datetime(2025, 2, 27), "now": FIXED_NOW}
    out = period_rollover_handler(make_event(PERIOD_ROLLOVER, payload), payload)
    assert out == {"period": "month", "period_key": "Mar 2025", "rolled_over": True}

    payload = {"period": "week", "last_reset": datetime(2025, 3, 16), "now": FIXED_NOW}
    assert period_rollover_handler(make_event(PERIOD_ROLLOVER, payload), payload)["rolled_over"] is False


def test_default_bus_has_handlers():
    results = event_bus.publish(PERIOD_ROLLOVER, {"period": "year", "last_reset": None, "now": FIXED_NOW})
    assert {"period": "year", "period_key": "2025", "rolled_over": True} in results


def test_register_default_handlers_on_fresh_bus():
    bus = register_default_handlers(EventBus())
    out = bus.publish(TRANSACTIONS_CHANGED, {"transactions": []})
    assert out[0]["issues"] == ()
