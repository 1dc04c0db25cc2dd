from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

from budget.aggregation import aggregate_all
from budget.domain import Period
from budget.periods import current_period_key, period_rolled_over
from budget.thresholds import summary_warnings
from budget.transforms import ALL_KINDS, partition_transactions

__all__ = [
    'event_bus', 'TRANSACTIONS_CHANGED', 'CATEGORY_WARNING', 'PERIOD_ROLLOVER', 'Event', 'EventBus',
]


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


class EventBus:
    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._subscribers: Dict[str, List[Callable[[Event, dict], dict]]] = {}
        self._clock = clock

    def subscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        if name not in self._subscribers:
            return []

        event = Event(name=name, ts=self._clock().isoformat(), payload=payload)
        return [handler(event, payload) for handler in list(self._subscribers[name])]

    def unsubscribe(self, name: str, handler: Callable[[Event, dict], dict]) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)


TRANSACTIONS_CHANGED = "TRANSACTIONS_CHANGED"
CATEGORY_WARNING = "CATEGORY_WARNING"
PERIOD_ROLLOVER = "PERIOD_ROLLOVER"

event_bus = EventBus()


def recompute_summaries_handler(event: Event, payload: dict) -> dict:
    """Full recompute from the snapshot carried in the payload."""
    kinds = payload.get("kinds", ALL_KINDS)
    valid, issues = partition_transactions(payload.get("transactions", ()), kinds)
    return {"summaries": aggregate_all(valid), "issues": issues}


def category_warning_handler(event: Event, payload: dict) -> dict:
    summary = payload.get("summary")
    if summary is None:
        return {}
    found = summary_warnings(summary, payload.get("thresholds", {}))
    if not found:
        return {}
    return {"period_key": summary.period_key, "warnings": [w.message for w in found]}


def period_rollover_handler(event: Event, payload: dict) -> dict:
    period = Period(payload.get("period", Period.MONTH))
    now = payload["now"]
    return {
        "period": period.value,
        "period_key": current_period_key(now, period),
        "rolled_over": period_rolled_over(payload.get("last_reset"), now, period),
    }


def register_default_handlers(bus: EventBus = event_bus) -> EventBus:
    bus.subscribe(TRANSACTIONS_CHANGED, recompute_summaries_handler)
    bus.subscribe(CATEGORY_WARNING, category_warning_handler)
    bus.subscribe(PERIOD_ROLLOVER, period_rollover_handler)
    return bus


register_default_handlers()
