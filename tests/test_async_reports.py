import asyncio

import pytest

from budget.async_reports import SnapshotTracker, refresh_all, refresh_summaries
from budget.domain import Transaction, TransactionKind
from budget.store import InMemoryTransactionStore


def make_tx(id, amount, kind, category, ts):
    return Transaction(id=id, amount=amount, kind=kind, category=category, ts=ts)


SEEDED = {
    "alice": [
        make_tx("a1", 100, TransactionKind.INCOME, "median_family_income", "2025-03-05"),
        make_tx("a2", 40, TransactionKind.EXPENSE, "food", "2025-03-05"),
        make_tx("a3", 60, TransactionKind.EXPENSE, "food", "2025-03-20"),
    ],
    "bob": [
        make_tx("b1", 500, TransactionKind.INCOME, "other", "2024-12-31"),
        make_tx("b2", -5, TransactionKind.EXPENSE, "food", "2025-01-01"),
    ],
}


class GatedStore(InMemoryTransactionStore):
    """Holds the first list_all call until ``gate`` is set."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.gate = asyncio.Event()
        self.calls = 0

    async def list_all(self, user_id):
        self.calls += 1
        if self.calls == 1:
            await self.gate.wait()
        return await super().list_all(user_id)


def test_tracker_tokens():
    tracker = SnapshotTracker()
    first = tracker.next_token()
    second = tracker.next_token()
    assert second > first
    assert tracker.is_latest(second)
    assert not tracker.is_latest(first)


@pytest.mark.asyncio
async def test_refresh_summaries():
    store = InMemoryTransactionStore(transactions=SEEDED)
    summaries = await refresh_summaries(store, "alice", SnapshotTracker())
    assert [s.period_key for s in summaries.monthly] == ["Mar 2025"]
    assert summaries.monthly[0].total_expenses == 100


@pytest.mark.asyncio
async def test_refresh_skips_bad_records():
    store = InMemoryTransactionStore(transactions=SEEDED)
    summaries = await refresh_summaries(store, "bob")
    assert [s.period_key for s in summaries.yearly] == ["2024"]


@pytest.mark.asyncio
async def test_stale_refresh_is_discarded():
    store = GatedStore(transactions=SEEDED)
    tracker = SnapshotTracker()

    slow = asyncio.create_task(refresh_summaries(store, "alice", tracker))
    await asyncio.sleep(0)

    fresh = await refresh_summaries(store, "alice", tracker)
    store.gate.set()

    assert await slow is None
    assert fresh is not None
    assert fresh.monthly[0].total_income == 100


@pytest.mark.asyncio
async def test_refresh_all():
    store = InMemoryTransactionStore(transactions=SEEDED)
    result = await refresh_all(store, ["alice", "bob"])
    assert set(result) == {"alice", "bob"}
    assert result["bob"].monthly[0].period_key == "Dec 2024"
