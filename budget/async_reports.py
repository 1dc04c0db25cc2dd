import asyncio
from itertools import count
from typing import Dict, Iterable, Optional

from budget.aggregation import aggregate_all
from budget.domain import Summaries
from budget.logs import get_logger
from budget.store import TransactionStore
from budget.transforms import ALL_KINDS, partition_transactions

logger = get_logger(__name__)


class SnapshotTracker:
    """Hands out increasing tokens so late responses from older refreshes can be dropped."""

    def __init__(self):
        self._tokens = count(1)
        self._latest = 0

    def next_token(self) -> int:
        self._latest = next(self._tokens)
        return self._latest

    def is_latest(self, token: int) -> bool:
        return token == self._latest


async def refresh_summaries(
    store: TransactionStore,
    user_id: str,
    tracker: Optional[SnapshotTracker] = None,
    kinds=ALL_KINDS,
) -> Optional[Summaries]:
    """Fetch the user's full snapshot and aggregate it.

    Returns None when another refresh was started on the same tracker while
    this one was waiting on the store; its result is stale and is discarded.
    """
    token = tracker.next_token() if tracker is not None else None

    snapshot = await store.list_all(user_id)

    if tracker is not None and not tracker.is_latest(token):
        logger.debug("Discarding stale snapshot %s for user %s", token, user_id)
        return None

    valid, issues = partition_transactions(snapshot, kinds)
    if issues:
        logger.warning("%d of %d transactions for user %s skipped", len(issues), len(snapshot), user_id)
    return aggregate_all(valid)


async def refresh_all(store: TransactionStore, users: Iterable[str], kinds=ALL_KINDS) -> Dict[str, Summaries]:
    """Refresh several users concurrently."""
    users = list(users)

    async def one(user_id: str) -> tuple[str, Summaries]:
        return user_id, await refresh_summaries(store, user_id, kinds=kinds)

    results = await asyncio.gather(*(one(u) for u in users))
    return {k: v for k, v in results}
