"""Transaction and household storage, scoped per authenticated user.

``TransactionStore`` is the interface the dashboard talks to; a hosted
backend would implement it. ``InMemoryTransactionStore`` keeps everything in
process memory and backs the demo app and the tests.
"""
import asyncio
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from itertools import count
from typing import Dict, Mapping, Optional, Sequence, Tuple

from budget.aggregation import valid_amount
from budget.domain import Household, SavingsTarget, Transaction, TransactionKind
from budget.errors import NotAuthenticatedError, TransactionNotFoundError, TransactionValidationError
from budget.functional import safe_kind
from budget.logs import get_logger
from budget.transforms import ALL_KINDS, validate_draft

logger = get_logger(__name__)


class TransactionStore(ABC):

    @abstractmethod
    async def list_all(self, user_id: str) -> Tuple[Transaction, ...]:
        pass

    @abstractmethod
    async def create(self, user_id: str, draft: Transaction) -> Transaction:
        pass

    @abstractmethod
    async def update(self, user_id: str, transaction_id: str,
                     amount: Optional[float] = None, category: Optional[str] = None) -> None:
        pass

    @abstractmethod
    async def delete(self, user_id: str, transaction_id: str) -> None:
        pass

    @abstractmethod
    async def get_household(self, user_id: str) -> Optional[Household]:
        pass

    @abstractmethod
    async def set_household(self, user_id: str, num_adults: int, num_children: int,
                            now: datetime) -> Household:
        pass

    @abstractmethod
    async def get_savings_target(self, user_id: str, year: int) -> Optional[SavingsTarget]:
        pass

    @abstractmethod
    async def set_savings_target(self, user_id: str, year: int, target_amount: float,
                                 now: datetime) -> SavingsTarget:
        pass


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise NotAuthenticatedError("Not authenticated")
    return user_id


class InMemoryTransactionStore(TransactionStore):

    def __init__(
        self,
        kinds: Sequence[TransactionKind] = ALL_KINDS,
        transactions: Optional[Mapping[str, Sequence[Transaction]]] = None,
        households: Optional[Mapping[str, Household]] = None,
    ):
        self.kinds = tuple(kinds)
        self._transactions: Dict[str, Dict[str, Transaction]] = {
            user: {t.id: t for t in items} for user, items in (transactions or {}).items()
        }
        self._households: Dict[str, Household] = dict(households or {})
        self._targets: Dict[Tuple[str, int], SavingsTarget] = {}
        self._ids = count(1)
        self._lock = asyncio.Lock()

    async def list_all(self, user_id: str) -> Tuple[Transaction, ...]:
        user_id = _require_user(user_id)
        return tuple(self._transactions.get(user_id, {}).values())

    async def create(self, user_id: str, draft: Transaction) -> Transaction:
        user_id = _require_user(user_id)
        result = validate_draft(draft, self.kinds)
        if result.is_left():
            raise TransactionValidationError(result.get_error())

        async with self._lock:
            user_items = self._transactions.setdefault(user_id, {})
            tid = draft.id
            while not tid or tid in user_items:
                tid = f"tx-{next(self._ids)}"
            created = replace(draft, id=tid, amount=float(draft.amount),
                              kind=safe_kind(draft.kind).get_or_else(draft.kind))
            user_items[tid] = created

        logger.info("Created %s transaction %s for user %s", created.kind.value, tid, user_id)
        return created

    async def update(self, user_id: str, transaction_id: str,
                     amount: Optional[float] = None, category: Optional[str] = None) -> None:
        user_id = _require_user(user_id)
        async with self._lock:
            current = self._find(user_id, transaction_id)
            changes = {}
            if amount is not None:
                changes["amount"] = amount
            if category is not None:
                changes["category"] = category
            updated = replace(current, **changes)

            result = validate_draft(updated, self.kinds)
            if result.is_left():
                raise TransactionValidationError(result.get_error())
            self._transactions[user_id][transaction_id] = updated

        logger.info("Updated transaction %s for user %s", transaction_id, user_id)

    async def delete(self, user_id: str, transaction_id: str) -> None:
        user_id = _require_user(user_id)
        async with self._lock:
            self._find(user_id, transaction_id)
            del self._transactions[user_id][transaction_id]
        logger.info("Deleted transaction %s for user %s", transaction_id, user_id)

    async def get_household(self, user_id: str) -> Optional[Household]:
        user_id = _require_user(user_id)
        return self._households.get(user_id)

    async def set_household(self, user_id: str, num_adults: int, num_children: int,
                            now: datetime) -> Household:
        user_id = _require_user(user_id)
        if num_adults < 0 or num_children < 0:
            raise TransactionValidationError({
                "error": "invalid_household",
                "message": "Household member counts cannot be negative",
            })
        household = Household(
            user_id=user_id,
            num_adults=num_adults,
            num_children=num_children,
            last_updated=now.isoformat(),
        )
        self._households[user_id] = household
        return household

    async def get_savings_target(self, user_id: str, year: int) -> Optional[SavingsTarget]:
        user_id = _require_user(user_id)
        return self._targets.get((user_id, year))

    async def set_savings_target(self, user_id: str, year: int, target_amount: float,
                                 now: datetime) -> SavingsTarget:
        """One target per user and year; setting it again replaces the amount."""
        user_id = _require_user(user_id)
        if not valid_amount(target_amount):
            raise TransactionValidationError({
                "error": "invalid_target",
                "message": "Savings target must be greater than 0",
                "target_amount": target_amount,
            })
        target = SavingsTarget(
            user_id=user_id,
            year=year,
            target_amount=float(target_amount),
            updated_at=now.isoformat(),
        )
        self._targets[(user_id, year)] = target
        logger.info("Savings target for %s in %d set to %.2f", user_id, year, target.target_amount)
        return target

    def _find(self, user_id: str, transaction_id: str) -> Transaction:
        found = self._transactions.get(user_id, {}).get(transaction_id)
        if found is None:
            raise TransactionNotFoundError(f"Transaction {transaction_id} not found")
        return found
