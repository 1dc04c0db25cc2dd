from datetime import datetime

import pytest

from budget.domain import Transaction, TransactionKind
from budget.errors import NotAuthenticatedError, TransactionNotFoundError, TransactionValidationError
from budget.store import InMemoryTransactionStore
from budget.transforms import enabled_kinds


def make_draft(amount=40.0, kind=TransactionKind.EXPENSE, category="food", ts="2025-03-05", id=""):
    return Transaction(id=id, amount=amount, kind=kind, category=category, ts=ts)


@pytest.mark.asyncio
async def test_create_assigns_id_and_lists():
    store = InMemoryTransactionStore()
    created = await store.create("alice", make_draft())
    assert created.id == "tx-1"
    assert await store.list_all("alice") == (created,)


@pytest.mark.asyncio
async def test_create_normalizes_raw_values():
    store = InMemoryTransactionStore()
    created = await store.create("alice", make_draft(amount=12, kind="income", category="other"))
    assert created.kind is TransactionKind.INCOME
    assert isinstance(created.amount, float)


@pytest.mark.asyncio
async def test_create_keeps_free_id_and_replaces_taken_one():
    store = InMemoryTransactionStore()
    first = await store.create("alice", make_draft(id="mine"))
    second = await store.create("alice", make_draft(id="mine"))
    assert first.id == "mine"
    assert second.id != "mine"


@pytest.mark.asyncio
async def test_create_rejects_invalid_drafts():
    store = InMemoryTransactionStore()
    with pytest.raises(TransactionValidationError) as exc:
        await store.create("alice", make_draft(amount=0))
    assert exc.value.error["error"] == "invalid_amount"

    with pytest.raises(TransactionValidationError) as exc:
        await store.create("alice", make_draft(category="entertainment"))
    assert exc.value.error["error"] == "unknown_category"
    assert await store.list_all("alice") == ()


@pytest.mark.asyncio
async def test_create_rejects_disabled_kind():
    store = InMemoryTransactionStore(kinds=enabled_kinds(["income", "expense"]))
    with pytest.raises(TransactionValidationError):
        await store.create("alice", make_draft(kind=TransactionKind.SAVINGS, category="retirement"))


@pytest.mark.asyncio
async def test_update_changes_amount_and_category():
    store = InMemoryTransactionStore()
    created = await store.create("alice", make_draft())
    await store.update("alice", created.id, amount=55.0, category="housing")
    (updated,) = await store.list_all("alice")
    assert updated.amount == 55.0
    assert updated.category == "housing"
    assert updated.ts == created.ts


@pytest.mark.asyncio
async def test_invalid_update_keeps_previous_values():
    store = InMemoryTransactionStore()
    created = await store.create("alice", make_draft())
    with pytest.raises(TransactionValidationError):
        await store.update("alice", created.id, amount=-1)
    assert await store.list_all("alice") == (created,)


@pytest.mark.asyncio
async def test_delete_and_missing_transactions():
    store = InMemoryTransactionStore()
    created = await store.create("alice", make_draft())
    await store.delete("alice", created.id)
    assert await store.list_all("alice") == ()

    with pytest.raises(TransactionNotFoundError):
        await store.delete("alice", created.id)
    with pytest.raises(TransactionNotFoundError):
        await store.update("alice", "nope", amount=1.0)


@pytest.mark.asyncio
async def test_users_are_isolated():
    store = InMemoryTransactionStore()
    created = await store.create("alice", make_draft())
    assert await store.list_all("bob") == ()
    with pytest.raises(TransactionNotFoundError):
        await store.delete("bob", created.id)


@pytest.mark.asyncio
@pytest.mark.parametrize("user", ["", None])
async def test_requires_user(user):
    store = InMemoryTransactionStore()
    with pytest.raises(NotAuthenticatedError):
        await store.list_all(user)
    with pytest.raises(NotAuthenticatedError):
        await store.create(user, make_draft())


@pytest.mark.asyncio
async def test_household_roundtrip():
    store = InMemoryTransactionStore()
    assert await store.get_household("alice") is None

    now = datetime(2025, 3, 20, 9, 30)
    household = await store.set_household("alice", 2, 1, now)
    assert household.size == 3
    assert household.last_updated == "2025-03-20T09:30:00"
    assert await store.get_household("alice") == household

    with pytest.raises(TransactionValidationError):
        await store.set_household("alice", -1, 0, now)


@pytest.mark.asyncio
async def test_savings_target_per_user_and_year():
    store = InMemoryTransactionStore()
    now = datetime(2025, 3, 20, 9, 30)
    assert await store.get_savings_target("alice", 2025) is None

    first = await store.set_savings_target("alice", 2025, 5000, now)
    assert first.target_amount == 5000.0
    assert first.updated_at == "2025-03-20T09:30:00"

    await store.set_savings_target("alice", 2025, 6000.0, now)
    assert (await store.get_savings_target("alice", 2025)).target_amount == 6000.0
    assert await store.get_savings_target("alice", 2026) is None
    assert await store.get_savings_target("bob", 2025) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -5.0, float("nan"), True])
async def test_savings_target_must_be_positive(amount):
    store = InMemoryTransactionStore()
    with pytest.raises(TransactionValidationError) as exc:
        await store.set_savings_target("alice", 2025, amount, datetime(2025, 3, 20))
    assert exc.value.error["error"] == "invalid_target"
    assert await store.get_savings_target("alice", 2025) is None


@pytest.mark.asyncio
async def test_savings_target_requires_user():
    store = InMemoryTransactionStore()
    with pytest.raises(NotAuthenticatedError):
        await store.set_savings_target("", 2025, 100.0, datetime(2025, 3, 20))
    with pytest.raises(NotAuthenticatedError):
        await store.get_savings_target(None, 2025)
