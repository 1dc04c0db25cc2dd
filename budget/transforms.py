import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple, Union
from uuid import uuid4

from budget.aggregation import valid_amount
from budget.domain import CATEGORIES_BY_KIND, Household, Transaction, TransactionKind
from budget.functional import Either, Left, Right, safe_kind
from budget.logs import get_logger
from budget.periods import parse_timestamp

logger = get_logger(__name__)

ALL_KINDS: Tuple[TransactionKind, ...] = tuple(TransactionKind)


def enabled_kinds(names: Iterable[str]) -> Tuple[TransactionKind, ...]:
    return tuple(TransactionKind(n) for n in names)


def validate_transaction(
    t: Transaction, kinds: Sequence[TransactionKind] = ALL_KINDS
) -> Either[dict, Transaction]:
    """Structural checks a record must pass before it can be aggregated."""
    tid = getattr(t, "id", None)

    if not valid_amount(getattr(t, "amount", None)):
        return Left({
            "error": "invalid_amount",
            "message": f"Transaction {tid} has a non-positive or non-numeric amount",
            "transaction_id": tid,
            "amount": getattr(t, "amount", None),
        })

    kind = safe_kind(getattr(t, "kind", None))
    if kind.is_none() or kind.get_or_else(None) not in kinds:
        return Left({
            "error": "invalid_kind",
            "message": f"Transaction {tid} has unsupported kind {getattr(t, 'kind', None)!r}",
            "transaction_id": tid,
            "kind": getattr(t, "kind", None),
        })

    category = getattr(t, "category", None)
    if not isinstance(category, str) or not category.strip():
        return Left({
            "error": "missing_category",
            "message": f"Transaction {tid} has no category",
            "transaction_id": tid,
        })

    if parse_timestamp(getattr(t, "ts", None)).is_none():
        return Left({
            "error": "invalid_timestamp",
            "message": f"Transaction {tid} has an unparsable timestamp {getattr(t, 'ts', None)!r}",
            "transaction_id": tid,
            "ts": getattr(t, "ts", None),
        })

    return Right(t)


def validate_category(t: Transaction) -> Either[dict, Transaction]:
    """Category must belong to the closed set for the transaction's kind."""
    kind = safe_kind(t.kind).get_or_else(None)
    allowed = CATEGORIES_BY_KIND.get(kind, ())
    if t.category not in allowed:
        return Left({
            "error": "unknown_category",
            "message": f"Category {t.category!r} is not allowed for {getattr(kind, 'value', kind)} transactions",
            "transaction_id": t.id,
            "category": t.category,
            "allowed": list(allowed),
        })
    return Right(t)


def validate_draft(
    t: Transaction, kinds: Sequence[TransactionKind] = ALL_KINDS
) -> Either[dict, Transaction]:
    return validate_transaction(t, kinds).bind(validate_category)


def partition_transactions(
    records: Iterable[Transaction], kinds: Sequence[TransactionKind] = ALL_KINDS
) -> Tuple[Tuple[Transaction, ...], Tuple[dict, ...]]:
    """Split a snapshot into aggregatable transactions and data-quality issues."""
    valid: List[Transaction] = []
    issues: List[dict] = []
    for t in records:
        result = validate_transaction(t, kinds)
        if result.is_right():
            valid.append(t)
        else:
            issue = result.get_error()
            logger.warning("Skipping transaction: %s", issue["message"])
            issues.append(issue)
    return tuple(valid), tuple(issues)


def transaction_from_record(record: Mapping[str, Any]) -> Transaction:
    """Build a Transaction from a plain dict. Kind is coerced when recognised, kept raw otherwise."""
    raw_kind = record.get("kind", record.get("type"))
    amount = record.get("amount")
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        pass
    return Transaction(
        id=str(record.get("id") or uuid4()),
        amount=amount,
        kind=safe_kind(raw_kind).get_or_else(raw_kind),
        category=record.get("category", ""),
        ts=record.get("ts", record.get("date", "")),
        note=record.get("note", ""),
    )


def transaction_to_record(t: Transaction) -> Dict[str, Any]:
    kind = t.kind.value if isinstance(t.kind, TransactionKind) else t.kind
    return {
        "id": t.id,
        "amount": t.amount,
        "kind": kind,
        "category": t.category,
        "ts": t.ts,
        "note": t.note,
    }


def load_seed(
    path: Union[str, Path],
) -> Tuple[Dict[str, Tuple[Transaction, ...]], Dict[str, Household]]:
    """Read ``{"users": {user_id: {"transactions": [...], "household": {...}}}}``."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    transactions: Dict[str, Tuple[Transaction, ...]] = {}
    households: Dict[str, Household] = {}
    for user_id, user in data.get("users", {}).items():
        transactions[user_id] = tuple(transaction_from_record(r) for r in user.get("transactions", []))
        if user.get("household"):
            households[user_id] = Household(user_id=user_id, **user["household"])

    logger.info(
        "Loaded seed %s: %d users, %d transactions",
        path, len(transactions), sum(len(v) for v in transactions.values()),
    )
    return transactions, households
