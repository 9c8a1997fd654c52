"""
Ledger State Machine

Pure functions that take a SavingsData and return a new one.

DESIGN DECISION: The reducer trusts its input. It does not check for
insufficient funds, unknown buckets or non-positive amounts; that is
the validator's job. Keeping the transition unconditional lets callers
compute "what would happen" and lets tests drive invalid transitions
straight through the mechanism.

Every mutation path updates total_balance and the bucket balances
together, so a balanced state stays balanced.
"""

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from savings_buckets.currency import ZERO, Number, add_currency
from savings_buckets.models.bucket import DEFAULT_GOAL_BASE, Bucket, BucketUpdate, default_goal
from savings_buckets.models.savings import SavingsData
from savings_buckets.models.transaction import (
    BucketWithdrawalDraft,
    DepositDraft,
    ReallocationDraft,
    Transaction,
    TransactionDraft,
    WithdrawalDraft,
    record_draft,
)


# =============================================================================
# BUCKET OPERATIONS
# =============================================================================

def add_bucket(
    state: SavingsData,
    name: str,
    allocation: Number,
    goal: Optional[Number] = None,
    *,
    bucket_id: Optional[str] = None,
    color: Optional[str] = None,
) -> tuple[SavingsData, Bucket]:
    """Append a new empty bucket. Duplicate names are not checked here."""
    fields = {"name": name, "allocation": allocation, "goal": goal}
    if bucket_id is not None:
        fields["id"] = bucket_id
    if color is not None:
        fields["color"] = color
    bucket = Bucket(**fields)

    new_state = state.model_copy(update={"buckets": [*state.buckets, bucket]})
    return new_state, bucket


def update_bucket(
    state: SavingsData,
    bucket_id: str,
    changes: BucketUpdate,
    goal_base: Decimal = DEFAULT_GOAL_BASE,
) -> SavingsData:
    """
    Merge the set fields of `changes` into the matching bucket.

    A goal set to 0 is replaced by the derived goal, as on creation.
    """
    updates = changes.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        return state

    def edited(bucket: Bucket) -> Bucket:
        fields = dict(updates)
        if fields.get("goal") == ZERO:
            allocation = fields.get("allocation", bucket.allocation)
            fields["goal"] = default_goal(allocation, goal_base)
        return bucket.model_copy(update=fields)

    buckets = [
        edited(bucket) if bucket.id == bucket_id else bucket
        for bucket in state.buckets
    ]
    return state.model_copy(update={"buckets": buckets})


def delete_bucket(state: SavingsData, bucket_id: str) -> SavingsData:
    """
    Remove a bucket.

    The total is left alone, so any balance the bucket held shows up
    as drift. Past transactions keep their reference to the id.
    """
    buckets = [bucket for bucket in state.buckets if bucket.id != bucket_id]
    return state.model_copy(update={"buckets": buckets})


# =============================================================================
# TRANSACTIONS
# =============================================================================

def _with_balance(bucket: Bucket, balance: Decimal) -> Bucket:
    return bucket.model_copy(update={"balance": balance})


def _apply_deltas(buckets: list[Bucket], deltas: dict[str, Decimal]) -> list[Bucket]:
    """Add each delta to the bucket with that id; unknown ids are ignored."""
    return [
        _with_balance(bucket, add_currency(bucket.balance, deltas[bucket.id]))
        if bucket.id in deltas else bucket
        for bucket in buckets
    ]


def transaction_deltas(draft: TransactionDraft) -> tuple[Decimal, dict[str, Decimal]]:
    """
    Effect of a transaction as (total delta, {bucket_id: balance delta}).

    Shared by the live reducer and the history replay so the two paths
    apply identical arithmetic.
    """
    if isinstance(draft, DepositDraft):
        return draft.amount, dict(draft.allocations)

    if isinstance(draft, WithdrawalDraft):
        return -draft.amount, {ref: -value for ref, value in draft.impact.items()}

    if isinstance(draft, BucketWithdrawalDraft):
        return -draft.amount, {draft.bucket: -draft.amount}

    if isinstance(draft, ReallocationDraft):
        deltas: dict[str, Decimal] = {draft.from_bucket: -draft.amount}
        # Moving to the same bucket nets to zero
        deltas[draft.to_bucket] = add_currency(deltas.get(draft.to_bucket, ZERO), draft.amount)
        return ZERO, deltas

    raise TypeError(f"Unsupported transaction draft: {type(draft).__name__}")


def apply_recorded(state: SavingsData, transaction: Transaction) -> SavingsData:
    """Apply an already-recorded transaction and prepend it to history."""
    total_delta, deltas = transaction_deltas(transaction)
    return state.model_copy(update={
        "total_balance": add_currency(state.total_balance, total_delta),
        "buckets": _apply_deltas(state.buckets, deltas),
        "transactions": [transaction, *state.transactions],
    })


def apply_transaction(
    state: SavingsData,
    draft: TransactionDraft,
    *,
    transaction_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> tuple[SavingsData, Transaction]:
    """
    Record a draft and apply it.

    - deposit:           total += amount; each bucket += allocations[id]
    - withdrawal:        total -= amount; each bucket -= impact[id]
    - bucket_withdrawal: total -= amount; named bucket -= amount
    - reallocation:      total unchanged; from -= amount; to += amount

    Returns the new state and the recorded transaction.
    """
    transaction = record_draft(draft, transaction_id=transaction_id, date=now)
    return apply_recorded(state, transaction), transaction


def replay(
    transactions: Iterable[Transaction],
    initial: Optional[SavingsData] = None,
) -> SavingsData:
    """
    Apply recorded transactions oldest first.

    Storage order does not matter; the log is sorted by date (stable)
    before it is applied.
    """
    state = initial or SavingsData()
    for transaction in sorted(transactions, key=lambda t: t.date):
        state = apply_recorded(state, transaction)
    return state

