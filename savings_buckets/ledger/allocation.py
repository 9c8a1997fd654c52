"""
Deposit and Withdrawal Splitting

Pure helpers that turn a single amount into per-bucket amounts.
Used to build deposit/withdrawal drafts and to preview them before
anything is committed.

DESIGN DECISION: Each share is rounded to the cent and the leftover
cents are handed out by largest remainder. The shares therefore add
up to exactly the requested amount and rounding never creates or
destroys money.
"""

from decimal import Decimal
from typing import Iterable, Sequence

from savings_buckets.currency import CENT, ZERO, Number, round_to_cents, sum_currency, to_decimal
from savings_buckets.models.bucket import Bucket


def _distribute(amount: Decimal, weights: Sequence[tuple[str, Decimal]]) -> dict[str, Decimal]:
    """Split amount across refs in proportion to weights, exact to the cent."""
    weight_total = sum((weight for _, weight in weights), Decimal("0"))
    if weight_total <= 0:
        return {ref: ZERO for ref, _ in weights}

    raw = {ref: amount * weight / weight_total for ref, weight in weights}
    shares = {ref: round_to_cents(value) for ref, value in raw.items()}

    residue = amount - sum(shares.values(), ZERO)
    if residue == ZERO:
        return shares

    step = CENT if residue > 0 else -CENT
    # Hand leftover cents to the shares that lost the most to rounding
    order = sorted(
        shares,
        key=lambda ref: raw[ref] - shares[ref],
        reverse=residue > 0,
    )
    index = 0
    while residue != ZERO:
        ref = order[index % len(order)]
        shares[ref] += step
        residue -= step
        index += 1
    return shares


def allocation_total(buckets: Iterable[Bucket]) -> Decimal:
    """Sum of allocation percentages."""
    return sum((bucket.allocation for bucket in buckets), Decimal("0"))


def allocation_is_balanced(buckets: Iterable[Bucket]) -> bool:
    """Advisory check: allocations are expected to add up to 100."""
    return allocation_total(buckets) == Decimal("100")


def split_deposit(buckets: Sequence[Bucket], amount: Number) -> dict[str, Decimal]:
    """
    Credit for each bucket when depositing `amount`.

    Shares follow allocation / sum of all allocations, so an allocation
    set that does not add up to 100 still places the whole deposit.
    With no allocations at all every bucket gets zero.
    """
    amount = round_to_cents(amount)
    return _distribute(amount, [(b.id, b.allocation) for b in buckets])


def split_withdrawal(
    buckets: Sequence[Bucket],
    total_balance: Number,
    amount: Number,
) -> dict[str, Decimal]:
    """
    Debit for each bucket when withdrawing `amount` from the total.

    Shares follow each bucket's part of the balance. A zero (or negative)
    total has no meaningful proportions, so every bucket gets zero; the
    validator rejects such withdrawals before they reach the ledger.
    """
    amount = round_to_cents(amount)
    if to_decimal(total_balance) <= 0:
        return {bucket.id: ZERO for bucket in buckets}
    return _distribute(amount, [(b.id, b.balance) for b in buckets])


def shares_total(shares: dict[str, Decimal]) -> Decimal:
    return sum_currency(shares.values())
