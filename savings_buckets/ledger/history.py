"""
Historical Reconstruction

Rebuilds the balance time series from the transaction log alone.

Algorithm:
1. Sort by date (stable, so same-date entries keep their input order)
2. Collect every bucket any transaction refers to, starting at 0
3. Replay each transaction with the same deltas the live ledger uses
4. Re-derive the total as the sum of the tracked balances
5. Emit one point per transaction with its own copy of the balances

DESIGN DECISION: The total is recomputed here, never copied from the
ledger. Comparing it with the stored total is how drift between the
live path and the log is detected.

Buckets that no transaction ever referenced do not appear in the series.
"""

from decimal import Decimal
from typing import Iterable, Iterator, Mapping

from savings_buckets.currency import ZERO, add_currency, sum_currency
from savings_buckets.ledger.reducer import transaction_deltas
from savings_buckets.models.savings import BucketHistoryPoint, HistoricalPoint
from savings_buckets.models.transaction import Transaction


def chronological(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Oldest first; sorted() is stable so ties keep their order."""
    return sorted(transactions, key=lambda t: t.date)


def referenced_buckets(transactions: Iterable[Transaction]) -> list[str]:
    """Every bucket reference in the log, in order of first appearance."""
    seen: dict[str, None] = {}
    for transaction in transactions:
        for ref in transaction.bucket_refs():
            seen.setdefault(ref, None)
    return list(seen)


def iter_history(transactions: Iterable[Transaction]) -> Iterator[HistoricalPoint]:
    """
    Lazily replay the log, yielding the balances after each transaction.

    Each call starts from scratch, so the generator can be recreated at
    any time and always yields the same points for the same log.
    """
    ordered = chronological(transactions)
    balances: dict[str, Decimal] = {ref: ZERO for ref in referenced_buckets(ordered)}

    for transaction in ordered:
        _, deltas = transaction_deltas(transaction)
        for ref, delta in deltas.items():
            balances[ref] = add_currency(balances.get(ref, ZERO), delta)

        yield HistoricalPoint(
            date=transaction.date,
            total_balance=sum_currency(balances.values()),
            bucket_balances=dict(balances),
        )


def reconstruct(transactions: Iterable[Transaction]) -> list[HistoricalPoint]:
    """Full series, oldest point first."""
    return list(iter_history(transactions))


def bucket_history(series: Iterable[HistoricalPoint], ref: str) -> list[BucketHistoryPoint]:
    """One bucket's balance at every point, 0 before it first appears."""
    return [
        BucketHistoryPoint(
            date=point.date,
            balance=point.bucket_balances.get(ref, ZERO),
        )
        for point in series
    ]


def label_series(
    series: Iterable[HistoricalPoint],
    names: Mapping[str, str],
) -> list[HistoricalPoint]:
    """
    Swap bucket ids for display names.

    References with no known name (deleted buckets) keep their id.
    Two ids that resolve to the same name are added together.
    """
    labelled = []
    for point in series:
        balances: dict[str, Decimal] = {}
        for ref, balance in point.bucket_balances.items():
            label = names.get(ref, ref)
            balances[label] = add_currency(balances.get(label, ZERO), balance)
        labelled.append(point.model_copy(update={"bucket_balances": balances}))
    return labelled


def final_total(series: Iterable[HistoricalPoint]) -> Decimal:
    """Total balance at the last point, 0 for an empty log."""
    last = None
    for last in series:
        pass
    return last.total_balance if last is not None else ZERO
