"""
Tests for historical reconstruction.

The series is derived from the transaction log alone and must agree
with the balances the live ledger keeps.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import GeneratorType

import pytest

from savings_buckets.ledger.history import (
    bucket_history,
    chronological,
    final_total,
    iter_history,
    label_series,
    reconstruct,
    referenced_buckets,
)
from savings_buckets.ledger.reducer import apply_transaction
from savings_buckets.models import (
    BucketWithdrawalDraft,
    DepositDraft,
    ReallocationDraft,
    WithdrawalDraft,
    record_draft,
)


T1 = datetime(2024, 1, 1, tzinfo=timezone.utc)
T2 = T1 + timedelta(days=1)
T3 = T2 + timedelta(days=1)


def deposit(when, **allocations):
    amount = sum(Decimal(str(v)) for v in allocations.values())
    return record_draft(DepositDraft(amount=amount, allocations=allocations), date=when)


class TestReconstruct:
    """Tests for reconstruct / iter_history."""

    def test_out_of_order_log_is_sorted(self):
        """Test that T1 is emitted before T2 even when listed after it."""
        series = reconstruct([deposit(T2, A=10), deposit(T1, A=5)])

        assert [point.date for point in series] == [T1, T2]
        assert series[0].bucket_balances == {"A": Decimal("5.00")}
        assert series[0].total_balance == Decimal("5.00")
        assert series[1].bucket_balances == {"A": Decimal("15.00")}
        assert series[1].total_balance == Decimal("15.00")

    def test_empty_log(self):
        """Test that no transactions means no points."""
        assert reconstruct([]) == []
        assert final_total([]) == Decimal("0.00")

    def test_idempotent(self):
        """Test that two runs over the same log are identical."""
        log = [deposit(T1, A=5, B=5), deposit(T2, A=1)]
        assert reconstruct(log) == reconstruct(log)

    def test_storage_order_does_not_matter(self):
        """Test newest-first and oldest-first logs give the same series."""
        log = [
            deposit(T1, A=10, B=10),
            record_draft(ReallocationDraft(amount=3, from_bucket="A", to_bucket="B"), date=T2),
            record_draft(BucketWithdrawalDraft(amount=4, bucket="B"), date=T3),
        ]
        assert reconstruct(log) == reconstruct(list(reversed(log)))

    def test_every_referenced_bucket_starts_at_zero(self):
        """Test that later buckets appear with 0 in early points."""
        series = reconstruct([deposit(T1, A=5), deposit(T2, B=7)])
        assert series[0].bucket_balances == {"A": Decimal("5.00"), "B": Decimal("0.00")}

    def test_points_are_independent_copies(self):
        """Test that later steps never alter earlier points."""
        series = reconstruct([deposit(T1, A=5), deposit(T2, A=5)])
        assert series[0].bucket_balances["A"] == Decimal("5.00")
        assert series[0].bucket_balances is not series[1].bucket_balances

    def test_total_is_rederived_from_buckets(self):
        """Test that the total is the sum of tracked balances, not the amount."""
        # Header amount says 100 but only 60 reaches a bucket
        transaction = record_draft(DepositDraft(amount=100, allocations={"A": 60}), date=T1)
        series = reconstruct([transaction])
        assert series[0].total_balance == Decimal("60.00")

    def test_every_transaction_type(self):
        """Test deltas for all four kinds."""
        series = reconstruct([
            deposit(T1, A=60, B=40),
            record_draft(WithdrawalDraft(amount=10, impact={"A": 6, "B": 4}), date=T2),
            record_draft(ReallocationDraft(amount=5, from_bucket="A", to_bucket="B"), date=T3),
            record_draft(BucketWithdrawalDraft(amount=1, bucket="B"), date=T3 + timedelta(hours=1)),
        ])
        assert series[-1].bucket_balances == {"A": Decimal("49.00"), "B": Decimal("40.00")}
        assert final_total(series) == Decimal("89.00")

    def test_iter_history_is_lazy_and_restartable(self):
        """Test that the generator can be recreated with the same output."""
        log = [deposit(T1, A=5), deposit(T2, A=5)]
        points = iter_history(log)
        assert isinstance(points, GeneratorType)
        assert list(points) == list(iter_history(log))

    def test_agrees_with_live_ledger(self, empty_two_buckets):
        """Test that the final reconstructed total equals the stored total."""
        state = empty_two_buckets
        drafts = [
            DepositDraft(amount=100, allocations={"emergency": 50, "travel": 50}),
            ReallocationDraft(amount=20, from_bucket="travel", to_bucket="emergency"),
            BucketWithdrawalDraft(amount=10, bucket="emergency"),
            WithdrawalDraft(amount="33.33", impact={"emergency": "22.22", "travel": "11.11"}),
        ]
        for day, draft in enumerate(drafts):
            state, _ = apply_transaction(state, draft, now=T1 + timedelta(days=day))

        series = reconstruct(state.transactions)
        assert final_total(series) == state.total_balance
        assert series[-1].bucket_balances == {
            bucket.id: bucket.balance for bucket in state.buckets
        }


class TestHistoryHelpers:
    """Tests for chronological, referenced_buckets, bucket_history, label_series."""

    def test_chronological_is_stable(self):
        """Test that same-date entries keep their input order."""
        first, second = deposit(T1, A=1), deposit(T1, A=2)
        assert chronological([first, second]) == [first, second]

    def test_referenced_buckets_in_first_seen_order(self):
        """Test discovery of every referenced bucket."""
        log = [
            deposit(T1, A=1),
            record_draft(ReallocationDraft(amount=1, from_bucket="A", to_bucket="C"), date=T2),
            record_draft(BucketWithdrawalDraft(amount=1, bucket="B"), date=T3),
        ]
        assert referenced_buckets(log) == ["A", "C", "B"]

    def test_bucket_history_defaults_to_zero(self):
        """Test one bucket's series, including an unknown id."""
        series = reconstruct([deposit(T1, A=5), deposit(T2, A=5)])
        assert [p.balance for p in bucket_history(series, "A")] == [Decimal("5.00"), Decimal("10.00")]
        assert [p.balance for p in bucket_history(series, "Z")] == [Decimal("0.00"), Decimal("0.00")]

    def test_label_series_resolves_names(self):
        """Test ids become names and deleted ids stay as they are."""
        series = reconstruct([deposit(T1, a1=5, gone=2)])
        labelled = label_series(series, {"a1": "Travel"})
        assert labelled[0].bucket_balances == {"Travel": Decimal("5.00"), "gone": Decimal("2.00")}

    def test_label_series_merges_same_names(self):
        """Test two buckets with one display name are added together."""
        series = reconstruct([deposit(T1, a1=5, a2=2)])
        labelled = label_series(series, {"a1": "Travel", "a2": "Travel"})
        assert labelled[0].bucket_balances == {"Travel": Decimal("7.00")}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
