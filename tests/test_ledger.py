"""
Tests for the SavingsLedger service.

Test strategy:
1. Initialization priority (saved → bootstrap → empty)
2. Bucket and transaction flows against an in-memory store
3. Failure paths: corrupt state, failing saves, rejected drafts
"""

import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from savings_buckets.ledger.engine import SavingsLedger
from savings_buckets.models import BucketWithdrawalDraft, DepositDraft, SavingsData
from savings_buckets.services.bootstrap import BootstrapLoader
from savings_buckets.services.storage import InMemoryStore, JsonFileStore, StorageError
from savings_buckets.validation import TransactionValidator


class Clock:
    """Deterministic clock, one minute per call."""

    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


class FailingStore(InMemoryStore):
    async def save(self, data: SavingsData) -> None:
        raise StorageError("disk full")


def make_ledger(store=None, bootstrap=None) -> SavingsLedger:
    return SavingsLedger(
        store=store if store is not None else InMemoryStore(),
        bootstrap=bootstrap,
        validator=TransactionValidator(tolerance=Decimal("0.01")),
        clock=Clock(),
    )


async def two_bucket_ledger(store=None) -> SavingsLedger:
    ledger = make_ledger(store)
    await ledger.initialize()
    await ledger.add_bucket("Emergency", 50)
    await ledger.add_bucket("Travel", 50)
    return ledger


def balance_of(ledger: SavingsLedger, name: str) -> Decimal:
    return ledger.data.find_bucket_by_name(name).balance


class TestInitialize:
    """Tests for the loading priority."""

    @pytest.mark.asyncio
    async def test_empty_when_nothing_available(self):
        """Test a fresh ledger starts empty and saves that state."""
        store = InMemoryStore()
        ledger = make_ledger(store)
        assert ledger.is_loading

        data = await ledger.initialize()

        assert not ledger.is_loading
        assert data == SavingsData()
        assert ledger.historical_data == []
        assert store.save_count == 1

    @pytest.mark.asyncio
    async def test_saved_state_wins(self, tmp_path, funded_state):
        """Test that saved state is used and bootstrap files are ignored."""
        snapshot = tmp_path / "savings_data.json"
        snapshot.write_text(json.dumps({"total_balance": 5, "buckets": {"Other": 5}}), encoding="utf-8")
        store = InMemoryStore(raw=funded_state.to_json())

        ledger = make_ledger(store, BootstrapLoader(snapshot))
        await ledger.initialize()

        assert ledger.data == funded_state
        assert store.save_count == 0

    @pytest.mark.asyncio
    async def test_corrupt_state_falls_back_to_bootstrap(self, tmp_path):
        """Test that unparseable saved state is skipped, not raised."""
        snapshot = tmp_path / "savings_data.json"
        snapshot.write_text(json.dumps({"total_balance": 5, "buckets": {"Other": 5}}), encoding="utf-8")
        store = InMemoryStore(raw="{broken")

        ledger = make_ledger(store, BootstrapLoader(snapshot))
        await ledger.initialize()

        assert [b.name for b in ledger.data.buckets] == ["Other"]
        assert ledger.data.total_balance == Decimal("5.00")
        # The bootstrap result replaces the corrupt record
        assert store.save_count == 1

    @pytest.mark.asyncio
    async def test_corrupt_state_without_bootstrap_is_empty(self):
        """Test the last fallback."""
        ledger = make_ledger(InMemoryStore(raw="{broken"))
        assert await ledger.initialize() == SavingsData()

    @pytest.mark.asyncio
    async def test_non_utf8_state_file_is_empty(self, tmp_path):
        """Test a saved state file with invalid bytes falls back instead of raising."""
        path = tmp_path / "state.json"
        path.write_bytes(b'{"totalBalance": \xff\xfe}')

        ledger = make_ledger(JsonFileStore(path))
        data = await ledger.initialize()

        assert data == SavingsData()
        assert not ledger.is_loading
        # The fallback state replaces the unreadable file
        assert SavingsData.from_json(path.read_text(encoding="utf-8")) == SavingsData()

    @pytest.mark.asyncio
    async def test_non_utf8_bootstrap_is_empty(self, tmp_path):
        """Test an undecodable snapshot falls through to an empty ledger."""
        snapshot = tmp_path / "savings_data.json"
        snapshot.write_bytes(b"\xff\xfe\x00garbage")

        ledger = make_ledger(bootstrap=BootstrapLoader(snapshot))
        assert await ledger.initialize() == SavingsData()

    @pytest.mark.asyncio
    async def test_history_built_on_load(self):
        """Test that historical_data is ready after initialize."""
        ledger = await two_bucket_ledger()
        await ledger.deposit(100)

        reloaded = make_ledger(InMemoryStore(raw=ledger.data.to_json()))
        await reloaded.initialize()
        assert reloaded.historical_data == ledger.historical_data


class TestBuckets:
    """Tests for bucket add/update/delete through the service."""

    @pytest.mark.asyncio
    async def test_add_bucket_persists(self):
        """Test a new bucket is saved with its derived goal."""
        store = InMemoryStore()
        ledger = make_ledger(store)
        await ledger.initialize()

        bucket = await ledger.add_bucket("House", 25)

        assert bucket.goal == Decimal("25000.00")
        assert bucket.balance == Decimal("0.00")
        assert SavingsData.from_json(store.raw).find_bucket(bucket.id) is not None

    @pytest.mark.asyncio
    async def test_add_bucket_uses_goal_base(self):
        """Test the configured goal base."""
        ledger = SavingsLedger(store=InMemoryStore(), goal_base=Decimal("2000"))
        await ledger.initialize()
        bucket = await ledger.add_bucket("House", 25, goal=0)
        assert bucket.goal == Decimal("500.00")

    @pytest.mark.asyncio
    async def test_rename_keeps_history(self):
        """Test that renaming does not orphan earlier transactions."""
        ledger = await two_bucket_ledger()
        await ledger.deposit(100)
        travel = ledger.data.find_bucket_by_name("Travel")

        updated = await ledger.update_bucket(travel.id, name="Trips")

        assert updated.name == "Trips"
        assert updated.balance == Decimal("50.00")
        assert ledger.labelled_history()[-1].bucket_balances["Trips"] == Decimal("50.00")
        assert [p.balance for p in ledger.bucket_history(travel.id)] == [Decimal("50.00")]

    @pytest.mark.asyncio
    async def test_update_zero_goal_uses_goal_base(self):
        """Test that clearing a goal derives it from the configured goal base."""
        store = InMemoryStore()
        ledger = SavingsLedger(store=store, goal_base=Decimal("2000"))
        await ledger.initialize()
        bucket = await ledger.add_bucket("House", 25, goal=900)

        updated = await ledger.update_bucket(bucket.id, goal=0)

        assert updated.goal == Decimal("500.00")
        assert SavingsData.from_json(store.raw).find_bucket(bucket.id).goal == Decimal("500.00")

    @pytest.mark.asyncio
    async def test_update_unknown_bucket(self):
        """Test updating a missing id returns None."""
        ledger = await two_bucket_ledger()
        assert await ledger.update_bucket("missing", name="X") is None

    @pytest.mark.asyncio
    async def test_delete_funded_bucket_shows_drift(self):
        """Test that deleting a bucket with money leaves the total and reports drift."""
        ledger = await two_bucket_ledger()
        await ledger.deposit(100)
        travel = ledger.data.find_bucket_by_name("Travel")

        removed = await ledger.delete_bucket(travel.id)
        report = ledger.check_reconciliation()

        assert removed.id == travel.id
        assert ledger.data.total_balance == Decimal("100.00")
        assert report.difference == Decimal("50.00")
        assert not report.is_reconciled
        assert await ledger.delete_bucket(travel.id) is None


class TestTransactions:
    """Tests for the transaction flows."""

    @pytest.mark.asyncio
    async def test_deposit_reallocate_withdraw(self):
        """Test the basic flow end to end."""
        ledger = await two_bucket_ledger()
        emergency = ledger.data.find_bucket_by_name("Emergency")
        travel = ledger.data.find_bucket_by_name("Travel")

        result, deposit = await ledger.deposit(100)
        assert result.is_valid and deposit is not None
        await ledger.reallocate(travel.id, emergency.id, 20)
        await ledger.withdraw_from(emergency.id, 10)

        assert balance_of(ledger, "Emergency") == Decimal("60.00")
        assert balance_of(ledger, "Travel") == Decimal("30.00")
        assert ledger.data.total_balance == Decimal("90.00")
        assert len(ledger.historical_data) == 3

        report = ledger.check_reconciliation()
        assert report.is_reconciled
        assert report.reconstructed_total == Decimal("90.00")

    @pytest.mark.asyncio
    async def test_general_withdrawal(self):
        """Test a proportional withdrawal."""
        ledger = await two_bucket_ledger()
        await ledger.deposit(100)
        assert ledger.preview_withdrawal(30) == {
            b.id: Decimal("15.00") for b in ledger.data.buckets
        }

        result, transaction = await ledger.withdraw(30)

        assert transaction is not None
        assert ledger.data.total_balance == Decimal("70.00")
        assert ledger.data.is_reconciled

    @pytest.mark.asyncio
    async def test_rejected_draft_changes_nothing(self):
        """Test an overdraft is rejected and not saved."""
        store = InMemoryStore()
        ledger = await two_bucket_ledger(store)
        await ledger.deposit(100)
        saves = store.save_count
        travel = ledger.data.find_bucket_by_name("Travel")

        result, transaction = await ledger.withdraw_from(travel.id, 500)

        assert transaction is None
        assert result.has_errors
        assert ledger.data.total_balance == Decimal("100.00")
        assert store.save_count == saves

    @pytest.mark.asyncio
    async def test_withdraw_from_empty_ledger_rejected(self):
        """Test a general withdrawal with a zero total."""
        ledger = await two_bucket_ledger()
        result, transaction = await ledger.withdraw(10)
        assert transaction is None
        assert result.has_errors

    @pytest.mark.asyncio
    async def test_add_transaction_is_unconditional(self):
        """Test add_transaction skips validation."""
        ledger = await two_bucket_ledger()
        travel = ledger.data.find_bucket_by_name("Travel")

        transaction = await ledger.add_transaction(BucketWithdrawalDraft(amount=25, bucket=travel.id))

        assert balance_of(ledger, "Travel") == Decimal("-25.00")
        assert ledger.data.transactions[0] == transaction

    @pytest.mark.asyncio
    async def test_transactions_are_dated_by_clock(self):
        """Test ids and dates are assigned by the ledger."""
        ledger = await two_bucket_ledger()
        first = await ledger.add_transaction(DepositDraft(amount=10, allocations={}))
        second = await ledger.add_transaction(DepositDraft(amount=10, allocations={}))
        assert first.id != second.id
        assert second.date > first.date

    @pytest.mark.asyncio
    async def test_describe(self):
        """Test that descriptions use current bucket names."""
        ledger = await two_bucket_ledger()
        await ledger.deposit(10)
        travel = ledger.data.find_bucket_by_name("Travel")
        _, transaction = await ledger.withdraw_from(travel.id, 1)
        assert ledger.describe(transaction) == "Withdrawn from Travel"

    @pytest.mark.asyncio
    async def test_save_failure_keeps_state(self):
        """Test that a failing store does not lose the in-memory change."""
        ledger = await two_bucket_ledger(FailingStore())
        result, transaction = await ledger.deposit(100)

        assert transaction is not None
        assert ledger.data.total_balance == Decimal("100.00")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
