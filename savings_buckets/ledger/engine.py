"""
Savings Ledger Service

This module ties the ledger pieces together for callers:

1. Initialize (saved state → bootstrap files → empty ledger)
2. Mutate (bucket edits and transactions, through the pure reducer)
3. Publish (`data`, `historical_data`, `is_loading`)
4. Persist (after every mutation, through the injected store)

DESIGN DECISION: The service holds the only mutable reference to the
aggregate. Every change goes through the reducer and replaces the
whole state, then the history is rebuilt from the transaction log.
The two paths (direct balance updates and replay of the log) are
therefore computed side by side after every change and can be
compared at any time with check_reconciliation().

`add_transaction` applies whatever it is given. `submit` and the
deposit/withdraw/reallocate helpers validate first.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from savings_buckets.audit import AuditLogger
from savings_buckets.config import get_settings
from savings_buckets.currency import ZERO, Number, round_to_cents
from savings_buckets.ledger import reducer
from savings_buckets.ledger.allocation import split_deposit, split_withdrawal
from savings_buckets.ledger.history import bucket_history, final_total, label_series, reconstruct
from savings_buckets.models.bucket import DEFAULT_GOAL_BASE, Bucket, BucketUpdate, default_goal
from savings_buckets.models.savings import (
    BucketHistoryPoint,
    HistoricalPoint,
    ReconciliationReport,
    SavingsData,
)
from savings_buckets.models.transaction import (
    BucketWithdrawalDraft,
    DepositDraft,
    ReallocationDraft,
    Transaction,
    TransactionDraft,
    WithdrawalDraft,
    utc_now,
)
from savings_buckets.models.validation import ValidationResult
from savings_buckets.services.bootstrap import BootstrapLoader
from savings_buckets.services.storage import JsonFileStore, SavingsStore, StorageError
from savings_buckets.validation import TransactionValidator


class SavingsLedger:
    """
    The savings ledger as seen by a UI or script.

    Flow for a deposit:
    1. preview_deposit(amount) → per-bucket credits
    2. submit(DepositDraft(...)) → validate, then apply
    3. data / historical_data reflect the change, state is saved
    """

    def __init__(
        self,
        store: Optional[SavingsStore] = None,
        bootstrap: Optional[BootstrapLoader] = None,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        goal_base: Decimal = DEFAULT_GOAL_BASE,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._bootstrap = bootstrap
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._goal_base = goal_base
        self._clock = clock

        self._data = SavingsData()
        self._history: list[HistoricalPoint] = []
        self._is_loading = True

    # =========================================================================
    # PUBLISHED STATE
    # =========================================================================

    @property
    def data(self) -> SavingsData:
        return self._data

    @property
    def historical_data(self) -> list[HistoricalPoint]:
        return list(self._history)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    # =========================================================================
    # INITIALIZATION
    # =========================================================================

    async def initialize(self) -> SavingsData:
        """
        Load the ledger once, by strict priority.

        1. Saved state, if present and valid
        2. Bootstrap snapshot + config
        3. An empty ledger

        Nothing here raises for bad data; each failure falls through to
        the next source.
        """
        self._is_loading = True

        data = await self._load_saved()
        from_saved = data is not None

        if data is None:
            data = await self._load_bootstrap()

        if data is None:
            data = SavingsData()
            self._audit_logger.log_empty_state()

        self._set_state(data)
        self._is_loading = False

        if not from_saved:
            await self._persist()

        if not data.is_reconciled:
            self.check_reconciliation()

        return data

    async def _load_saved(self) -> Optional[SavingsData]:
        if self._store is None:
            return None
        try:
            data = await self._store.load()
        except StorageError as e:
            self._audit_logger.log_state_load_failed("saved_state", str(e))
            return None

        if data is not None:
            self._audit_logger.log_state_loaded(
                "saved_state", len(data.buckets), len(data.transactions)
            )
        return data

    async def _load_bootstrap(self) -> Optional[SavingsData]:
        if self._bootstrap is None:
            return None
        data = await self._bootstrap.load()
        if data is not None:
            self._audit_logger.log_state_loaded(
                "bootstrap", len(data.buckets), len(data.transactions)
            )
        return data

    # =========================================================================
    # BUCKETS
    # =========================================================================

    async def add_bucket(
        self,
        name: str,
        allocation: Number,
        goal: Optional[Number] = None,
    ) -> Bucket:
        """Create an empty bucket. A missing goal is derived from the allocation."""
        if goal is None or round_to_cents(goal) == ZERO:
            goal = default_goal(allocation, self._goal_base)

        state, bucket = reducer.add_bucket(self._data, name, allocation, goal)
        await self._commit(state)

        self._audit_logger.log_bucket_created(bucket.id, bucket.name, str(bucket.allocation))
        return bucket

    async def update_bucket(self, bucket_id: str, **changes) -> Optional[Bucket]:
        """
        Edit name, allocation, goal or color of a bucket.

        Returns the updated bucket, or None if the id is unknown.
        """
        update = BucketUpdate(**changes)
        if self._data.find_bucket(bucket_id) is None:
            return None

        state = reducer.update_bucket(self._data, bucket_id, update, self._goal_base)
        await self._commit(state)

        self._audit_logger.log_bucket_updated(
            bucket_id,
            {k: str(v) for k, v in update.model_dump(exclude_unset=True).items()},
        )
        return state.find_bucket(bucket_id)

    async def delete_bucket(self, bucket_id: str) -> Optional[Bucket]:
        """
        Remove a bucket; returns the removed bucket or None.

        The total is not adjusted, so a bucket deleted with money in it
        leaves the ledger out of balance.
        """
        bucket = self._data.find_bucket(bucket_id)
        if bucket is None:
            return None

        state = reducer.delete_bucket(self._data, bucket_id)
        await self._commit(state)

        self._audit_logger.log_bucket_deleted(bucket.id, bucket.name, str(bucket.balance))
        return bucket

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    async def add_transaction(self, draft: TransactionDraft) -> Transaction:
        """Apply a draft unconditionally. The ledger assigns id and date."""
        state, transaction = reducer.apply_transaction(self._data, draft, now=self._clock())
        await self._commit(state)

        self._audit_logger.log_transaction_applied(
            transaction_id=transaction.id,
            transaction_type=transaction.type,
            amount=str(transaction.amount),
            total_balance=str(state.total_balance),
        )
        return transaction

    def validate(self, draft: TransactionDraft) -> ValidationResult:
        """Check a draft against the current state without applying it."""
        return self._validator.validate(draft, self._data)

    async def submit(
        self,
        draft: TransactionDraft,
    ) -> tuple[ValidationResult, Optional[Transaction]]:
        """
        Validate, then apply only if there are no errors.

        Returns:
            (validation_result, transaction or None if rejected)
        """
        result = self.validate(draft)
        if result.has_errors:
            self._audit_logger.log_transaction_rejected(draft.type, result.errors)
            return result, None

        transaction = await self.add_transaction(draft)
        return result, transaction

    def preview_deposit(self, amount: Number) -> dict[str, Decimal]:
        """Credits each bucket would receive from a deposit."""
        return split_deposit(self._data.buckets, amount)

    def preview_withdrawal(self, amount: Number) -> dict[str, Decimal]:
        """Debits each bucket would take from a general withdrawal."""
        return split_withdrawal(self._data.buckets, self._data.total_balance, amount)

    async def deposit(
        self,
        amount: Number,
    ) -> tuple[ValidationResult, Optional[Transaction]]:
        """Deposit split across all buckets by allocation."""
        draft = DepositDraft(amount=amount, allocations=self.preview_deposit(amount))
        return await self.submit(draft)

    async def withdraw(
        self,
        amount: Number,
    ) -> tuple[ValidationResult, Optional[Transaction]]:
        """Withdrawal taken from all buckets in proportion to their balance."""
        draft = WithdrawalDraft(amount=amount, impact=self.preview_withdrawal(amount))
        return await self.submit(draft)

    async def withdraw_from(
        self,
        bucket_id: str,
        amount: Number,
    ) -> tuple[ValidationResult, Optional[Transaction]]:
        """Withdrawal taken entirely from one bucket."""
        return await self.submit(BucketWithdrawalDraft(amount=amount, bucket=bucket_id))

    async def reallocate(
        self,
        from_bucket: str,
        to_bucket: str,
        amount: Number,
    ) -> tuple[ValidationResult, Optional[Transaction]]:
        """Move money between two buckets; the total does not change."""
        draft = ReallocationDraft(amount=amount, from_bucket=from_bucket, to_bucket=to_bucket)
        return await self.submit(draft)

    # =========================================================================
    # DERIVED VIEWS
    # =========================================================================

    def bucket_history(self, bucket_id: str) -> list[BucketHistoryPoint]:
        return bucket_history(self._history, bucket_id)

    def labelled_history(self) -> list[HistoricalPoint]:
        """History keyed by bucket name instead of id, for charts."""
        return label_series(self._history, self._data.bucket_names())

    def describe(self, transaction: Transaction) -> str:
        return transaction.describe(self._data.bucket_names())

    def check_reconciliation(self) -> ReconciliationReport:
        """
        Compare the stored total with the bucket sum and with the total
        re-derived from the transaction log. Drift is logged, not fixed.
        """
        data = self._data
        report = ReconciliationReport(
            stored_total=data.total_balance,
            bucket_sum=data.bucket_sum,
            reconstructed_total=final_total(self._history),
            difference=data.drift,
        )
        if not report.is_reconciled:
            self._audit_logger.log_reconciliation_drift(
                stored_total=str(report.stored_total),
                bucket_sum=str(report.bucket_sum),
                difference=str(report.difference),
            )
        return report

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _set_state(self, state: SavingsData) -> None:
        self._data = state
        # Storage is newest first; reversing keeps same-timestamp entries in order
        self._history = reconstruct(reversed(state.transactions))

    async def _commit(self, state: SavingsData) -> None:
        self._set_state(state)
        await self._persist()

    async def _persist(self) -> None:
        if self._store is None:
            return
        try:
            await self._store.save(self._data)
        except StorageError as e:
            # Keep the in-memory state; the next successful save catches up
            self._audit_logger.log_save_failed(str(e))
            return
        self._audit_logger.log_state_saved(len(self._data.transactions))


def create_ledger(use_storage: bool = True) -> SavingsLedger:
    """
    Factory function to create a ledger from settings.

    Args:
        use_storage: Whether to persist to the configured JSON file.
                     Set to False for an in-memory-only ledger.

    Call `await ledger.initialize()` before use.
    """
    settings = get_settings().ledger

    store = JsonFileStore(settings.state_path) if use_storage else None
    return SavingsLedger(
        store=store,
        bootstrap=BootstrapLoader.from_settings(settings),
        validator=TransactionValidator(settings.reconciliation_tolerance),
        audit_logger=AuditLogger(),
        goal_base=settings.default_goal_base,
    )
