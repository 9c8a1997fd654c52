"""
Data Models Package

This package contains all Pydantic models used by the savings ledger.
All data flowing through the ledger must conform to these schemas.
"""

from savings_buckets.models.money import Money, Percent
from savings_buckets.models.bucket import (
    DEFAULT_GOAL_BASE,
    Bucket,
    BucketUpdate,
    default_goal,
    generate_id,
)
from savings_buckets.models.transaction import (
    BucketWithdrawalDraft,
    BucketWithdrawalTransaction,
    DepositDraft,
    DepositTransaction,
    ReallocationDraft,
    ReallocationTransaction,
    Transaction,
    TransactionDraft,
    TransactionType,
    WithdrawalDraft,
    WithdrawalTransaction,
    parse_draft,
    parse_transaction,
    record_draft,
)
from savings_buckets.models.savings import (
    BucketHistoryPoint,
    HistoricalPoint,
    ReconciliationReport,
    SavingsData,
)
from savings_buckets.models.validation import ValidationIssue, ValidationResult
from savings_buckets.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Types
    "Money",
    "Percent",
    # Bucket models
    "DEFAULT_GOAL_BASE",
    "Bucket",
    "BucketUpdate",
    "default_goal",
    "generate_id",
    # Transaction models
    "BucketWithdrawalDraft",
    "BucketWithdrawalTransaction",
    "DepositDraft",
    "DepositTransaction",
    "ReallocationDraft",
    "ReallocationTransaction",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "WithdrawalDraft",
    "WithdrawalTransaction",
    "parse_draft",
    "parse_transaction",
    "record_draft",
    # Aggregate and derived views
    "BucketHistoryPoint",
    "HistoricalPoint",
    "ReconciliationReport",
    "SavingsData",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
