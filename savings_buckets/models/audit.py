"""
Audit Models for the Savings Ledger

Every state change and every loading decision is recorded as an
audit event. This gives:
1. A readable trail of what happened to the balances
2. Debugging information when the stored total drifts
3. Visibility into which source the ledger was loaded from

DESIGN DECISION: Audit events are emitted as structured log records.
The transaction log itself is the durable history.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from savings_buckets.models.transaction import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Buckets
    BUCKET_CREATED = "bucket_created"
    BUCKET_UPDATED = "bucket_updated"
    BUCKET_DELETED = "bucket_deleted"

    # Transactions
    TRANSACTION_APPLIED = "transaction_applied"
    TRANSACTION_REJECTED = "transaction_rejected"

    # Loading and persistence
    STATE_LOADED = "state_loaded"
    STATE_LOAD_FAILED = "state_load_failed"
    BOOTSTRAP_LOADED = "bootstrap_loaded"
    EMPTY_STATE_CREATED = "empty_state_created"
    STATE_SAVED = "state_saved"
    SAVE_FAILED = "save_failed"

    # Consistency
    RECONCILIATION_DRIFT = "reconciliation_drift"
    FILE_CLEANED = "file_cleaned"
    FILE_CLEANUP_FAILED = "file_cleanup_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'bucket', 'transaction', 'state')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.bucket_created(bucket_id, name, allocation)
        event = AuditEventBuilder.transaction_applied(tx_id, "deposit", "100.00", "100.00")
    """

    @staticmethod
    def bucket_created(bucket_id: str, name: str, allocation: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUCKET_CREATED,
            entity_type="bucket",
            entity_id=bucket_id,
            description=f"Bucket created: {name}",
            details={"name": name, "allocation": allocation},
        )

    @staticmethod
    def bucket_updated(bucket_id: str, changes: dict[str, str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUCKET_UPDATED,
            entity_type="bucket",
            entity_id=bucket_id,
            description="Bucket updated",
            details={"changes": changes},
        )

    @staticmethod
    def bucket_deleted(bucket_id: str, name: str, balance: str) -> AuditEvent:
        # Money left in a deleted bucket stays in the total
        return AuditEvent(
            event_type=AuditEventType.BUCKET_DELETED,
            severity=AuditSeverity.WARNING if balance != "0.00" else AuditSeverity.INFO,
            entity_type="bucket",
            entity_id=bucket_id,
            description=f"Bucket deleted: {name}",
            details={"name": name, "balance": balance},
        )

    @staticmethod
    def transaction_applied(
        transaction_id: str,
        transaction_type: str,
        amount: str,
        total_balance: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_APPLIED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"{transaction_type} of {amount} applied",
            details={
                "transaction_type": transaction_type,
                "amount": amount,
                "total_balance": total_balance,
            },
        )

    @staticmethod
    def transaction_rejected(transaction_type: str, errors: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            description=f"{transaction_type} rejected by validation",
            details={"errors": errors},
        )

    @staticmethod
    def state_loaded(source: str, buckets: int, transactions: int) -> AuditEvent:
        event_type = (
            AuditEventType.BOOTSTRAP_LOADED if source == "bootstrap"
            else AuditEventType.STATE_LOADED
        )
        return AuditEvent(
            event_type=event_type,
            entity_type="state",
            description=f"Ledger loaded from {source}",
            details={
                "source": source,
                "bucket_count": buckets,
                "transaction_count": transactions,
            },
        )

    @staticmethod
    def state_load_failed(source: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="state",
            description=f"Could not load ledger from {source}, falling back",
            details={"source": source},
            error_message=error_message,
        )

    @staticmethod
    def empty_state_created() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EMPTY_STATE_CREATED,
            entity_type="state",
            description="No saved or bootstrap data, starting empty",
        )

    @staticmethod
    def state_saved(transactions: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_SAVED,
            severity=AuditSeverity.DEBUG,
            entity_type="state",
            description="Ledger state saved",
            details={"transaction_count": transactions},
        )

    @staticmethod
    def save_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="state",
            description="Failed to save ledger state",
            error_message=error_message,
        )

    @staticmethod
    def reconciliation_drift(stored_total: str, bucket_sum: str, difference: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECONCILIATION_DRIFT,
            severity=AuditSeverity.WARNING,
            entity_type="state",
            description="Stored total does not match the sum of bucket balances",
            details={
                "stored_total": stored_total,
                "bucket_sum": bucket_sum,
                "difference": difference,
            },
        )

    @staticmethod
    def file_cleaned(path: str, changed_fields: int, matches: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FILE_CLEANED,
            severity=AuditSeverity.INFO if matches else AuditSeverity.WARNING,
            entity_type="file",
            entity_id=path,
            description=f"Cleaned {path}",
            details={"changed_fields": changed_fields, "matches": matches},
        )

    @staticmethod
    def file_cleanup_failed(path: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FILE_CLEANUP_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="file",
            entity_id=path,
            description=f"Could not clean {path}",
            error_message=error_message,
        )
