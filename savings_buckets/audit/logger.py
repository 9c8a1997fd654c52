"""
Audit Logger

DESIGN DECISION: Every change to the ledger is logged.
This provides:
1. Traceability of every deposit, withdrawal and reallocation
2. Debugging capability when totals drift
3. A record of which source the ledger was loaded from

Event details hold strings and counts only, so every event renders
as JSON.
"""

import logging
from typing import Optional

import structlog

from savings_buckets.config import get_settings
from savings_buckets.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: Optional[str] = None) -> None:
    """Route the structured logs through stdlib logging at the configured level."""
    level = level or get_settings().app.log_level
    logging.basicConfig(format="%(message)s", level=getattr(logging, level, logging.INFO))


class AuditLogger:
    """
    Central audit logging service.

    Writes each AuditEvent as one structured log record, at the level
    matching the event's severity.
    """

    def __init__(self, logger_name: str = "savings_buckets.audit"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: AuditEvent) -> None:
        """Log an audit event."""
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

    def log_bucket_created(self, bucket_id: str, name: str, allocation: str) -> None:
        """Log bucket creation."""
        self.log(AuditEventBuilder.bucket_created(bucket_id, name, allocation))

    def log_bucket_updated(self, bucket_id: str, changes: dict[str, str]) -> None:
        """Log a bucket edit."""
        self.log(AuditEventBuilder.bucket_updated(bucket_id, changes))

    def log_bucket_deleted(self, bucket_id: str, name: str, balance: str) -> None:
        """Log bucket removal."""
        self.log(AuditEventBuilder.bucket_deleted(bucket_id, name, balance))

    def log_transaction_applied(
        self,
        transaction_id: str,
        transaction_type: str,
        amount: str,
        total_balance: str,
    ) -> None:
        """Log an applied transaction."""
        self.log(AuditEventBuilder.transaction_applied(
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            total_balance=total_balance,
        ))

    def log_transaction_rejected(self, transaction_type: str, errors: list[str]) -> None:
        """Log a transaction that failed validation."""
        self.log(AuditEventBuilder.transaction_rejected(transaction_type, errors))

    def log_state_loaded(self, source: str, buckets: int, transactions: int) -> None:
        """Log which source the ledger was initialized from."""
        self.log(AuditEventBuilder.state_loaded(source, buckets, transactions))

    def log_state_load_failed(self, source: str, error_message: str) -> None:
        """Log a source that could not be loaded."""
        self.log(AuditEventBuilder.state_load_failed(source, error_message))

    def log_empty_state(self) -> None:
        self.log(AuditEventBuilder.empty_state_created())

    def log_state_saved(self, transactions: int) -> None:
        self.log(AuditEventBuilder.state_saved(transactions))

    def log_save_failed(self, error_message: str) -> None:
        """Log a failed save."""
        self.log(AuditEventBuilder.save_failed(error_message))

    def log_reconciliation_drift(
        self,
        stored_total: str,
        bucket_sum: str,
        difference: str,
    ) -> None:
        """Log a mismatch between the stored total and the buckets."""
        self.log(AuditEventBuilder.reconciliation_drift(stored_total, bucket_sum, difference))

    def log_file_cleaned(self, path: str, changed_fields: int, matches: bool) -> None:
        self.log(AuditEventBuilder.file_cleaned(path, changed_fields, matches))

    def log_file_cleanup_failed(self, path: str, error_message: str) -> None:
        self.log(AuditEventBuilder.file_cleanup_failed(path, error_message))
