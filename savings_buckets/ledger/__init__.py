"""
Ledger Package

The transaction state machine, the deposit/withdrawal splitting
helpers and the history reconstruction. The service that ties them to
storage and validation lives in savings_buckets.ledger.engine.
"""

from savings_buckets.ledger.allocation import (
    allocation_is_balanced,
    allocation_total,
    split_deposit,
    split_withdrawal,
)
from savings_buckets.ledger.history import (
    bucket_history,
    iter_history,
    label_series,
    reconstruct,
)
from savings_buckets.ledger.reducer import (
    add_bucket,
    apply_transaction,
    delete_bucket,
    replay,
    update_bucket,
)

__all__ = [
    # Splitting helpers
    "allocation_is_balanced",
    "allocation_total",
    "split_deposit",
    "split_withdrawal",
    # Reconstruction
    "bucket_history",
    "iter_history",
    "label_series",
    "reconstruct",
    # State machine
    "add_bucket",
    "apply_transaction",
    "delete_bucket",
    "replay",
    "update_bucket",
]
