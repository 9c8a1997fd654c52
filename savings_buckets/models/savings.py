"""
Aggregate and Derived-View Models

SavingsData is the aggregate root: the total balance, the buckets
and the transaction log (newest first).

The core invariant is total_balance == sum(bucket balances). It is
not derived automatically; every mutation path keeps both in step
and `is_reconciled` reports any drift.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from savings_buckets.currency import ZERO, subtract_currency, sum_currency
from savings_buckets.models.bucket import Bucket
from savings_buckets.models.money import Money
from savings_buckets.models.transaction import Transaction


class SavingsData(BaseModel):
    """The whole ledger state, persisted as one record."""
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    total_balance: Money = ZERO
    buckets: list[Bucket] = Field(default_factory=list)
    transactions: list[Transaction] = Field(
        default_factory=list,
        description="Newest first",
    )

    @property
    def bucket_sum(self) -> Decimal:
        return sum_currency(bucket.balance for bucket in self.buckets)

    @property
    def drift(self) -> Decimal:
        """Stored total minus the bucket sum."""
        return subtract_currency(self.total_balance, self.bucket_sum)

    @property
    def is_reconciled(self) -> bool:
        return self.drift == ZERO

    def find_bucket(self, bucket_id: str) -> Optional[Bucket]:
        return next((b for b in self.buckets if b.id == bucket_id), None)

    def find_bucket_by_name(self, name: str) -> Optional[Bucket]:
        return next((b for b in self.buckets if b.name == name), None)

    def bucket_names(self) -> dict[str, str]:
        """Map bucket id -> display name."""
        return {bucket.id: bucket.name for bucket in self.buckets}

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)

    @classmethod
    def from_json(cls, raw: str) -> "SavingsData":
        return cls.model_validate_json(raw)


class HistoricalPoint(BaseModel):
    """Balances right after one transaction."""
    model_config = ConfigDict(frozen=True)

    date: datetime
    total_balance: Money
    bucket_balances: dict[str, Money] = Field(default_factory=dict)


class BucketHistoryPoint(BaseModel):
    """One bucket's balance at one point in time."""
    model_config = ConfigDict(frozen=True)

    date: datetime
    balance: Money


class ReconciliationReport(BaseModel):
    """
    Result of comparing the stored total with what the data implies.

    The ledger never auto-corrects drift; it only reports it.
    """

    stored_total: Money
    bucket_sum: Money
    reconstructed_total: Optional[Money] = Field(
        default=None,
        description="Total re-derived from the transaction log alone",
    )
    difference: Money = Field(
        ...,
        description="stored_total - bucket_sum",
    )

    @property
    def is_reconciled(self) -> bool:
        return self.difference == ZERO
