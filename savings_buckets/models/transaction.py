"""
Transaction Models

Transactions are a tagged union on `type`. Each kind carries exactly
the fields it needs:

- deposit:            allocations   {bucket_id: amount credited}
- withdrawal:         impact        {bucket_id: amount debited}
- bucket_withdrawal:  bucket        bucket_id debited by the full amount
- reallocation:       from_bucket, to_bucket

A *draft* is what a caller hands to the ledger. The ledger stamps it
with an id and a date and from then on the recorded transaction is
never modified or deleted.

DESIGN DECISION: Bucket references are bucket ids, not names.
Name-keyed files are translated at the loading boundary.
"""

from abc import abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from savings_buckets.models.bucket import generate_id
from savings_buckets.models.money import Money


class TransactionType(str, Enum):
    """Kinds of ledger events."""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    REALLOCATION = "reallocation"
    BUCKET_WITHDRAWAL = "bucket_withdrawal"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# DRAFTS - what callers submit
# =============================================================================

class _DraftBase(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    amount: Money = Field(
        ...,
        description="Headline magnitude of the event",
    )
    details: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Free-form note",
    )

    @abstractmethod
    def bucket_refs(self) -> list[str]:
        """Bucket ids this transaction touches."""

    @abstractmethod
    def describe(self, names: Optional[Mapping[str, str]] = None) -> str:
        """One-line summary for transaction listings."""


class DepositDraft(_DraftBase):
    type: Literal["deposit"] = "deposit"
    allocations: dict[str, Money] = Field(default_factory=dict)

    def bucket_refs(self) -> list[str]:
        return list(self.allocations)

    def describe(self, names: Optional[Mapping[str, str]] = None) -> str:
        return "Deposited to various buckets"


class WithdrawalDraft(_DraftBase):
    type: Literal["withdrawal"] = "withdrawal"
    impact: dict[str, Money] = Field(default_factory=dict)

    def bucket_refs(self) -> list[str]:
        return list(self.impact)

    def describe(self, names: Optional[Mapping[str, str]] = None) -> str:
        return "Withdrawn proportionally from all buckets"


class BucketWithdrawalDraft(_DraftBase):
    type: Literal["bucket_withdrawal"] = "bucket_withdrawal"
    bucket: str = Field(..., min_length=1)

    def bucket_refs(self) -> list[str]:
        return [self.bucket]

    def describe(self, names: Optional[Mapping[str, str]] = None) -> str:
        names = names or {}
        return f"Withdrawn from {names.get(self.bucket, self.bucket)}"


class ReallocationDraft(_DraftBase):
    type: Literal["reallocation"] = "reallocation"
    from_bucket: str = Field(..., min_length=1)
    to_bucket: str = Field(..., min_length=1)

    def bucket_refs(self) -> list[str]:
        return [self.from_bucket, self.to_bucket]

    def describe(self, names: Optional[Mapping[str, str]] = None) -> str:
        names = names or {}
        source = names.get(self.from_bucket, self.from_bucket)
        target = names.get(self.to_bucket, self.to_bucket)
        return f"Moved from {source} to {target}"


# =============================================================================
# RECORDED TRANSACTIONS - what the ledger stores
# =============================================================================

class _Recorded(_DraftBase):
    id: str = Field(default_factory=generate_id, min_length=1)
    date: datetime = Field(default_factory=utc_now)

    @field_validator("date")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are read as UTC so all dates compare."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class DepositTransaction(_Recorded, DepositDraft):
    pass


class WithdrawalTransaction(_Recorded, WithdrawalDraft):
    pass


class BucketWithdrawalTransaction(_Recorded, BucketWithdrawalDraft):
    pass


class ReallocationTransaction(_Recorded, ReallocationDraft):
    pass


TransactionDraft = Annotated[
    Union[DepositDraft, WithdrawalDraft, BucketWithdrawalDraft, ReallocationDraft],
    Field(discriminator="type"),
]

Transaction = Annotated[
    Union[
        DepositTransaction,
        WithdrawalTransaction,
        BucketWithdrawalTransaction,
        ReallocationTransaction,
    ],
    Field(discriminator="type"),
]

_RECORDED_TYPES: dict[str, type[_Recorded]] = {
    TransactionType.DEPOSIT.value: DepositTransaction,
    TransactionType.WITHDRAWAL.value: WithdrawalTransaction,
    TransactionType.BUCKET_WITHDRAWAL.value: BucketWithdrawalTransaction,
    TransactionType.REALLOCATION.value: ReallocationTransaction,
}

_draft_adapter = TypeAdapter(TransactionDraft)
_transaction_adapter = TypeAdapter(Transaction)


def record_draft(
    draft: _DraftBase,
    transaction_id: Optional[str] = None,
    date: Optional[datetime] = None,
) -> Transaction:
    """Stamp a draft with an id and a date."""
    recorded_cls = _RECORDED_TYPES[draft.type]
    fields = draft.model_dump(exclude={"id", "date"})
    return recorded_cls(
        **fields,
        id=transaction_id or generate_id(),
        date=date or utc_now(),
    )


def parse_draft(data: dict) -> TransactionDraft:
    """Build the right draft class from a plain dict."""
    return _draft_adapter.validate_python(data)


def parse_transaction(data: dict) -> Transaction:
    """Build the right recorded transaction class from a plain dict."""
    return _transaction_adapter.validate_python(data)
