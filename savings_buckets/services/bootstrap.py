"""
Bootstrap Loader

Builds a first ledger state from two read-only files when there is no
saved state yet:

- snapshot: {total_balance, buckets: {name: balance}, transactions: [...]}
  with snake_case fields and buckets keyed by name
- config (optional): {allocations: {name: percent}, goals: {name: amount}}

The snapshot is name-keyed. The ledger references buckets by id, so
this is where names are translated: every bucket gets a fresh id and
every transaction reference is rewritten to that id. A name with no
bucket entry is kept as-is and behaves like a deleted bucket.

Malformed files never raise out of load(); a bad snapshot yields None,
a bad config is treated as absent and a bucket whose name cannot be
used is skipped.
"""

import asyncio
import json
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from savings_buckets.config import LedgerSettings
from savings_buckets.currency import ZERO
from savings_buckets.models.bucket import DEFAULT_GOAL_BASE, Bucket, default_goal, generate_id
from savings_buckets.models.money import Money, Percent
from savings_buckets.models.savings import SavingsData
from savings_buckets.models.transaction import Transaction, TransactionType, parse_transaction


logger = structlog.get_logger(__name__)


class SnapshotTransaction(BaseModel):
    """One transaction as written in the bootstrap snapshot."""
    model_config = ConfigDict(extra="ignore")

    date: datetime
    type: TransactionType
    amount: Money
    details: Optional[str] = None
    from_bucket: Optional[str] = None
    to_bucket: Optional[str] = None
    bucket: Optional[str] = None
    allocations: Optional[dict[str, Money]] = None
    impact: Optional[dict[str, Money]] = None


class BootstrapSnapshot(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_balance: Money = ZERO
    buckets: dict[str, Money] = Field(default_factory=dict)
    transactions: list[SnapshotTransaction] = Field(default_factory=list)


class BootstrapConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    allocations: dict[str, Percent] = Field(default_factory=dict)
    goals: dict[str, Money] = Field(default_factory=dict)


def bucket_color(index: int, count: int) -> str:
    """Evenly spaced hues around the color wheel."""
    hue = index * 360 / count if count else 0
    return f"hsl({hue:g}, 70%, 60%)"


class BootstrapLoader:
    """Reads the bootstrap snapshot and config and turns them into SavingsData."""

    def __init__(
        self,
        snapshot_path: Union[str, Path],
        config_path: Optional[Union[str, Path]] = None,
        default_allocation: Decimal = Decimal("10"),
        goal_base: Decimal = DEFAULT_GOAL_BASE,
    ):
        self._snapshot_path = Path(snapshot_path)
        self._config_path = Path(config_path) if config_path else None
        self._default_allocation = default_allocation
        self._goal_base = goal_base

    @classmethod
    def from_settings(cls, settings: LedgerSettings) -> "BootstrapLoader":
        return cls(
            snapshot_path=settings.snapshot_path,
            config_path=settings.config_path,
            default_allocation=settings.default_allocation,
            goal_base=settings.default_goal_base,
        )

    async def load(self) -> Optional[SavingsData]:
        """Read snapshot and config together; None when there is no usable snapshot."""
        snapshot, config = await asyncio.gather(
            self.load_snapshot(),
            self.load_config(),
        )
        if snapshot is None:
            return None
        return self.translate(snapshot, config)

    async def load_snapshot(self) -> Optional[BootstrapSnapshot]:
        raw = await asyncio.to_thread(_read_json, self._snapshot_path)
        if raw is None:
            return None
        try:
            return BootstrapSnapshot.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                "bootstrap_snapshot_invalid",
                path=str(self._snapshot_path),
                error=str(e),
            )
            return None

    async def load_config(self) -> Optional[BootstrapConfig]:
        if self._config_path is None:
            return None
        raw = await asyncio.to_thread(_read_json, self._config_path)
        if raw is None:
            return None
        try:
            return BootstrapConfig.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                "bootstrap_config_invalid",
                path=str(self._config_path),
                error=str(e),
            )
            return None

    def translate(
        self,
        snapshot: BootstrapSnapshot,
        config: Optional[BootstrapConfig] = None,
    ) -> SavingsData:
        """Convert the name-keyed snapshot into the id-keyed ledger state."""
        config = config or BootstrapConfig()
        count = len(snapshot.buckets)

        buckets = []
        ids: dict[str, str] = {}
        for index, (name, balance) in enumerate(snapshot.buckets.items()):
            # A configured allocation of 0 counts as unset
            allocation = config.allocations.get(name) or self._default_allocation
            goal = config.goals.get(name) or default_goal(allocation, self._goal_base)
            try:
                bucket = Bucket(
                    id=generate_id(),
                    name=name,
                    balance=balance,
                    allocation=allocation,
                    color=bucket_color(index, count),
                    goal=goal,
                )
            except ValidationError as e:
                logger.warning(
                    "bootstrap_bucket_skipped",
                    bucket_name=name,
                    error=str(e),
                )
                continue
            buckets.append(bucket)
            ids[name] = bucket.id

        transactions = []
        for entry in snapshot.transactions:
            transaction = self._translate_transaction(entry, ids)
            if transaction is not None:
                transactions.append(transaction)

        return SavingsData(
            total_balance=snapshot.total_balance,
            buckets=buckets,
            transactions=transactions,
        )

    def _translate_transaction(
        self,
        entry: SnapshotTransaction,
        ids: dict[str, str],
    ) -> Optional[Transaction]:
        def ref(name: Optional[str]) -> Optional[str]:
            return ids.get(name, name) if name is not None else None

        data: dict[str, Any] = {
            "id": generate_id(),
            "date": entry.date,
            "type": entry.type.value,
            "amount": entry.amount,
            "details": entry.details,
        }
        if entry.type == TransactionType.DEPOSIT:
            data["allocations"] = {ref(k): v for k, v in (entry.allocations or {}).items()}
        elif entry.type == TransactionType.WITHDRAWAL:
            data["impact"] = {ref(k): v for k, v in (entry.impact or {}).items()}
        elif entry.type == TransactionType.BUCKET_WITHDRAWAL:
            data["bucket"] = ref(entry.bucket)
        elif entry.type == TransactionType.REALLOCATION:
            data["from_bucket"] = ref(entry.from_bucket)
            data["to_bucket"] = ref(entry.to_bucket)

        try:
            return parse_transaction(data)
        except ValidationError as e:
            # e.g. a reallocation with no source bucket; it had no effect anyway
            logger.warning(
                "bootstrap_transaction_skipped",
                transaction_type=entry.type.value,
                date=entry.date.isoformat(),
                error=str(e),
            )
            return None


def _read_json(path: Path) -> Optional[Any]:
    """Parsed JSON content, or None if the file is missing or unreadable."""
    if not path.exists():
        return None
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
        logger.warning("bootstrap_file_unreadable", path=str(path), error=str(e))
        return None
