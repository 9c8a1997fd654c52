"""
Bucket Models

A bucket is a named slice of the total balance. It receives a share
of every deposit according to its allocation percentage.

DESIGN DECISION: Buckets are frozen. The ledger never edits a bucket
in place; it builds a copy with the changed fields. This keeps every
state the ledger ever published intact.
"""

import random
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from savings_buckets.currency import ZERO, multiply_currency, round_to_cents, to_decimal
from savings_buckets.models.money import Money, Percent


# A bucket with no explicit goal aims for its allocation share of this amount
DEFAULT_GOAL_BASE = Decimal("100000")


def generate_id() -> str:
    """Create an opaque identifier for buckets and transactions."""
    return uuid4().hex


def random_color() -> str:
    """Random hex color for a new bucket."""
    return f"#{random.randrange(0x1000000):06x}"


def default_goal(allocation: Any, base: Decimal = DEFAULT_GOAL_BASE) -> Decimal:
    """Goal used when none is given: base x allocation / 100."""
    return multiply_currency(base, to_decimal(allocation) / Decimal("100"))


class Bucket(BaseModel):
    """
    One savings bucket.

    `name` is only a display label. Transactions point at `id`, which
    never changes, so renaming a bucket keeps its history attached.
    """
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(
        default_factory=generate_id,
        min_length=1,
        description="Opaque identifier, fixed at creation",
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display label",
    )
    balance: Money = Field(
        default=ZERO,
        description="Current balance, always rounded to the cent",
    )
    allocation: Percent = Field(
        default=Decimal("0"),
        description="Percentage of future deposits routed here",
    )
    color: str = Field(
        default_factory=random_color,
        description="Presentation tag only",
    )
    goal: Money = Field(
        ...,
        description="Target balance for progress display",
    )

    @model_validator(mode="before")
    @classmethod
    def fill_default_goal(cls, data: Any) -> Any:
        """A missing or zero goal is derived from the allocation."""
        if not isinstance(data, dict):
            return data
        goal = data.get("goal")
        if goal is None or round_to_cents(goal) == ZERO:
            data = dict(data)
            data["goal"] = default_goal(data.get("allocation") or 0)
        return data

    @property
    def progress(self) -> Decimal:
        """Percent of the goal reached, clamped to 0..100."""
        if self.goal <= ZERO:
            return ZERO
        percent = round_to_cents(self.balance / self.goal * 100)
        return max(ZERO, min(percent, Decimal("100.00")))


class BucketUpdate(BaseModel):
    """
    Partial edit of a bucket.

    Only presentation and policy fields may change. The id is fixed and
    the balance only moves through transactions.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    allocation: Optional[Percent] = None
    goal: Optional[Money] = None
    color: Optional[str] = None
