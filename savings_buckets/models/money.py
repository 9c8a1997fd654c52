"""
Annotated numeric types shared by the ledger models.

Money fields are rounded to the cent the moment they are validated,
so no model ever holds an unrounded amount. Both types dump as plain
JSON numbers to keep the persisted format numeric.
"""

from decimal import Decimal
from typing import Annotated

from pydantic import BeforeValidator, Field, PlainSerializer

from savings_buckets.currency import round_to_cents, to_decimal


Money = Annotated[
    Decimal,
    BeforeValidator(round_to_cents),
    PlainSerializer(float, return_type=float, when_used="json"),
]

Percent = Annotated[
    Decimal,
    BeforeValidator(to_decimal),
    Field(ge=0, le=100),
    PlainSerializer(float, return_type=float, when_used="json"),
]
