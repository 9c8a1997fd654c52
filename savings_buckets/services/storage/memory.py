"""
In-Memory Storage

Holds the serialized state in a string, so loading goes through the
same JSON parsing as the file store. Used by tests and by callers
that do not want anything written to disk.
"""

from typing import Optional

from pydantic import ValidationError

from savings_buckets.models.savings import SavingsData
from savings_buckets.services.storage.interface import CorruptStateError, SavingsStore


class InMemoryStore(SavingsStore):

    def __init__(self, raw: Optional[str] = None):
        self.raw = raw
        self.save_count = 0

    async def load(self) -> Optional[SavingsData]:
        if self.raw is None:
            return None
        try:
            return SavingsData.from_json(self.raw)
        except ValidationError as e:
            raise CorruptStateError(f"Invalid ledger state: {e}") from e

    async def save(self, data: SavingsData) -> None:
        self.raw = data.to_json()
        self.save_count += 1

    async def clear(self) -> None:
        self.raw = None
