"""
JSON File Storage Implementation

DESIGN DECISION: The ledger state is one small record, so a single
JSON file is enough:
1. Human-readable, easy to back up or inspect
2. No database setup required
3. Same camelCase shape the ledger has always persisted

Writes go to a temporary file first and are moved into place, so a
crash mid-write never leaves a half-written state behind.
"""

import asyncio
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from savings_buckets.models.savings import SavingsData
from savings_buckets.services.storage.interface import (
    CorruptStateError,
    SavingsStore,
    StorageError,
)


class JsonFileStore(SavingsStore):
    """Keeps the ledger state in one JSON file."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> Optional[SavingsData]:
        return await asyncio.to_thread(self._read)

    async def save(self, data: SavingsData) -> None:
        payload = data.to_json()
        try:
            await asyncio.to_thread(self._write, payload)
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}") from e

    async def clear(self) -> None:
        try:
            await asyncio.to_thread(self._path.unlink, missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {self._path}: {e}") from e

    def _read(self) -> Optional[SavingsData]:
        if not self._path.exists():
            return None
        try:
            raw = self._path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise CorruptStateError(f"Ledger state in {self._path} is not UTF-8: {e}") from e
        except OSError as e:
            raise StorageError(f"Failed to read {self._path}: {e}") from e

        try:
            return SavingsData.from_json(raw)
        except ValidationError as e:
            raise CorruptStateError(f"Invalid ledger state in {self._path}: {e}") from e

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, self._path)
