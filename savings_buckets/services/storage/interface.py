"""
Abstract Storage Interface

DESIGN DECISION: The ledger never touches a store directly.
It receives a SavingsStore and only calls load() and save(). This allows:
1. A JSON file today, anything else later
2. In-memory storage for testing
3. Business logic decoupled from how the record is kept

The ledger state is a single record, so the interface is tiny.
"""

from abc import ABC, abstractmethod
from typing import Optional

from savings_buckets.models.savings import SavingsData


class SavingsStore(ABC):
    """
    Abstract interface for persisting the ledger aggregate.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def load(self) -> Optional[SavingsData]:
        """
        Load the saved ledger state.

        Returns:
            The saved state, or None if nothing has been saved yet

        Raises:
            CorruptStateError: If a saved record exists but cannot be parsed
            StorageError: If the store cannot be read
        """
        pass

    @abstractmethod
    async def save(self, data: SavingsData) -> None:
        """
        Replace the saved ledger state.

        Args:
            data: The state to persist

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove the saved state, if any."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptStateError(StorageError):
    """A saved record exists but is not a valid ledger state."""
    pass
