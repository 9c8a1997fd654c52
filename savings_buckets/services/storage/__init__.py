"""
Storage Services Package

Provides the abstract store interface and concrete implementations.
The JSON file store is the default backend; the in-memory store is
used in tests.
"""

from savings_buckets.services.storage.interface import (
    CorruptStateError,
    SavingsStore,
    StorageError,
)
from savings_buckets.services.storage.json_file import JsonFileStore
from savings_buckets.services.storage.memory import InMemoryStore

__all__ = [
    # Interface
    "SavingsStore",
    # Exceptions
    "CorruptStateError",
    "StorageError",
    # Implementations
    "InMemoryStore",
    "JsonFileStore",
]
