"""Services package."""

from savings_buckets.services.bootstrap import (
    BootstrapConfig,
    BootstrapLoader,
    BootstrapSnapshot,
)
from savings_buckets.services.storage import (
    CorruptStateError,
    InMemoryStore,
    JsonFileStore,
    SavingsStore,
    StorageError,
)

__all__ = [
    # Bootstrap
    "BootstrapConfig",
    "BootstrapLoader",
    "BootstrapSnapshot",
    # Storage services
    "CorruptStateError",
    "InMemoryStore",
    "JsonFileStore",
    "SavingsStore",
    "StorageError",
]
