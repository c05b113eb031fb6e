"""
Storage Services Package

Provides the abstract persistence interface and the local backends.
"""

from powerbill.services.storage.interface import (
    PersistenceAdapter,
    StorageError,
)
from powerbill.services.storage.local import (
    InMemoryStorage,
    JsonFileStorage,
)

__all__ = [
    # Interface
    "PersistenceAdapter",
    # Exceptions
    "StorageError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
]
