"""
Abstract Persistence Interface

The store persists the whole data document as bytes under a single key.
Backends only need to be a durable key-value byte store:

1. JSON files on local disk (the default)
2. Memory, for tests and throwaway sessions

Backends raise StorageError; deciding what a failure means is left to
the store.
"""

from abc import ABC, abstractmethod
from typing import Optional


class PersistenceAdapter(ABC):
    """Durable key-value byte store."""

    @abstractmethod
    def load(self, key: str) -> Optional[bytes]:
        """
        Read the bytes stored under a key.

        Returns:
            The stored bytes, or None if nothing was ever saved

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save(self, key: str, data: bytes) -> None:
        """
        Overwrite the bytes stored under a key.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a key. Removing a missing key is not an error."""
        pass


class StorageError(Exception):
    """Base exception for persistence operations."""
    pass
