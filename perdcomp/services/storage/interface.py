"""
Abstract Storage Interface

DESIGN DECISION: The order collection lives in a key-value store where one
key holds the whole collection serialized as text. We define an abstract
interface for that store. This allows us to:
1. Use a JSON file on disk for the application
2. Use in-memory storage for testing
3. Keep the repository decoupled from where the bytes end up

The interface is intentionally tiny: read a key, write a key.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for the local key-value store.

    Values are opaque text; the repository decides what goes in them.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: The storage key

        Returns:
            The stored text, or None if the key is absent

        Raises:
            PersistenceError: If the store cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Write the value for a key, replacing any previous value.

        Args:
            key: The storage key
            value: Text to store

        Raises:
            PersistenceError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """
        Remove a key. Removing an absent key is not an error.

        Raises:
            PersistenceError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class PersistenceError(StorageError):
    """The store could not be read or written."""
    pass
