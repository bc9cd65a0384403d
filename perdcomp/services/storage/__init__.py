"""
Storage Services Package

Provides the abstract key-value store interface and its implementations.
The application uses a JSON file; tests use the in-memory store.
"""

from perdcomp.services.storage.interface import (
    KeyValueStoreInterface,
    PersistenceError,
    StorageError,
)
from perdcomp.services.storage.local_store import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
)

__all__ = [
    # Interface
    "KeyValueStoreInterface",
    # Exceptions
    "PersistenceError",
    "StorageError",
    # Implementations
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
]
