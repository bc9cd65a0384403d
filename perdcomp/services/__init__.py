"""Services package."""

from perdcomp.services.extraction import (
    ExtractionServiceError,
    ExtractionServiceInterface,
    GeminiExtractionService,
)
from perdcomp.services.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStoreInterface,
    PersistenceError,
    StorageError,
)

__all__ = [
    # Extraction services
    "ExtractionServiceError",
    "ExtractionServiceInterface",
    "GeminiExtractionService",
    # Storage services
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStoreInterface",
    "PersistenceError",
    "StorageError",
]
