"""Services package."""

from eggfarm.services.storage import (
    ConnectionError,
    CorruptDataError,
    DuplicateError,
    GoogleSheetsClient,
    GoogleSheetsStorage,
    InMemoryStorage,
    JsonFileStorage,
    StorageBackend,
    StorageError,
    create_storage,
)

__all__ = [
    # Storage services
    "ConnectionError",
    "CorruptDataError",
    "DuplicateError",
    "GoogleSheetsClient",
    "GoogleSheetsStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    "StorageBackend",
    "StorageError",
    "create_storage",
]
