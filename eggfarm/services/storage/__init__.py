"""
Storage Services Package

Provides the abstract storage interface and its implementations.
Local JSON files are the default; Google Sheets is the remote option.
"""

from eggfarm.services.storage.interface import (
    COLLECTION_KEYS,
    CUSTOMERS_KEY,
    EGG_LOGS_KEY,
    EXPENSES_KEY,
    LEDGER_KEY,
    PAYEES_KEY,
    SETTINGS_KEY,
    ConnectionError,
    CorruptDataError,
    DuplicateError,
    StorageBackend,
    StorageError,
)
from eggfarm.services.storage.memory import InMemoryStorage
from eggfarm.services.storage.json_file import JsonFileStorage
from eggfarm.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsStorage,
)
from eggfarm.services.storage.factory import create_storage

__all__ = [
    # Interface
    "StorageBackend",
    # Keys
    "COLLECTION_KEYS",
    "CUSTOMERS_KEY",
    "EGG_LOGS_KEY",
    "EXPENSES_KEY",
    "LEDGER_KEY",
    "PAYEES_KEY",
    "SETTINGS_KEY",
    # Exceptions
    "ConnectionError",
    "CorruptDataError",
    "DuplicateError",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsStorage",
    "InMemoryStorage",
    "JsonFileStorage",
    "create_storage",
]
