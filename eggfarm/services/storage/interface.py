"""
Abstract Storage Interface

DESIGN DECISION: The core only needs a key/value store that can hold a
whole collection (a list of plain dicts) or a single record under a name.
This allows us to:
1. Keep data in local JSON files (the default, like browser storage)
2. Use in-memory storage for testing
3. Mirror the farm's books into Google Sheets
4. Keep business logic decoupled from storage implementation

The interface is intentionally simple. There are no partial updates:
every write replaces the full snapshot stored under the key, and there is
no atomicity across different keys.
"""

from abc import ABC, abstractmethod
from typing import Optional


# Storage keys, one per collection plus the settings record
EGG_LOGS_KEY = "eggfarm_eggs"
CUSTOMERS_KEY = "eggfarm_customers"
LEDGER_KEY = "eggfarm_ledger"
EXPENSES_KEY = "eggfarm_expenses"
PAYEES_KEY = "eggfarm_payees"
SETTINGS_KEY = "eggfarm_settings"

COLLECTION_KEYS = (
    EGG_LOGS_KEY,
    CUSTOMERS_KEY,
    LEDGER_KEY,
    EXPENSES_KEY,
    PAYEES_KEY,
)


class StorageBackend(ABC):
    """
    Abstract key/value storage for farm data.

    Any storage implementation (JSON files, Google Sheets, etc.)
    must implement these methods. A `set_*` followed by the matching
    `get_*` must return the written value.
    """

    @abstractmethod
    def get_collection(self, key: str) -> list[dict]:
        """
        Read the full collection stored under `key`.

        Returns:
            The stored rows, or an empty list if nothing was ever written

        Raises:
            CorruptDataError: If the stored payload cannot be read back
            StorageError: If the backend fails
        """
        pass

    @abstractmethod
    def set_collection(self, key: str, rows: list[dict]) -> None:
        """
        Replace the full collection stored under `key`.

        On failure the previously stored snapshot must remain readable.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def get_record(self, key: str) -> Optional[dict]:
        """
        Read a single record stored under `key`.

        Returns:
            The record, or None if nothing was ever written

        Raises:
            CorruptDataError: If the stored payload cannot be read back
        """
        pass

    @abstractmethod
    def set_record(self, key: str, record: dict) -> None:
        """
        Replace the single record stored under `key`.

        Raises:
            StorageError: If the write fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptDataError(StorageError):
    """Stored payload exists but is not valid JSON of the expected shape."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a record whose id already exists."""
    pass
