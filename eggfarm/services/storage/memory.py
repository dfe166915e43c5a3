"""In-memory storage, used by tests and throwaway sessions."""

import copy
from typing import Optional

from eggfarm.services.storage.interface import StorageBackend


class InMemoryStorage(StorageBackend):
    """
    Keeps deep copies of everything written, so callers can never
    mutate stored state through a reference they still hold.
    """

    def __init__(self, initial: Optional[dict] = None):
        self._data: dict = copy.deepcopy(initial) if initial else {}

    def get_collection(self, key: str) -> list[dict]:
        return copy.deepcopy(self._data.get(key, []))

    def set_collection(self, key: str, rows: list[dict]) -> None:
        self._data[key] = copy.deepcopy(list(rows))

    def get_record(self, key: str) -> Optional[dict]:
        record = self._data.get(key)
        return copy.deepcopy(record) if record is not None else None

    def set_record(self, key: str, record: dict) -> None:
        self._data[key] = copy.deepcopy(dict(record))

    def raw(self) -> dict:
        """Everything stored, keyed by storage key."""
        return copy.deepcopy(self._data)
