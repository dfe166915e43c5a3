"""
Entity Store

Typed collections over the key/value storage backend.

DESIGN DECISION: Reads and writes fail differently on purpose:
- list() fails SOFT. Unreadable or malformed data degrades to an empty
  collection (logged as a warning) so screens keep rendering.
- Mutations read STRICTLY. If the stored collection cannot be parsed,
  the mutation is rejected instead of overwriting data we could not read.

Every mutation writes the full resulting snapshot. A failed write raises
StorageError and the backend keeps its previous snapshot.
"""

import threading
from typing import Callable, Generic, Iterable, Optional, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from eggfarm.models import (
    Customer,
    EggLog,
    Expense,
    FarmData,
    FarmRecord,
    FarmSettings,
    LedgerEntry,
    Payee,
)
from eggfarm.services.storage import (
    COLLECTION_KEYS,
    CUSTOMERS_KEY,
    EGG_LOGS_KEY,
    EXPENSES_KEY,
    LEDGER_KEY,
    PAYEES_KEY,
    SETTINGS_KEY,
    CorruptDataError,
    DuplicateError,
    StorageBackend,
    StorageError,
)


logger = structlog.get_logger(__name__)

T = TypeVar("T", bound=FarmRecord)


class Collection(Generic[T]):
    """
    One persisted collection of farm records.

    No cross-collection references are checked here; a ledger entry may
    point at a customer that does not exist.
    """

    def __init__(
        self,
        backend: StorageBackend,
        key: str,
        model: type[T],
        lock: threading.RLock,
    ):
        self._backend = backend
        self._key = key
        self._model = model
        self._lock = lock

    @property
    def key(self) -> str:
        return self._key

    def _load(self) -> list[T]:
        """Strict read used by every mutation."""
        rows = self._backend.get_collection(self._key)
        try:
            return [self._model.model_validate(row) for row in rows]
        except ValidationError as e:
            raise CorruptDataError(
                f"Stored {self._key} contains an invalid record: {e}"
            )

    def _write(self, items: Iterable[T]) -> None:
        rows = [item.to_storage() for item in items]
        try:
            self._backend.set_collection(self._key, rows)
        except StorageError:
            logger.error("collection_write_failed", key=self._key, rows=len(rows))
            raise

    def find(self, record_id: str) -> Optional[T]:
        """Look up one record by id (None if absent or unreadable)."""
        for item in self.list():
            if item.id == record_id:
                return item
        return None

    def append(self, item: T) -> T:
        """
        Add one record and persist the collection.

        Raises:
            DuplicateError: If a record with the same id is already stored
            StorageError: If the collection cannot be read or written
        """
        with self._lock:
            items = self._load()
            if any(existing.id == item.id for existing in items):
                raise DuplicateError(f"{self._key} already has a record {item.id!r}")
            items.append(item)
            self._write(items)
        return item

    def remove_by_id(self, record_id: str) -> Optional[T]:
        """
        Remove the record with this id.

        Returns the removed record, or None (and writes nothing) if no
        record carries the id.
        """
        with self._lock:
            items = self._load()
            for index, item in enumerate(items):
                if item.id == record_id:
                    del items[index]
                    self._write(items)
                    return item
        return None

    def remove_where(self, predicate: Callable[[T], bool]) -> list[T]:
        """Remove every record matching `predicate`; returns what was removed."""
        with self._lock:
            items = self._load()
            removed = [item for item in items if predicate(item)]
            if removed:
                self._write([item for item in items if not predicate(item)])
        return removed

    def replace_all(self, items: Iterable[T]) -> None:
        """Overwrite the whole collection."""
        with self._lock:
            self._write(list(items))

    # Defined last: the method name shadows the builtin inside the class body.
    def list(self) -> list[T]:
        """
        All records in stored order.

        Never raises: storage failures and malformed records give [].
        """
        try:
            return self._load()
        except StorageError as e:
            logger.warning("collection_unreadable", key=self._key, error=str(e))
            return []


class SettingsRecord:
    """The singleton FarmSettings record."""

    def __init__(self, backend: StorageBackend, lock: threading.RLock):
        self._backend = backend
        self._lock = lock

    def get(self) -> FarmSettings:
        """
        Stored settings merged over the defaults.

        Missing or unreadable settings give the defaults; nothing is
        written until the first update.
        """
        try:
            stored = self._backend.get_record(SETTINGS_KEY) or {}
            return FarmSettings.model_validate(stored)
        except (StorageError, ValidationError) as e:
            logger.warning("settings_unreadable", key=SETTINGS_KEY, error=str(e))
            return FarmSettings()

    def set(self, settings: FarmSettings) -> FarmSettings:
        with self._lock:
            self._backend.set_record(SETTINGS_KEY, settings.to_storage())
        return settings

    def update(self, **changes) -> FarmSettings:
        """
        Change some fields and persist the result.

        Raises:
            ValidationError: If a changed value is invalid (nothing is written)
        """
        with self._lock:
            current = self.get()
            updated = FarmSettings.model_validate({**current.model_dump(), **changes})
            return self.set(updated)


class EntityStore:
    """
    The farm's five collections plus its settings, over one backend.

    Callers that share one store across threads hold `lock` around
    read-modify-write sequences that span several collections.
    """

    def __init__(self, backend: StorageBackend):
        self._backend = backend
        self.lock = threading.RLock()

        self.egg_logs: Collection[EggLog] = Collection(backend, EGG_LOGS_KEY, EggLog, self.lock)
        self.customers: Collection[Customer] = Collection(backend, CUSTOMERS_KEY, Customer, self.lock)
        self.ledger: Collection[LedgerEntry] = Collection(backend, LEDGER_KEY, LedgerEntry, self.lock)
        self.expenses: Collection[Expense] = Collection(backend, EXPENSES_KEY, Expense, self.lock)
        self.payees: Collection[Payee] = Collection(backend, PAYEES_KEY, Payee, self.lock)
        self.settings = SettingsRecord(backend, self.lock)

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    def snapshot(self) -> FarmData:
        """Read all five collections under the lock."""
        with self.lock:
            return FarmData(
                egg_logs=self.egg_logs.list(),
                customers=self.customers.list(),
                ledger=self.ledger.list(),
                expenses=self.expenses.list(),
                payees=self.payees.list(),
            )

    def replace(self, data: FarmData) -> None:
        """
        Overwrite all five collections with `data`.

        Collections are written one after another; there is no atomicity
        across keys.
        """
        with self.lock:
            self.egg_logs.replace_all(data.egg_logs)
            self.customers.replace_all(data.customers)
            self.ledger.replace_all(data.ledger)
            self.expenses.replace_all(data.expenses)
            self.payees.replace_all(data.payees)

    def raw_rows(self) -> dict[str, Optional[list[dict]]]:
        """
        Every collection exactly as the backend holds it.

        A collection the backend cannot read maps to None. Rows are not
        validated, so data that fails model validation is kept as stored.
        """
        rows = {}
        with self.lock:
            for key in COLLECTION_KEYS:
                try:
                    rows[key] = self._backend.get_collection(key)
                except StorageError as e:
                    logger.warning("collection_unreadable", key=key, error=str(e))
                    rows[key] = None
        return rows

    def restore_rows(self, rows: dict[str, Optional[list[dict]]]) -> None:
        """
        Write back the output of raw_rows().

        Collections recorded as None are left as they are.

        Raises:
            StorageError: If a write fails (later collections are still tried)
        """
        failed = []
        with self.lock:
            for key, stored in rows.items():
                if stored is None:
                    continue
                try:
                    self._backend.set_collection(key, stored)
                except StorageError as e:
                    logger.error("collection_restore_failed", key=key, error=str(e))
                    failed.append(key)
        if failed:
            raise StorageError(f"Could not restore {', '.join(failed)}")
