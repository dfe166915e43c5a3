"""Build the configured storage backend."""

from typing import Optional

from eggfarm.config import StorageSettings, get_settings
from eggfarm.services.storage.interface import StorageBackend
from eggfarm.services.storage.json_file import JsonFileStorage
from eggfarm.services.storage.memory import InMemoryStorage


def create_storage(settings: Optional[StorageSettings] = None) -> StorageBackend:
    """
    Create the backend selected by EGGFARM_STORAGE_BACKEND.

    Google Sheets is imported lazily so that local installs never need
    service account credentials.
    """
    settings = settings or get_settings().storage

    if settings.backend == "memory":
        return InMemoryStorage()
    if settings.backend == "google_sheets":
        from eggfarm.services.storage.google_sheets import GoogleSheetsStorage

        return GoogleSheetsStorage()
    return JsonFileStorage(settings.data_dir)
