"""
Local JSON File Storage

DESIGN DECISION: This is the default backend. It mirrors the browser app's local
storage: one JSON document per key, rewritten in full on every
change.

Writes go to a temporary file in the same directory and are then moved
over the old file with os.replace, so a crash or a serialization error
never leaves a half-written collection behind.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

import structlog

from eggfarm.services.storage.interface import (
    CorruptDataError,
    StorageBackend,
    StorageError,
)


logger = structlog.get_logger(__name__)


class JsonFileStorage(StorageBackend):
    """Stores each key as `<data_dir>/<key>.json`."""

    def __init__(self, data_dir: Union[str, Path]):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: str) -> Path:
        return self._data_dir / f"{key}.json"

    def _read(self, key: str) -> Any:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}")
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Malformed JSON in {path}: {e}")

    def _write(self, key: str, payload: Any) -> None:
        path = self._path(key)
        try:
            text = json.dumps(payload, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Cannot serialize {key}: {e}")

        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._data_dir, prefix=f".{key}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(text)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}")

        logger.debug("storage_written", key=key, path=str(path))

    def get_collection(self, key: str) -> list[dict]:
        payload = self._read(key)
        if payload is None:
            return []
        if not isinstance(payload, list) or not all(isinstance(row, dict) for row in payload):
            raise CorruptDataError(f"Expected a list of objects under {key}")
        return payload

    def set_collection(self, key: str, rows: list[dict]) -> None:
        self._write(key, list(rows))

    def get_record(self, key: str) -> Optional[dict]:
        payload = self._read(key)
        if payload is None:
            return None
        if not isinstance(payload, dict):
            raise CorruptDataError(f"Expected an object under {key}")
        return payload

    def set_record(self, key: str, record: dict) -> None:
        self._write(key, dict(record))
