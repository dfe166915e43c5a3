"""
Full Backup (JSON)

Document layout, compatible with backups written by the browser app:

    {
      "version": "1.0",
      "timestamp": "2024-01-31T18:22:05.120000+00:00",
      "data": {"eggLogs": [...], "customers": [...], "ledger": [...],
               "expenses": [...], "payees": [...]}
    }

Restore accepts the wrapped document or a bare `data` object.
Every record is validated before the caller writes anything.
"""

import json
from datetime import datetime, timezone
from typing import Optional, Union

import structlog
from pydantic import ValidationError

from eggfarm.models import FarmData


logger = structlog.get_logger(__name__)

BACKUP_VERSION = "1.0"

REQUIRED_SECTIONS = ("eggLogs", "customers", "ledger")
OPTIONAL_SECTIONS = ("expenses", "payees")


class ImportFailedError(Exception):
    """An import or restore payload was rejected; nothing was written."""

    def __init__(self, message: str, details: Optional[list[str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


def dump_backup(data: FarmData, timestamp: Optional[datetime] = None) -> str:
    """Serialize a snapshot of the five collections as a backup document."""
    timestamp = timestamp or datetime.now(timezone.utc)
    document = {
        "version": BACKUP_VERSION,
        "timestamp": timestamp.isoformat(),
        "data": data.to_storage(),
    }
    return json.dumps(document, indent=2, ensure_ascii=False)


def parse_backup(text: Union[str, bytes]) -> FarmData:
    """
    Parse and validate a backup document.

    Raises:
        ImportFailedError: If the text is not JSON, a required section is
            missing, or any record fails validation
    """
    try:
        document = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise ImportFailedError(f"Backup is not valid JSON: {e}")

    if not isinstance(document, dict):
        raise ImportFailedError("Backup must be a JSON object")

    payload = document.get("data") if isinstance(document.get("data"), dict) else document

    missing = [name for name in REQUIRED_SECTIONS if not isinstance(payload.get(name), list)]
    if missing:
        raise ImportFailedError(
            "Invalid backup file. Missing required data.",
            details=[f"missing section: {name}" for name in missing],
        )

    sections = {name: payload[name] for name in REQUIRED_SECTIONS}
    for name in OPTIONAL_SECTIONS:
        sections[name] = payload.get(name) or []

    try:
        data = FarmData.model_validate(sections)
    except ValidationError as e:
        details = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        logger.warning("backup_rejected", errors=len(details))
        raise ImportFailedError("Backup contains invalid records", details=details)

    return data
