"""Backup and CSV import/export."""

from eggfarm.transfer.backup import (
    BACKUP_VERSION,
    ImportFailedError,
    dump_backup,
    parse_backup,
)
from eggfarm.transfer.csv_io import (
    EXPORT_FILENAMES,
    HEADERS,
    CsvKind,
    export_csv,
    import_csv,
    parse_csv,
)

__all__ = [
    "BACKUP_VERSION",
    "EXPORT_FILENAMES",
    "HEADERS",
    "CsvKind",
    "ImportFailedError",
    "dump_backup",
    "export_csv",
    "import_csv",
    "parse_backup",
    "parse_csv",
]
