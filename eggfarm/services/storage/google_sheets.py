"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a remote backend because:
1. The farm owner can look at the books directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (a single farm is fine)
- No transactions: each collection is rewritten on its own
- Cells hold the record JSON, so Sheets is a mirror, not an editor

Layout: one worksheet per storage key, a header row ["id", "payload"],
then one row per record with the record's JSON in the payload column.
"""

import json
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from eggfarm.config import get_settings
from eggfarm.services.storage.interface import (
    ConnectionError,
    CorruptDataError,
    StorageBackend,
    StorageError,
)


logger = structlog.get_logger(__name__)

HEADER = ["id", "payload"]
RECORD_ROW_ID = "record"


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, key: str) -> gspread.Worksheet:
        """Get or create the worksheet holding one storage key."""
        title = f"{self._settings.worksheet_prefix}{key}"
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(HEADER),
            )
            sheet.append_row(HEADER)
        return sheet


class GoogleSheetsStorage(StorageBackend):
    """
    Google Sheets implementation of farm storage.

    Collections are stored as one record per row; a single record
    (the farm settings) is stored as a single row with id "record".
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _read_rows(self, key: str) -> list[dict]:
        try:
            sheet = self._client.get_worksheet(key)
            values = sheet.get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {key}: {e}")

        rows = []
        for row in values:
            if len(row) < 2 or not row[1]:  # Skip empty rows
                continue
            try:
                payload = json.loads(row[1])
            except json.JSONDecodeError as e:
                raise CorruptDataError(f"Malformed payload for {row[0]!r} in {key}: {e}")
            if not isinstance(payload, dict):
                raise CorruptDataError(f"Expected an object for {row[0]!r} in {key}")
            rows.append(payload)
        return rows

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write_rows(self, key: str, rows: list[list[str]]) -> None:
        """
        Overwrite the worksheet from A1, then trim leftover rows.

        The grid is grown first when the new values need more rows. The
        values then go out in one update call, so a failed write leaves the
        previous snapshot in place.
        """
        values = [HEADER] + rows
        try:
            sheet = self._client.get_worksheet(key)
            if sheet.row_count < len(values):
                sheet.resize(rows=len(values))
            sheet.update(values=values, range_name="A1")
            if sheet.row_count > len(values):
                sheet.resize(rows=len(values))
        except Exception as e:
            raise StorageError(f"Failed to write {key}: {e}")
        logger.debug("sheet_written", key=key, rows=len(rows))

    def get_collection(self, key: str) -> list[dict]:
        return self._read_rows(key)

    def set_collection(self, key: str, rows: list[dict]) -> None:
        self._write_rows(
            key,
            [[str(row.get("id", "")), json.dumps(row, ensure_ascii=False)] for row in rows],
        )

    def get_record(self, key: str) -> Optional[dict]:
        rows = self._read_rows(key)
        return rows[0] if rows else None

    def set_record(self, key: str, record: dict) -> None:
        self._write_rows(key, [[RECORD_ROW_ID, json.dumps(record, ensure_ascii=False)]])
