"""
Google Sheets sink.

Appends one row per applicant in the fixed SHEET_HEADERS column order and
creates (and formats) the header row the first time it writes to an empty
sheet.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from applicant_pipeline.config import SHEET_HEADERS, Settings
from applicant_pipeline.models.candidate import CandidateRecord
from applicant_pipeline.services.google_auth import SHEETS_SCOPES, build_service
from applicant_pipeline.services.retry import with_retry

logger = logging.getLogger(__name__)

# Google Sheets rejects cells longer than 50,000 characters.
MAX_CELL_CHARS = 49000

_HEADER_BACKGROUND = {"red": 0.26, "green": 0.52, "blue": 0.96}
_HEADER_TEXT = {"foregroundColor": {"red": 1, "green": 1, "blue": 1}, "bold": True}


def _column_letter(index: int) -> str:
    """0 -> A, 12 -> M, 26 -> AA."""
    letters = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        letters = chr(65 + rem) + letters
    return letters


LAST_COLUMN = _column_letter(len(SHEET_HEADERS) - 1)


def build_sheet_row(record: CandidateRecord, message_id: str, processed_at: Optional[str] = None) -> list[str]:
    """Ordered cell values matching SHEET_HEADERS; None becomes ''."""
    values = [
        record.name,
        record.title,
        record.location,
        record.expected_compensation,
        record.project_id,
        record.screening_questions,
        record.resume_text,
        record.resume_storage_link,
        record.mobile_number,
        record.email,
        record.linkedin_url,
        processed_at or datetime.now(timezone.utc).isoformat(),
        message_id,
    ]
    return [(v or "")[:MAX_CELL_CHARS] for v in values]


class SheetsSink:
    """Spreadsheet sink backed by the Sheets v4 API."""

    def __init__(self, settings: Settings, service: Any = None, sleep: Callable[[float], None] = time.sleep):
        self.settings = settings
        self.spreadsheet_id = settings.google_sheet_id
        self.sheet_name = settings.sheet_name
        self.service = service or build_service(settings, "sheets", "v4", SHEETS_SCOPES)
        self._sleep = sleep
        self._headers_checked = False

    def _execute(self, request):
        return with_retry(
            request.execute,
            max_attempts=self.settings.retry_attempts,
            base_delay=self.settings.retry_base_delay,
            sleep=self._sleep,
        )

    def _range(self, cells: str) -> str:
        return f"{self.sheet_name}!{cells}"

    def test_connection(self) -> str:
        """Return the spreadsheet title; raises on permission or lookup errors."""
        info = self._execute(self.service.spreadsheets().get(spreadsheetId=self.spreadsheet_id))
        return info.get("properties", {}).get("title", "")

    def _sheet_id(self) -> int:
        info = self._execute(self.service.spreadsheets().get(spreadsheetId=self.spreadsheet_id))
        for sheet in info.get("sheets", []):
            props = sheet.get("properties", {})
            if props.get("title") == self.sheet_name:
                return props.get("sheetId", 0)
        return 0

    def initialize(self) -> bool:
        """Write and format the header row if row 1 is empty. Returns True if written."""
        if self._headers_checked:
            return False

        values = self.service.spreadsheets().values()
        existing = self._execute(values.get(
            spreadsheetId=self.spreadsheet_id, range=self._range(f"A1:{LAST_COLUMN}1")
        ))
        if existing.get("values"):
            self._headers_checked = True
            return False

        logger.info("Adding headers to sheet")
        self._execute(values.update(
            spreadsheetId=self.spreadsheet_id,
            range=self._range("A1"),
            valueInputOption="RAW",
            body={"values": [SHEET_HEADERS]},
        ))
        self._execute(self.service.spreadsheets().batchUpdate(
            spreadsheetId=self.spreadsheet_id,
            body={"requests": [{
                "repeatCell": {
                    "range": {
                        "sheetId": self._sheet_id(),
                        "startRowIndex": 0,
                        "endRowIndex": 1,
                        "startColumnIndex": 0,
                        "endColumnIndex": len(SHEET_HEADERS),
                    },
                    "cell": {"userEnteredFormat": {
                        "backgroundColor": _HEADER_BACKGROUND,
                        "textFormat": _HEADER_TEXT,
                    }},
                    "fields": "userEnteredFormat(backgroundColor,textFormat)",
                }
            }]},
        ))
        self._headers_checked = True
        return True

    def append_row(self, row: list[str]) -> None:
        self.initialize()
        self._execute(self.service.spreadsheets().values().append(
            spreadsheetId=self.spreadsheet_id,
            range=self._range(f"A:{LAST_COLUMN}"),
            valueInputOption="RAW",
            insertDataOption="INSERT_ROWS",
            body={"values": [row]},
        ))

    def append_candidate(self, record: CandidateRecord, message_id: str, processed_at: Optional[str] = None) -> None:
        self.append_row(build_sheet_row(record, message_id, processed_at))
        logger.info(f"Applicant appended to sheet: {record.name}")
