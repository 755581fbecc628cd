"""
Pytest configuration and fixtures for testing.
"""

import json
from unittest.mock import MagicMock

import httplib2
import pytest
from googleapiclient.errors import HttpError

from gsheets_core.services.sheets_service import SheetsService
from gsheets_core.utils.rate_limiter import RateLimiter
from gsheets_core.utils.retry import RetryConfig


SPREADSHEET_ID = "abc123"

CONTACTS_GRID = [
    ["Name", "City", "Note"],
    ["John", "Seoul", "Contact: Seoul Office"],
    ["Jane", "Busan", None],
]


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_http_error(status: int, message: str = "error", headers=None) -> HttpError:
    resp = httplib2.Response({"status": status, **(headers or {})})
    content = json.dumps({"error": {"code": status, "message": message}}).encode()
    return HttpError(resp, content)


@pytest.fixture
def fake_clock():
    """Deterministic clock and sleep for limiter and retry tests."""
    return FakeClock()


@pytest.fixture
def http_error():
    """Factory for googleapiclient HttpError instances."""
    return make_http_error


@pytest.fixture
def mock_sheets():
    """Sheets v4 resource mock with a two-sheet spreadsheet."""
    sheets = MagicMock()
    spreadsheets = sheets.spreadsheets.return_value
    spreadsheets.get.return_value.execute.return_value = {
        "spreadsheetId": SPREADSHEET_ID,
        "properties": {"title": "Contacts"},
        "sheets": [
            {
                "properties": {
                    "sheetId": 0,
                    "title": "Sheet1",
                    "index": 0,
                    "sheetType": "GRID",
                    "gridProperties": {"rowCount": 1000, "columnCount": 26}
                }
            },
            {"properties": {"sheetId": 42, "title": "Archive", "index": 1}},
        ]
    }
    values = spreadsheets.values.return_value
    values.get.return_value.execute.return_value = {"values": CONTACTS_GRID}
    values.update.return_value.execute.return_value = {}
    values.append.return_value.execute.return_value = {
        "updates": {"updatedRange": "Sheet1!A4:C4"}
    }
    spreadsheets.batchUpdate.return_value.execute.return_value = {
        "replies": [{"addSheet": {"properties": {"sheetId": 7, "title": "New"}}}]
    }
    return sheets


@pytest.fixture
def mock_drive():
    """Drive v3 resource mock."""
    drive = MagicMock()
    drive.files.return_value.list.return_value.execute.return_value = {
        "files": [
            {
                "id": "file1",
                "name": "Budget",
                "modifiedTime": "2024-01-15T10:00:00Z",
                "webViewLink": "https://docs.google.com/spreadsheets/d/file1",
                "owners": [{"emailAddress": "owner@example.com"}]
            }
        ]
    }
    return drive


@pytest.fixture
def service(mock_sheets, mock_drive, fake_clock):
    """SheetsService with generous limits and instant backoff."""
    return SheetsService(
        mock_sheets,
        mock_drive,
        rate_limiter=RateLimiter(max_calls=1000, window_seconds=60.0),
        retry_config=RetryConfig(max_retries=2),
        sleep=fake_clock.sleep
    )
