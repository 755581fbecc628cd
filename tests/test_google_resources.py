"""
Tests for Google API resource construction and result models.
"""

from unittest.mock import MagicMock, patch

import pytest
from google.auth.exceptions import RefreshError

from gsheets_core.services import google_resources
from gsheets_core.services.google_resources import build_google_resources, load_credentials
from gsheets_core.services.models import SheetInfo, SpreadsheetInfo
from gsheets_core.utils.exceptions import ErrorKind, SheetsError


def test_missing_token(tmp_path):
    with pytest.raises(SheetsError) as exc_info:
        load_credentials(tmp_path / "missing.json")
    assert exc_info.value.kind is ErrorKind.AUTHENTICATION


def test_refresh_failure(tmp_path):
    token = tmp_path / "token.json"
    token.write_text("{}")
    creds = MagicMock(expired=True, refresh_token="r")
    creds.refresh.side_effect = RefreshError("invalid_grant")

    with patch.object(google_resources.Credentials, "from_authorized_user_file", return_value=creds):
        with pytest.raises(SheetsError) as exc_info:
            load_credentials(token)

    assert exc_info.value.kind is ErrorKind.AUTHENTICATION
    assert "invalid_grant" in exc_info.value.message


def test_build_google_resources(tmp_path):
    token = tmp_path / "token.json"
    token.write_text("{}")
    creds = MagicMock(expired=False)

    with patch.object(google_resources.Credentials, "from_authorized_user_file", return_value=creds), \
            patch.object(google_resources, "build") as build:
        build.side_effect = lambda name, version, **kwargs: f"{name}:{version}"
        sheets, drive = build_google_resources(token)

    assert (sheets, drive) == ("sheets:v4", "drive:v3")
    assert build.call_args.kwargs["credentials"] is creds


def test_sheet_info_from_api():
    info = SheetInfo.from_api({"properties": {"sheetId": 5, "title": "Data"}})

    assert info.sheet_id == 5
    assert info.row_count is None
    assert SpreadsheetInfo("id", "Book", [info]).find_sheet("Data") is info
    assert SpreadsheetInfo("id", "Book", [info]).find_sheet("Other") is None
