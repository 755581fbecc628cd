"""
Builds Google Sheets and Drive API resources from an existing OAuth token file.
Obtaining and persisting the token is done elsewhere.
"""

import logging
from pathlib import Path
from typing import Any, Tuple

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from gsheets_core.utils.exceptions import ErrorKind, SheetsError

logger = logging.getLogger(__name__)

# Sheets API scopes
SHEETS_SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.readonly",
]


def load_credentials(token_path: Path) -> Credentials:
    """
    Load authorized-user credentials, refreshing them in memory if expired.

    Args:
        token_path: Path to OAuth token file

    Returns:
        Valid credentials

    Raises:
        SheetsError: AUTHENTICATION if the token is missing or cannot be refreshed
    """
    token_path = Path(token_path)
    if not token_path.exists():
        raise SheetsError(
            ErrorKind.AUTHENTICATION,
            f"OAuth token not found at {token_path}. Please complete OAuth flow first."
        )

    creds = Credentials.from_authorized_user_file(str(token_path), SHEETS_SCOPES)

    if creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except RefreshError as e:
            raise SheetsError(ErrorKind.AUTHENTICATION, f"Failed to refresh OAuth token: {e}") from e
        logger.info("Refreshed expired OAuth token")

    return creds


def build_google_resources(token_path: Path) -> Tuple[Any, Any]:
    """
    Build the Sheets v4 and Drive v3 API resources.

    Returns:
        Tuple of (sheets_resource, drive_resource)
    """
    creds = load_credentials(token_path)
    sheets = build('sheets', 'v4', credentials=creds, cache_discovery=False)
    drive = build('drive', 'v3', credentials=creds, cache_discovery=False)
    return sheets, drive
