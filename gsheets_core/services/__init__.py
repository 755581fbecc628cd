"""
Google Sheets service layer.

Available services:
- sheets_service: read/search/write operations with rate limiting and retry
- google_resources: builds API resources from a stored OAuth token
"""

from .sheets_service import SheetsService
from .google_resources import build_google_resources

__all__ = [
    "SheetsService",
    "build_google_resources",
]
