"""
Translation of raw failures into the SheetsError taxonomy, and
rendering of errors as single user-facing messages.
"""

import json
import re
from typing import Optional

from googleapiclient.errors import HttpError

from gsheets_core.utils.exceptions import ErrorKind, SheetsError, quota_exceeded
from gsheets_core.utils.retry import (
    http_status,
    is_network_error,
    is_quota_message,
    is_retryable_error,
)


TOKEN_PATTERN = re.compile(r'[A-Za-z0-9]{20,}')
PATH_PATTERN = re.compile(r'/[^\s]+/[^\s]+')


def _retry_after(error: BaseException) -> Optional[float]:
    resp = getattr(error, "resp", None)
    if resp is None or not hasattr(resp, "get"):
        return None
    value = resp.get("retry-after")
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _http_error_message(error: HttpError) -> str:
    """Extract the API's own error message from an HttpError body."""
    try:
        content = error.content.decode() if isinstance(error.content, bytes) else error.content
        data = json.loads(content)
        return data.get("error", {}).get("message") or str(error)
    except (AttributeError, TypeError, ValueError):
        return str(error)


def to_sheets_error(error: BaseException) -> SheetsError:
    """
    Map any failure onto the closed error taxonomy.

    Args:
        error: Exception raised by an API call or by the core

    Returns:
        SheetsError carrying a kind and a message; the original error is
        attached as ``__cause__``
    """
    if isinstance(error, SheetsError):
        return error

    status = http_status(error)
    message = _http_error_message(error) if isinstance(error, HttpError) else str(error)

    if status == 429 or is_quota_message(error):
        result = quota_exceeded(retry_after=_retry_after(error))
    elif status == 404:
        result = SheetsError(ErrorKind.NOT_FOUND, f"Resource not found: {message}")
    elif status in (401, 403):
        result = SheetsError(ErrorKind.AUTHENTICATION, f"Permission denied: {message}")
    elif status is not None and status >= 500:
        result = SheetsError(
            ErrorKind.TRANSIENT_FAILURE,
            f"Google Sheets API error ({status}): {message}",
            retry_after=_retry_after(error)
        )
    elif status is not None and 400 <= status < 500:
        result = SheetsError(ErrorKind.VALIDATION_FAILURE, f"Validation error: {message}")
    elif is_network_error(error) or is_retryable_error(error):
        result = SheetsError(ErrorKind.TRANSIENT_FAILURE, f"Network error: {message or type(error).__name__}")
    else:
        result = SheetsError(ErrorKind.VALIDATION_FAILURE, message or type(error).__name__)

    result.__cause__ = error
    return result


def sanitize_error_message(message: str) -> str:
    """Strip tokens and filesystem paths from a message."""
    message = TOKEN_PATTERN.sub("[REDACTED]", message)
    return PATH_PATTERN.sub("[PATH]", message)


def format_error_message(error: BaseException) -> str:
    """
    Render an error as one descriptive line for the caller.

    Args:
        error: Any exception

    Returns:
        Sanitized message without stack traces or internal identifiers
    """
    sheets_error = to_sheets_error(error)
    message = sanitize_error_message(sheets_error.message)
    if sheets_error.kind is ErrorKind.QUOTA_EXCEEDED:
        return f"{message}. Please try again later."
    return message


def create_user_friendly_message(error: BaseException) -> str:
    """Generic hint for the caller, keyed by error kind."""
    kind = to_sheets_error(error).kind
    if kind is ErrorKind.QUOTA_EXCEEDED:
        return "API quota exceeded. Please try again later or contact support."
    if kind is ErrorKind.NOT_FOUND:
        return "The requested resource was not found. Please check your parameters."
    if kind is ErrorKind.AUTHENTICATION:
        return "Permission denied. Please check your authentication and permissions."
    if kind in (ErrorKind.INVALID_ADDRESS, ErrorKind.INVALID_RANGE, ErrorKind.VALIDATION_FAILURE):
        return "Invalid parameters provided. Please check your input."
    if kind is ErrorKind.TRANSIENT_FAILURE:
        return "Network error occurred. Please check your connection and try again."
    return "An unexpected error occurred. Please try again."
