"""
Error taxonomy for spreadsheet operations.
Every failure that leaves the core carries a stable kind and a human-readable message.
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorKind(str, Enum):
    """Closed set of error kinds surfaced to callers."""

    INVALID_ADDRESS = "INVALID_ADDRESS"
    INVALID_RANGE = "INVALID_RANGE"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    TRANSIENT_FAILURE = "TRANSIENT_FAILURE"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_FAILURE = "VALIDATION_FAILURE"
    AUTHENTICATION = "AUTHENTICATION"


RETRYABLE_KINDS = frozenset({ErrorKind.QUOTA_EXCEEDED, ErrorKind.TRANSIENT_FAILURE})


class SheetsError(Exception):
    """Single exception type for the spreadsheet core, tagged by ``kind``."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        retry_after: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize error.

        Args:
            kind: Error kind from the closed taxonomy
            message: Human-readable error message
            retry_after: Seconds the remote side asked us to wait, if known
            details: Additional error details
        """
        super().__init__(message)
        self.kind = ErrorKind(kind)
        self.message = message
        self.retry_after = retry_after
        self.details = details or {}

    @property
    def retryable(self) -> bool:
        """Whether the failure is transient and eligible for another attempt."""
        return self.kind in RETRYABLE_KINDS

    @property
    def fatal(self) -> bool:
        """Whether the failure is user-fixable and must not be retried."""
        return not self.retryable

    def to_dict(self) -> Dict[str, Any]:
        """Payload for the tool-dispatch layer."""
        payload: Dict[str, Any] = {
            "error": self.kind.value,
            "message": self.message,
        }
        if self.retry_after is not None:
            payload["retry_after"] = self.retry_after
        return payload

    def __repr__(self) -> str:
        return f"SheetsError({self.kind.value}, {self.message!r})"


def invalid_address(address: Any) -> SheetsError:
    return SheetsError(
        ErrorKind.INVALID_ADDRESS,
        f"Invalid A1 notation: {address}",
        details={"address": address}
    )


def invalid_range(range_str: Any) -> SheetsError:
    return SheetsError(
        ErrorKind.INVALID_RANGE,
        f"Invalid range format: {range_str}",
        details={"range": range_str}
    )


def quota_exceeded(retry_after: Optional[float] = None) -> SheetsError:
    return SheetsError(
        ErrorKind.QUOTA_EXCEEDED,
        "Google API quota exceeded",
        retry_after=retry_after
    )


def spreadsheet_not_found(spreadsheet_id: str) -> SheetsError:
    return SheetsError(
        ErrorKind.NOT_FOUND,
        f"Spreadsheet not found: {spreadsheet_id}",
        details={"spreadsheet_id": spreadsheet_id}
    )


def sheet_not_found(sheet_name: str) -> SheetsError:
    return SheetsError(
        ErrorKind.NOT_FOUND,
        f"Sheet not found: {sheet_name}",
        details={"sheet_name": sheet_name}
    )


def validation_failure(
    message: str,
    field: Optional[str] = None,
    value: Optional[Any] = None
) -> SheetsError:
    """
    Build a validation error.

    Args:
        message: Error message
        field: Name of invalid field
        value: Invalid value

    Returns:
        SheetsError of kind VALIDATION_FAILURE
    """
    return SheetsError(
        ErrorKind.VALIDATION_FAILURE,
        f"Validation error: {message}",
        details={"field": field, "value": value}
    )
