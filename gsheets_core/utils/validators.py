"""
Input validation utilities for spreadsheet operations.
Validates identifiers, sheet names, A1 references and value blocks before any API call.
"""

import re
from typing import Any, Iterable, List, Optional

from gsheets_core.core.a1 import (
    COLUMN_PATTERN,
    a1_to_row_col,
    parse_range,
    split_sheet_range,
)
from gsheets_core.utils.exceptions import SheetsError, validation_failure


SPREADSHEET_ID_PATTERN = re.compile(r'^[a-zA-Z0-9-_]+$')
SPREADSHEET_URL_PATTERNS = [
    re.compile(r'/spreadsheets/d/([a-zA-Z0-9-_]+)'),
    re.compile(r'/d/([a-zA-Z0-9-_]+)'),
    re.compile(r'[?&]id=([a-zA-Z0-9-_]+)'),
]


def extract_spreadsheet_id(spreadsheet_id_or_url: str) -> str:
    """
    Extract spreadsheet ID from URL or return as-is if already an ID.

    Args:
        spreadsheet_id_or_url: Bare ID or a docs.google.com URL

    Returns:
        Spreadsheet ID

    Raises:
        SheetsError: VALIDATION_FAILURE if no ID can be found
    """
    if not spreadsheet_id_or_url or not isinstance(spreadsheet_id_or_url, str):
        raise validation_failure("Spreadsheet ID is required", field="spreadsheet_id")

    value = spreadsheet_id_or_url.strip()
    if SPREADSHEET_ID_PATTERN.match(value):
        return value

    for pattern in SPREADSHEET_URL_PATTERNS:
        match = pattern.search(value)
        if match:
            return match.group(1)

    raise validation_failure(
        f"Invalid spreadsheet ID or URL: {value}",
        field="spreadsheet_id",
        value=value
    )


def validate_sheet_name(sheet_name: str, field: str = "sheet_name") -> str:
    if not sheet_name or not isinstance(sheet_name, str) or not sheet_name.strip():
        raise validation_failure("Sheet name is required", field=field)
    return sheet_name


def validate_spreadsheet_range(range_str: str) -> str:
    """
    Validate Google Sheets range notation (A1 notation).

    Examples:
    - "A1" - Single cell
    - "A1:B10" - Cell range
    - "Sheet1!A1:B10" - Range with sheet name

    Args:
        range_str: Range string to validate

    Returns:
        Validated range string

    Raises:
        SheetsError: VALIDATION_FAILURE if range format is invalid or reversed
    """
    if not range_str or not isinstance(range_str, str):
        raise validation_failure("Spreadsheet range is required", field="range")

    _, cells = split_sheet_range(range_str)
    try:
        if ":" in cells:
            bounds = parse_range(cells)
        else:
            a1_to_row_col(cells)
            return range_str
    except SheetsError:
        raise validation_failure(
            f"Invalid spreadsheet range format: {range_str}. "
            f"Expected A1 notation (e.g., 'A1', 'A1:B10', 'Sheet1!A1:B10')",
            field="range",
            value=range_str
        )

    if bounds.start_row > bounds.end_row or bounds.start_col > bounds.end_col:
        raise validation_failure(
            f"Range start must not come after its end: {range_str}",
            field="range",
            value=range_str
        )
    return range_str


def validate_values(values: Any, field: str = "values") -> List[List[Any]]:
    """Require a 2D list of cell values."""
    if not isinstance(values, list) or not all(isinstance(row, list) for row in values):
        raise validation_failure("Values must be a 2D array", field=field)
    return values


def validate_search_columns(columns: Optional[Iterable[str]]) -> Optional[List[str]]:
    """Normalize column letters to upper case; None passes through."""
    if columns is None:
        return None

    normalized = []
    for column in columns:
        letters = column.strip().upper() if isinstance(column, str) else ""
        if not COLUMN_PATTERN.match(letters):
            raise validation_failure(
                f"Invalid column letter: {column}",
                field="search_columns",
                value=column
            )
        normalized.append(letters)
    return normalized
