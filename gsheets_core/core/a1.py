"""
A1 notation helpers.
Converts between spreadsheet cell/range text and 1-based row/column numbers.
"""

import re
from typing import Any, List, NamedTuple, Optional, Tuple

from gsheets_core.utils.exceptions import SheetsError, invalid_address, invalid_range


CELL_PATTERN = re.compile(r'^([A-Z]+)([0-9]+)$')
COLUMN_PATTERN = re.compile(r'^[A-Z]+$')
SHEET_PREFIX_PATTERN = re.compile(r'^([^!]+)!')
PLAIN_SHEET_NAME_PATTERN = re.compile(r'^[A-Za-z0-9_]+$')

RANGE_SEPARATOR = ":"
SHEET_SEPARATOR = "!"
MAX_COLUMN_LETTERS = 3


class RangeBounds(NamedTuple):
    """Parsed range, 1-based and inclusive on both ends."""

    start_row: int
    start_col: int
    end_row: int
    end_col: int

    def contains(self, row: int, column: int) -> bool:
        return (
            self.start_row <= row <= self.end_row
            and self.start_col <= column <= self.end_col
        )


def letters_to_column(letters: str) -> int:
    """Decode column letters ("A" -> 1, "AA" -> 27)."""
    if not isinstance(letters, str) or not COLUMN_PATTERN.match(letters):
        raise invalid_address(letters)
    column = 0
    for ch in letters:
        column = column * 26 + (ord(ch) - ord('A') + 1)
    return column


def column_to_letters(column: int) -> str:
    """
    Encode a 1-based column number as letters.

    The letter system has no zero digit, so each step works on ``column - 1``.
    """
    if not isinstance(column, int) or isinstance(column, bool) or column < 1:
        raise invalid_address(column)
    letters = ""
    while column > 0:
        column -= 1
        letters = chr(ord('A') + column % 26) + letters
        column //= 26
    return letters


def a1_to_row_col(a1: str) -> Tuple[int, int]:
    """
    Convert A1 notation to ``(row, column)``.

    Args:
        a1: Cell reference such as "B5" or "AA27"

    Returns:
        Tuple of 1-based row and column

    Raises:
        SheetsError: INVALID_ADDRESS if the text is not a single cell reference
    """
    if not isinstance(a1, str):
        raise invalid_address(a1)
    match = CELL_PATTERN.match(a1)
    if not match:
        raise invalid_address(a1)

    row = int(match.group(2))
    if row < 1:
        raise invalid_address(a1)
    return row, letters_to_column(match.group(1))


def row_col_to_a1(row: int, column: int) -> str:
    """Convert 1-based ``(row, column)`` to A1 notation."""
    if not isinstance(row, int) or isinstance(row, bool) or row < 1:
        raise invalid_address(f"row={row}, column={column}")
    return f"{column_to_letters(column)}{row}"


def parse_range(range_str: str) -> RangeBounds:
    """
    Parse a range such as "A1:B10".

    Args:
        range_str: Unqualified range with exactly one ':' separator

    Returns:
        RangeBounds(start_row, start_col, end_row, end_col)

    Raises:
        SheetsError: INVALID_RANGE if the range is malformed
    """
    if not isinstance(range_str, str):
        raise invalid_range(range_str)
    parts = range_str.split(RANGE_SEPARATOR)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise invalid_range(range_str)

    try:
        start_row, start_col = a1_to_row_col(parts[0])
        end_row, end_col = a1_to_row_col(parts[1])
    except SheetsError as e:
        raise invalid_range(range_str) from e

    return RangeBounds(start_row, start_col, end_row, end_col)


def is_valid_range(range_str: str) -> bool:
    """Check range format without raising."""
    try:
        parse_range(range_str)
        return True
    except SheetsError:
        return False


def create_sheet_range(sheet_name: str, range_str: Optional[str] = None) -> str:
    """Qualify a range with its sheet name ("Sheet1!A1:B2"), or return the sheet name alone."""
    if range_str:
        return f"{sheet_name}{SHEET_SEPARATOR}{range_str}"
    return sheet_name


def _looks_like_cell(name: str) -> bool:
    # Sheets columns stop at three letters (ZZZ)
    match = CELL_PATTERN.match(name.upper())
    return bool(match) and len(match.group(1)) <= MAX_COLUMN_LETTERS


def quote_sheet_name(sheet_name: str) -> str:
    """Quote a sheet title for use in a range ("My Sheet" -> "'My Sheet'")."""
    if PLAIN_SHEET_NAME_PATTERN.match(sheet_name) and not _looks_like_cell(sheet_name):
        return sheet_name
    escaped = sheet_name.replace("'", "''")
    return f"'{escaped}'"


def extract_sheet_name(range_str: str) -> Optional[str]:
    """Return the sheet prefix of a qualified range, or None."""
    match = SHEET_PREFIX_PATTERN.match(range_str or "")
    return match.group(1) if match else None


def split_sheet_range(range_str: str) -> Tuple[Optional[str], str]:
    """Split "Sheet1!A1:B2" into ("Sheet1", "A1:B2")."""
    sheet_name = extract_sheet_name(range_str)
    if sheet_name is None:
        return None, range_str
    return sheet_name, range_str[len(sheet_name) + 1:]


def expand_range_to_data(range_str: str, data: List[List[Any]]) -> str:
    """
    Re-anchor a range to the size of the data written at its start cell.

    Args:
        range_str: Range whose start cell is kept
        data: 2D block of values

    Returns:
        Range covering exactly the data block
    """
    if not data:
        return range_str

    bounds = parse_range(range_str)
    rows = len(data)
    cols = len(data[0]) if data[0] else 0
    if cols == 0:
        return range_str

    start = row_col_to_a1(bounds.start_row, bounds.start_col)
    end = row_col_to_a1(bounds.start_row + rows - 1, bounds.start_col + cols - 1)
    return f"{start}{RANGE_SEPARATOR}{end}"
