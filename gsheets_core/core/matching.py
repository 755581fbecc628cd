"""
Search and smart-replace over a 2D grid of cell values.

Both passes scan row-major (top to bottom, left to right) and are pure: they
report what matches and what each replaced cell would become, and leave
committing writes to the caller. Grids are anchored at A1, so grid index
``[r][c]`` is cell ``(r + 1, c + 1)``.
"""

import re
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from gsheets_core.core.a1 import RangeBounds, column_to_letters, parse_range, row_col_to_a1
from gsheets_core.utils.exceptions import validation_failure

Grid = Sequence[Sequence[Any]]


@dataclass
class SearchMatch:
    """A cell containing the search text."""
    cell: str
    value: Any
    row: int
    column: int
    sheet_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Replacement:
    """A cell whose text would change under smart replace."""
    cell: str
    original_value: str
    new_value: str
    row: int
    column: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReplaceResult:
    modified_cells: int = 0
    replacements: List[Replacement] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "modified_cells": self.modified_cells,
            "replacements": [r.to_dict() for r in self.replacements],
        }


def cell_text(value: Any) -> str:
    """Text form of a cell value as the spreadsheet displays it."""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_empty(value: Any) -> bool:
    return value is None or value == ""


def _iter_cells(grid: Grid) -> Iterator[Tuple[int, int, Any]]:
    """Yield non-empty cells as (row, column, value), 1-based, row-major."""
    for row_index, row in enumerate(grid or []):
        if not row:
            continue
        for col_index, value in enumerate(row):
            if is_empty(value):
                continue
            yield row_index + 1, col_index + 1, value


def search(
    grid: Grid,
    search_text: str,
    search_columns: Optional[Iterable[str]] = None,
    sheet_name: Optional[str] = None
) -> List[SearchMatch]:
    """
    Find cells containing ``search_text``, case-insensitively.

    Args:
        grid: Rows of cell values, anchored at A1
        search_text: Text to look for
        search_columns: Column letters to restrict the search to (e.g. ["A", "C"])
        sheet_name: Sheet name to stamp on each match

    Returns:
        Matches in row-major order
    """
    columns = {c.upper() for c in search_columns} if search_columns else None
    needle = search_text.lower()
    matches = []

    for row, column, value in _iter_cells(grid):
        if columns is not None and column_to_letters(column) not in columns:
            continue
        if needle in cell_text(value).lower():
            matches.append(SearchMatch(
                cell=row_col_to_a1(row, column),
                value=value,
                row=row,
                column=column,
                sheet_name=sheet_name
            ))

    return matches


def _replace_in_cell(
    text: str,
    find_text: str,
    replace_text: str,
    match_case: bool,
    match_entire_cell: bool
) -> Optional[str]:
    """New text for one cell, or None if the cell does not qualify."""
    if match_entire_cell:
        same = text == find_text if match_case else text.lower() == find_text.lower()
        return replace_text if same else None

    haystack, needle = (text, find_text) if match_case else (text.lower(), find_text.lower())
    if needle not in haystack:
        return None

    pattern = re.compile(re.escape(find_text), 0 if match_case else re.IGNORECASE)
    # Callable replacement keeps backslashes in replace_text literal
    return pattern.sub(lambda _: replace_text, text)


def replace(
    grid: Grid,
    find_text: str,
    replace_text: str,
    cell_range: Optional[str] = None,
    match_case: bool = False,
    match_entire_cell: bool = False
) -> ReplaceResult:
    """
    Compute smart-replace results for a grid.

    Only the matched substrings change; surrounding text and non-matching
    cells are left alone. With ``match_entire_cell`` a cell qualifies only if
    its whole text equals ``find_text`` and is then replaced verbatim.

    Args:
        grid: Rows of cell values, anchored at A1
        find_text: Literal text to find
        replace_text: Literal replacement
        cell_range: Optional A1 range ("B2:D10") limiting which cells are inspected
        match_case: Case-sensitive matching
        match_entire_cell: Require the whole cell to match

    Returns:
        ReplaceResult with one Replacement per modified cell, row-major

    Raises:
        SheetsError: VALIDATION_FAILURE for empty find_text,
            INVALID_RANGE for a malformed cell_range
    """
    if not find_text:
        raise validation_failure("find text must not be empty", field="find_text")

    bounds: Optional[RangeBounds] = parse_range(cell_range) if cell_range else None
    result = ReplaceResult()

    for row, column, value in _iter_cells(grid):
        if bounds is not None and not bounds.contains(row, column):
            continue

        original = cell_text(value)
        new_value = _replace_in_cell(original, find_text, replace_text, match_case, match_entire_cell)
        # Unchanged text is not a modification
        if new_value is None or new_value == original:
            continue

        result.replacements.append(Replacement(
            cell=row_col_to_a1(row, column),
            original_value=original,
            new_value=new_value,
            row=row,
            column=column
        ))

    result.modified_cells = len(result.replacements)
    return result
