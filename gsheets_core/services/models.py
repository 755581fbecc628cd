"""
Result types returned by SheetsService.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class SpreadsheetFile:
    id: str
    name: str
    modified_time: Optional[str] = None
    web_view_link: Optional[str] = None
    owners: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "SpreadsheetFile":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            modified_time=data.get("modifiedTime"),
            web_view_link=data.get("webViewLink"),
            owners=[o.get("emailAddress", "") for o in data.get("owners", [])]
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SheetInfo:
    """Properties of one sheet (tab) of a spreadsheet."""
    sheet_id: int
    title: str
    index: int = 0
    sheet_type: str = "GRID"
    row_count: Optional[int] = None
    column_count: Optional[int] = None

    @classmethod
    def from_api(cls, sheet: Dict[str, Any]) -> "SheetInfo":
        properties = sheet.get("properties", {})
        grid = properties.get("gridProperties", {})
        return cls(
            sheet_id=properties.get("sheetId", 0),
            title=properties.get("title", "Sheet1"),
            index=properties.get("index", 0),
            sheet_type=properties.get("sheetType", "GRID"),
            row_count=grid.get("rowCount"),
            column_count=grid.get("columnCount")
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SpreadsheetInfo:
    spreadsheet_id: str
    title: str
    sheets: List[SheetInfo] = field(default_factory=list)

    def find_sheet(self, title: str) -> Optional[SheetInfo]:
        return next((s for s in self.sheets if s.title == title), None)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class UpdateResult:
    updated_cells: int
    updated_range: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
