"""
Google Sheets service.
Every API request goes through the rate limiter and the retry executor;
addresses are validated and translated with the A1 helpers.
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional

from gsheets_core.core import matching
from gsheets_core.core.a1 import (
    a1_to_row_col,
    create_sheet_range,
    expand_range_to_data,
    is_valid_range,
    quote_sheet_name,
)
from gsheets_core.core.matching import ReplaceResult, SearchMatch
from gsheets_core.services.google_resources import build_google_resources
from gsheets_core.services.models import (
    SheetInfo,
    SpreadsheetFile,
    SpreadsheetInfo,
    UpdateResult,
)
from gsheets_core.utils.config_loader import SheetsConfig, get_config
from gsheets_core.utils.error_handler import to_sheets_error
from gsheets_core.utils.exceptions import (
    ErrorKind,
    SheetsError,
    invalid_range,
    sheet_not_found,
    spreadsheet_not_found,
    validation_failure,
)
from gsheets_core.utils.logging_config import configure_logging, get_logger
from gsheets_core.utils.rate_limiter import RateLimiter
from gsheets_core.utils.retry import RetryConfig, execute_with_retry
from gsheets_core.utils.validators import (
    extract_spreadsheet_id,
    validate_search_columns,
    validate_sheet_name,
    validate_spreadsheet_range,
    validate_values,
)

logger = get_logger(__name__)

SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"


def _check_range(range_str: str) -> None:
    """Reject malformed (INVALID_RANGE) and reversed (VALIDATION_FAILURE) ranges."""
    if not is_valid_range(range_str):
        raise invalid_range(range_str)
    validate_spreadsheet_range(range_str)


class SheetsService:
    """High-level Google Sheets operations over injected API resources."""

    def __init__(
        self,
        sheets_resource: Any,
        drive_resource: Any = None,
        rate_limiter: Optional[RateLimiter] = None,
        retry_config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        """
        Initialize Google Sheets service.

        Args:
            sheets_resource: ``googleapiclient`` Sheets v4 resource
            drive_resource: ``googleapiclient`` Drive v3 resource (needed for list_files)
            rate_limiter: Admission controller shared by all calls of this service
            retry_config: Backoff settings for every API request
            sleep: Coroutine used for retry backoff
        """
        self._sheets = sheets_resource
        self._drive = drive_resource
        self.rate_limiter = rate_limiter or RateLimiter()
        self.retry_config = retry_config or RetryConfig()
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: Optional[SheetsConfig] = None) -> "SheetsService":
        """
        Build the service from configuration and the stored OAuth token.

        Also applies the configured logging (level, optional log files).
        """
        config = config or get_config()
        configure_logging(config)
        sheets, drive = build_google_resources(config.token_path)
        return cls(
            sheets,
            drive,
            rate_limiter=RateLimiter.from_config(config),
            retry_config=config.retry_config()
        )

    async def _call(self, build_request: Callable[[], Any]) -> Any:
        """
        Execute one API request under admission control and retry.

        Admission is re-checked on every attempt, so retries are rate limited
        like fresh calls.
        """
        async def attempt():
            await self.rate_limiter.admit()
            request = build_request()
            return await asyncio.to_thread(request.execute)

        try:
            return await execute_with_retry(attempt, self.retry_config, sleep=self._sleep)
        except SheetsError:
            raise
        except Exception as e:
            raise to_sheets_error(e) from e

    # Read operations

    async def list_files(self, query: Optional[str] = None) -> List[SpreadsheetFile]:
        """
        List spreadsheet files accessible to the user.

        Args:
            query: Optional text the file name must contain
        """
        if self._drive is None:
            raise SheetsError(ErrorKind.VALIDATION_FAILURE, "Drive API resource is not configured")

        q = f"mimeType='{SPREADSHEET_MIME_TYPE}'"
        if query:
            escaped = query.replace("\\", "\\\\").replace("'", "\\'")
            q += f" and name contains '{escaped}'"

        response = await self._call(lambda: self._drive.files().list(
            q=q,
            fields="files(id,name,modifiedTime,webViewLink,owners)",
            orderBy="modifiedTime desc",
            pageSize=100
        ))
        return [SpreadsheetFile.from_api(f) for f in response.get("files", [])]

    async def get_spreadsheet_info(self, spreadsheet_id: str) -> SpreadsheetInfo:
        spreadsheet_id = extract_spreadsheet_id(spreadsheet_id)

        try:
            response = await self._call(lambda: self._sheets.spreadsheets().get(
                spreadsheetId=spreadsheet_id,
                fields="properties,sheets.properties"
            ))
        except SheetsError as e:
            if e.kind is ErrorKind.NOT_FOUND:
                raise spreadsheet_not_found(spreadsheet_id) from e
            raise

        if not response:
            raise spreadsheet_not_found(spreadsheet_id)

        return SpreadsheetInfo(
            spreadsheet_id=spreadsheet_id,
            title=response.get("properties", {}).get("title", "Untitled"),
            sheets=[SheetInfo.from_api(s) for s in response.get("sheets", [])]
        )

    async def list_sheets(self, spreadsheet_id: str) -> List[SheetInfo]:
        info = await self.get_spreadsheet_info(spreadsheet_id)
        return info.sheets

    async def _find_sheet(self, spreadsheet_id: str, sheet_name: Optional[str]) -> SheetInfo:
        info = await self.get_spreadsheet_info(spreadsheet_id)
        if sheet_name:
            target = info.find_sheet(sheet_name)
        else:
            target = info.sheets[0] if info.sheets else None
        if target is None:
            raise sheet_not_found(sheet_name or "first sheet")
        return target

    async def read_data(
        self,
        spreadsheet_id: str,
        sheet_name: Optional[str] = None,
        include_formats: bool = False
    ) -> List[List[Any]]:
        """
        Read every value of a sheet, anchored at A1.

        Args:
            spreadsheet_id: Spreadsheet ID or URL
            sheet_name: Sheet title (defaults to the first sheet)
            include_formats: Return formatted strings instead of raw values
        """
        spreadsheet_id = extract_spreadsheet_id(spreadsheet_id)
        target = await self._find_sheet(spreadsheet_id, sheet_name)

        response = await self._call(lambda: self._sheets.spreadsheets().values().get(
            spreadsheetId=spreadsheet_id,
            range=quote_sheet_name(target.title),
            valueRenderOption="FORMATTED_VALUE" if include_formats else "UNFORMATTED_VALUE",
            dateTimeRenderOption="FORMATTED_STRING"
        ))
        return response.get("values", [])

    async def read_range(self, spreadsheet_id: str, sheet_name: str, range_str: str) -> List[List[Any]]:
        spreadsheet_id = extract_spreadsheet_id(spreadsheet_id)
        validate_sheet_name(sheet_name)
        _check_range(range_str)

        full_range = create_sheet_range(quote_sheet_name(sheet_name), range_str)
        response = await self._call(lambda: self._sheets.spreadsheets().values().get(
            spreadsheetId=spreadsheet_id,
            range=full_range,
            valueRenderOption="UNFORMATTED_VALUE",
            dateTimeRenderOption="FORMATTED_STRING"
        ))
        return response.get("values", [])

    async def search(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        search_text: str,
        search_columns: Optional[List[str]] = None
    ) -> List[SearchMatch]:
        """
        Search a sheet for cells containing text (case-insensitive).

        Args:
            spreadsheet_id: Spreadsheet ID or URL
            sheet_name: Sheet title
            search_text: Text to look for
            search_columns: Column letters to limit the search to
        """
        validate_sheet_name(sheet_name)
        if not search_text:
            raise validation_failure("search text must not be empty", field="search_text")
        columns = validate_search_columns(search_columns)

        data = await self.read_data(spreadsheet_id, sheet_name)
        return matching.search(data, search_text, columns, sheet_name=sheet_name)

    # Write operations

    async def update_cell(self, spreadsheet_id: str, sheet_name: str, cell: str, value: Any) -> UpdateResult:
        spreadsheet_id = extract_spreadsheet_id(spreadsheet_id)
        validate_sheet_name(sheet_name)
        a1_to_row_col(cell)

        full_range = create_sheet_range(quote_sheet_name(sheet_name), cell)
        await self._call(lambda: self._sheets.spreadsheets().values().update(
            spreadsheetId=spreadsheet_id,
            range=full_range,
            valueInputOption="USER_ENTERED",
            body={"values": [[value]]}
        ))
        return UpdateResult(updated_cells=1, updated_range=full_range)

    async def update_range(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        range_str: str,
        values: List[List[Any]],
        preserve_formulas: bool = False
    ) -> UpdateResult:
        """
        Write a 2D block of values into a range.

        Args:
            spreadsheet_id: Spreadsheet ID or URL
            sheet_name: Sheet title
            range_str: A1 range such as "A1:C3"
            values: Rows of values
            preserve_formulas: Write values RAW so formula text is not parsed
        """
        spreadsheet_id = extract_spreadsheet_id(spreadsheet_id)
        validate_sheet_name(sheet_name)
        validate_values(values)
        _check_range(range_str)

        full_range = create_sheet_range(quote_sheet_name(sheet_name), range_str)
        await self._call(lambda: self._sheets.spreadsheets().values().update(
            spreadsheetId=spreadsheet_id,
            range=full_range,
            valueInputOption="RAW" if preserve_formulas else "USER_ENTERED",
            body={"values": values}
        ))

        return UpdateResult(
            updated_cells=sum(len(row) for row in values),
            updated_range=create_sheet_range(
                quote_sheet_name(sheet_name),
                expand_range_to_data(range_str, values)
            )
        )

    async def smart_replace(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        find_text: str,
        replace_text: str,
        range_str: Optional[str] = None,
        match_case: bool = False,
        match_entire_cell: bool = False
    ) -> ReplaceResult:
        """
        Replace text inside cells while preserving the surrounding content.

        Replacements are committed one cell at a time in scan order. If a write
        fails, earlier writes stay committed and the raised SheetsError carries
        them in ``details["partial_result"]``.

        Args:
            spreadsheet_id: Spreadsheet ID or URL
            sheet_name: Sheet title
            find_text: Literal text to find
            replace_text: Literal replacement
            range_str: Optional A1 range limiting the replacement
            match_case: Case-sensitive matching
            match_entire_cell: Require the whole cell to match

        Returns:
            ReplaceResult of committed replacements
        """
        validate_sheet_name(sheet_name)
        if not find_text:
            raise validation_failure("find text must not be empty", field="find_text")
        if range_str:
            _check_range(range_str)

        data = await self.read_data(spreadsheet_id, sheet_name)
        planned = matching.replace(
            data,
            find_text,
            replace_text,
            cell_range=range_str,
            match_case=match_case,
            match_entire_cell=match_entire_cell
        )

        committed = ReplaceResult()
        for replacement in planned.replacements:
            try:
                await self.update_cell(spreadsheet_id, sheet_name, replacement.cell, replacement.new_value)
            except SheetsError as e:
                logger.error(
                    f"Smart replace stopped at {sheet_name}!{replacement.cell} after "
                    f"{committed.modified_cells} of {planned.modified_cells} writes: {e.message}"
                )
                e.details["partial_result"] = committed
                raise
            committed.replacements.append(replacement)
            committed.modified_cells += 1

        logger.info(f"Smart replace modified {committed.modified_cells} cells in {sheet_name}")
        return committed

    async def append_rows(self, spreadsheet_id: str, sheet_name: str, values: List[List[Any]]) -> str:
        """Append rows after the last row with data; returns the appended range."""
        spreadsheet_id = extract_spreadsheet_id(spreadsheet_id)
        validate_sheet_name(sheet_name)
        validate_values(values)

        sheet_range = create_sheet_range(quote_sheet_name(sheet_name))
        response = await self._call(lambda: self._sheets.spreadsheets().values().append(
            spreadsheetId=spreadsheet_id,
            range=sheet_range,
            valueInputOption="USER_ENTERED",
            insertDataOption="INSERT_ROWS",
            body={"values": values}
        ))
        return response.get("updates", {}).get("updatedRange") or sheet_range

    # Sheet management

    async def _batch_update(self, spreadsheet_id: str, requests: List[dict]) -> dict:
        return await self._call(lambda: self._sheets.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={"requests": requests}
        ))

    async def create_sheet(self, spreadsheet_id: str, sheet_name: str) -> int:
        """Add a sheet and return its sheet ID."""
        spreadsheet_id = extract_spreadsheet_id(spreadsheet_id)
        validate_sheet_name(sheet_name)

        response = await self._batch_update(spreadsheet_id, [
            {"addSheet": {"properties": {"title": sheet_name}}}
        ])

        replies = response.get("replies") or [{}]
        added = replies[0].get("addSheet")
        if not added:
            raise SheetsError(ErrorKind.TRANSIENT_FAILURE, f"Failed to create sheet: {sheet_name}")
        return added.get("properties", {}).get("sheetId", 0)

    async def delete_sheet(self, spreadsheet_id: str, sheet_name: str) -> None:
        spreadsheet_id = extract_spreadsheet_id(spreadsheet_id)
        validate_sheet_name(sheet_name)

        target = await self._find_sheet(spreadsheet_id, sheet_name)
        await self._batch_update(spreadsheet_id, [
            {"deleteSheet": {"sheetId": target.sheet_id}}
        ])
        logger.info(f"Deleted sheet {sheet_name} from {spreadsheet_id}")

    async def rename_sheet(self, spreadsheet_id: str, old_name: str, new_name: str) -> None:
        spreadsheet_id = extract_spreadsheet_id(spreadsheet_id)
        validate_sheet_name(old_name, field="old_name")
        validate_sheet_name(new_name, field="new_name")

        target = await self._find_sheet(spreadsheet_id, old_name)
        await self._batch_update(spreadsheet_id, [
            {
                "updateSheetProperties": {
                    "properties": {"sheetId": target.sheet_id, "title": new_name},
                    "fields": "title"
                }
            }
        ])
        logger.info(f"Renamed sheet {old_name} to {new_name} in {spreadsheet_id}")
