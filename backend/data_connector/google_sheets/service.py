"""
Google Sheets Connector - Service Layer (connector library).

Read-only I/O against the Sheets v4 API:
- list_tabs():        spreadsheets.get, sheet properties only
- get_values(range):  spreadsheets.values.get, formatted values
- get_formatting(range): spreadsheets.get with grid data, limited to the
  fields the cell normalizer needs (hyperlink, note, textFormatRuns)

Record building, tab filtering and snapshot assembly live in fetcher.py and
sync.py.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from shared.interfaces.spreadsheet_source import SpreadsheetSource
from shared.models.records import CellFormatting, SheetTab

from .auth import SheetsAuth
from .normalizer import formatting_from_cell_data
from .utils import build_sheets_api_url, build_sheets_metadata_url

logger = logging.getLogger(__name__)

_TAB_FIELDS = "properties.title,sheets.properties(title,sheetId,index,gridProperties(rowCount,columnCount))"
_GRID_FIELDS = "sheets.data(startRow,startColumn,rowData.values(formattedValue,hyperlink,note,textFormatRuns))"


class GoogleSheetsService(SpreadsheetSource):
    """Google Sheets API client (read-only)."""

    def __init__(
        self,
        spreadsheet_id: str,
        auth: Optional[SheetsAuth] = None,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not spreadsheet_id:
            raise ValueError("spreadsheet_id is required")
        self.spreadsheet_id = spreadsheet_id
        self.auth = auth
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"Accept": "application/json", "User-Agent": "sheet-mirror/1.0"},
                transport=self._transport,
            )
        return self._client

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        client = await self._get_client()
        headers: Dict[str, str] = {}
        if self.auth is not None:
            await self.auth.apply(params, headers)

        try:
            response = await client.get(url, params=params, headers=headers or None)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code in (401, 403):
                raise PermissionError(
                    "Cannot access the Google Sheet. Share it with the service account "
                    "or make it viewable by anyone with the link."
                ) from e
            raise
        return response.json() or {}

    async def list_tabs(self) -> List[SheetTab]:
        data = await self._get_json(
            build_sheets_metadata_url(self.spreadsheet_id),
            {"fields": _TAB_FIELDS},
        )
        tabs: List[SheetTab] = []
        for sheet in data.get("sheets", []) or []:
            props = sheet.get("properties", {}) if isinstance(sheet, dict) else {}
            title = props.get("title")
            if not title:
                continue
            grid = props.get("gridProperties", {}) or {}
            tabs.append(
                SheetTab(
                    name=str(title),
                    sheet_id=props.get("sheetId"),
                    row_count=grid.get("rowCount"),
                    column_count=grid.get("columnCount"),
                )
            )
        logger.debug(f"Spreadsheet {self.spreadsheet_id} has {len(tabs)} tabs")
        return tabs

    async def get_values(self, range_name: str) -> List[List[str]]:
        data = await self._get_json(
            build_sheets_api_url(self.spreadsheet_id, range_name),
            {
                "majorDimension": "ROWS",
                "valueRenderOption": "FORMATTED_VALUE",
                "dateTimeRenderOption": "FORMATTED_STRING",
            },
        )
        values = data.get("values", []) or []
        return [["" if v is None else str(v) for v in row] for row in values]

    async def get_formatting(self, range_name: str) -> List[List[Optional[CellFormatting]]]:
        data = await self._get_json(
            build_sheets_metadata_url(self.spreadsheet_id),
            {"ranges": range_name, "includeGridData": "true", "fields": _GRID_FIELDS},
        )
        sheets = data.get("sheets", []) or []
        if not sheets:
            return []

        grid: List[List[Optional[CellFormatting]]] = []
        for block in sheets[0].get("data", []) or []:
            # Range requests start at row 0 of the tab; pad if the API reports an offset.
            start_row = int(block.get("startRow", 0) or 0)
            while len(grid) < start_row:
                grid.append([])
            for row in block.get("rowData", []) or []:
                cells = row.get("values", []) if isinstance(row, dict) else []
                grid.append([formatting_from_cell_data(cell) for cell in cells or []])
        return grid

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
