"""
Google Sheets Connector - Sheet fetcher

Reads one tab twice over the same A1 range (values, then formatting), aligns
the two grids by (row, column) and turns every non-blank data row into a
SheetRecord. The first row is the header row.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from shared.exceptions import SheetFetchError
from shared.interfaces.spreadsheet_source import SpreadsheetSource
from shared.models.cells import Cell
from shared.models.records import CellFormatting, SheetFetchResult, SheetRecord

from .normalizer import normalize_formatted_cell
from .utils import build_a1_range, build_field_names

logger = logging.getLogger(__name__)


def _formatting_at(
    formatting: Sequence[Sequence[Optional[CellFormatting]]], row: int, col: int
) -> Optional[CellFormatting]:
    if row >= len(formatting):
        return None
    cells = formatting[row]
    if col >= len(cells):
        return None
    return cells[col]


def _value_at(values: Sequence[Sequence[str]], row: int, col: int) -> str:
    cells = values[row]
    return cells[col] if col < len(cells) else ""


def build_records(
    sheet_name: str,
    values: Sequence[Sequence[str]],
    formatting: Sequence[Sequence[Optional[CellFormatting]]],
    fetched_at: Optional[datetime] = None,
) -> SheetFetchResult:
    """
    Aligned value/formatting grids -> records.

    Record ids are the 1-based data row position, so skipped blank rows leave
    gaps instead of renumbering later rows.
    """
    if not values:
        return SheetFetchResult()

    fetched_at = fetched_at or datetime.now(timezone.utc)
    header_cells = [
        normalize_formatted_cell(_value_at(values, 0, col), _formatting_at(formatting, 0, col))
        for col in range(len(values[0]))
    ]
    field_names = build_field_names(cell.canonical_text() for cell in header_cells)

    header_notes: Dict[str, str] = {}
    for col, name in enumerate(field_names):
        fmt = _formatting_at(formatting, 0, col)
        if fmt is not None and fmt.note and fmt.note.strip():
            header_notes[name] = fmt.note

    records: List[SheetRecord] = []
    for row in range(1, len(values)):
        fields: Dict[str, Cell] = {}
        for col, name in enumerate(field_names):
            fields[name] = normalize_formatted_cell(
                _value_at(values, row, col), _formatting_at(formatting, row, col)
            )

        if all(not cell.canonical_text().strip() for cell in fields.values()):
            continue

        records.append(
            SheetRecord(id=row, sheet_name=sheet_name, last_updated=fetched_at, fields=fields)
        )

    return SheetFetchResult(records=records, header_notes=header_notes)


class SheetFetcher:
    """Fetch one tab from a SpreadsheetSource and build its records."""

    def __init__(self, source: SpreadsheetSource, column_span: str = "A:Z"):
        self.source = source
        self.column_span = column_span

    async def fetch_sheet(self, sheet_name: Optional[str] = None) -> SheetFetchResult:
        """
        Records of one tab (None = first sheet).

        An empty tab yields an empty result.

        Raises:
            SheetFetchError: values or formatting could not be retrieved
        """
        range_name = build_a1_range(sheet_name, self.column_span)
        results = await asyncio.gather(
            self.source.get_values(range_name),
            self.source.get_formatting(range_name),
            return_exceptions=True,
        )
        for error in results:
            if isinstance(error, BaseException):
                raise SheetFetchError(sheet_name, str(error)) from error
        values, formatting = results

        result = build_records(sheet_name or "", values, formatting)
        logger.info(f"Fetched {len(result.records)} records from sheet '{sheet_name or '<default>'}'")
        return result
