"""
Google Sheets Connector - Utility Functions
"""

import re
from typing import Iterable, List, Optional
from urllib.parse import quote

SHEETS_API_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"

_WHITESPACE = re.compile(r"\s+")


def build_sheets_api_url(sheet_id: str, range_name: str) -> str:
    """
    Google Sheets API v4 values URL

    Args:
        sheet_id: Spreadsheet ID
        range_name: A1 range (tab names already quoted)

    Returns:
        API URL
    """
    return f"{SHEETS_API_BASE_URL}/{sheet_id}/values/{quote(range_name, safe='')}"


def build_sheets_metadata_url(sheet_id: str) -> str:
    """Google Sheets spreadsheets.get URL"""
    return f"{SHEETS_API_BASE_URL}/{sheet_id}"


def quote_sheet_name(name: str) -> str:
    """
    Quote a tab title for A1 notation.

    Titles are always wrapped in single quotes; embedded quotes are doubled,
    so "Bob's Tab" becomes "'Bob''s Tab'".
    """
    return "'" + name.replace("'", "''") + "'"


def build_a1_range(sheet_name: Optional[str], column_span: str = "A:Z") -> str:
    """
    Range covering `column_span` of a tab.

    A None tab name yields the bare span, which the API resolves against the
    first visible sheet.
    """
    if not sheet_name:
        return column_span
    return f"{quote_sheet_name(sheet_name)}!{column_span}"


def normalize_field_name(header: str) -> str:
    """
    Header text -> record field name: lower-cased, whitespace runs -> "_".

    "Support Status" -> "support_status"
    """
    return _WHITESPACE.sub("_", str(header).strip().lower())


def build_field_names(headers: Iterable[str]) -> List[str]:
    """
    Field names for a header row.

    Blank headers become column_<n> (1-based position); repeated names get a
    numeric suffix (_2, _3, ...) so every column keeps its own field.
    """
    names: List[str] = []
    seen: dict = {}
    for index, header in enumerate(headers):
        name = normalize_field_name(header) or f"column_{index + 1}"
        if name in seen:
            seen[name] += 1
            candidate = f"{name}_{seen[name]}"
            while candidate in seen:
                seen[name] += 1
                candidate = f"{name}_{seen[name]}"
            name = candidate
        seen[name] = 1
        names.append(name)
    return names


def is_wip_sheet(sheet_name: str, marker: str = "wip") -> bool:
    """True when the tab title contains the work-in-progress marker (case-insensitive)."""
    marker = (marker or "").strip().lower()
    return bool(marker) and marker in str(sheet_name).lower()
