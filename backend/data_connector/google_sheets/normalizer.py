"""
Google Sheets Connector - Cell normalization

Turns a raw cell (value + optional whole-cell hyperlink + optional text runs +
optional note) into exactly one Cell variant, and extracts that formatting
from Sheets API `CellData` objects.

Precedence:
1. any text run carries a link   -> RichTextCell
2. whole-cell hyperlink, non-blank value -> LinkCell
3. note present                  -> AnnotatedCell
4. otherwise                     -> PlainCell

Malformed input never raises; it degrades to PlainCell with the raw text.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from shared.models.cells import (
    AnnotatedCell,
    Cell,
    LinkCell,
    PlainCell,
    RichTextCell,
    TextRun,
)
from shared.models.records import CellFormatting

logger = logging.getLogger(__name__)


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    try:
        return str(value)
    except Exception:
        return ""


def _coerce_run(run: Any) -> TextRun:
    if isinstance(run, TextRun):
        return run
    if isinstance(run, dict):
        return TextRun(text=_as_text(run.get("text")), url=_clean(run.get("url")))
    if isinstance(run, (tuple, list)) and len(run) == 2:
        return TextRun(text=_as_text(run[0]), url=_clean(run[1]))
    raise TypeError(f"Unsupported text run: {type(run).__name__}")


def normalize_cell(
    raw_value: Any,
    hyperlink: Optional[str] = None,
    text_runs: Optional[Iterable[Any]] = None,
    comment: Optional[str] = None,
) -> Cell:
    """Build the Cell variant for one raw cell."""
    text = _as_text(raw_value)
    try:
        note = _clean(comment)
        runs: List[TextRun] = [_coerce_run(r) for r in (text_runs or [])]

        if any(run.url for run in runs):
            if "".join(run.text for run in runs) == text:
                return RichTextCell(runs=runs, comment=note)
            logger.debug("Text runs do not reproduce cell value %r; ignoring runs", text)

        url = _clean(hyperlink)
        if url and text.strip():
            return LinkCell(text=text, url=url, comment=note)

        if note:
            return AnnotatedCell(text=text, comment=note)

        return PlainCell(text=text)
    except (TypeError, ValueError, AttributeError) as e:
        logger.debug(f"Malformed cell {text!r} degraded to plain text: {e}")
        return PlainCell(text=text)


def normalize_formatted_cell(raw_value: Any, formatting: Optional[CellFormatting]) -> Cell:
    if formatting is None:
        return normalize_cell(raw_value)
    return normalize_cell(
        raw_value,
        hyperlink=formatting.hyperlink,
        text_runs=formatting.text_runs,
        comment=formatting.note,
    )


def _utf16_slice(value: str, start: int, end: Optional[int]) -> str:
    """Slice by UTF-16 code unit offsets, the unit textFormatRuns indexes use."""
    encoded = value.encode("utf-16-le")
    stop = None if end is None else end * 2
    return encoded[start * 2:stop].decode("utf-16-le", errors="ignore")


def _run_link(run: Dict[str, Any]) -> Optional[str]:
    fmt = run.get("format") or {}
    link = fmt.get("link") if isinstance(fmt, dict) else None
    if isinstance(link, dict):
        return _clean(link.get("uri"))
    return None


def runs_from_format_runs(value: str, format_runs: Any) -> List[TextRun]:
    """
    Split a cell value into TextRuns using Sheets `textFormatRuns`.

    Each run starts at `startIndex` (UTF-16 units, default 0) and extends to the
    next run's start. Text before the first run becomes an unlinked run.
    """
    if not isinstance(format_runs, list) or not value:
        return []

    starts = []
    for run in format_runs:
        if not isinstance(run, dict):
            continue
        try:
            start = int(run.get("startIndex", 0) or 0)
        except (TypeError, ValueError):
            continue
        starts.append((start, _run_link(run)))
    if not starts:
        return []
    starts.sort(key=lambda item: item[0])

    runs: List[TextRun] = []
    if starts[0][0] > 0:
        runs.append(TextRun(text=_utf16_slice(value, 0, starts[0][0])))
    for index, (start, url) in enumerate(starts):
        end = starts[index + 1][0] if index + 1 < len(starts) else None
        text = _utf16_slice(value, start, end)
        if text:
            runs.append(TextRun(text=text, url=url))
    return runs


def formatting_from_cell_data(cell_data: Any) -> Optional[CellFormatting]:
    """
    CellFormatting from a Sheets API `CellData` object, or None when the cell
    carries no link, runs or note.
    """
    if not isinstance(cell_data, dict):
        return None

    value = _as_text(cell_data.get("formattedValue"))
    hyperlink = _clean(cell_data.get("hyperlink"))
    note = _clean(cell_data.get("note"))
    runs = runs_from_format_runs(value, cell_data.get("textFormatRuns"))

    if not (hyperlink or note or runs):
        return None
    return CellFormatting(hyperlink=hyperlink, text_runs=runs or None, note=note)
