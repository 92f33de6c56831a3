"""
Record, snapshot and derived-view models for the sheet mirror.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.models.cells import Cell, TextRun


class SheetTab(BaseModel):
    """One worksheet tab as listed by the remote spreadsheet."""

    name: str
    sheet_id: Optional[int] = None
    row_count: Optional[int] = None
    column_count: Optional[int] = None


class CellFormatting(BaseModel):
    """Formatting metadata of one cell, positionally aligned with the values grid."""

    hyperlink: Optional[str] = None
    text_runs: Optional[List[TextRun]] = None
    note: Optional[str] = None


class SheetRecord(BaseModel):
    """One non-blank data row of a sheet."""

    id: int = Field(..., description="1-based data row index within the sheet")
    sheet_name: str
    last_updated: datetime
    fields: Dict[str, Cell] = Field(default_factory=dict)

    def canonical(self, field: str) -> str:
        cell = self.fields.get(field)
        return cell.canonical_text() if cell is not None else ""


class Snapshot(BaseModel):
    """One complete sync result. Replaced as a whole, never patched."""

    sheets: Dict[str, List[SheetRecord]] = Field(default_factory=dict)
    header_notes: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    last_sync_time: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)

    @property
    def total_records(self) -> int:
        return sum(len(records) for records in self.sheets.values())


class SheetFetchResult(BaseModel):
    """Records of one tab plus the notes found on its header row."""

    records: List[SheetRecord] = Field(default_factory=list)
    header_notes: Dict[str, str] = Field(default_factory=dict)


class SyncOutcome(BaseModel):
    snapshot: Snapshot
    failed_sheets: List[str] = Field(default_factory=list)
    excluded_sheets: List[str] = Field(default_factory=list)


class FieldRole(str, Enum):
    PARTNER = "partner"
    PRODUCT = "product"
    STATUS = "status"


class StatusBucket(str, Enum):
    READY = "ready"
    IN_PROGRESS = "in-progress"
    BLOCKED = "blocked"


class FilterField(BaseModel):
    role: FieldRole
    source_field: str
    label: str
    values: List[str] = Field(default_factory=list)


class CertificationSummary(BaseModel):
    field: str
    certified: int
    total: int
    ratio: float


class Insights(BaseModel):
    total_records: int = 0
    status_field: Optional[str] = None
    status_counts: Dict[str, int] = Field(
        default_factory=lambda: {bucket.value: 0 for bucket in StatusBucket}
    )
    unclassified: int = 0
    partner_field: Optional[str] = None
    by_partner: Dict[str, int] = Field(default_factory=dict)
    certification: Optional[CertificationSummary] = None


class SyncRun(BaseModel):
    """One entry of the sync history."""

    timestamp: datetime
    success: bool
    trigger: Literal["scheduled", "manual", "startup"] = "manual"
    record_count: int = 0
    sheet_count: int = 0
    failed_sheets: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    duration_ms: Optional[int] = None
