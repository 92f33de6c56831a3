"""
Shared model definitions for the sheet mirror
"""

from .cells import (
    AnnotatedCell,
    Cell,
    LinkCell,
    PlainCell,
    RichTextCell,
    TextRun,
    canonical_text,
    link_targets,
)
from .records import (
    CellFormatting,
    CertificationSummary,
    FieldRole,
    FilterField,
    Insights,
    SheetFetchResult,
    SheetRecord,
    SheetTab,
    Snapshot,
    StatusBucket,
    SyncOutcome,
    SyncRun,
)
from .responses import ApiResponse

__all__ = [
    # cell models
    "AnnotatedCell",
    "Cell",
    "LinkCell",
    "PlainCell",
    "RichTextCell",
    "TextRun",
    "canonical_text",
    "link_targets",
    # record models
    "CellFormatting",
    "CertificationSummary",
    "FieldRole",
    "FilterField",
    "Insights",
    "SheetFetchResult",
    "SheetRecord",
    "SheetTab",
    "Snapshot",
    "StatusBucket",
    "SyncOutcome",
    "SyncRun",
    # responses
    "ApiResponse",
]
