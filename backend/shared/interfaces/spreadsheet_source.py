"""
Collaborator interfaces for the sync engine
Abstract contracts for the remote spreadsheet and for snapshot persistence
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from shared.models.records import CellFormatting, SheetTab, Snapshot


class SpreadsheetSource(ABC):
    """
    Read-only access to one remote spreadsheet.

    get_values() and get_formatting() must be called with the same A1 range;
    their results are aligned by (row, column) index.
    """

    @abstractmethod
    async def list_tabs(self) -> List[SheetTab]:
        """List worksheet tabs in display order. Failure is fatal for a sync."""
        raise NotImplementedError

    @abstractmethod
    async def get_values(self, range_name: str) -> List[List[str]]:
        """Formatted cell values, row-major, ragged rows allowed."""
        raise NotImplementedError

    @abstractmethod
    async def get_formatting(self, range_name: str) -> List[List[Optional[CellFormatting]]]:
        """Per-cell formatting aligned with get_values(); missing entries mean no formatting."""
        raise NotImplementedError


class SnapshotPersistence(ABC):
    """Durable storage for the last good snapshot."""

    @abstractmethod
    def load(self) -> Optional[Snapshot]:
        raise NotImplementedError

    @abstractmethod
    def save(self, snapshot: Snapshot) -> None:
        """Persist atomically; a crash mid-write must leave the previous file intact."""
        raise NotImplementedError
