"""
Spreadsheet sync exceptions
"""

from typing import Any, Dict, Optional

from .base import DomainException


class CredentialsError(DomainException):
    """No usable Google credentials could be loaded"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Credentials error: {message}",
            code="CREDENTIALS_ERROR",
            details=details or {},
        )


class SheetSourceError(DomainException):
    """The remote spreadsheet cannot be enumerated; fatal for a sync attempt"""

    def __init__(self, message: str, spreadsheet_id: Optional[str] = None):
        super().__init__(
            message=f"Sheet source error: {message}",
            code="SHEET_SOURCE_ERROR",
            details={"spreadsheet_id": spreadsheet_id} if spreadsheet_id else {},
        )


class SheetFetchError(DomainException):
    """Values or formatting of one tab could not be retrieved"""

    def __init__(self, sheet_name: Optional[str], reason: str):
        super().__init__(
            message=f"Failed to fetch sheet '{sheet_name or '<default>'}': {reason}",
            code="SHEET_FETCH_ERROR",
            details={"sheet_name": sheet_name, "reason": reason},
        )


class SyncInProgressError(DomainException):
    """A sync was requested while another one is still running"""

    def __init__(self, started_at: Optional[str] = None):
        super().__init__(
            message="A sync is already in progress",
            code="SYNC_IN_PROGRESS",
            details={"started_at": started_at} if started_at else {},
        )
