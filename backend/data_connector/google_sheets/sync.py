"""
Google Sheets Connector - Multi-sheet sync

Enumerates the tabs of a spreadsheet, skips work-in-progress tabs, fetches the
rest and assembles one Snapshot. Only a failure to enumerate tabs is fatal;
a tab that fails to fetch contributes an empty record list.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from shared.exceptions import SheetSourceError
from shared.interfaces.spreadsheet_source import SpreadsheetSource
from shared.models.records import SheetFetchResult, SheetRecord, Snapshot, SyncOutcome

from .fetcher import SheetFetcher
from .utils import is_wip_sheet

logger = logging.getLogger(__name__)


class SheetSyncOrchestrator:
    def __init__(
        self,
        source: SpreadsheetSource,
        *,
        wip_marker: str = "wip",
        concurrency: int = 5,
        column_span: str = "A:Z",
    ) -> None:
        self.source = source
        self.fetcher = SheetFetcher(source, column_span=column_span)
        self.wip_marker = wip_marker
        self.concurrency = max(1, int(concurrency))

    async def _fetch_one(
        self, sheet_name: str, sem: asyncio.Semaphore
    ) -> Tuple[str, Optional[SheetFetchResult]]:
        async with sem:
            try:
                return sheet_name, await self.fetcher.fetch_sheet(sheet_name)
            except Exception as e:
                logger.error(f"Sheet '{sheet_name}' skipped: {e}")
                return sheet_name, None

    async def sync(self) -> SyncOutcome:
        """
        Fetch every non-WIP tab and build a complete Snapshot.

        Raises:
            SheetSourceError: tabs cannot be listed (credentials, network, permissions)
        """
        try:
            tabs = await self.source.list_tabs()
        except SheetSourceError:
            raise
        except Exception as e:
            raise SheetSourceError(str(e)) from e

        excluded = [tab.name for tab in tabs if is_wip_sheet(tab.name, self.wip_marker)]
        for name in excluded:
            logger.info(f"Skipping work-in-progress sheet '{name}'")
        names = [tab.name for tab in tabs if tab.name not in excluded]

        sem = asyncio.Semaphore(self.concurrency)
        results = await asyncio.gather(*(self._fetch_one(name, sem) for name in names))

        sheets: Dict[str, List[SheetRecord]] = {}
        header_notes: Dict[str, Dict[str, str]] = {}
        failed: List[str] = []
        for name, result in results:
            if result is None:
                failed.append(name)
                sheets[name] = []
                continue
            sheets[name] = result.records
            if result.header_notes:
                header_notes[name] = result.header_notes

        snapshot = Snapshot(
            sheets=sheets,
            header_notes=header_notes,
            last_sync_time=datetime.now(timezone.utc),
        )
        logger.info(
            f"Fetched {snapshot.total_records} records from {len(sheets)} sheets"
            + (f" ({len(failed)} failed: {', '.join(failed)})" if failed else "")
        )
        return SyncOutcome(snapshot=snapshot, failed_sheets=failed, excluded_sheets=excluded)

    async def fetch_all_sheets_data(self) -> Dict[str, List[SheetRecord]]:
        """Sheet name -> records for every non-WIP tab."""
        return dict((await self.sync()).snapshot.sheets)
