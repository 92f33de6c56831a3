"""
Sync scheduler for the dashboard service.

Runs one sync at start-up, then every `interval_minutes`. Manual triggers go
through the same path; only one sync may be in flight at a time and a second
trigger is rejected instead of queued.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from data_connector.google_sheets.sync import SheetSyncOrchestrator
from shared.exceptions import SyncInProgressError
from shared.models.records import SyncRun
from shared.services.record_store import RecordStore
from shared.services.sync_monitor import SyncMonitor

logger = logging.getLogger(__name__)


class SyncScheduler:
    def __init__(
        self,
        orchestrator: SheetSyncOrchestrator,
        store: RecordStore,
        monitor: SyncMonitor,
        *,
        interval_minutes: float = 5,
    ) -> None:
        self.orchestrator = orchestrator
        self.store = store
        self.monitor = monitor
        self.interval_seconds = max(1.0, float(interval_minutes) * 60)
        self._lock = asyncio.Lock()
        self._started_at: Optional[datetime] = None
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_syncing(self) -> bool:
        return self._lock.locked()

    async def trigger_sync(self, trigger: str = "manual") -> SyncRun:
        """
        Run one full sync and swap the result into the store.

        Raises:
            SyncInProgressError: another sync is still running
            SheetSourceError: the spreadsheet could not be enumerated; the
                store keeps its previous snapshot
        """
        if self._lock.locked():
            started = self._started_at.isoformat() if self._started_at else None
            raise SyncInProgressError(started_at=started)

        async with self._lock:
            self._started_at = datetime.now(timezone.utc)
            self.monitor.start_sync()
            logger.info(f"Starting {trigger} sync")
            try:
                outcome = await self.orchestrator.sync()
                snapshot = await self.store.replace_snapshot(outcome.snapshot)
            except Exception as e:
                self.monitor.end_sync(False, trigger=trigger, error=str(e))
                raise
            finally:
                self._started_at = None

            return self.monitor.end_sync(
                True,
                trigger=trigger,
                record_count=snapshot.total_records,
                sheet_count=len(snapshot.sheets),
                failed_sheets=outcome.failed_sheets,
            )

    async def _run_once(self, trigger: str) -> None:
        try:
            await self.trigger_sync(trigger)
        except SyncInProgressError:
            logger.info(f"Skipping {trigger} sync, another sync is still running")
        except Exception as e:
            logger.error(f"{trigger.capitalize()} sync failed: {e}")

    async def run(self) -> None:
        self._running = True
        await self._run_once("startup")
        while self._running:
            await asyncio.sleep(self.interval_seconds)
            if not self._running:
                break
            await self._run_once("scheduled")

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
            logger.info(f"Sync scheduler started (every {self.interval_seconds / 60:g} minutes)")
        return self._task

    async def stop(self) -> None:
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Sync scheduler stopped")
