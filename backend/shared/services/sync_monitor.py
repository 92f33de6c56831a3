"""
Sync run history and health.

Keeps the most recent runs (newest first) in memory and derives success rate,
average duration and a coarse health status from them.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional, Sequence

from shared.models.records import SyncRun

logger = logging.getLogger(__name__)

HEALTH_WINDOW = 5
CRITICAL_FAILURES = 3


class SyncMonitor:
    def __init__(self, max_history: int = 100):
        self._history: Deque[SyncRun] = deque(maxlen=max(1, int(max_history)))
        self._started_at: Optional[float] = None
        self.is_running = False

    def start_sync(self) -> None:
        self.is_running = True
        self._started_at = time.monotonic()

    def end_sync(
        self,
        success: bool,
        *,
        trigger: str = "manual",
        record_count: int = 0,
        sheet_count: int = 0,
        failed_sheets: Optional[Sequence[str]] = None,
        error: Optional[str] = None,
    ) -> SyncRun:
        duration_ms = None
        if self._started_at is not None:
            duration_ms = int((time.monotonic() - self._started_at) * 1000)
        self.is_running = False
        self._started_at = None

        run = SyncRun(
            timestamp=datetime.now(timezone.utc),
            success=success,
            trigger=trigger,
            record_count=record_count,
            sheet_count=sheet_count,
            failed_sheets=list(failed_sheets or []),
            error=error,
            duration_ms=duration_ms,
        )
        self._history.appendleft(run)

        if success:
            logger.info(f"Sync completed ({trigger}): {record_count} records in {sheet_count} sheets")
        else:
            logger.warning(f"Sync failed ({trigger}): {error}")
        return run

    def get_history(self, limit: int = 10) -> List[SyncRun]:
        return list(self._history)[: max(0, limit)]

    def get_stats(self) -> Dict[str, Any]:
        runs = list(self._history)
        total = len(runs)
        successful = sum(1 for r in runs if r.success)
        durations = [r.duration_ms for r in runs if r.duration_ms is not None]
        return {
            "total_syncs": total,
            "successful_syncs": successful,
            "failed_syncs": total - successful,
            "success_rate": round(successful / total * 100, 1) if total else 0.0,
            "last_sync": runs[0] if runs else None,
            "average_duration_ms": round(sum(durations) / len(durations)) if durations else 0,
            "is_running": self.is_running,
        }

    def get_health_status(self) -> Dict[str, Any]:
        recent = list(self._history)[:HEALTH_WINDOW]
        failures = sum(1 for r in recent if not r.success)

        if failures >= CRITICAL_FAILURES:
            status, message = "critical", "Multiple recent sync failures detected"
        elif failures >= 1:
            status, message = "warning", "Recent sync failures detected"
        elif not self._history:
            status, message = "warning", "No sync history available"
        else:
            status, message = "healthy", "All systems operational"

        return {
            "status": status,
            "message": message,
            "last_sync": recent[0] if recent else None,
            "recent_failures": failures,
        }
