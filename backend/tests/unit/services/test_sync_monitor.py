from __future__ import annotations

from shared.services.sync_monitor import SyncMonitor


def _record(monitor: SyncMonitor, success: bool, records: int = 10) -> None:
    monitor.start_sync()
    monitor.end_sync(success, trigger="scheduled", record_count=records, error=None if success else "boom")


def test_no_history_is_warning():
    health = SyncMonitor().get_health_status()
    assert health["status"] == "warning"
    assert health["last_sync"] is None


def test_successful_syncs_are_healthy():
    monitor = SyncMonitor()
    _record(monitor, True)
    assert monitor.get_health_status()["status"] == "healthy"


def test_single_recent_failure_is_warning():
    monitor = SyncMonitor()
    _record(monitor, True)
    _record(monitor, False)
    health = monitor.get_health_status()
    assert health["status"] == "warning"
    assert health["recent_failures"] == 1


def test_three_recent_failures_are_critical():
    monitor = SyncMonitor()
    for success in (False, True, False, False):
        _record(monitor, success)
    assert monitor.get_health_status()["status"] == "critical"


def test_only_last_five_runs_count():
    monitor = SyncMonitor()
    for _ in range(3):
        _record(monitor, False)
    for _ in range(5):
        _record(monitor, True)
    assert monitor.get_health_status()["status"] == "healthy"


def test_history_is_newest_first_and_bounded():
    monitor = SyncMonitor(max_history=3)
    for count in range(5):
        _record(monitor, True, records=count)

    history = monitor.get_history(10)
    assert [run.record_count for run in history] == [4, 3, 2]
    assert [run.record_count for run in monitor.get_history(1)] == [4]


def test_stats():
    monitor = SyncMonitor()
    _record(monitor, True)
    _record(monitor, True)
    _record(monitor, False)

    stats = monitor.get_stats()
    assert stats["total_syncs"] == 3
    assert stats["successful_syncs"] == 2
    assert stats["failed_syncs"] == 1
    assert stats["success_rate"] == 66.7
    assert stats["last_sync"].success is False
    assert stats["last_sync"].error == "boom"
    assert stats["average_duration_ms"] >= 0
    assert stats["is_running"] is False


def test_running_flag():
    monitor = SyncMonitor()
    monitor.start_sync()
    assert monitor.get_stats()["is_running"] is True
    run = monitor.end_sync(True, record_count=1, sheet_count=1, failed_sheets=["Broken"])
    assert run.duration_ms is not None
    assert run.failed_sheets == ["Broken"]
    assert monitor.is_running is False
