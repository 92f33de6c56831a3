from __future__ import annotations

import asyncio

import pytest

from data_connector.google_sheets.sync import SheetSyncOrchestrator
from data_connector.google_sheets.utils import build_a1_range
from shared.exceptions import SheetSourceError
from shared.models.records import SheetTab


class _FakeSource:
    def __init__(self, tabs: dict, failing: set | None = None, list_error: Exception | None = None) -> None:
        self.tabs = tabs
        self.failing = failing or set()
        self.list_error = list_error
        self.requested: list[str] = []
        self.active = 0
        self.max_active = 0

    async def list_tabs(self):
        if self.list_error:
            raise self.list_error
        return [SheetTab(name=name) for name in self.tabs]

    async def get_values(self, range_name: str):
        self.requested.append(range_name)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0)
            for name, rows in self.tabs.items():
                if build_a1_range(name) == range_name:
                    if name in self.failing:
                        raise ConnectionError(f"timeout reading {name}")
                    return rows
            return []
        finally:
            self.active -= 1

    async def get_formatting(self, range_name: str):
        return []


def _tabs():
    return {
        "Partners": [["Vendor", "Status"], ["Acme", "Supported"], ["Beta Co", "Tech Preview"]],
        "Products WIP": [["Product"], ["Draft"]],
        "Broken": [["Vendor"], ["Never read"]],
        "Certification": [["Vendor", "Certified"], ["Acme", "Yes"]],
        "wip-notes": [["Note"], ["todo"]],
    }


@pytest.mark.asyncio
async def test_wip_tabs_are_never_fetched():
    source = _FakeSource(_tabs(), failing={"Broken"})
    outcome = await SheetSyncOrchestrator(source).sync()

    assert outcome.excluded_sheets == ["Products WIP", "wip-notes"]
    assert "Products WIP" not in outcome.snapshot.sheets
    assert "wip-notes" not in outcome.snapshot.sheets
    assert not any("WIP" in r or "wip" in r for r in source.requested)


@pytest.mark.asyncio
async def test_failed_tab_contributes_empty_list():
    source = _FakeSource(_tabs(), failing={"Broken"})
    outcome = await SheetSyncOrchestrator(source).sync()

    sheets = outcome.snapshot.sheets
    assert list(sheets) == ["Partners", "Broken", "Certification"]
    assert sheets["Broken"] == []
    assert len(sheets["Partners"]) == 2
    assert len(sheets["Certification"]) == 1
    assert outcome.failed_sheets == ["Broken"]
    assert outcome.snapshot.last_sync_time is not None


@pytest.mark.asyncio
async def test_list_tabs_failure_is_fatal():
    source = _FakeSource({}, list_error=PermissionError("403"))
    with pytest.raises(SheetSourceError):
        await SheetSyncOrchestrator(source).sync()


@pytest.mark.asyncio
async def test_source_error_from_list_tabs_is_not_rewrapped():
    source = _FakeSource({}, list_error=SheetSourceError("GOOGLE_SHEET_ID is not configured"))
    with pytest.raises(SheetSourceError) as exc_info:
        await SheetSyncOrchestrator(source).sync()
    assert exc_info.value.message == "Sheet source error: GOOGLE_SHEET_ID is not configured"
    assert exc_info.value.__cause__ is None


@pytest.mark.asyncio
async def test_fetches_are_bounded_by_concurrency():
    tabs = {f"Tab {i}": [["Vendor"], [f"V{i}"]] for i in range(8)}
    source = _FakeSource(tabs)
    outcome = await SheetSyncOrchestrator(source, concurrency=2).sync()

    assert len(outcome.snapshot.sheets) == 8
    assert source.max_active <= 2


@pytest.mark.asyncio
async def test_fetch_all_sheets_data_returns_mapping():
    source = _FakeSource(_tabs(), failing={"Broken"})
    sheets = await SheetSyncOrchestrator(source).fetch_all_sheets_data()
    assert sheets["Partners"][0].canonical("vendor") == "Acme"
    assert sheets["Broken"] == []
