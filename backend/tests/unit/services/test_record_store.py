from __future__ import annotations

import pytest
import pytest_asyncio

from shared.models.cells import LinkCell
from shared.models.records import Snapshot
from shared.services.record_store import RecordStore


class _FakePersistence:
    def __init__(self, stored: Snapshot | None = None, fail: bool = False) -> None:
        self.stored = stored
        self.fail = fail
        self.saved: list[Snapshot] = []

    def load(self):
        return self.stored

    def save(self, snapshot: Snapshot) -> None:
        if self.fail:
            raise OSError("disk full")
        self.saved.append(snapshot)


@pytest.fixture
def snapshot(make_record):
    return Snapshot(
        sheets={
            "Partners": [
                make_record(
                    1,
                    vendor=LinkCell(text="Acme", url="https://acme.example/partners"),
                    status="Supported",
                ),
                make_record(2, vendor="Beta Co", status="Not Supported"),
                make_record(4, vendor="acme labs", status=""),
            ],
            "Certification": [
                make_record(1, "Certification", vendor="Acme", certified="Yes"),
            ],
        },
        header_notes={"Partners": {"status": "Supported / Not Supported"}},
    )


@pytest_asyncio.fixture
async def store(snapshot):
    s = RecordStore()
    await s.replace_snapshot(snapshot)
    return s


class TestQueries:
    @pytest.mark.asyncio
    async def test_empty_query_returns_sheet_unchanged(self, store):
        assert store.search("", "Partners") == store.get_sheet("Partners")
        assert store.search("   ", "Partners") == store.get_sheet("Partners")

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, store):
        assert [r.id for r in store.search("ACME", "Partners")] == [1, 4]

    @pytest.mark.asyncio
    async def test_search_keeps_surrounding_whitespace(self, store):
        assert [r.id for r in store.search(" co", "Partners")] == [2]
        assert [r.id for r in store.search("acme ", "Partners")] == [4]

    @pytest.mark.asyncio
    async def test_filter_keeps_surrounding_whitespace(self, store):
        assert [r.id for r in store.filter({"vendor": " co"}, "Partners")] == [2]
        assert [r.id for r in store.filter({"vendor": "acme "}, "Partners")] == [4]

    @pytest.mark.asyncio
    async def test_search_matches_link_targets(self, store):
        assert [r.id for r in store.search("acme.example/partners", "Partners")] == [1]

    @pytest.mark.asyncio
    async def test_search_all_sheets_returns_mapping(self, store):
        result = store.search("acme")
        assert set(result) == {"Partners", "Certification"}
        assert len(result["Certification"]) == 1

    @pytest.mark.asyncio
    async def test_filter_with_empty_map_is_identity(self, store):
        assert store.filter({}, "Partners") == store.get_sheet("Partners")

    @pytest.mark.asyncio
    async def test_filter_requires_every_field(self, store):
        result = store.filter({"vendor": "acme", "status": "supp"}, "Partners")
        assert [r.id for r in result] == [1]

    @pytest.mark.asyncio
    async def test_filter_ignores_blank_values(self, store):
        assert len(store.filter({"vendor": "", "status": "  "}, "Partners")) == 3

    @pytest.mark.asyncio
    async def test_filter_on_unknown_field_matches_nothing(self, store):
        assert store.filter({"region": "eu"}, "Partners") == []

    @pytest.mark.asyncio
    async def test_unique_values_sorted_without_blanks(self, store):
        assert store.unique_values("status", "Partners") == ["Not Supported", "Supported"]
        assert store.unique_values("vendor") == ["Acme", "Beta Co", "acme labs"]

    @pytest.mark.asyncio
    async def test_unknown_sheet_is_empty(self, store):
        assert store.get_sheet("Nope") == []
        assert store.search("acme", "Nope") == []
        assert store.filter({"vendor": "a"}, "Nope") == []
        assert store.unique_values("vendor", "Nope") == []
        assert store.get_header_notes("Nope") == {}

    @pytest.mark.asyncio
    async def test_stats(self, store):
        stats = store.get_stats()
        assert stats["total_records"] == 4
        assert stats["sheet_count"] == 2
        assert stats["records_per_sheet"] == {"Partners": 3, "Certification": 1}
        assert stats["data_fields"] == ["vendor", "status", "certified"]
        assert stats["last_sync_time"] is not None


class TestSnapshotSwap:
    @pytest.mark.asyncio
    async def test_replace_stamps_sync_time_and_persists(self, snapshot):
        persistence = _FakePersistence()
        store = RecordStore(persistence)

        stamped = await store.replace_snapshot(snapshot)

        assert stamped.last_sync_time is not None
        assert store.get_last_sync_time() == stamped.last_sync_time
        assert persistence.saved == [stamped]

    @pytest.mark.asyncio
    async def test_reader_keeps_its_snapshot_across_swap(self, store, make_record):
        before = store.snapshot
        await store.replace_snapshot(Snapshot(sheets={"New": [make_record(1, "New", vendor="Gamma")]}))

        assert set(before.sheets) == {"Partners", "Certification"}
        assert store.get_sheet_names() == ["New"]

    @pytest.mark.asyncio
    async def test_persistence_failure_keeps_swap(self, snapshot):
        store = RecordStore(_FakePersistence(fail=True))
        await store.replace_snapshot(snapshot)
        assert store.snapshot.total_records == 4

    def test_load_hydrates_from_persistence(self, snapshot):
        store = RecordStore(_FakePersistence(stored=snapshot))
        assert store.load() is True
        assert store.get_header_notes("Partners") == {"status": "Supported / Not Supported"}

    def test_load_without_stored_snapshot(self):
        store = RecordStore(_FakePersistence())
        assert store.load() is False
        assert store.get_all_sheets() == {}
