from __future__ import annotations

from datetime import datetime, timezone

from shared.models.cells import AnnotatedCell, LinkCell, PlainCell, RichTextCell, TextRun
from shared.models.records import Snapshot
from shared.services.snapshot_persistence import JsonSnapshotPersistence


def _snapshot(make_record) -> Snapshot:
    return Snapshot(
        sheets={
            "Partners": [
                make_record(
                    1,
                    vendor=LinkCell(text="Acme", url="https://acme.example", comment="tier 1"),
                    status=AnnotatedCell(text="Supported", comment="since 4.2"),
                    docs=RichTextCell(
                        runs=[TextRun(text="See "), TextRun(text="KB", url="https://kb.example")]
                    ),
                    region=PlainCell(text="EU"),
                ),
            ],
            "Broken": [],
        },
        header_notes={"Partners": {"status": "Supported / Not Supported"}},
        last_sync_time=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )


def test_round_trip_keeps_every_cell_variant(tmp_path, make_record):
    persistence = JsonSnapshotPersistence(tmp_path / "storage-data.json")
    original = _snapshot(make_record)

    persistence.save(original)
    loaded = persistence.load()

    assert loaded == original
    fields = loaded.sheets["Partners"][0].fields
    assert isinstance(fields["vendor"], LinkCell)
    assert isinstance(fields["status"], AnnotatedCell)
    assert isinstance(fields["docs"], RichTextCell)
    assert isinstance(fields["region"], PlainCell)


def test_save_creates_parent_and_leaves_no_temp_files(tmp_path, make_record):
    path = tmp_path / "data" / "storage-data.json"
    persistence = JsonSnapshotPersistence(path)

    persistence.save(_snapshot(make_record))
    persistence.save(Snapshot())

    assert [p.name for p in path.parent.iterdir()] == ["storage-data.json"]
    assert persistence.load() == Snapshot()


def test_missing_file_loads_none(tmp_path):
    assert JsonSnapshotPersistence(tmp_path / "absent.json").load() is None


def test_corrupt_file_loads_none(tmp_path):
    path = tmp_path / "storage-data.json"
    path.write_text('{"sheets": {"Partners": [{"id": "x"', encoding="utf-8")
    assert JsonSnapshotPersistence(path).load() is None


def test_invalid_shape_loads_none(tmp_path):
    path = tmp_path / "storage-data.json"
    path.write_text('{"sheets": {"Partners": [{"id": 1}]}}', encoding="utf-8")
    assert JsonSnapshotPersistence(path).load() is None
