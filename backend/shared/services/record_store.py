"""
Record store for the mirrored spreadsheet.

Holds one immutable Snapshot reference. Readers take the reference once per
call and work on that object only, so a concurrent replace_snapshot() is seen
either entirely or not at all. Writers are serialized with an asyncio.Lock.

Queries are read-tolerant: unknown sheets and fields give empty results.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Union

from shared.interfaces.spreadsheet_source import SnapshotPersistence
from shared.models.records import SheetRecord, Snapshot

logger = logging.getLogger(__name__)

RecordsOrMapping = Union[List[SheetRecord], Dict[str, List[SheetRecord]]]


def record_matches_query(record: SheetRecord, needle: str) -> bool:
    """Case-insensitive substring match over canonical text and link targets."""
    for cell in record.fields.values():
        if needle in cell.canonical_text().lower():
            return True
        for url in cell.link_targets():
            if needle in url.lower():
                return True
    return False


def search_records(records: Iterable[SheetRecord], query: Optional[str]) -> List[SheetRecord]:
    records = list(records)
    if not query or not query.strip():
        return records
    needle = query.lower()
    return [r for r in records if record_matches_query(r, needle)]


def filter_records(records: Iterable[SheetRecord], field_filters: Mapping[str, str]) -> List[SheetRecord]:
    constraints = {
        field: str(value).lower()
        for field, value in (field_filters or {}).items()
        if value is not None and str(value).strip()
    }
    records = list(records)
    if not constraints:
        return records
    return [
        r
        for r in records
        if all(needle in r.canonical(field).lower() for field, needle in constraints.items())
    ]


def unique_field_values(records: Iterable[SheetRecord], field: str) -> List[str]:
    values = set()
    for record in records:
        value = record.canonical(field).strip()
        if value:
            values.add(value)
    return sorted(values)


class RecordStore:
    def __init__(self, persistence: Optional[SnapshotPersistence] = None) -> None:
        self._persistence = persistence
        self._snapshot = Snapshot()
        self._write_lock = asyncio.Lock()

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def load(self) -> bool:
        """Hydrate from persistence at startup. Returns True when a snapshot was loaded."""
        if self._persistence is None:
            return False
        snapshot = self._persistence.load()
        if snapshot is None:
            return False
        self._snapshot = snapshot
        logger.info(
            f"Loaded {snapshot.total_records} records in {len(snapshot.sheets)} sheets from storage"
        )
        return True

    async def replace_snapshot(self, new_snapshot: Snapshot) -> Snapshot:
        """
        Swap in a new snapshot (stamped with the swap time) and persist it.

        A persistence failure is logged; the in-memory swap stands.
        """
        async with self._write_lock:
            stamped = new_snapshot.model_copy(update={"last_sync_time": datetime.now(timezone.utc)})
            self._snapshot = stamped
            if self._persistence is not None:
                try:
                    await asyncio.to_thread(self._persistence.save, stamped)
                except Exception as e:
                    logger.error(f"Error saving snapshot to storage: {e}")
            return stamped

    # -------------------------
    # Queries
    # -------------------------

    def get_sheet(self, name: str) -> List[SheetRecord]:
        return list(self._snapshot.sheets.get(name, []))

    def get_all_sheets(self) -> Dict[str, List[SheetRecord]]:
        return {name: list(records) for name, records in self._snapshot.sheets.items()}

    def get_sheet_names(self) -> List[str]:
        return list(self._snapshot.sheets.keys())

    def get_header_notes(self, sheet: Optional[str] = None) -> Dict:
        notes = self._snapshot.header_notes
        if sheet is not None:
            return dict(notes.get(sheet, {}))
        return {name: dict(values) for name, values in notes.items()}

    def search(self, query: Optional[str], sheet: Optional[str] = None) -> RecordsOrMapping:
        snapshot = self._snapshot
        if sheet is not None:
            return search_records(snapshot.sheets.get(sheet, []), query)
        return {name: search_records(records, query) for name, records in snapshot.sheets.items()}

    def filter(self, field_filters: Mapping[str, str], sheet: Optional[str] = None) -> RecordsOrMapping:
        snapshot = self._snapshot
        if sheet is not None:
            return filter_records(snapshot.sheets.get(sheet, []), field_filters)
        return {
            name: filter_records(records, field_filters) for name, records in snapshot.sheets.items()
        }

    def unique_values(self, field: str, sheet: Optional[str] = None) -> List[str]:
        snapshot = self._snapshot
        if sheet is not None:
            records: Iterable[SheetRecord] = snapshot.sheets.get(sheet, [])
        else:
            records = (r for rs in snapshot.sheets.values() for r in rs)
        return unique_field_values(records, field)

    def get_last_sync_time(self) -> Optional[datetime]:
        return self._snapshot.last_sync_time

    def get_stats(self) -> Dict:
        snapshot = self._snapshot
        fields: List[str] = []
        seen = set()
        for records in snapshot.sheets.values():
            for name in (records[0].fields.keys() if records else []):
                if name not in seen:
                    seen.add(name)
                    fields.append(name)
        return {
            "total_records": snapshot.total_records,
            "sheet_count": len(snapshot.sheets),
            "records_per_sheet": {name: len(records) for name, records in snapshot.sheets.items()},
            "last_sync_time": snapshot.last_sync_time,
            "data_fields": fields,
        }
