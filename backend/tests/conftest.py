from __future__ import annotations

import os
from datetime import datetime, timezone

import pytest


def pytest_configure() -> None:
    """
    Unit defaults for the `backend/tests` suite.

    Settings classes read `.env` unless DOCKER_CONTAINER is set; keep a
    developer's local sheet id and credentials out of the tests.
    """
    os.environ.setdefault("DOCKER_CONTAINER", "true")


FIXED_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def make_record():
    """Factory: make_record(1, "Partners", vendor="Acme", status=LinkCell(...))."""
    from shared.models.cells import PlainCell
    from shared.models.records import SheetRecord

    def _make(record_id: int, sheet: str = "Partners", **fields):
        cells = {
            name: PlainCell(text=value) if isinstance(value, str) else value
            for name, value in fields.items()
        }
        return SheetRecord(id=record_id, sheet_name=sheet, last_updated=FIXED_TIME, fields=cells)

    return _make
