"""
JSON file persistence for the record store.

The whole snapshot is written to a temporary file next to the target and moved
into place with os.replace(), so readers never see a half-written file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from shared.interfaces.spreadsheet_source import SnapshotPersistence
from shared.models.records import Snapshot

logger = logging.getLogger(__name__)


class JsonSnapshotPersistence(SnapshotPersistence):
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> Optional[Snapshot]:
        """Last saved snapshot, or None when the file is missing or unreadable."""
        if not self.path.exists():
            logger.info(f"No stored snapshot at {self.path}, starting empty")
            return None
        try:
            with self.path.open("r", encoding="utf-8") as f:
                payload = json.load(f)
            return Snapshot.model_validate(payload)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Error loading snapshot from {self.path}: {e}")
            return None

    def save(self, snapshot: Snapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot.model_dump(mode="json"), f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
        logger.debug(f"Saved {snapshot.total_records} records to {self.path}")
