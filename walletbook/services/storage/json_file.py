"""
JSON Snapshot Storage

The snapshot is written as a backup envelope:

    {"version": 2, "timestamp": "...", "data": {...snapshot...}}

The same envelope is what export_backup() hands to the user, so a
backup file can be restored by dropping it in place of the snapshot.

Writes go to a temporary file first and are moved into place with
os.replace, so a crash mid-write never leaves half a snapshot behind.
"""

import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from walletbook.models.ledger import SNAPSHOT_VERSION, LedgerSnapshot
from walletbook.services.storage.interface import (
    SnapshotCorruptError,
    SnapshotStorageInterface,
    StorageError,
)


class BackupEnvelope(BaseModel):
    """Versioned wrapper around a persisted snapshot."""

    version: int = SNAPSHOT_VERSION
    timestamp: datetime = Field(default_factory=datetime.now)
    data: LedgerSnapshot


def dump_backup(snapshot: LedgerSnapshot) -> str:
    """Serialize a snapshot to backup JSON."""
    return BackupEnvelope(data=snapshot).model_dump_json(indent=2)


def load_backup(text: str) -> LedgerSnapshot:
    """
    Parse backup JSON back into a snapshot.

    Raises:
        SnapshotCorruptError: If the text is not a valid backup
    """
    try:
        envelope = BackupEnvelope.model_validate_json(text)
    except ValidationError as e:
        raise SnapshotCorruptError(f"Invalid backup data: {e}") from e

    if envelope.version > SNAPSHOT_VERSION:
        raise SnapshotCorruptError(
            f"Backup version {envelope.version} is newer than supported ({SNAPSHOT_VERSION})"
        )
    return envelope.data


class JsonFileSnapshotStorage(SnapshotStorageInterface):
    """Snapshot storage backed by a single JSON file."""

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load_snapshot(self) -> Optional[LedgerSnapshot]:
        if not self._path.exists():
            return None
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read snapshot {self._path}: {e}") from e
        return load_backup(text)

    def save_snapshot(self, snapshot: LedgerSnapshot) -> None:
        payload = dump_backup(snapshot)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write snapshot {self._path}: {e}") from e

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove snapshot {self._path}: {e}") from e


class InMemorySnapshotStorage(SnapshotStorageInterface):
    """
    Snapshot storage kept in memory.

    Used in tests and when no data directory is available. It still
    round-trips through JSON so it catches anything that would not
    survive a real save.
    """

    def __init__(self, initial: Optional[LedgerSnapshot] = None):
        self._payload: Optional[str] = dump_backup(initial) if initial else None
        self.save_count = 0

    def load_snapshot(self) -> Optional[LedgerSnapshot]:
        if self._payload is None:
            return None
        return load_backup(self._payload)

    def save_snapshot(self, snapshot: LedgerSnapshot) -> None:
        self._payload = dump_backup(snapshot)
        self.save_count += 1

    def clear(self) -> None:
        self._payload = None
