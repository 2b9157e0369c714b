"""Services package."""

from walletbook.services.mirror import (
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsMirror,
    MirrorError,
    NullMirror,
    RemoteMirrorInterface,
    SyncCoordinator,
)
from walletbook.services.storage import (
    BackupEnvelope,
    InMemorySnapshotStorage,
    JsonFileSnapshotStorage,
    SnapshotCorruptError,
    SnapshotStorageInterface,
    StorageError,
    dump_backup,
    load_backup,
)

__all__ = [
    # Mirror services
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsMirror",
    "MirrorError",
    "NullMirror",
    "RemoteMirrorInterface",
    "SyncCoordinator",
    # Storage services
    "BackupEnvelope",
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
    "SnapshotCorruptError",
    "SnapshotStorageInterface",
    "StorageError",
    "dump_backup",
    "load_backup",
]
