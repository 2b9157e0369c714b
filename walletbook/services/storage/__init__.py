"""
Storage Services Package

Provides the abstract snapshot interface and concrete implementations.
The local JSON file is the default backend, but the interface is swappable.
"""

from walletbook.services.storage.interface import (
    SnapshotCorruptError,
    SnapshotStorageInterface,
    StorageError,
)
from walletbook.services.storage.json_file import (
    BackupEnvelope,
    InMemorySnapshotStorage,
    JsonFileSnapshotStorage,
    dump_backup,
    load_backup,
)

__all__ = [
    # Interfaces
    "SnapshotStorageInterface",
    # Exceptions
    "SnapshotCorruptError",
    "StorageError",
    # Implementations
    "BackupEnvelope",
    "InMemorySnapshotStorage",
    "JsonFileSnapshotStorage",
    "dump_backup",
    "load_backup",
]
