"""
Abstract Snapshot Storage Interface

DESIGN DECISION: We define an abstract interface for persistence.
This allows us to:
1. Swap the local JSON file for a database later
2. Use in-memory storage for testing
3. Keep the ledger decoupled from how bytes reach the disk

The interface is intentionally tiny. The store computes a new snapshot
first (pure) and only then asks storage to persist it (effectful).
"""

from abc import ABC, abstractmethod
from typing import Optional

from walletbook.models.ledger import LedgerSnapshot


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for snapshot persistence.

    Any storage implementation (JSON file, SQLite, etc.)
    must implement these methods.
    """

    @abstractmethod
    def load_snapshot(self) -> Optional[LedgerSnapshot]:
        """
        Load the last persisted snapshot.

        Returns:
            The snapshot, or None if nothing was persisted yet

        Raises:
            SnapshotCorruptError: If persisted data cannot be parsed
            StorageError: If reading fails
        """
        pass

    @abstractmethod
    def save_snapshot(self, snapshot: LedgerSnapshot) -> None:
        """
        Persist a snapshot, replacing the previous one.

        Args:
            snapshot: The snapshot to persist

        Raises:
            StorageError: If writing fails
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove any persisted snapshot (used by a full reset)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class SnapshotCorruptError(StorageError):
    """Persisted data exists but is not a valid snapshot."""
    pass
