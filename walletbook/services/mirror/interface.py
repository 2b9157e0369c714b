"""
Abstract Remote Mirror Interface

The remote mirror is a best-effort copy of the snapshot kept somewhere
the user can see it (a spreadsheet, a hosted database). The local
snapshot is always the source of truth: a mirror never feeds data back
into the ledger, and a failed push never blocks a command.
"""

from abc import ABC, abstractmethod

from walletbook.models.ledger import LedgerSnapshot


class RemoteMirrorInterface(ABC):
    """
    Abstract interface for remote snapshot mirrors.

    All methods are async so a slow network call never holds up the
    event loop the sync coordinator runs on.
    """

    @abstractmethod
    async def push_snapshot(self, snapshot: LedgerSnapshot) -> bool:
        """
        Push a full copy of the snapshot to the remote side.

        Args:
            snapshot: The snapshot to mirror

        Returns:
            True if the remote copy was updated

        Raises:
            MirrorError: If the push failed
        """
        pass


class NullMirror(RemoteMirrorInterface):
    """Mirror that accepts every push and sends nothing anywhere."""

    async def push_snapshot(self, snapshot: LedgerSnapshot) -> bool:
        return True


class MirrorError(Exception):
    """Base exception for remote mirror operations."""
    pass


class ConnectionError(MirrorError):
    """Failed to connect to the remote backend."""
    pass
