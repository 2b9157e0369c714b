"""
Remote Mirror Package

The abstract mirror interface, the Google Sheets mirror and the
fire-and-forget sync coordinator.
"""

from walletbook.services.mirror.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsMirror,
)
from walletbook.services.mirror.interface import (
    ConnectionError,
    MirrorError,
    NullMirror,
    RemoteMirrorInterface,
)
from walletbook.services.mirror.sync import SyncCoordinator

__all__ = [
    # Interfaces
    "RemoteMirrorInterface",
    "NullMirror",
    # Exceptions
    "ConnectionError",
    "MirrorError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsMirror",
    "SyncCoordinator",
]
