"""
Remote Mirror Sync Coordinator

Every committed command asks the coordinator to mirror the new snapshot.
The request is fire-and-forget:

- Offline: nothing happens.
- Online inside a running event loop: a task waits the configured
  latency, pushes the snapshot and stamps last_synced on success.
- Online with no running loop (plain scripts, sync tests): the latest
  snapshot is kept pending until someone awaits flush().

Failures are logged and never reach the ledger. There is no retry for
the sync itself; the next command simply requests another one.
"""

import asyncio
from datetime import datetime
from typing import Callable, Optional

from walletbook.models.ledger import LedgerSnapshot
from walletbook.observability import get_logger
from walletbook.services.mirror.interface import NullMirror, RemoteMirrorInterface

logger = get_logger("walletbook.sync")


class SyncCoordinator:
    """Owns the online flag and the sync status shown to the user."""

    def __init__(
        self,
        mirror: Optional[RemoteMirrorInterface] = None,
        latency_seconds: float = 1.2,
        is_online: bool = True,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._mirror = mirror or NullMirror()
        self._latency = latency_seconds
        self._is_online = is_online
        self._clock = clock

        self._in_flight = 0
        self._last_synced: Optional[datetime] = None
        self._pending: Optional[LedgerSnapshot] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def is_online(self) -> bool:
        return self._is_online

    @property
    def is_syncing(self) -> bool:
        """True while any sync is in flight."""
        return self._in_flight > 0

    @property
    def last_synced(self) -> Optional[datetime]:
        return self._last_synced

    @property
    def pending(self) -> Optional[LedgerSnapshot]:
        """Snapshot waiting for flush(), if any."""
        return self._pending

    def set_online(self, online: bool) -> None:
        self._is_online = online
        logger.info("online_status_changed", is_online=online)

    def request_sync(self, snapshot: LedgerSnapshot) -> Optional[asyncio.Task]:
        """
        Ask for the snapshot to be mirrored without waiting for it.

        Returns:
            The scheduled task, or None if offline or no loop is running
        """
        if not self._is_online:
            logger.debug("sync_skipped_offline")
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._pending = snapshot
            logger.debug("sync_deferred_no_loop")
            return None

        self._pending = None
        task = loop.create_task(self.sync(snapshot))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def sync(self, snapshot: LedgerSnapshot) -> bool:
        """
        Mirror a snapshot now.

        Returns:
            True if the mirror accepted the snapshot
        """
        if not self._is_online:
            return False

        self._in_flight += 1
        try:
            await asyncio.sleep(self._latency)
            pushed = await self._mirror.push_snapshot(snapshot)
        except Exception as e:
            logger.warning(
                "sync_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        finally:
            self._in_flight -= 1

        if pushed:
            self._last_synced = self._clock()
            logger.info(
                "sync_completed",
                last_synced=self._last_synced.isoformat(),
                transaction_count=len(snapshot.transactions),
            )
        return pushed

    async def flush(self) -> bool:
        """
        Push any pending snapshot and wait for in-flight syncs.

        Returns:
            True if every sync that ran succeeded
        """
        results = []
        if self._pending is not None:
            snapshot, self._pending = self._pending, None
            results.append(await self.sync(snapshot))
        if self._tasks:
            results.extend(await asyncio.gather(*list(self._tasks)))
        return all(results)
