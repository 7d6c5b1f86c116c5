"""Background polling of the remote store."""

import asyncio
import contextlib
import logging
from typing import Optional

from .broadcaster import ChangeBroadcaster
from .context import SyncContext
from .core import Snapshot
from .diffing import changed, compute_changes
from .snapshot import SnapshotAssembler

logger = logging.getLogger(__name__)


class PollScheduler:
    """Periodically resnapshots the remote tree and broadcasts changes.

    Starts at most once per context (idempotent start). A failed cycle is
    logged and skipped; the loop keeps its schedule and the cache is left
    untouched. There is no way back to idle short of process shutdown.
    """

    def __init__(
        self,
        assembler: SnapshotAssembler,
        broadcaster: ChangeBroadcaster,
        context: SyncContext,
        interval: float = 10.0,
    ):
        self.assembler = assembler
        self.broadcaster = broadcaster
        self.context = context
        self.interval = interval
        self._task: Optional["asyncio.Task[None]"] = None

    @property
    def running(self) -> bool:
        return self.context.poller_started

    def start(self) -> bool:
        """Start the recurring cycle if it is not running yet.

        Must be called from within a running event loop.

        Returns:
            True if this call started the poller
        """
        if not self.context.mark_poller_started():
            return False
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name="repo-mirror-poller")
        logger.info("Polling remote store every %.1fs", self.interval)
        return True

    async def observe(self, snapshot: Snapshot) -> bool:
        """Replace the cache and broadcast if snapshot differs from it.

        Returns:
            True if the snapshot was a change
        """
        previous = self.context.fingerprints
        if not changed(previous, snapshot.fingerprints):
            return False

        self.context.replace_snapshot(snapshot)
        logger.info("Remote tree changed: %s", compute_changes(previous, snapshot.fingerprints).summary)
        await self.broadcaster.broadcast(snapshot)
        return True

    async def poll_once(self) -> bool:
        """Run one poll cycle."""
        snapshot = await self.assembler.assemble()
        return await self.observe(snapshot)

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception as e:
                logger.warning("Poll cycle failed, retrying in %.1fs: %s", self.interval, e)
            await asyncio.sleep(self.interval)

    async def aclose(self) -> None:
        """Cancel the background task at process shutdown."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
