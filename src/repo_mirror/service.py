"""Mirror service - wires the sync engine around one remote store."""

import logging
from typing import Any, Dict, Optional

from .broadcaster import ChangeBroadcaster, QueueSubscriber
from .config import MirrorConfig
from .constants import MIRROR_VERSION
from .context import SyncContext
from .core import MutationResult, Snapshot
from .mutations import MutationCoordinator
from .reader import RemoteTreeReader
from .remote import make_remote_store
from .remote.base import RemoteStore
from .scheduler import PollScheduler
from .snapshot import SnapshotAssembler

logger = logging.getLogger(__name__)


class MirrorService:
    """
    Single entry point for reads, subscriptions, and mutations.

    One service instance owns one SyncContext; the HTTP app and the CLI
    both go through it so that every component shares the same cache and
    subscriber set.
    """

    def __init__(self, config: MirrorConfig, store: Optional[RemoteStore] = None):
        """Initialize service.

        Args:
            config: Mirror configuration
            store: Remote store override (defaults to the configured provider)
        """
        self.config = config
        self.store = store if store is not None else make_remote_store(config)
        self.context = SyncContext()

        reader = RemoteTreeReader(
            self.store,
            structured_extensions=config.structured_extensions,
            max_concurrency=config.max_concurrency,
        )
        self.assembler = SnapshotAssembler(reader)
        self.broadcaster = ChangeBroadcaster(self.context)
        self.scheduler = PollScheduler(
            self.assembler, self.broadcaster, self.context, interval=config.poll_interval
        )
        self.mutations = MutationCoordinator(
            self.store, self.assembler, self.broadcaster, self.context
        )

    async def read_snapshot(self) -> Snapshot:
        """Assemble a fresh snapshot.

        If it differs from the cache, the cache is refreshed and the change
        is broadcast, exactly as a poll cycle would.
        """
        snapshot = await self.assembler.assemble()
        await self.scheduler.observe(snapshot)
        return snapshot

    async def subscribe(self) -> QueueSubscriber:
        """Open a push channel; starts the poller on first use."""
        self.scheduler.start()
        subscriber = QueueSubscriber(maxsize=self.config.subscriber_queue_size)
        await self.broadcaster.register(subscriber)
        logger.info("Subscriber connected (%d active)", self.broadcaster.subscriber_count)
        return subscriber

    def unsubscribe(self, subscriber: QueueSubscriber) -> None:
        subscriber.close()
        self.broadcaster.unregister(subscriber)
        logger.info("Subscriber disconnected (%d active)", self.broadcaster.subscriber_count)

    async def save(self, path: str, content: Any, message: Optional[str] = None) -> MutationResult:
        return await self.mutations.save(path, content, message)

    async def remove(self, path: str, message: Optional[str] = None) -> MutationResult:
        return await self.mutations.remove(path, message)

    async def move(self, old_path: str, new_path: str, message: Optional[str] = None) -> MutationResult:
        return await self.mutations.move(old_path, new_path, message)

    def status(self) -> Dict[str, Any]:
        """Health summary for monitoring."""
        snapshot = self.context.snapshot
        return {
            "status": "healthy",
            "version": MIRROR_VERSION,
            "provider": self.config.provider,
            "repository": self.config.repository if self.config.provider == "github" else None,
            "subscribers": self.broadcaster.subscriber_count,
            "poller_running": self.scheduler.running,
            "cached_paths": len(snapshot.fingerprints) if snapshot else 0,
        }

    async def aclose(self) -> None:
        """Stop the poller and release the remote store."""
        await self.scheduler.aclose()
        await self.store.aclose()
