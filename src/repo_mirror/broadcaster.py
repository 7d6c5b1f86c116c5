"""Fan-out of snapshots to live subscribers."""

import asyncio
import logging
from typing import Optional, Protocol

from .context import SyncContext
from .core import Snapshot
from .errors import SubscriberClosedError

logger = logging.getLogger(__name__)


class Subscriber(Protocol):
    """An output channel that receives serialized snapshots.

    Channels may also define a `close()` method; the broadcaster calls it
    when it drops the channel after a failed write.
    """

    async def send(self, payload: str) -> None:
        """Deliver one payload; raising marks the channel as failed."""
        ...


class QueueSubscriber:
    """Subscriber backed by a bounded asyncio queue.

    The streaming endpoint drains the queue with `receive()`. A consumer
    that falls behind by more than `maxsize` payloads counts as a failed
    write and is pruned by the broadcaster, which closes it: payloads
    already queued are still delivered, then `receive()` returns None.
    """

    def __init__(self, maxsize: int = 16):
        self._queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue(maxsize + 1)
        self._maxsize = maxsize
        self.closed = False

    async def send(self, payload: str) -> None:
        if self.closed:
            raise SubscriberClosedError("subscriber is closed")
        if self._queue.qsize() >= self._maxsize:
            raise SubscriberClosedError("subscriber is not keeping up")
        self._queue.put_nowait(payload)

    async def receive(self) -> Optional[str]:
        """Wait for the next payload; None once the subscriber is closed."""
        return await self._queue.get()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        """Close the channel; `receive()` returns None after queued payloads."""
        if self.closed:
            return
        self.closed = True
        # send() never fills the last slot, so the end marker always fits
        self._queue.put_nowait(None)


class ChangeBroadcaster:
    """Pushes snapshots to every registered subscriber.

    Broadcasting a snapshot that serializes identically to the last one
    sent is a no-op. Subscribers whose write fails are removed during the
    same broadcast; there is no separate liveness check.
    """

    def __init__(self, context: SyncContext):
        self.context = context

    @property
    def subscriber_count(self) -> int:
        return len(self.context.subscribers)

    async def register(self, subscriber: Subscriber) -> None:
        """Add a subscriber and send it the cached snapshot, if any."""
        self.context.subscribers.add(subscriber)
        snapshot = self.context.snapshot
        if snapshot is None:
            return
        try:
            await subscriber.send(snapshot.to_payload())
        except Exception as e:
            logger.info("Dropping subscriber that failed initial delivery: %s", e)
            self._drop(subscriber)

    def unregister(self, subscriber: Subscriber) -> None:
        self.context.subscribers.discard(subscriber)

    def _drop(self, subscriber: Subscriber) -> None:
        """Unregister a failed channel and close it so its reader stops waiting."""
        self.unregister(subscriber)
        close = getattr(subscriber, "close", None)
        if close is not None:
            close()

    async def broadcast(self, snapshot: Snapshot) -> int:
        """Send a snapshot to all subscribers unless it was already sent.

        Returns:
            Number of subscribers that received the payload
        """
        payload = snapshot.to_payload()
        if payload == self.context.last_payload:
            logger.debug("Snapshot unchanged since last broadcast; skipping")
            return 0
        self.context.last_payload = payload

        subscribers = list(self.context.subscribers)
        results = await asyncio.gather(
            *(subscriber.send(payload) for subscriber in subscribers),
            return_exceptions=True,
        )

        delivered = 0
        for subscriber, result in zip(subscribers, results):
            if isinstance(result, BaseException):
                logger.info("Dropping subscriber after failed write: %s", result)
                self._drop(subscriber)
            else:
                delivered += 1
        logger.debug("Broadcast snapshot to %d subscriber(s)", delivered)
        return delivered
