"""Synchronization context owning the process-wide mirror state."""

from typing import TYPE_CHECKING, Dict, Optional, Set

from .core import Snapshot

if TYPE_CHECKING:
    from .broadcaster import Subscriber


class SyncContext:
    """Holds the state shared by the broadcaster, scheduler, and coordinator.

    The cached snapshot, subscriber set, last broadcast payload, and
    poller-started flag live here for the lifetime of the process. They
    start empty and are rebuilt lazily from the remote store.
    """

    def __init__(self):
        self._snapshot: Optional[Snapshot] = None
        self._poller_started = False
        self.subscribers: Set["Subscriber"] = set()
        self.last_payload: Optional[str] = None

    @property
    def snapshot(self) -> Optional[Snapshot]:
        """The last known good snapshot, if any."""
        return self._snapshot

    @property
    def fingerprints(self) -> Optional[Dict[str, str]]:
        """Fingerprints of the cached snapshot (None before the first one)."""
        return self._snapshot.fingerprints if self._snapshot else None

    def replace_snapshot(self, snapshot: Snapshot) -> Optional[Snapshot]:
        """Replace the cached snapshot; last writer wins. Returns the old one."""
        previous = self._snapshot
        self._snapshot = snapshot
        return previous

    @property
    def poller_started(self) -> bool:
        return self._poller_started

    def mark_poller_started(self) -> bool:
        """Flip the poller-started flag.

        Returns:
            True if this call started it, False if it was already running
        """
        if self._poller_started:
            return False
        self._poller_started = True
        return True
