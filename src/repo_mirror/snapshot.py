"""Snapshot assembly from a full remote read."""

import logging

from .constants import ROOT_PATH
from .core import Snapshot
from .fingerprints import build_fingerprint_map
from .reader import RemoteTreeReader

logger = logging.getLogger(__name__)


class SnapshotAssembler:
    """
    Builds {tree, fingerprints} snapshots of the whole repository.

    This is the expensive operation - every call re-reads the full tree
    from the remote store. There is no caching here; callers decide how
    often to assemble.
    """

    def __init__(self, reader: RemoteTreeReader, root: str = ROOT_PATH):
        self.reader = reader
        self.root = root

    async def assemble(self) -> Snapshot:
        """Read the remote tree and fingerprint it."""
        tree = await self.reader.read(self.root)
        fingerprints = build_fingerprint_map(tree)
        logger.debug("Assembled snapshot with %d paths", len(fingerprints))
        return Snapshot(tree=tree, fingerprints=fingerprints)
