"""Create/update/delete/move against the remote store.

Every successful mutation immediately resnapshots the tree, replaces the
cached snapshot, and broadcasts it, without consulting the differ: the
mutation is known to have changed the tree, and subscribers must not have
to wait for the next poll.

Writes are last-writer-wins apart from the version token precondition.
A token mismatch surfaces as RemoteWriteConflict and is never retried here.
"""

import logging
from pathlib import PurePosixPath
from typing import Any, Optional, Tuple

from .broadcaster import ChangeBroadcaster
from .constants import DEFAULT_DELETE_MESSAGE, DEFAULT_SAVE_MESSAGE
from .context import SyncContext
from .core import MutationAction, MutationResult, RemoteWriteResult
from .decoding import encode_content
from .errors import InvalidPathError, MirrorError, NotFoundError
from .remote.base import RemoteStore
from .snapshot import SnapshotAssembler

logger = logging.getLogger(__name__)


def validate_path(path: Optional[str]) -> str:
    """Validate a mutation target is a safe repository-relative path.

    Args:
        path: Path from the request

    Returns:
        Path with surrounding whitespace removed

    Raises:
        InvalidPathError: If path is empty, absolute, or contains '..'
    """
    if not path or not path.strip():
        raise InvalidPathError("Unsafe path: empty path")
    path = path.strip()

    # Forbid absolute or parent traversal, both separators
    if (path.startswith(("/", "\\")) or
            ".." in PurePosixPath(path).parts or
            ".." in path.split("\\")):
        raise InvalidPathError(f"Unsafe path: {path}")
    if path.endswith("/"):
        raise InvalidPathError(f"Path names a directory, not a file: {path}")
    return path


class MutationCoordinator:
    """Applies mutations to the remote store and publishes the result."""

    def __init__(
        self,
        store: RemoteStore,
        assembler: SnapshotAssembler,
        broadcaster: ChangeBroadcaster,
        context: SyncContext,
    ):
        self.store = store
        self.assembler = assembler
        self.broadcaster = broadcaster
        self.context = context

    async def save(self, path: str, content: Any, message: Optional[str] = None) -> MutationResult:
        """Create or update a file.

        Raises:
            InvalidPathError: If path is unsafe
            RemoteWriteConflict: If another writer changed the file first
        """
        path = validate_path(path)
        token, result = await self._write(path, encode_content(content), message or DEFAULT_SAVE_MESSAGE)
        synced = await self._resync()
        return MutationResult(
            action=MutationAction.SAVE,
            path=path,
            version_token=result.version_token,
            commit=result.commit,
            created=token is None,
            synced=synced,
        )

    async def remove(self, path: str, message: Optional[str] = None) -> MutationResult:
        """Delete an existing file.

        Raises:
            NotFoundError: If no file exists at path
            RemoteWriteConflict: If the file changed between lookup and delete
        """
        path = validate_path(path)
        result = await self._delete(path, message or DEFAULT_DELETE_MESSAGE)
        synced = await self._resync()
        return MutationResult(
            action=MutationAction.REMOVE,
            path=path,
            commit=result.commit,
            synced=synced,
        )

    async def move(self, old_path: str, new_path: str, message: Optional[str] = None) -> MutationResult:
        """Move a file by writing it at new_path, then deleting old_path.

        Not atomic: if the delete fails, the content exists at both paths
        until a retried move or remove succeeds. Subscribers still see the
        intermediate state.

        Raises:
            NotFoundError: If old_path does not exist (nothing is written)
        """
        old_path = validate_path(old_path)
        new_path = validate_path(new_path)
        if old_path == new_path:
            raise InvalidPathError(f"Source and destination are the same: {old_path}")

        if await self.store.get_version_token(old_path) is None:
            raise NotFoundError(old_path)
        content = await self.store.fetch_content(old_path)
        message = message or f"move {old_path} -> {new_path}"

        _, written = await self._write(new_path, content, message)
        try:
            removed = await self._delete(old_path, message)
        except MirrorError:
            logger.error("Move %s -> %s incomplete: content now exists at both paths", old_path, new_path)
            await self._resync()
            raise

        synced = await self._resync()
        return MutationResult(
            action=MutationAction.MOVE,
            path=old_path,
            new_path=new_path,
            version_token=written.version_token,
            commit=removed.commit,
            synced=synced,
        )

    async def _write(self, path: str, content: bytes, message: str) -> Tuple[Optional[str], RemoteWriteResult]:
        token = await self.store.get_version_token(path)
        result = await self.store.write(path, content, token, message)
        logger.info("%s %s (%d bytes)", "Created" if token is None else "Updated", path, len(content))
        return token, result

    async def _delete(self, path: str, message: str) -> RemoteWriteResult:
        token = await self.store.get_version_token(path)
        if token is None:
            raise NotFoundError(path)
        result = await self.store.delete(path, token, message)
        logger.info("Deleted %s", path)
        return result

    async def _resync(self) -> bool:
        """Resnapshot, replace the cache, and broadcast unconditionally.

        Returns:
            False if the snapshot could not be assembled; the next poll
            cycle will pick the change up instead
        """
        try:
            snapshot = await self.assembler.assemble()
        except MirrorError as e:
            logger.warning("Mutation applied but resnapshot failed: %s", e)
            return False
        self.context.replace_snapshot(snapshot)
        await self.broadcaster.broadcast(snapshot)
        return True
