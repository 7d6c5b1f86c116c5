"""Recursive reader that materializes the remote tree."""

import asyncio
import logging
from typing import Iterable, List, Union

from .constants import ROOT_PATH, STRUCTURED_EXTENSIONS
from .core import DirectoryNode, EntryKind, FileNode, RemoteEntry
from .decoding import decode_content
from .errors import RemoteError
from .remote.base import RemoteStore

logger = logging.getLogger(__name__)


class RemoteTreeReader:
    """Reads a directory and everything beneath it from a remote store.

    Sibling entries are fetched concurrently and joined before the parent
    node is built, so children always follow the remote listing order no
    matter which fetch finishes first. A failed directory listing aborts
    the read; a failed file fetch is recorded on that file's node only.
    """

    def __init__(
        self,
        store: RemoteStore,
        structured_extensions: Iterable[str] = STRUCTURED_EXTENSIONS,
        max_concurrency: int = 8,
    ):
        """Initialize reader.

        Args:
            store: Remote content store
            structured_extensions: File extensions parsed into values
            max_concurrency: Upper bound on in-flight remote calls
        """
        self.store = store
        self.structured_extensions = tuple(structured_extensions)
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def read(self, path: str = ROOT_PATH) -> DirectoryNode:
        """Read the directory at path into a DirectoryNode.

        Raises:
            RemoteListError: If any directory in the subtree cannot be listed
        """
        children = await self._read_children(path)
        return DirectoryNode(
            name=path.rsplit("/", 1)[-1],
            path=path,
            children=children,
        )

    async def _read_children(self, path: str) -> List[Union[FileNode, DirectoryNode]]:
        async with self._semaphore:
            entries = await self.store.list(path)
        results = await asyncio.gather(*(self._read_entry(entry) for entry in entries))
        return list(results)

    async def _read_entry(self, entry: RemoteEntry) -> Union[FileNode, DirectoryNode]:
        if entry.kind == EntryKind.DIRECTORY:
            return DirectoryNode(
                name=entry.name,
                path=entry.path,
                content_identity=entry.version_token,
                children=await self._read_children(entry.path),
            )
        return await self._read_file(entry)

    async def _read_file(self, entry: RemoteEntry) -> FileNode:
        try:
            async with self._semaphore:
                raw = await self.store.fetch_content(entry.download_url or entry.path)
        except RemoteError as e:
            logger.warning("Content unavailable for %s: %s", entry.path, e)
            return FileNode(
                name=entry.name,
                path=entry.path,
                content_identity=entry.version_token,
                size=entry.size,
                source_url=entry.download_url,
                error=str(e) or type(e).__name__,
            )

        return FileNode(
            name=entry.name,
            path=entry.path,
            content_identity=entry.version_token,
            content=decode_content(entry.name, raw, self.structured_extensions),
            size=entry.size if entry.size is not None else len(raw),
            source_url=entry.download_url,
        )
