"""In-memory remote content store for tests and local demos."""

import asyncio
import hashlib
from typing import Dict, List, Mapping, Optional, Union

from ..core import EntryKind, RemoteEntry, RemoteWriteResult
from ..errors import ContentFetchError, NotFoundError, RemoteListError, RemoteWriteConflict
from ..hashing import compute_blob_token, compute_composite_digest


class InMemoryContentStore:
    """
    Dict-backed store with the same optimistic-concurrency rules as GitHub.

    Directories are implicit: they exist while some file lives beneath them.
    Listings report entries in insertion order of their first file.
    """

    def __init__(self, files: Optional[Mapping[str, Union[str, bytes]]] = None):
        """
        Initialize store.

        Args:
            files: Initial path -> content mapping
        """
        self._files: Dict[str, bytes] = {}
        self._commits = 0
        for path, content in (files or {}).items():
            self._files[path.strip("/")] = content.encode("utf-8") if isinstance(content, str) else content

    @property
    def files(self) -> Dict[str, bytes]:
        """Copy of the current path -> bytes mapping."""
        return dict(self._files)

    def _is_directory(self, path: str) -> bool:
        prefix = f"{path}/" if path else ""
        return any(p.startswith(prefix) for p in self._files)

    def _tree_token(self, path: str) -> str:
        """Directory token derived from its immediate entries."""
        entries = self._entries(path)
        return compute_composite_digest((e.name, e.version_token or "") for e in entries)

    def _entries(self, path: str) -> List[RemoteEntry]:
        prefix = f"{path}/" if path else ""
        entries: Dict[str, RemoteEntry] = {}
        for file_path, content in self._files.items():
            if not file_path.startswith(prefix):
                continue
            name, sep, _ = file_path[len(prefix):].partition("/")
            if name in entries:
                continue
            child = prefix + name
            if sep:
                entries[name] = RemoteEntry(
                    name=name,
                    path=child,
                    kind=EntryKind.DIRECTORY,
                    version_token=self._tree_token(child),
                )
            else:
                entries[name] = RemoteEntry(
                    name=name,
                    path=child,
                    kind=EntryKind.FILE,
                    version_token=compute_blob_token(content),
                    size=len(content),
                )
        return list(entries.values())

    def _next_commit(self) -> str:
        self._commits += 1
        return hashlib.sha1(f"commit {self._commits}".encode("utf-8")).hexdigest()

    async def list(self, path: str) -> List[RemoteEntry]:
        await asyncio.sleep(0)
        path = path.strip("/")
        if path in self._files:
            raise RemoteListError(path, "not a directory")
        if path and not self._is_directory(path):
            raise RemoteListError(path, "not found")
        return self._entries(path)

    async def fetch_content(self, locator: str) -> bytes:
        await asyncio.sleep(0)
        path = locator.strip("/")
        if path not in self._files:
            raise ContentFetchError(path, "not found")
        return self._files[path]

    async def get_version_token(self, path: str) -> Optional[str]:
        await asyncio.sleep(0)
        content = self._files.get(path.strip("/"))
        return compute_blob_token(content) if content is not None else None

    async def write(
        self, path: str, content: bytes, version_token: Optional[str], message: str
    ) -> RemoteWriteResult:
        await asyncio.sleep(0)
        path = path.strip("/")
        if self._is_directory(path):
            raise RemoteWriteConflict(path, version_token, "path is a directory")
        parent = path.rpartition("/")[0]
        while parent:
            if parent in self._files:
                raise RemoteWriteConflict(path, version_token, f"'{parent}' is a file")
            parent = parent.rpartition("/")[0]

        current = self._files.get(path)
        current_token = compute_blob_token(current) if current is not None else None
        if version_token != current_token:
            raise RemoteWriteConflict(path, version_token)

        self._files[path] = content
        return RemoteWriteResult(
            path=path,
            version_token=compute_blob_token(content),
            commit=self._next_commit(),
        )

    async def delete(self, path: str, version_token: str, message: str) -> RemoteWriteResult:
        await asyncio.sleep(0)
        path = path.strip("/")
        current = self._files.get(path)
        if current is None:
            raise NotFoundError(path)
        if version_token != compute_blob_token(current):
            raise RemoteWriteConflict(path, version_token)
        del self._files[path]
        return RemoteWriteResult(path=path, commit=self._next_commit())

    async def aclose(self) -> None:
        return None
