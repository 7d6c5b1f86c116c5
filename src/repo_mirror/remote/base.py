"""Base protocol for remote content store implementations."""

from typing import List, Optional, Protocol

from ..core import RemoteEntry, RemoteWriteResult


class RemoteStore(Protocol):
    """
    Protocol for the remote repository content store.

    All operations are coroutines; every call is a suspension point.
    Version tokens implement optimistic concurrency: a write or delete
    only succeeds when the token matches the store's current record.
    """

    async def list(self, path: str) -> List[RemoteEntry]:
        """
        List the immediate entries of a directory.

        Args:
            path: Directory path relative to the repository root ("" = root)

        Returns:
            Entries in the order the store reports them

        Raises:
            RemoteListError: If path is not a listable directory
        """
        ...

    async def fetch_content(self, locator: str) -> bytes:
        """
        Fetch the raw bytes of one file.

        Args:
            locator: Repository path or a download URL from a listing

        Raises:
            ContentFetchError: If the content cannot be retrieved
        """
        ...

    async def get_version_token(self, path: str) -> Optional[str]:
        """
        Get the current version token of a file.

        Returns:
            Token, or None if no file exists at path
        """
        ...

    async def write(
        self, path: str, content: bytes, version_token: Optional[str], message: str
    ) -> RemoteWriteResult:
        """
        Create or update a file.

        Args:
            path: File path
            content: New bytes
            version_token: Current token (None when creating)
            message: Commit message

        Raises:
            RemoteWriteConflict: If version_token no longer matches
        """
        ...

    async def delete(self, path: str, version_token: str, message: str) -> RemoteWriteResult:
        """
        Delete a file.

        Raises:
            NotFoundError: If the file does not exist
            RemoteWriteConflict: If version_token no longer matches
        """
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
