"""Custom exceptions for repo-mirror.

This module defines typed exceptions so that the HTTP layer and CLI can
turn failures into precise client-facing responses.
"""

from typing import Optional


class MirrorError(RuntimeError):
    """Base class for all repo-mirror errors."""
    pass


# Remote store errors
class RemoteError(MirrorError):
    """Base class for remote content store communication errors."""
    pass


class NetworkError(RemoteError):
    """Network connectivity issue with the remote store."""
    pass


class AuthError(RemoteError):
    """Authentication or authorization failed (401/403)."""
    pass


class RemoteListError(RemoteError):
    """Directory listing unavailable for a path."""

    def __init__(self, path: str, detail: str = ""):
        self.path = path
        self.detail = detail
        message = f"Cannot list directory '{path or '/'}'"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class ContentFetchError(RemoteError):
    """Content of a single file could not be retrieved."""

    def __init__(self, path: str, detail: str = ""):
        self.path = path
        self.detail = detail
        message = f"Cannot fetch content of '{path}'"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class NotFoundError(RemoteError):
    """Mutation target does not exist in the remote store (404)."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"File not found: {path}")


class RemoteWriteConflict(RemoteError):
    """Version token rejected by the remote store (concurrent writer)."""

    def __init__(self, path: str, expected: Optional[str], detail: str = ""):
        self.path = path
        self.expected = expected
        expected_display = expected[:12] + "..." if expected else "(new file)"
        message = (
            f"Write conflict on '{path}': remote version no longer matches "
            f"{expected_display}. Re-read the file and resubmit."
        )
        if detail:
            message += f" ({detail})"
        super().__init__(message)


# Content errors
class MalformedContent(MirrorError):
    """Structured content (JSON/YAML) failed to parse."""

    def __init__(self, path: str, detail: str = ""):
        self.path = path
        super().__init__(f"Malformed structured content in '{path}': {detail}")


# Request errors
class InvalidRequestError(MirrorError):
    """Client request is missing required fields or is otherwise invalid."""
    pass


class InvalidPathError(InvalidRequestError):
    """Mutation path is empty, absolute, or escapes the repository root."""
    pass


# Subscriber errors
class SubscriberClosedError(MirrorError):
    """Write to a subscriber channel that is closed or not keeping up."""
    pass


# Configuration errors
class ConfigError(MirrorError):
    """Configuration file or environment is invalid."""
    pass
