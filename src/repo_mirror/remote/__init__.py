"""Remote content store implementations."""

from .base import RemoteStore
from .factory import make_remote_store
from .github import GitHubContentStore
from .memory import InMemoryContentStore

__all__ = ["RemoteStore", "make_remote_store", "GitHubContentStore", "InMemoryContentStore"]
