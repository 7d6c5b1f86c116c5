"""Factory for creating remote content store instances."""

from ..config import MirrorConfig
from .base import RemoteStore
from .github import GitHubContentStore
from .memory import InMemoryContentStore


def make_remote_store(config: MirrorConfig) -> RemoteStore:
    """
    Create remote store instance based on configuration.

    Args:
        config: Mirror configuration

    Returns:
        RemoteStore for the configured provider

    Raises:
        NotImplementedError: If provider is not supported. MirrorConfig
            already rejects unknown providers, so this only triggers for a
            config built without validation (e.g. model_construct)
    """
    if config.provider == "github":
        return GitHubContentStore.from_config(config)

    elif config.provider == "memory":
        return InMemoryContentStore()

    else:
        raise NotImplementedError(f"Provider {config.provider} not supported")
