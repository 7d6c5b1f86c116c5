"""repo-mirror: keep an in-memory mirror of a remote repository in sync."""

from .constants import MIRROR_VERSION as __version__

__all__ = ["__version__"]
