"""HTTP API for repo-mirror."""

from .app import create_app

__all__ = ["create_app"]
