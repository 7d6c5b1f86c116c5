"""Shared test fixtures and utilities."""

import pytest

from repo_mirror.config import MirrorConfig
from repo_mirror.service import MirrorService

from tests.fixtures.stores import RecordingStore


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer environment variables out of config loading."""
    for var in (
        "REPO_MIRROR_OWNER",
        "REPO_MIRROR_REPO",
        "REPO_MIRROR_BRANCH",
        "REPO_MIRROR_PROVIDER",
        "REPO_MIRROR_POLL_INTERVAL",
        "REPO_MIRROR_API_URL",
        "GITHUB_TOKEN",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def store():
    """Sample repository in a recording in-memory store."""
    return RecordingStore()


@pytest.fixture
def config():
    """Memory-provider config with a fast poll interval."""
    return MirrorConfig(provider="memory", poll_interval=0.01)


@pytest.fixture
def service(config, store):
    """MirrorService over the sample store."""
    return MirrorService(config, store=store)
