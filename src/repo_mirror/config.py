"""Mirror configuration helpers."""

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from .constants import (
    CONFIG_FILE,
    DEFAULT_API_URL,
    DEFAULT_USER_AGENT,
    ENV_API_URL,
    ENV_BRANCH,
    ENV_OWNER,
    ENV_POLL_INTERVAL,
    ENV_PROVIDER,
    ENV_REPO,
    ENV_TOKEN,
    STRUCTURED_EXTENSIONS,
)
from .errors import ConfigError


class MirrorConfig(BaseModel):
    """Configuration for one mirrored repository (stored in repo-mirror.yaml)."""

    owner: str = ""
    repo: str = ""
    branch: Optional[str] = None  # None = repository default branch
    token: Optional[str] = Field(default=None, repr=False)
    api_url: str = DEFAULT_API_URL
    provider: str = "github"  # "github" | "memory"

    poll_interval: float = Field(default=10.0, gt=0)
    max_concurrency: int = Field(default=8, ge=1)
    request_timeout: float = Field(default=30.0, gt=0)
    subscriber_queue_size: int = Field(default=16, ge=1)
    structured_extensions: List[str] = Field(
        default_factory=lambda: list(STRUCTURED_EXTENSIONS)
    )
    user_agent: str = DEFAULT_USER_AGENT

    @model_validator(mode="after")
    def validate_provider(self):
        """GitHub needs a repository coordinate; memory needs nothing."""
        if self.provider not in ("github", "memory"):
            raise ValueError(f"Unknown provider '{self.provider}' (expected github or memory)")
        if self.provider == "github" and not (self.owner and self.repo):
            raise ValueError("owner and repo are required for the github provider")
        return self

    @property
    def repository(self) -> str:
        """Repository in "owner/repo" format."""
        return f"{self.owner}/{self.repo}"


_ENV_FIELDS = {
    ENV_OWNER: "owner",
    ENV_REPO: "repo",
    ENV_BRANCH: "branch",
    ENV_PROVIDER: "provider",
    ENV_POLL_INTERVAL: "poll_interval",
    ENV_API_URL: "api_url",
    ENV_TOKEN: "token",
}


def load_config(path: Optional[Path] = None) -> MirrorConfig:
    """Load configuration from YAML, then apply environment overrides.

    Args:
        path: Explicit config file. When None, repo-mirror.yaml in the
            working directory is used if it exists.

    Returns:
        Validated MirrorConfig

    Raises:
        ConfigError: If the file is missing (explicit path only), not valid
            YAML, or the merged settings fail validation
    """
    data = {}
    cfg_path = Path(path) if path else Path.cwd() / CONFIG_FILE
    if cfg_path.exists():
        try:
            data = yaml.safe_load(cfg_path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {cfg_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping in {cfg_path}")
    elif path:
        raise ConfigError(f"Config file not found: {cfg_path}")

    for env_var, field_name in _ENV_FIELDS.items():
        value = os.environ.get(env_var)
        if value:
            data[field_name] = value

    try:
        return MirrorConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
