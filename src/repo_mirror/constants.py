"""Constants for repo-mirror."""

# Default configuration file (looked up in the working directory)
CONFIG_FILE = "repo-mirror.yaml"

# Environment variable overrides
ENV_OWNER = "REPO_MIRROR_OWNER"
ENV_REPO = "REPO_MIRROR_REPO"
ENV_BRANCH = "REPO_MIRROR_BRANCH"
ENV_PROVIDER = "REPO_MIRROR_PROVIDER"
ENV_POLL_INTERVAL = "REPO_MIRROR_POLL_INTERVAL"
ENV_API_URL = "REPO_MIRROR_API_URL"
ENV_TOKEN = "GITHUB_TOKEN"

# GitHub contents API
DEFAULT_API_URL = "https://api.github.com"
GITHUB_JSON_MEDIA_TYPE = "application/vnd.github+json"
GITHUB_RAW_MEDIA_TYPE = "application/vnd.github.raw"
DEFAULT_USER_AGENT = "repo-mirror"

# Default commit messages for mutations
DEFAULT_SAVE_MESSAGE = "update from API"
DEFAULT_DELETE_MESSAGE = "delete file"

# Files parsed into structured values when their content is fetched
STRUCTURED_EXTENSIONS = (".json", ".yaml", ".yml")

# Root of the mirrored tree
ROOT_PATH = ""

# Version
MIRROR_VERSION = "0.1.0"
