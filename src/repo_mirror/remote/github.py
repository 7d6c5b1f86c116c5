"""GitHub repository contents API adapter."""

import base64
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from ..config import MirrorConfig
from ..constants import (
    DEFAULT_API_URL,
    DEFAULT_USER_AGENT,
    GITHUB_JSON_MEDIA_TYPE,
    GITHUB_RAW_MEDIA_TYPE,
)
from ..core import EntryKind, RemoteEntry, RemoteWriteResult
from ..errors import (
    AuthError,
    ContentFetchError,
    NetworkError,
    NotFoundError,
    RemoteError,
    RemoteListError,
    RemoteWriteConflict,
)

logger = logging.getLogger(__name__)

# Status codes GitHub uses when a sha precondition fails
CONFLICT_STATUSES = (409, 422)


def _error_detail(resp: httpx.Response) -> str:
    """Extract GitHub's error message from a response."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return resp.text[:200]


class GitHubContentStore:
    """Adapter for one repository using the GitHub contents API over httpx."""

    def __init__(
        self,
        owner: str,
        repo: str,
        token: Optional[str] = None,
        branch: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize GitHub client.

        Args:
            owner: Repository owner (user or organization)
            repo: Repository name
            token: Optional personal access token
            branch: Branch or ref to read and commit to (None = default branch)
            api_url: API base URL (GitHub Enterprise uses a different host)
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header (required by GitHub)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.owner = owner
        self.repo = repo
        self.branch = branch

        headers = {"Accept": GITHUB_JSON_MEDIA_TYPE, "User-Agent": user_agent}
        if token:
            headers["Authorization"] = f"token {token}"

        self._client = httpx.AsyncClient(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: MirrorConfig) -> "GitHubContentStore":
        return cls(
            owner=config.owner,
            repo=config.repo,
            token=config.token,
            branch=config.branch,
            api_url=config.api_url,
            timeout=config.request_timeout,
            user_agent=config.user_agent,
        )

    def _contents_url(self, path: str) -> str:
        return f"/repos/{self.owner}/{self.repo}/contents/{quote(path.strip('/'))}"

    def _ref_params(self) -> Dict[str, str]:
        return {"ref": self.branch} if self.branch else {}

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, mapping transport and auth failures to typed errors."""
        logger.debug("%s %s", method, url)
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise NetworkError(f"Failed to reach GitHub API: {e}\nEndpoint: {url}") from e

        if resp.status_code in (401, 403):
            raise AuthError(f"GitHub API denied access ({resp.status_code}): {_error_detail(resp)}")
        return resp

    async def list(self, path: str) -> List[RemoteEntry]:
        resp = await self._request("GET", self._contents_url(path), params=self._ref_params())
        if resp.status_code != 200:
            raise RemoteListError(path, f"HTTP {resp.status_code}: {_error_detail(resp)}")

        data = resp.json()
        if not isinstance(data, list):
            raise RemoteListError(path, "not a directory")

        entries = []
        for item in data:
            kind = EntryKind.DIRECTORY if item.get("type") == "dir" else EntryKind.FILE
            entries.append(RemoteEntry(
                name=item["name"],
                path=item["path"],
                kind=kind,
                version_token=item.get("sha"),
                size=item.get("size"),
                download_url=item.get("download_url"),
            ))
        return entries

    async def fetch_content(self, locator: str) -> bytes:
        if locator.startswith(("http://", "https://")):
            resp = await self._request("GET", locator)
        else:
            resp = await self._request(
                "GET",
                self._contents_url(locator),
                params=self._ref_params(),
                headers={"Accept": GITHUB_RAW_MEDIA_TYPE},
            )

        if resp.status_code != 200:
            raise ContentFetchError(locator, f"HTTP {resp.status_code}: {_error_detail(resp)}")
        return resp.content

    async def get_version_token(self, path: str) -> Optional[str]:
        resp = await self._request("GET", self._contents_url(path), params=self._ref_params())
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise RemoteError(f"GitHub API error ({resp.status_code}): {_error_detail(resp)}")

        data = resp.json()
        # Directories come back as a list; only files carry a usable token
        if not isinstance(data, dict) or data.get("type") != "file":
            return None
        return data.get("sha")

    async def write(
        self, path: str, content: bytes, version_token: Optional[str], message: str
    ) -> RemoteWriteResult:
        body: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
        }
        if version_token:
            body["sha"] = version_token
        if self.branch:
            body["branch"] = self.branch

        resp = await self._request("PUT", self._contents_url(path), json=body)
        if resp.status_code in CONFLICT_STATUSES:
            raise RemoteWriteConflict(path, version_token, _error_detail(resp))
        if resp.status_code not in (200, 201):
            raise RemoteError(f"GitHub API error ({resp.status_code}): {_error_detail(resp)}")

        data = resp.json()
        return RemoteWriteResult(
            path=path,
            version_token=(data.get("content") or {}).get("sha"),
            commit=(data.get("commit") or {}).get("sha"),
        )

    async def delete(self, path: str, version_token: str, message: str) -> RemoteWriteResult:
        body: Dict[str, Any] = {"message": message, "sha": version_token}
        if self.branch:
            body["branch"] = self.branch

        resp = await self._request("DELETE", self._contents_url(path), json=body)
        if resp.status_code == 404:
            raise NotFoundError(path)
        if resp.status_code in CONFLICT_STATUSES:
            raise RemoteWriteConflict(path, version_token, _error_detail(resp))
        if resp.status_code != 200:
            raise RemoteError(f"GitHub API error ({resp.status_code}): {_error_detail(resp)}")

        data = resp.json()
        return RemoteWriteResult(path=path, commit=(data.get("commit") or {}).get("sha"))

    async def aclose(self) -> None:
        await self._client.aclose()
