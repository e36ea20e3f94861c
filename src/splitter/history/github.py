"""GitHub Actions artifacts API client.

Lists the workflow artifacts of a repository and downloads artifact
archives.  Only the two endpoints needed to recover timing history are
covered.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any

import requests

from splitter.history.errors import GitHubAPIError

logger = logging.getLogger(__name__)

# GitHub API constants
GITHUB_API_BASE = "https://api.github.com"
_GITHUB_AUTH_ENV_KEY = "GITHUB_" + "TOKEN"

_HTTP_OK = 200
_DEFAULT_PER_PAGE = 100
_DEFAULT_MAX_PAGES = 10
_DEFAULT_TIMEOUT = 30.0


@dataclass
class WorkflowRun:
    """Workflow run an artifact was uploaded from."""

    id: int = 0
    head_branch: str = ""


@dataclass
class Artifact:
    """A workflow artifact as listed by the API."""

    id: int
    name: str
    created_at: str = ""
    """ISO-8601 timestamp, e.g. ``2024-01-01T00:00:00Z``."""

    expired: bool = False
    workflow_run: WorkflowRun = field(default_factory=WorkflowRun)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Artifact:
        """Build an Artifact from one entry of the ``artifacts`` array."""
        run_raw = data.get("workflow_run") or {}
        return cls(
            id=int(data["id"]),
            name=str(data.get("name", "")),
            created_at=str(data.get("created_at") or ""),
            expired=bool(data.get("expired", False)),
            workflow_run=WorkflowRun(
                id=int(run_raw.get("id") or 0),
                head_branch=str(run_raw.get("head_branch") or ""),
            ),
        )


class GitHubAPI:
    """Client for the GitHub Actions artifacts endpoints."""

    def __init__(
        self,
        repository: str,
        token: str | None = None,
        *,
        api_url: str = GITHUB_API_BASE,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            repository: Repository in ``owner/repo`` form.
            token: GitHub token. If not provided, will try to read from
                the GITHUB_TOKEN environment variable.
            api_url: Base URL of the REST API (GitHub Enterprise support).
            timeout: Per-request timeout in seconds.

        Raises:
            GitHubAPIError: If the repository or token is missing.
        """
        if not repository or "/" not in repository:
            raise GitHubAPIError(f"Repository must be in owner/repo form, got {repository!r}")

        self._token = token or os.environ.get(_GITHUB_AUTH_ENV_KEY)
        if not self._token:
            raise GitHubAPIError(
                f"GitHub token required. Set {_GITHUB_AUTH_ENV_KEY} environment variable "
                "or pass token to constructor."
            )

        self.repository = repository
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session_headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def list_artifacts(
        self,
        *,
        max_pages: int = _DEFAULT_MAX_PAGES,
        per_page: int = _DEFAULT_PER_PAGE,
    ) -> list[Artifact]:
        """List the repository's artifacts, newest pages first.

        Stops early when a page holds fewer than *per_page* entries.

        Raises:
            GitHubAPIError: If any page request fails or an entry is malformed.
        """
        logger.info("Listing artifacts for %s", self.repository)
        url = f"{self._api_url}/repos/{self.repository}/actions/artifacts"

        artifacts: list[Artifact] = []
        for page in range(1, max_pages + 1):
            payload = self._get_json(url, params={"per_page": per_page, "page": page})
            entries = payload.get("artifacts", []) if isinstance(payload, dict) else []
            try:
                artifacts.extend(Artifact.from_api(entry) for entry in entries)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                raise GitHubAPIError(f"Malformed artifact entry on page {page}: {exc!r}") from exc
            if len(entries) < per_page:
                break

        logger.info("Found %d artifacts", len(artifacts))
        return artifacts

    def download_artifact(self, artifact_id: int) -> bytes:
        """Download an artifact archive and return the raw zip bytes.

        Raises:
            GitHubAPIError: If the download fails.
        """
        logger.info("Downloading artifact %d", artifact_id)
        url = f"{self._api_url}/repos/{self.repository}/actions/artifacts/{artifact_id}/zip"
        return self._get(url).content

    def _get(self, url: str, params: dict[str, Any] | None = None) -> requests.Response:
        """Make a GET request to the GitHub API.

        Raises:
            GitHubAPIError: On transport errors or a non-200 status.
        """
        try:
            response = requests.get(
                url, params=params, headers=self._session_headers, timeout=self._timeout
            )
        except requests.RequestException as exc:
            raise GitHubAPIError(f"GET request failed: {exc}") from exc

        if response.status_code != _HTTP_OK:
            raise GitHubAPIError(
                f"GET {url} returned unexpected status code: {response.status_code}"
            )
        return response

    def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        response = self._get(url, params=params)
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubAPIError(f"Invalid JSON from {url}: {exc}") from exc
