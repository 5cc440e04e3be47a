"""GitHub releases backend."""

from typing import Any, Dict, List, Optional

import requests

from bluefin_releases.exceptions import APIError
from bluefin_releases.http_client import DEFAULT_TIMEOUT, get_default_headers, get_json
from bluefin_releases.logging_config import logger

from ...models import HostKind, Release, ReleaseOrigin, SourceRepo, utc_timestamp
from ..._catalog.appstream import parse_release_date
from ..protocol import DEFAULT_RELEASE_LIMIT

GITHUB_API_BASE = "https://api.github.com"


class GitHubReleaseSource:
    """
    Release backend for github.com repositories.

    Release bodies are kept as markdown; the website renders them.
    """

    def __init__(
        self,
        session: requests.Session,
        token: Optional[str] = None,
        api_base: str = GITHUB_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._session = session
        self._headers = get_default_headers(token, accept="application/vnd.github+json")
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "github"

    @property
    def host_kind(self) -> HostKind:
        return HostKind.GITHUB

    def list_releases(self, source_repo: SourceRepo, limit: int = DEFAULT_RELEASE_LIMIT) -> List[Release]:
        """
        Fetch the latest releases of a GitHub repository.

        Args:
            source_repo: Repository with owner and repo set
            limit: Releases per page

        Returns:
            Releases newest first; empty if the repository is unknown

        Raises:
            APIError: If owner/repo are missing or the request fails
        """
        if not source_repo.full_name:
            raise APIError(f"Cannot list GitHub releases for {source_repo.url}: owner/repo unknown")

        url = f"{self._api_base}/repos/{source_repo.full_name}/releases"
        logger.debug(f"Fetching GitHub releases for: {source_repo.full_name}")
        data = get_json(
            self._session,
            url,
            f"list GitHub releases for {source_repo.full_name}",
            headers=self._headers,
            params={"per_page": limit},
            timeout=self._timeout,
        )
        if data is None:
            logger.debug(f"Repository not found on GitHub: {source_repo.full_name}")
            return []
        if not isinstance(data, list):
            raise APIError(f"Failed to list GitHub releases for {source_repo.full_name}: unexpected response shape")

        fetched_at = utc_timestamp()
        return [
            release
            for release in (self._convert(entry, fetched_at) for entry in data if isinstance(entry, dict))
            if release is not None
        ]

    def _convert(self, entry: Dict[str, Any], fetched_at: str) -> Optional[Release]:
        tag = entry.get("tag_name")
        if not tag:
            return None
        return Release(
            version=tag,
            date=parse_release_date(entry.get("published_at"), fallback=fetched_at),
            title=entry.get("name") or tag,
            description=entry.get("body") or "",
            url=entry.get("html_url") or None,
            origin=ReleaseOrigin.REPO_HOST_RELEASE,
            source=self.name,
        )
