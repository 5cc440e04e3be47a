"""GitLab releases backend (gitlab.com and self-hosted instances)."""

from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote, urlparse

import requests

from bluefin_releases.exceptions import APIError
from bluefin_releases.http_client import DEFAULT_TIMEOUT, get_json
from bluefin_releases.logging_config import logger
from bluefin_releases.markdown import render

from ...models import HostKind, Release, ReleaseOrigin, SourceRepo, utc_timestamp
from ..._catalog.appstream import parse_release_date
from ..protocol import DEFAULT_RELEASE_LIMIT

DEFAULT_GITLAB_HOST = "gitlab.com"


def project_location(source_repo: SourceRepo) -> Tuple[str, str]:
    """
    Work out the GitLab host and project path of a repository.

    Owner/repo win when both are known; otherwise the whole URL path is used,
    which keeps nested groups intact.

    Raises:
        APIError: If the URL path has fewer than two segments
    """
    parsed = urlparse(source_repo.url)
    host = parsed.netloc or DEFAULT_GITLAB_HOST

    if source_repo.owner and source_repo.repo:
        return host, f"{source_repo.owner}/{source_repo.repo}"

    segments = [segment for segment in parsed.path.strip("/").split("/") if segment]
    if len(segments) < 2:
        raise APIError(f"Invalid GitLab project path in URL: {source_repo.url}")
    path = "/".join(segments)
    if path.endswith(".git"):
        path = path[: -len(".git")]
    return host, path


class GitLabReleaseSource:
    """
    Release backend for GitLab instances.

    Works anonymously; a token only raises the rate limit. Release
    descriptions are rendered from markdown to HTML.
    """

    def __init__(self, session: requests.Session, token: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT):
        self._session = session
        self._headers = {"PRIVATE-TOKEN": token} if token else None
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "gitlab"

    @property
    def host_kind(self) -> HostKind:
        return HostKind.GITLAB

    def list_releases(self, source_repo: SourceRepo, limit: int = DEFAULT_RELEASE_LIMIT) -> List[Release]:
        host, project_path = project_location(source_repo)
        url = f"https://{host}/api/v4/projects/{quote(project_path, safe='')}/releases"
        logger.debug(f"Fetching GitLab releases for: {host}/{project_path}")

        data = get_json(
            self._session,
            url,
            f"list GitLab releases for {project_path}",
            headers=self._headers,
            params={"per_page": limit},
            timeout=self._timeout,
        )
        if data is None:
            logger.debug(f"Project not found on {host}: {project_path}")
            return []
        if not isinstance(data, list):
            raise APIError(f"Failed to list GitLab releases for {project_path}: unexpected response shape")

        repo_url = source_repo.url.rstrip("/")
        if repo_url.endswith(".git"):
            repo_url = repo_url[: -len(".git")]

        fetched_at = utc_timestamp()
        releases = []
        for entry in data:
            if isinstance(entry, dict):
                release = self._convert(entry, repo_url, fetched_at)
                if release is not None:
                    releases.append(release)
        return releases

    def _convert(self, entry: Dict[str, Any], repo_url: str, fetched_at: str) -> Optional[Release]:
        tag = entry.get("tag_name")
        if not tag:
            return None
        date = parse_release_date(entry.get("released_at")) or parse_release_date(
            entry.get("created_at"), fallback=fetched_at
        )
        return Release(
            version=tag,
            date=date,
            title=entry.get("name") or tag,
            description=render(entry.get("description") or ""),
            url=f"{repo_url}/-/releases/{tag}",
            origin=ReleaseOrigin.REPO_HOST_RELEASE,
            source=self.name,
        )
