"""Bluefin OS release train backend (GitHub releases of the image repository)."""

import threading
from typing import List, Optional, Sequence

import requests

from bluefin_releases.exceptions import APIError
from bluefin_releases.http_client import DEFAULT_TIMEOUT, get_default_headers, get_json
from bluefin_releases.logging_config import logger

from ...models import PackageKind, RawDetail
from ..protocol import RawItem

BLUEFIN_OS_REPO = "ublue-os/bluefin"
GITHUB_API_BASE = "https://api.github.com"
OS_RELEASES_PER_PAGE = 10


class BluefinOSCatalog:
    """
    Catalog backend listing published Bluefin image builds.

    Drafts and prereleases are skipped. Each release doubles as its own
    detail record; the detail's homepage points at the image repository so
    the source resolver attaches it like any other item.
    """

    def __init__(
        self,
        session: requests.Session,
        github_token: Optional[str] = None,
        repository: str = BLUEFIN_OS_REPO,
        per_page: int = OS_RELEASES_PER_PAGE,
        api_base: str = GITHUB_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._session = session
        self._headers = get_default_headers(github_token, accept="application/vnd.github+json")
        self._repository = repository
        self._per_page = per_page
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._releases: Optional[List[RawItem]] = None
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "bluefin-os"

    @property
    def package_kind(self) -> PackageKind:
        return PackageKind.OS_RELEASE

    @property
    def repository_url(self) -> str:
        return f"https://github.com/{self._repository}"

    def _load(self) -> List[RawItem]:
        with self._lock:
            if self._releases is not None:
                return self._releases

            url = f"{self._api_base}/repos/{self._repository}/releases"
            logger.info(f"Fetching OS releases from {self._repository}...")
            data = get_json(
                self._session,
                url,
                f"fetch OS releases for {self._repository}",
                headers=self._headers,
                params={"per_page": self._per_page},
                timeout=self._timeout,
            )
            if data is None:
                data = []
            if not isinstance(data, list):
                raise APIError(f"Failed to fetch OS releases for {self._repository}: unexpected response shape")

            self._releases = [
                release
                for release in data
                if isinstance(release, dict)
                and release.get("tag_name")
                and not release.get("draft")
                and not release.get("prerelease")
            ]
            logger.info(f"Found {len(self._releases)} OS releases")
            return self._releases

    def list_items(self, ids: Optional[Sequence[str]] = None) -> List[RawItem]:
        """
        List published OS releases, newest first.

        Args:
            ids: Optional tags to keep

        Raises:
            APIError: If the release listing cannot be fetched
        """
        releases = self._load()
        if ids is None:
            return list(releases)
        wanted = set(ids)
        return [release for release in releases if release.get("tag_name") in wanted]

    def fetch_detail(self, native_id: str) -> Optional[RawDetail]:
        """Return the release record for a tag, or None if it is not published."""
        for release in self._load():
            if release.get("tag_name") != native_id:
                continue
            urls = {"homepage": self.repository_url}
            if release.get("html_url"):
                urls["release"] = release["html_url"]
            return RawDetail(
                native_id=native_id,
                name=release.get("name") or "",
                description=release.get("body") or "",
                urls=urls,
            )
        return None
