"""Source repository resolution for catalog items."""

import re
from typing import Mapping, Optional

from bluefin_releases.logging_config import logger

from ..models import HostKind, RawDetail, SourceRepo
from .overrides import OverrideTable, get_override_table

GITHUB_REPO_PATTERN = re.compile(r"github\.com/([^/]+)/([^/\s?#]+)")
# Self-hosted instances too: gitlab.gnome.org, gitlab.freedesktop.org, ...
GITLAB_REPO_PATTERN = re.compile(r"gitlab\.[^/]+/([^/]+)/([^/\s?#]+)")

PREFERRED_URL_KEYS = ("homepage", "bugtracker")


def _strip_repo_suffix(repo: str) -> str:
    repo = repo.rstrip("/")
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return repo


def select_candidate_url(urls: Mapping[str, str]) -> Optional[str]:
    """
    Pick the URL most likely to point at the source repository.

    "homepage" wins, then "bugtracker", then the first remaining URL in
    lexicographic key order.
    """
    for key in PREFERRED_URL_KEYS:
        if urls.get(key):
            return urls[key]
    for key in sorted(urls):
        if urls[key]:
            return urls[key]
    return None


def classify_url(url: str) -> SourceRepo:
    """
    Classify a URL by host and extract owner/repo where possible.

    Examples:
        >>> classify_url("https://github.com/foo/bar.git").full_name
        'foo/bar'
        >>> classify_url("https://gitlab.gnome.org/World/design").host_kind
        <HostKind.GITLAB: 'gitlab'>
    """
    if "github.com" in url:
        pattern, host_kind = GITHUB_REPO_PATTERN, HostKind.GITHUB
    elif "gitlab" in url:
        pattern, host_kind = GITLAB_REPO_PATTERN, HostKind.GITLAB
    else:
        return SourceRepo(host_kind=HostKind.OTHER, url=url)

    match = pattern.search(url)
    if not match:
        return SourceRepo(host_kind=host_kind, url=url)

    repo = _strip_repo_suffix(match.group(2))
    if not repo:
        return SourceRepo(host_kind=host_kind, url=url)
    return SourceRepo(host_kind=host_kind, url=url, owner=match.group(1), repo=repo)


class SourceResolver:
    """
    Resolves an item's authoritative source repository.

    A curated override for the item id always wins; otherwise the detail's
    URLs are classified. Unresolvable items simply get no repository.
    """

    def __init__(self, overrides: Optional[OverrideTable] = None):
        self._overrides = overrides

    @property
    def overrides(self) -> OverrideTable:
        if self._overrides is None:
            self._overrides = get_override_table()
        return self._overrides

    def resolve(self, item_id: str, detail: Optional[RawDetail] = None) -> Optional[SourceRepo]:
        """
        Resolve the source repository for an item.

        Args:
            item_id: Namespaced item id
            detail: Catalog detail carrying the URL collection, if any

        Returns:
            SourceRepo, or None if no URL is available
        """
        override = self.overrides.get(item_id)
        if override is not None:
            logger.info(f"Applied source override for {item_id}: {override.url}")
            return override

        if detail is None or not detail.urls:
            return None

        url = select_candidate_url(detail.urls)
        if not url:
            return None

        source_repo = classify_url(url)
        logger.debug(f"Resolved {item_id} to {source_repo.host_kind.value} repository {source_repo.url}")
        return source_repo
