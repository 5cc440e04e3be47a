"""Release enrichment orchestration.

Items whose source repository lives on GitHub or GitLab get that
repository's latest releases merged ahead of their catalog-embedded ones.
Every eligible item runs in its own worker; one item's failure never
touches another.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

import requests

from bluefin_releases.logging_config import logger

from ..models import HostKind, Item
from ..rate_limit import RELEASE_FETCH_DELAY, RateLimiter
from .merge import merge_releases
from .protocol import DEFAULT_RELEASE_LIMIT, ReleaseBackend
from .registry import ReleaseBackendRegistry
from .sources import GitHubReleaseSource, GitLabReleaseSource


class ItemOutcome(str, Enum):
    """Terminal state of one item's enrichment."""

    MERGED = "merged"
    SKIPPED = "skipped"
    FAILED_SOFT = "failed_soft"


@dataclass
class EnrichmentResult:
    """Items after enrichment plus the per-item outcomes, in input order."""

    items: List[Item]
    outcomes: List[ItemOutcome] = field(default_factory=list)
    skipped_stage: bool = False

    def counts(self) -> Dict[str, int]:
        """Number of items per outcome."""
        counts = {outcome.value: 0 for outcome in ItemOutcome}
        for outcome in self.outcomes:
            counts[outcome.value] += 1
        return counts


def create_default_registry(
    session: requests.Session,
    github_token: Optional[str] = None,
    gitlab_token: Optional[str] = None,
) -> ReleaseBackendRegistry:
    """
    Create a registry with the GitHub and GitLab release backends.

    Args:
        session: Shared requests session
        github_token: Bearer token for api.github.com
        gitlab_token: Optional private token for GitLab instances

    Returns:
        Configured ReleaseBackendRegistry
    """
    registry = ReleaseBackendRegistry()
    registry.register(GitHubReleaseSource(session, token=github_token))
    registry.register(GitLabReleaseSource(session, token=gitlab_token))
    return registry


class EnrichmentOrchestrator:
    """
    Fans out release lookups for a collection of items.

    Without a GitHub token the whole stage is skipped and the input list is
    returned as-is. Otherwise each eligible item is fetched in its own worker
    and written to its own result slot, so the output keeps input order.

    Example:
        orchestrator = EnrichmentOrchestrator(create_default_registry(session, token), github_token=token)
        result = orchestrator.run(items)
        print(result.counts())
    """

    def __init__(
        self,
        registry: ReleaseBackendRegistry,
        github_token: Optional[str],
        release_limit: int = DEFAULT_RELEASE_LIMIT,
        rate_limiter: Optional[RateLimiter] = None,
        max_workers: Optional[int] = None,
    ):
        self._registry = registry
        self._github_token = github_token
        self._release_limit = release_limit
        self._rate_limiter = rate_limiter or RateLimiter(RELEASE_FETCH_DELAY)
        self._max_workers = max_workers

    def backend_for(self, item: Item) -> Optional[ReleaseBackend]:
        """Return the backend that can enrich an item, or None if it is not eligible."""
        source_repo = item.source_repo
        if source_repo is None:
            return None
        if source_repo.host_kind is HostKind.GITHUB and not source_repo.full_name:
            return None
        if source_repo.host_kind is HostKind.GITLAB and not source_repo.url:
            return None
        if source_repo.host_kind not in (HostKind.GITHUB, HostKind.GITLAB):
            return None
        return self._registry.get(source_repo.host_kind)

    def run(self, items: List[Item]) -> EnrichmentResult:
        """
        Enrich all items.

        Args:
            items: Normalized items with resolved source repositories

        Returns:
            EnrichmentResult; ``items`` is the very same list when the stage
            was skipped for lack of a GitHub token
        """
        if not self._github_token:
            logger.warning("No GITHUB_TOKEN found, skipping release enrichment")
            return EnrichmentResult(items=items, outcomes=[ItemOutcome.SKIPPED] * len(items), skipped_stage=True)

        slots: List[Optional[Tuple[Item, ItemOutcome]]] = [None] * len(items)
        tasks: List[Tuple[int, ReleaseBackend]] = []
        for index, item in enumerate(items):
            backend = self.backend_for(item)
            if backend is None:
                slots[index] = (item, ItemOutcome.SKIPPED)
            else:
                tasks.append((index, backend))

        logger.info(f"Fetching releases for {len(tasks)} of {len(items)} items")
        if tasks:
            max_workers = self._max_workers or len(tasks)
            with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="enrich") as executor:
                futures = {executor.submit(self._enrich_one, items[index], backend): index for index, backend in tasks}
                for future in as_completed(futures):
                    slots[futures[future]] = future.result()

        result = EnrichmentResult(
            items=[slot[0] for slot in slots],
            outcomes=[slot[1] for slot in slots],
        )
        counts = result.counts()
        logger.info(
            f"Enrichment complete: {counts['merged']} merged, {counts['skipped']} skipped, "
            f"{counts['failed_soft']} failed"
        )
        return result

    def enrich(self, items: List[Item]) -> List[Item]:
        """Enrich all items and return them in input order."""
        return self.run(items).items

    def _enrich_one(self, item: Item, backend: ReleaseBackend) -> Tuple[Item, ItemOutcome]:
        source_repo = item.source_repo
        try:
            releases = backend.list_releases(source_repo, self._release_limit)
        except Exception as e:
            logger.warning(f"Failed to fetch {backend.name} releases for {source_repo.url}: {e}")
            return item, ItemOutcome.FAILED_SOFT

        enriched = replace(item, releases=merge_releases(releases, item.releases))
        logger.info(f"Added {len(releases)} {backend.name} releases for {item.id}")
        self._rate_limiter.pause()
        return enriched, ItemOutcome.MERGED
