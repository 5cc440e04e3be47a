"""Release list merging."""

from typing import Iterable, List

from ..models import ORIGIN_PRIORITY, Release


def merge_releases(new: Iterable[Release], existing: Iterable[Release]) -> List[Release]:
    """
    Merge freshly fetched releases into an item's existing list.

    New entries go first, then the list is stably sorted by origin priority:
    every repo-host release precedes every catalog-embedded one, and the
    relative order inside each origin group is kept. Entries for the same
    version from different origins are all kept.

    Example:
        >>> merged = merge_releases(github_releases, item.releases)
        >>> [r.origin.value for r in merged]
        ['repo-host-release', 'repo-host-release', 'catalog-embedded']
    """
    combined = list(new) + list(existing)
    return sorted(combined, key=lambda release: ORIGIN_PRIORITY[release.origin])
