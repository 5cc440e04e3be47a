"""Source repository resolution and release enrichment.

Usage:
    from bluefin_releases._enrichment import EnrichmentOrchestrator, create_default_registry

    registry = create_default_registry(session, github_token=token)
    result = EnrichmentOrchestrator(registry, github_token=token).run(items)
"""

from .enricher import EnrichmentOrchestrator, EnrichmentResult, ItemOutcome, create_default_registry
from .merge import merge_releases
from .overrides import OverrideTable, get_override_table, load_override_table, set_override_file
from .protocol import DEFAULT_RELEASE_LIMIT, ReleaseBackend
from .registry import ReleaseBackendRegistry
from .resolver import SourceResolver, classify_url, select_candidate_url

__all__ = [
    "DEFAULT_RELEASE_LIMIT",
    "EnrichmentOrchestrator",
    "EnrichmentResult",
    "ItemOutcome",
    "OverrideTable",
    "ReleaseBackend",
    "ReleaseBackendRegistry",
    "SourceResolver",
    "classify_url",
    "create_default_registry",
    "get_override_table",
    "load_override_table",
    "merge_releases",
    "select_candidate_url",
    "set_override_file",
]
