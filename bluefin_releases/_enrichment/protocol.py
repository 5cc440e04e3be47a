"""ReleaseBackend protocol for repository-host changelog plugins."""

from typing import List, Protocol

from ..models import HostKind, Release, SourceRepo

# Releases fetched per repository
DEFAULT_RELEASE_LIMIT = 5


class ReleaseBackend(Protocol):
    """
    Protocol defining the interface for release backends.

    Each backend serves one repository host kind and returns that
    repository's most recent releases, newest first, tagged with the
    repo-host-release origin.

    Example:
        class GitHubReleaseSource:
            name = "github"
            host_kind = HostKind.GITHUB

            def list_releases(self, source_repo, limit=5):
                # GET /repos/{owner}/{repo}/releases?per_page=limit
                ...
    """

    @property
    def name(self) -> str:
        """
        Human-readable name of this backend.

        Used for logging and as the ``source`` tag of returned releases.
        """
        ...

    @property
    def host_kind(self) -> HostKind:
        """Repository host kind this backend serves."""
        ...

    def list_releases(self, source_repo: SourceRepo, limit: int = DEFAULT_RELEASE_LIMIT) -> List[Release]:
        """
        Fetch the most recent releases of a repository.

        Args:
            source_repo: Resolved repository identity
            limit: Maximum number of releases to request

        Returns:
            Releases, newest first. A repository the host does not know (404)
            yields an empty list.

        Raises:
            APIError: On transport, authentication, rate-limit, status or
                      decode failures, or when the repository identity is
                      incomplete
        """
        ...
