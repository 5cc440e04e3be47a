"""Release backends for repository hosts."""

from .github import GitHubReleaseSource
from .gitlab import GitLabReleaseSource

__all__ = [
    "GitHubReleaseSource",
    "GitLabReleaseSource",
]
