"""Registry of release backends keyed by repository host kind."""

from typing import Any, Dict, List, Optional

from bluefin_releases.logging_config import logger

from ..models import HostKind
from .protocol import ReleaseBackend


class ReleaseBackendRegistry:
    """
    Registry for managing release backend plugins.

    At most one backend serves each host kind; registering a second one
    for the same kind replaces the first.

    Example:
        registry = ReleaseBackendRegistry()
        registry.register(GitHubReleaseSource(session, token))
        registry.register(GitLabReleaseSource(session))

        backend = registry.get(HostKind.GITHUB)
    """

    def __init__(self) -> None:
        self._backends: Dict[HostKind, ReleaseBackend] = {}

    def register(self, backend: ReleaseBackend) -> None:
        """Register a backend for its host kind."""
        if backend.host_kind in self._backends:
            logger.debug(f"Replacing release backend for {backend.host_kind.value}")
        self._backends[backend.host_kind] = backend
        logger.debug(f"Registered release backend: {backend.name} ({backend.host_kind.value})")

    def get(self, host_kind: HostKind) -> Optional[ReleaseBackend]:
        """Return the backend serving a host kind, if any."""
        return self._backends.get(host_kind)

    def supports(self, host_kind: HostKind) -> bool:
        return host_kind in self._backends

    def list_backends(self) -> List[Dict[str, Any]]:
        """
        List all registered backends.

        Returns:
            List of dicts with 'name' and 'host_kind' keys
        """
        return [{"name": b.name, "host_kind": b.host_kind.value} for b in self._backends.values()]

    def clear(self) -> None:
        """Remove all registered backends."""
        self._backends.clear()
