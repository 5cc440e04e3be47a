"""CatalogBackend protocol for upstream package catalogs."""

from typing import Any, Dict, List, Optional, Protocol, Sequence

from ..models import PackageKind, RawDetail

# Raw catalog records are the upstream JSON objects, passed through untouched
RawItem = Dict[str, Any]


class CatalogBackend(Protocol):
    """
    Protocol defining the interface for catalog backends.

    Each backend wraps one upstream listing (Flathub, Homebrew, OS releases)
    and yields raw records that the normalizer turns into Items.

    Example:
        class FlathubCatalog:
            name = "flathub"
            package_kind = PackageKind.FLATPAK

            def list_items(self, ids=None):
                # Recently updated collection, or stubs for the given ids
                ...

            def fetch_detail(self, native_id):
                # Appstream record, None when the app is unknown
                ...
    """

    @property
    def name(self) -> str:
        """
        Human-readable name of this catalog.

        Used for logging and as the ``source`` tag of catalog-embedded releases.
        """
        ...

    @property
    def package_kind(self) -> PackageKind:
        """Identifier space of the records this catalog yields."""
        ...

    def list_items(self, ids: Optional[Sequence[str]] = None) -> List[RawItem]:
        """
        List raw records.

        Args:
            ids: Optional native identifiers for the id-targeted mode. When
                 omitted the catalog's own discovery listing is used.

        Returns:
            Raw upstream records

        Raises:
            APIError: If the listing request fails
        """
        ...

    def fetch_detail(self, native_id: str) -> Optional[RawDetail]:
        """
        Fetch the rich detail record for one entry.

        Returns:
            RawDetail, or None when the upstream does not know the entry
            (not-found is not an error)

        Raises:
            APIError: On transport, status or decode failures
        """
        ...
