"""Flathub catalog backend."""

from typing import Any, Dict, List, Optional, Sequence

import requests

from bluefin_releases.exceptions import APIError
from bluefin_releases.http_client import DEFAULT_TIMEOUT, get_json
from bluefin_releases.logging_config import logger

from ...models import PackageKind, RawDetail
from ..protocol import RawItem

FLATHUB_API_BASE = "https://flathub.org/api/v2"


class FlathubCatalog:
    """
    Catalog backend for the Flathub v2 API.

    Discovery uses the recently-updated collection; the id-targeted mode
    creates stubs carrying only ``app_id`` and relies on the appstream detail
    for everything else.
    """

    def __init__(self, session: requests.Session, api_base: str = FLATHUB_API_BASE, timeout: float = DEFAULT_TIMEOUT):
        self._session = session
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "flathub"

    @property
    def package_kind(self) -> PackageKind:
        return PackageKind.FLATPAK

    def list_items(self, ids: Optional[Sequence[str]] = None) -> List[RawItem]:
        """
        List Flathub apps.

        Args:
            ids: Specific app ids; when given no request is made

        Returns:
            Collection hits, or one stub per id

        Raises:
            APIError: If the recently-updated collection cannot be fetched
        """
        if ids is not None:
            logger.info(f"Using {len(ids)} specific Flathub app ids")
            return [{"app_id": app_id} for app_id in ids]

        url = f"{self._api_base}/collection/recently-updated"
        logger.info("Fetching recently updated apps from Flathub...")
        data = get_json(self._session, url, "fetch recently updated Flathub apps", timeout=self._timeout)
        if not isinstance(data, dict):
            raise APIError("Failed to fetch recently updated Flathub apps: unexpected response shape")

        hits = [hit for hit in data.get("hits") or [] if isinstance(hit, dict) and hit.get("app_id")]
        logger.info(f"Fetched {len(hits)} recently updated apps")
        return hits

    def fetch_detail(self, native_id: str) -> Optional[RawDetail]:
        """
        Fetch the appstream record for one app.

        Returns:
            RawDetail, or None if Flathub does not know the app

        Raises:
            APIError: On transport, status or decode failures
        """
        url = f"{self._api_base}/appstream/{native_id}"
        logger.debug(f"Fetching Flathub appstream for: {native_id}")
        data = get_json(self._session, url, f"fetch Flathub details for {native_id}", timeout=self._timeout)
        if data is None:
            logger.debug(f"App not found on Flathub: {native_id}")
            return None
        if not isinstance(data, dict):
            raise APIError(f"Failed to fetch Flathub details for {native_id}: unexpected response shape")
        return self._normalize_detail(native_id, data)

    def _normalize_detail(self, native_id: str, data: Dict[str, Any]) -> RawDetail:
        urls = data.get("urls") if isinstance(data.get("urls"), dict) else {}
        releases = data.get("releases") if isinstance(data.get("releases"), list) else []
        return RawDetail(
            native_id=data.get("id") or native_id,
            name=data.get("name") or "",
            summary=data.get("summary") or "",
            description=data.get("description") or "",
            urls={key: value for key, value in urls.items() if isinstance(value, str) and value},
            releases=[release for release in releases if isinstance(release, dict)],
            extra={"icon": data.get("icon") or ""},
        )
