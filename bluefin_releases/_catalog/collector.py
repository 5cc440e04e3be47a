"""Catalog fan-out: list raw records, fetch details concurrently, normalize."""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence

from bluefin_releases.exceptions import APIError
from bluefin_releases.logging_config import logger

from .._enrichment.resolver import SourceResolver
from ..models import Item, PackageKind, RawDetail, utc_timestamp
from ..rate_limit import DETAIL_FETCH_DELAY, RateLimiter
from .normalizer import normalize, raw_native_id
from .protocol import CatalogBackend, RawItem

# Only the recently-updated discovery listing is capped
RECENTLY_UPDATED_LIMIT = 50


class CatalogCollector:
    """
    Turns one catalog backend's listing into normalized, source-resolved Items.

    Each record gets its detail fetched in its own worker, followed by a short
    courtesy delay in that worker. A failed or unusable detail still yields an
    item built from the listing record alone; a record that cannot be
    normalized at all is logged and dropped without affecting its siblings.

    Example:
        collector = CatalogCollector(FlathubCatalog(session), SourceResolver())
        items = collector.collect_ids(["org.gnome.Calculator"])
    """

    def __init__(
        self,
        backend: CatalogBackend,
        resolver: SourceResolver,
        rate_limiter: Optional[RateLimiter] = None,
        max_workers: Optional[int] = None,
    ):
        self._backend = backend
        self._resolver = resolver
        self._rate_limiter = rate_limiter or RateLimiter(DETAIL_FETCH_DELAY)
        self._max_workers = max_workers
        # Cumulative wall time spent listing and fetching details
        self.listing_seconds = 0.0
        self.details_seconds = 0.0

    @property
    def backend(self) -> CatalogBackend:
        return self._backend

    def collect_recently_updated(self, limit: int = RECENTLY_UPDATED_LIMIT) -> List[Item]:
        """
        Collect the backend's discovery listing, capped at ``limit`` records.

        Raises:
            APIError: If the listing request fails
        """
        raw_items = self._list()
        if len(raw_items) > limit:
            logger.info(f"Limiting {self._backend.name} listing from {len(raw_items)} to {limit} items")
            raw_items = raw_items[:limit]
        return self._collect(raw_items)

    def collect_ids(self, ids: Sequence[str], annotations: Optional[Mapping[str, Dict[str, Any]]] = None) -> List[Item]:
        """
        Collect specific records; every id is fetched, uncapped.

        Args:
            ids: Native ids
            annotations: Extra raw fields per native id (e.g. ``{"app_set": "dx"}``)
        """
        return self._collect(self._list(list(ids)), annotations)

    def collect_all(self) -> List[Item]:
        """Collect the backend's full listing, uncapped."""
        return self._collect(self._list())

    def _list(self, ids: Optional[List[str]] = None) -> List[RawItem]:
        started = time.monotonic()
        try:
            return self._backend.list_items(ids)
        finally:
            self.listing_seconds += time.monotonic() - started

    def _collect(
        self, raw_items: List[RawItem], annotations: Optional[Mapping[str, Dict[str, Any]]] = None
    ) -> List[Item]:
        if not raw_items:
            return []

        kind = self._backend.package_kind
        if annotations:
            raw_items = [{**raw, **annotations.get(raw_native_id(kind, raw), {})} for raw in raw_items]

        logger.info(f"Fetching {self._backend.name} details for {len(raw_items)} items...")
        started = time.monotonic()
        slots: List[Optional[Item]] = [None] * len(raw_items)
        max_workers = self._max_workers or len(raw_items)
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=self._backend.name) as executor:
            futures = {executor.submit(self._collect_one, raw): index for index, raw in enumerate(raw_items)}
            for future in as_completed(futures):
                slots[futures[future]] = future.result()
        self.details_seconds += time.monotonic() - started

        items = [item for item in slots if item is not None]
        logger.info(f"Collected {len(items)} {self._backend.name} items")
        return items

    def _collect_one(self, raw: RawItem) -> Optional[Item]:
        kind = self._backend.package_kind
        native_id = raw_native_id(kind, raw)
        fetched_at = utc_timestamp()

        detail: Optional[RawDetail] = None
        try:
            detail = self._backend.fetch_detail(native_id)
        except APIError as e:
            logger.warning(f"Failed to fetch {self._backend.name} details for {native_id}: {e}")
        except Exception as e:
            logger.warning(f"Unexpected {self._backend.name} detail for {native_id}: {e!r}")
        else:
            self._rate_limiter.pause()

        try:
            return self._build_item(kind, raw, detail, fetched_at)
        except Exception as e:
            if detail is None:
                logger.warning(f"Dropping {self._backend.name} record {native_id!r}: {e!r}")
                return None
            logger.warning(f"Ignoring unusable {self._backend.name} detail for {native_id}: {e!r}")

        try:
            return self._build_item(kind, raw, None, fetched_at)
        except Exception as e:
            logger.warning(f"Dropping {self._backend.name} record {native_id!r}: {e!r}")
            return None

    def _build_item(self, kind: PackageKind, raw: RawItem, detail: Optional[RawDetail], fetched_at: str) -> Item:
        item = normalize(kind, raw, detail, fetched_at)
        source_repo = self._resolver.resolve(item.id, detail)
        if source_repo is None:
            return item
        return replace(item, source_repo=source_repo)
