"""Conversion of catalog-embedded release records into Release entries."""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..models import Release, ReleaseOrigin, utc_timestamp


def parse_release_date(value: Any, fallback: Optional[str] = None) -> Optional[str]:
    """
    Parse an appstream release date into a canonical timestamp.

    Accepts "YYYY-MM-DD", RFC 3339 / ISO 8601 strings and epoch seconds
    (as int or numeric string).

    Args:
        value: Raw date value from the catalog
        fallback: Returned when the value cannot be parsed

    Returns:
        Canonical timestamp string, or ``fallback``
    """
    if value is None or value == "":
        return fallback

    if isinstance(value, (int, float)) or (isinstance(value, str) and value.strip().isdigit()):
        try:
            return utc_timestamp(datetime.fromtimestamp(int(value), tz=timezone.utc))
        except (OverflowError, OSError, ValueError):
            return fallback

    if isinstance(value, str):
        text = value.strip()
        try:
            return utc_timestamp(datetime.strptime(text, "%Y-%m-%d"))
        except ValueError:
            pass
        try:
            # fromisoformat only understands a trailing "Z" from 3.11 onwards
            return utc_timestamp(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except (OverflowError, ValueError):
            pass

    return fallback


def convert_catalog_releases(
    entries: Iterable[Dict[str, Any]],
    source: str,
    fetched_at: Optional[str],
    limit: Optional[int] = None,
) -> List[Release]:
    """
    Convert raw catalog release records to catalog-embedded Releases.

    Records without a version are dropped. Unparseable dates fall back to
    the fetch time, matching how the catalog pages display them.

    Args:
        entries: Raw records with "version", "date"/"timestamp" and "description"
        source: Catalog name recorded on each release
        fetched_at: Timestamp used when a record's date is unusable (None keeps it empty)
        limit: Keep at most this many records (upstream order is newest first)

    Returns:
        Release entries in upstream order
    """
    releases: List[Release] = []
    for entry in entries:
        if limit is not None and len(releases) >= limit:
            break
        if not isinstance(entry, dict):
            continue
        version = str(entry.get("version") or "").strip()
        if not version:
            continue

        raw_date = entry.get("date") or entry.get("timestamp")
        releases.append(
            Release(
                version=version,
                date=parse_release_date(raw_date, fallback=fetched_at),
                title=f"Version {version}",
                description=entry.get("description") or "",
                url=entry.get("url") or None,
                origin=ReleaseOrigin.CATALOG_EMBEDDED,
                source=source,
            )
        )
    return releases
