"""Normalization of raw catalog records into Items.

Every function here is total: malformed or missing upstream fields become
empty values, never exceptions. The string-or-list shapes some catalogs use
are flattened here and never leave this module.
"""

import re
from typing import Any, Dict, List, Optional

from ..models import (
    FlatpakInfo,
    HomebrewInfo,
    Item,
    OSInfo,
    PackageKind,
    RawDetail,
    Release,
    ReleaseOrigin,
    Verification,
    epoch_to_timestamp,
    utc_timestamp,
)
from .appstream import convert_catalog_releases, parse_release_date

FLATHUB_APP_URL = "https://flathub.org/apps/{app_id}"
FORMULAE_FORMULA_URL = "https://formulae.brew.sh/formula/{name}"
FORMULAE_CASK_URL = "https://formulae.brew.sh/cask/{name}"

OS_RELEASE_NOTES_LIMIT = 1000
OS_MAJOR_PACKAGES = ("Podman", "Nvidia", "Docker", "Incus")

_FEDORA_VERSION_PATTERN = re.compile(r"F(\d+)\.\d+")
_COMMIT_PATTERN = re.compile(r"#([a-f0-9]+)")
_VERSION_ARROW = "➡️"

_KIND_LABELS = {
    PackageKind.FLATPAK: "Flatpak",
    PackageKind.HOMEBREW: "Homebrew",
    PackageKind.OS_RELEASE: "OS release",
}


def make_item_id(package_kind: PackageKind, native_id: str) -> str:
    """Build the globally unique item id from the catalog namespace and native id."""
    return f"{package_kind.value}:{native_id}"


def raw_native_id(package_kind: PackageKind, raw: Dict[str, Any]) -> str:
    """Return the upstream identifier of a raw catalog record."""
    if package_kind is PackageKind.FLATPAK:
        return _as_str(raw.get("app_id"))
    if package_kind is PackageKind.HOMEBREW:
        return _as_str(raw.get("native_id")) or _as_str(raw.get("name"))
    return _as_str(raw.get("tag_name"))


def as_string_list(value: Any) -> List[str]:
    """
    Flatten a field that may be a string, a list of strings, or missing.

    Non-string list members are dropped; order is preserved.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, (list, tuple)):
        return [entry for entry in value if isinstance(entry, str) and entry]
    return []


def fallback_summary(package_kind: PackageKind, name: str) -> str:
    """Human-readable summary used when the catalog supplies none."""
    return f"{_KIND_LABELS[package_kind]} package: {name}"


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


# -- Flatpak ------------------------------------------------------------------


def normalize_flatpak(
    raw: Dict[str, Any],
    detail: Optional[RawDetail] = None,
    fetched_at: Optional[str] = None,
    app_set: str = "",
) -> Item:
    """
    Normalize a Flathub collection hit (or id-only stub) plus its appstream detail.

    Collection fields win; detail fills in name, summary and description when
    the collection left them blank. Only the newest appstream release is kept.

    Args:
        raw: Flathub collection record; id-targeted stubs carry only "app_id"
        detail: Appstream detail, None if missing or failed
        fetched_at: Fetch timestamp, defaults to now
        app_set: Curated app set the id came from ("core", "dx")

    Returns:
        Item with package kind flatpak
    """
    fetched_at = fetched_at or utc_timestamp()
    native_id = _as_str(raw.get("app_id")) or (detail.native_id if detail else "")

    name = _as_str(raw.get("name")) or (detail.name if detail else "")
    summary = _as_str(raw.get("summary")) or (detail.summary if detail else "")
    description = _as_str(raw.get("description")) or (detail.description if detail else "")

    verified = bool(raw.get("verification_verified"))
    verification = None
    if verified:
        verification = Verification(
            method=_as_str(raw.get("verification_method")),
            login_name=raw.get("verification_login_name") or None,
            login_provider=raw.get("verification_login_provider") or None,
            website=raw.get("verification_website") or None,
        )

    flatpak = FlatpakInfo(
        catalog_url=FLATHUB_APP_URL.format(app_id=native_id),
        developer_name=_as_str(raw.get("developer_name")),
        icon=_as_str(raw.get("icon")) or _as_str(detail.extra.get("icon") if detail else None),
        project_license=_as_str(raw.get("project_license")),
        categories=as_string_list(raw.get("main_categories")) + as_string_list(raw.get("sub_categories")),
        updated_at=epoch_to_timestamp(_as_int(raw.get("updated_at"))),
        installs_last_month=_as_int(raw.get("installs_last_month")),
        favorites_count=_as_int(raw.get("favorites_count")),
        is_verified=verified,
        verification=verification,
        app_set=app_set,
    )

    releases: List[Release] = []
    version = ""
    release_date = ""
    if detail and detail.releases:
        releases = convert_catalog_releases(detail.releases, source="flathub", fetched_at=fetched_at, limit=1)
        latest = detail.releases[0] if isinstance(detail.releases[0], dict) else {}
        version = _as_str(latest.get("version"))
        release_date = parse_release_date(latest.get("date") or latest.get("timestamp"), fallback="") or ""

    return Item(
        id=make_item_id(PackageKind.FLATPAK, native_id),
        native_id=native_id,
        package_kind=PackageKind.FLATPAK,
        name=name,
        summary=summary or fallback_summary(PackageKind.FLATPAK, name or native_id),
        description=description,
        version=version,
        release_date=release_date,
        releases=releases,
        fetched_at=fetched_at,
        flatpak=flatpak,
    )


# -- Homebrew -----------------------------------------------------------------


def normalize_homebrew(
    raw: Dict[str, Any],
    detail: Optional[RawDetail] = None,
    fetched_at: Optional[str] = None,
) -> Item:
    """
    Normalize a Homebrew Brewfile/tap entry plus its formula or cask detail.

    The stable version becomes a single catalog-embedded release without a date,
    since neither the formulae API nor tap sources carry one.
    """
    fetched_at = fetched_at or utc_timestamp()
    native_id = _as_str(raw.get("native_id")) or _as_str(raw.get("name"))
    package_type = _as_str(raw.get("package_type")) or "formula"
    short_name = _as_str(raw.get("name")) or native_id

    name = short_name
    if detail:
        # Casks carry a list of display names; formulae a plain string
        display_names = as_string_list(detail.extra.get("names")) if detail.extra else []
        name = detail.name or (display_names[0] if display_names else "") or short_name
    summary = (detail.summary if detail else "") or _as_str(raw.get("desc"))
    description = detail.description if detail else ""

    version = ""
    if detail and detail.releases and isinstance(detail.releases[0], dict):
        version = _as_str(detail.releases[0].get("version"))
    version = version or _as_str(raw.get("version"))

    releases: List[Release] = []
    if version:
        releases = convert_catalog_releases([{"version": version}], source="homebrew", fetched_at=None)

    tap = _as_str(raw.get("tap")) or ("homebrew/cask" if package_type == "cask" else "homebrew/core")
    if tap.startswith("homebrew/"):
        url_template = FORMULAE_CASK_URL if package_type == "cask" else FORMULAE_FORMULA_URL
        catalog_url = url_template.format(name=short_name)
    else:
        owner, _, tap_name = tap.partition("/")
        folder = "Casks" if package_type == "cask" else "Formula"
        catalog_url = f"https://github.com/{owner}/homebrew-{tap_name}/blob/main/{folder}/{short_name}.rb"

    homebrew = HomebrewInfo(
        package_type=package_type,
        tap=tap,
        catalog_url=catalog_url,
        experimental=bool(raw.get("experimental")),
        brewfile=_as_str(raw.get("brewfile")),
    )

    return Item(
        id=make_item_id(PackageKind.HOMEBREW, native_id),
        native_id=native_id,
        package_kind=PackageKind.HOMEBREW,
        name=name,
        summary=summary or fallback_summary(PackageKind.HOMEBREW, name),
        description=description,
        version=version,
        releases=releases,
        fetched_at=fetched_at,
        homebrew=homebrew,
    )


# -- OS releases --------------------------------------------------------------


def extract_package_version(body: str, package_name: str) -> str:
    """
    Pull a package version out of a release-notes table row.

    Rows look like ``| **Kernel** | 6.17.12-300 |``; a changed version
    (``old ➡️ new``) yields the new side.
    """
    pattern = re.compile(rf"\|\s*\*\*{re.escape(package_name)}\*\*\s*\|\s*([^|]+)\s*\|")
    match = pattern.search(body or "")
    if not match:
        return ""
    version = match.group(1).strip()
    if _VERSION_ARROW in version:
        return version.split(_VERSION_ARROW, 1)[1].strip()
    return version


def parse_os_info(raw: Dict[str, Any]) -> OSInfo:
    """Derive stream, build and package versions from an OS release record."""
    tag = _as_str(raw.get("tag_name"))
    name = _as_str(raw.get("name"))
    body = _as_str(raw.get("body"))

    # Tags look like "stable-20260203" or "gts-20260203"
    stream, build_number = "stable", tag
    parts = tag.split("-")
    if len(parts) >= 2:
        stream, build_number = parts[0], parts[1]

    # Names look like "stable-20260203: Stable (F43.20260203, #4132884)"
    fedora_match = _FEDORA_VERSION_PATTERN.search(name)
    commit_match = _COMMIT_PATTERN.search(name)

    major_packages = {}
    for package in OS_MAJOR_PACKAGES:
        package_version = extract_package_version(body, package)
        if package_version:
            major_packages[package] = package_version

    return OSInfo(
        stream=stream,
        build_number=build_number,
        fedora_version=fedora_match.group(1) if fedora_match else "",
        commit_hash=commit_match.group(1) if commit_match else "",
        kernel_version=extract_package_version(body, "Kernel"),
        gnome_version=extract_package_version(body, "Gnome"),
        mesa_version=extract_package_version(body, "Mesa"),
        major_packages=major_packages,
        release_url=_as_str(raw.get("html_url")),
    )


def os_summary(os_info: OSInfo) -> str:
    """Concise one-line description of an OS release."""
    stream_name = "GTS (Long-Term Support)" if os_info.stream == "gts" else os_info.stream.title()
    summary = f"{stream_name} release based on Fedora {os_info.fedora_version}".rstrip()
    if os_info.kernel_version:
        summary += f" with Kernel {os_info.kernel_version}"
    return summary


def truncate_release_notes(body: str, limit: int = OS_RELEASE_NOTES_LIMIT) -> str:
    if len(body) > limit:
        return body[:limit] + "..."
    return body


def normalize_os_release(raw: Dict[str, Any], fetched_at: Optional[str] = None) -> Item:
    """Normalize one OS release record (a GitHub release of the image repository)."""
    fetched_at = fetched_at or utc_timestamp()
    tag = _as_str(raw.get("tag_name"))
    os_info = parse_os_info(raw)
    published = parse_release_date(raw.get("published_at"), fallback="") or ""
    body = _as_str(raw.get("body"))

    release = Release(
        version=tag,
        date=published or None,
        title=_as_str(raw.get("name")) or tag,
        description=truncate_release_notes(body),
        url=_as_str(raw.get("html_url")) or None,
        origin=ReleaseOrigin.CATALOG_EMBEDDED,
        source="bluefin-os",
    )

    return Item(
        id=make_item_id(PackageKind.OS_RELEASE, tag),
        native_id=tag,
        package_kind=PackageKind.OS_RELEASE,
        name=f"Bluefin OS {os_info.stream}",
        summary=os_summary(os_info),
        description=body,
        version=tag,
        release_date=published,
        releases=[release] if tag else [],
        fetched_at=fetched_at,
        os_info=os_info,
    )


def normalize(
    package_kind: PackageKind,
    raw: Dict[str, Any],
    detail: Optional[RawDetail] = None,
    fetched_at: Optional[str] = None,
) -> Item:
    """
    Normalize a raw record from any catalog.

    Args:
        package_kind: Catalog identifier space of the record
        raw: Raw catalog record
        detail: Optional detail record for the same entry
        fetched_at: Fetch timestamp, defaults to now

    Returns:
        The normalized Item
    """
    if package_kind is PackageKind.FLATPAK:
        return normalize_flatpak(raw, detail, fetched_at, app_set=_as_str(raw.get("app_set")))
    if package_kind is PackageKind.HOMEBREW:
        return normalize_homebrew(raw, detail, fetched_at)
    return normalize_os_release(raw, fetched_at)
