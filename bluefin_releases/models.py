"""Unified data model for catalog items, source repositories and releases.

Every catalog backend is normalized into :class:`Item`. Items serialize to the
camelCase JSON shape consumed by the website, and can be rebuilt from it with
``Item.from_dict`` so a written dataset round-trips field for field.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class PackageKind(str, Enum):
    """Which catalog identifier space an item comes from."""

    FLATPAK = "flatpak"
    HOMEBREW = "homebrew"
    OS_RELEASE = "os-release"


class HostKind(str, Enum):
    """Kind of host serving an item's source repository."""

    GITHUB = "github"
    GITLAB = "gitlab"
    OTHER = "other"


class ReleaseOrigin(str, Enum):
    """Provenance of a release entry, used to order merged changelogs."""

    REPO_HOST_RELEASE = "repo-host-release"
    CATALOG_EMBEDDED = "catalog-embedded"
    UNKNOWN = "unknown"


# Lower sorts first
ORIGIN_PRIORITY: Dict[ReleaseOrigin, int] = {
    ReleaseOrigin.REPO_HOST_RELEASE: 0,
    ReleaseOrigin.CATALOG_EMBEDDED: 1,
    ReleaseOrigin.UNKNOWN: 2,
}


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Format a datetime as a canonical UTC timestamp string.

    Args:
        moment: Datetime to format; naive values are taken as UTC. Defaults to now.

    Returns:
        Timestamp such as "2024-12-19T14:30:00Z"
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    # strftime's %Y is not zero-padded before year 1000 on every platform
    return f"{moment.year:04d}-{moment:%m-%dT%H:%M:%S}Z"


def epoch_to_timestamp(epoch: Optional[int]) -> str:
    """Convert epoch seconds to a canonical timestamp; empty for missing, non-positive or out-of-range values."""
    if not epoch or epoch <= 0:
        return ""
    try:
        return utc_timestamp(datetime.fromtimestamp(epoch, tz=timezone.utc))
    except (OverflowError, OSError, ValueError):
        return ""


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose values are None or empty, mirroring omitempty JSON output."""
    return {key: value for key, value in data.items() if value not in (None, "", [], {})}


@dataclass(frozen=True)
class SourceRepo:
    """Resolved identity of an item's canonical code repository."""

    host_kind: HostKind
    url: str
    owner: Optional[str] = None
    repo: Optional[str] = None

    @property
    def full_name(self) -> Optional[str]:
        """Return "owner/repo" when both parts are known."""
        if self.owner and self.repo:
            return f"{self.owner}/{self.repo}"
        return None

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "type": self.host_kind.value,
                "url": self.url,
                "owner": self.owner,
                "repo": self.repo,
            }
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceRepo":
        return cls(
            host_kind=HostKind(data.get("type", HostKind.OTHER.value)),
            url=data.get("url", ""),
            owner=data.get("owner") or None,
            repo=data.get("repo") or None,
        )


@dataclass(frozen=True)
class Release:
    """One changelog entry from a repository host or a catalog."""

    version: str
    date: Optional[str]
    title: str
    description: str = ""
    url: Optional[str] = None
    origin: ReleaseOrigin = ReleaseOrigin.UNKNOWN
    source: str = ""  # Backend that produced the entry (e.g. "github", "flathub")

    def to_dict(self) -> Dict[str, Any]:
        data = _compact(
            {
                "version": self.version,
                "date": self.date,
                "title": self.title,
                "description": self.description,
                "url": self.url,
                "source": self.source,
            }
        )
        data["origin"] = self.origin.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Release":
        return cls(
            version=data.get("version", ""),
            date=data.get("date"),
            title=data.get("title", ""),
            description=data.get("description", ""),
            url=data.get("url"),
            origin=ReleaseOrigin(data.get("origin", ReleaseOrigin.UNKNOWN.value)),
            source=data.get("source", ""),
        )


@dataclass
class Verification:
    """Flathub verification details, present only for verified apps."""

    method: str
    login_name: Optional[str] = None
    login_provider: Optional[str] = None
    website: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = _compact(
            {
                "loginName": self.login_name,
                "loginProvider": self.login_provider,
                "website": self.website,
            }
        )
        data["method"] = self.method
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Verification":
        return cls(
            method=data.get("method", ""),
            login_name=data.get("loginName"),
            login_provider=data.get("loginProvider"),
            website=data.get("website"),
        )


@dataclass
class FlatpakInfo:
    """Flathub-specific auxiliary metadata."""

    catalog_url: str
    developer_name: str = ""
    icon: str = ""
    project_license: str = ""
    categories: List[str] = field(default_factory=list)
    updated_at: str = ""
    installs_last_month: int = 0
    favorites_count: int = 0
    is_verified: bool = False
    verification: Optional[Verification] = None
    app_set: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = _compact(
            {
                "flathubUrl": self.catalog_url,
                "developerName": self.developer_name,
                "icon": self.icon,
                "projectLicense": self.project_license,
                "categories": list(self.categories),
                "updatedAt": self.updated_at,
                "installsLastMonth": self.installs_last_month,
                "favoritesCount": self.favorites_count,
                "verificationInfo": self.verification.to_dict() if self.verification else None,
                "appSet": self.app_set,
            }
        )
        data["isVerified"] = self.is_verified
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FlatpakInfo":
        verification = data.get("verificationInfo")
        return cls(
            catalog_url=data.get("flathubUrl", ""),
            developer_name=data.get("developerName", ""),
            icon=data.get("icon", ""),
            project_license=data.get("projectLicense", ""),
            categories=list(data.get("categories", [])),
            updated_at=data.get("updatedAt", ""),
            installs_last_month=data.get("installsLastMonth", 0),
            favorites_count=data.get("favoritesCount", 0),
            is_verified=data.get("isVerified", False),
            verification=Verification.from_dict(verification) if verification else None,
            app_set=data.get("appSet", ""),
        )


@dataclass
class HomebrewInfo:
    """Homebrew tap/formula auxiliary metadata."""

    package_type: str  # "formula" or "cask"
    tap: str = ""
    catalog_url: str = ""
    experimental: bool = False
    brewfile: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = _compact(
            {
                "packageType": self.package_type,
                "tap": self.tap,
                "catalogUrl": self.catalog_url,
                "brewfile": self.brewfile,
            }
        )
        data["experimental"] = self.experimental
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HomebrewInfo":
        return cls(
            package_type=data.get("packageType", "formula"),
            tap=data.get("tap", ""),
            catalog_url=data.get("catalogUrl", ""),
            experimental=data.get("experimental", False),
            brewfile=data.get("brewfile", ""),
        )


@dataclass
class OSInfo:
    """Build and stream details of an OS release train entry."""

    stream: str
    build_number: str
    fedora_version: str = ""
    commit_hash: str = ""
    kernel_version: str = ""
    gnome_version: str = ""
    mesa_version: str = ""
    major_packages: Dict[str, str] = field(default_factory=dict)
    release_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "stream": self.stream,
                "buildNumber": self.build_number,
                "fedoraVersion": self.fedora_version,
                "commitHash": self.commit_hash,
                "kernelVersion": self.kernel_version,
                "gnomeVersion": self.gnome_version,
                "mesaVersion": self.mesa_version,
                "majorPackages": dict(self.major_packages),
                "releaseUrl": self.release_url,
            }
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OSInfo":
        return cls(
            stream=data.get("stream", ""),
            build_number=data.get("buildNumber", ""),
            fedora_version=data.get("fedoraVersion", ""),
            commit_hash=data.get("commitHash", ""),
            kernel_version=data.get("kernelVersion", ""),
            gnome_version=data.get("gnomeVersion", ""),
            mesa_version=data.get("mesaVersion", ""),
            major_packages=dict(data.get("majorPackages", {})),
            release_url=data.get("releaseUrl", ""),
        )


@dataclass
class Item:
    """
    A normalized package, app or release-train entry.

    ``id`` is namespaced by package kind ("flatpak:org.gnome.Calculator",
    "homebrew:bat", "os-release:stable-20260203") so identifiers from different
    catalogs never collide. ``releases`` is ordered by origin priority, then
    by recency within each origin.
    """

    id: str
    native_id: str
    package_kind: PackageKind
    name: str = ""
    summary: str = ""
    description: str = ""
    version: str = ""
    release_date: str = ""
    source_repo: Optional[SourceRepo] = None
    releases: List[Release] = field(default_factory=list)
    fetched_at: str = ""
    flatpak: Optional[FlatpakInfo] = None
    homebrew: Optional[HomebrewInfo] = None
    os_info: Optional[OSInfo] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "nativeId": self.native_id,
            "packageType": self.package_kind.value,
            "name": self.name,
            "summary": self.summary,
        }
        data.update(
            _compact(
                {
                    "description": self.description,
                    "currentReleaseVersion": self.version,
                    "currentReleaseDate": self.release_date,
                    "sourceRepo": self.source_repo.to_dict() if self.source_repo else None,
                    "releases": [release.to_dict() for release in self.releases],
                    "flatpak": self.flatpak.to_dict() if self.flatpak else None,
                    "homebrew": self.homebrew.to_dict() if self.homebrew else None,
                    "osInfo": self.os_info.to_dict() if self.os_info else None,
                }
            )
        )
        data["fetchedAt"] = self.fetched_at
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        source_repo = data.get("sourceRepo")
        flatpak = data.get("flatpak")
        homebrew = data.get("homebrew")
        os_info = data.get("osInfo")
        return cls(
            id=data["id"],
            native_id=data.get("nativeId", ""),
            package_kind=PackageKind(data["packageType"]),
            name=data.get("name", ""),
            summary=data.get("summary", ""),
            description=data.get("description", ""),
            version=data.get("currentReleaseVersion", ""),
            release_date=data.get("currentReleaseDate", ""),
            source_repo=SourceRepo.from_dict(source_repo) if source_repo else None,
            releases=[Release.from_dict(release) for release in data.get("releases", [])],
            fetched_at=data.get("fetchedAt", ""),
            flatpak=FlatpakInfo.from_dict(flatpak) if flatpak else None,
            homebrew=HomebrewInfo.from_dict(homebrew) if homebrew else None,
            os_info=OSInfo.from_dict(os_info) if os_info else None,
        )


@dataclass
class RawDetail:
    """
    Rich detail record for one catalog entry.

    ``urls`` maps link kinds ("homepage", "bugtracker", "vcs-browser", ...) to
    URLs and is what the source resolver inspects. ``releases`` holds the
    catalog's own release records, newest first, still in upstream shape.
    """

    native_id: str
    name: str = ""
    summary: str = ""
    description: str = ""
    urls: Dict[str, str] = field(default_factory=dict)
    releases: List[Dict[str, Any]] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)
