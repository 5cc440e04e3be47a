"""Homebrew catalog backend: curated Brewfiles, ublue-os taps and formulae.brew.sh."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from bluefin_releases.exceptions import APIError, RateLimitError
from bluefin_releases.http_client import DEFAULT_TIMEOUT, get_default_headers, get_json, get_text
from bluefin_releases.logging_config import logger

from ...models import PackageKind, RawDetail
from ..manifest import parse_formula
from ..protocol import RawItem
from .brewfiles import BrewfileRepository

FORMULAE_API_BASE = "https://formulae.brew.sh/api"
GITHUB_API_BASE = "https://api.github.com"
RAW_CONTENT_BASE = "https://raw.githubusercontent.com"


@dataclass(frozen=True)
class TapConfig:
    """A third-party tap whose formulae and casks are listed directly."""

    name: str  # "owner/tap"
    experimental: bool = False
    branch: str = "main"

    @property
    def github_repo(self) -> str:
        owner, _, tap = self.name.partition("/")
        return f"{owner}/homebrew-{tap}"


DEFAULT_TAPS: Tuple[TapConfig, ...] = (
    TapConfig("ublue-os/tap"),
    TapConfig("ublue-os/experimental-tap", experimental=True),
)


def parse_native_id(native_id: str) -> Tuple[str, str, str]:
    """
    Split a Homebrew native id into (tap, package_type, name).

    Examples:
        >>> parse_native_id("bat")
        ('homebrew/core', 'formula', 'bat')
        >>> parse_native_id("cask/firefox")
        ('homebrew/cask', 'cask', 'firefox')
        >>> parse_native_id("ublue-os/tap/cask/foo")
        ('ublue-os/tap', 'cask', 'foo')
    """
    parts = native_id.split("/")
    if len(parts) == 2 and parts[0] == "cask":
        return "homebrew/cask", "cask", parts[1]
    if len(parts) == 3:
        return f"{parts[0]}/{parts[1]}", "formula", parts[2]
    if len(parts) == 4 and parts[2] == "cask":
        return f"{parts[0]}/{parts[1]}", "cask", parts[3]
    return "homebrew/core", "formula", native_id


def tap_native_id(tap: str, package_type: str, name: str) -> str:
    if package_type == "cask":
        return f"{tap}/cask/{name}"
    return f"{tap}/{name}"


class HomebrewCatalog:
    """
    Catalog backend for Homebrew packages shipped with Bluefin.

    Items come from the curated Brewfiles plus every formula and cask in the
    configured taps. Details for core formulae and casks come from the
    formulae.brew.sh JSON API; tap packages are read from their Ruby source.
    """

    def __init__(
        self,
        session: requests.Session,
        brewfiles: Optional[BrewfileRepository] = None,
        taps: Sequence[TapConfig] = DEFAULT_TAPS,
        github_token: Optional[str] = None,
        formulae_api_base: str = FORMULAE_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._session = session
        self._brewfiles = brewfiles
        self._taps = {tap.name: tap for tap in taps}
        self._github_headers = get_default_headers(github_token, accept="application/vnd.github+json")
        self._raw_headers = get_default_headers(github_token) if github_token else None
        self._formulae_api_base = formulae_api_base.rstrip("/")
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "homebrew"

    @property
    def package_kind(self) -> PackageKind:
        return PackageKind.HOMEBREW

    def list_items(self, ids: Optional[Sequence[str]] = None) -> List[RawItem]:
        """
        List Homebrew packages.

        Args:
            ids: Specific native ids; when given no listing request is made

        Returns:
            Raw records keyed by ``native_id``, deduplicated, Brewfile entries first
        """
        if ids is not None:
            return [self._stub(native_id) for native_id in ids]

        records: List[RawItem] = []
        seen = set()

        if self._brewfiles is not None:
            for entry in self._brewfiles.fetch_homebrew_entries():
                if entry.native_id in seen:
                    continue
                seen.add(entry.native_id)
                tap_config = self._taps.get(entry.tap)
                records.append(
                    {
                        "native_id": entry.native_id,
                        "name": entry.name,
                        "package_type": entry.package_type,
                        "tap": entry.tap,
                        "brewfile": entry.brewfile,
                        "experimental": bool(tap_config and tap_config.experimental),
                    }
                )

        for tap in self._taps.values():
            for record in self._list_tap(tap):
                if record["native_id"] in seen:
                    continue
                seen.add(record["native_id"])
                records.append(record)

        logger.info(f"Listed {len(records)} Homebrew packages")
        return records

    def _stub(self, native_id: str) -> RawItem:
        tap, package_type, name = parse_native_id(native_id)
        tap_config = self._taps.get(tap)
        return {
            "native_id": native_id,
            "name": name,
            "package_type": package_type,
            "tap": tap,
            "experimental": bool(tap_config and tap_config.experimental),
        }

    def _list_tap(self, tap: TapConfig) -> List[RawItem]:
        records: List[RawItem] = []
        for folder, package_type in (("Formula", "formula"), ("Casks", "cask")):
            url = f"{GITHUB_API_BASE}/repos/{tap.github_repo}/contents/{folder}"
            try:
                listing = get_json(
                    self._session,
                    url,
                    f"list {tap.name} {folder}",
                    headers=self._github_headers,
                    params={"ref": tap.branch},
                    timeout=self._timeout,
                )
            except RateLimitError as e:
                logger.warning(f"{e}; treating {tap.name} {folder} as empty (set GITHUB_TOKEN to raise the limit)")
                continue
            except APIError as e:
                logger.warning(f"Could not list {tap.name} {folder}: {e}")
                continue

            if not isinstance(listing, list):
                continue
            for entry in listing:
                if not isinstance(entry, dict) or entry.get("type") != "file":
                    continue
                file_name = entry.get("name") or ""
                if not file_name.endswith(".rb"):
                    continue
                name = file_name[: -len(".rb")]
                records.append(
                    {
                        "native_id": tap_native_id(tap.name, package_type, name),
                        "name": name,
                        "package_type": package_type,
                        "tap": tap.name,
                        "experimental": tap.experimental,
                    }
                )

        logger.info(f"  Found {len(records)} packages in tap {tap.name}")
        return records

    def fetch_detail(self, native_id: str) -> Optional[RawDetail]:
        """
        Fetch formula or cask metadata.

        Returns:
            RawDetail, or None if the package is unknown

        Raises:
            APIError: On transport, status or decode failures
        """
        tap, package_type, name = parse_native_id(native_id)
        if tap.startswith("homebrew/"):
            return self._fetch_formulae_api(native_id, package_type, name)
        return self._fetch_tap_source(native_id, tap, package_type, name)

    def _fetch_formulae_api(self, native_id: str, package_type: str, name: str) -> Optional[RawDetail]:
        url = f"{self._formulae_api_base}/{package_type}/{name}.json"
        data = get_json(self._session, url, f"fetch Homebrew {package_type} {name}", timeout=self._timeout)
        if data is None:
            logger.debug(f"Homebrew {package_type} not found: {name}")
            return None
        if not isinstance(data, dict):
            raise APIError(f"Failed to fetch Homebrew {package_type} {name}: unexpected response shape")

        if package_type == "cask":
            return self._cask_detail(native_id, data)
        return self._formula_detail(native_id, data)

    @staticmethod
    def _formula_detail(native_id: str, data: Dict[str, Any]) -> RawDetail:
        versions = data.get("versions") if isinstance(data.get("versions"), dict) else {}
        urls = data.get("urls") if isinstance(data.get("urls"), dict) else {}
        stable = urls.get("stable") if isinstance(urls.get("stable"), dict) else {}
        head = urls.get("head") if isinstance(urls.get("head"), dict) else {}
        version = versions.get("stable") or ""

        links = {"homepage": data.get("homepage"), "stable": stable.get("url"), "head": head.get("url")}
        return RawDetail(
            native_id=native_id,
            name=data.get("name") or "",
            summary=data.get("desc") or "",
            urls={key: value for key, value in links.items() if isinstance(value, str) and value},
            releases=[{"version": version}] if version else [],
        )

    @staticmethod
    def _cask_detail(native_id: str, data: Dict[str, Any]) -> RawDetail:
        version = data.get("version") or ""
        links = {"homepage": data.get("homepage"), "stable": data.get("url")}
        return RawDetail(
            native_id=native_id,
            summary=data.get("desc") or "",
            urls={key: value for key, value in links.items() if isinstance(value, str) and value},
            releases=[{"version": version}] if version and version != "latest" else [],
            extra={"names": data.get("name")},
        )

    def _fetch_tap_source(self, native_id: str, tap: str, package_type: str, name: str) -> Optional[RawDetail]:
        tap_config = self._taps.get(tap) or TapConfig(tap)
        folder = "Casks" if package_type == "cask" else "Formula"
        url = f"{RAW_CONTENT_BASE}/{tap_config.github_repo}/{tap_config.branch}/{folder}/{name}.rb"
        text = get_text(
            self._session, url, f"fetch {tap} {package_type} {name}", headers=self._raw_headers, timeout=self._timeout
        )
        if text is None:
            logger.debug(f"Tap source not found: {url}")
            return None

        metadata = parse_formula(text)
        links = {"homepage": metadata.homepage}
        if metadata.github_repo:
            links["source"] = f"https://github.com/{metadata.github_repo}"
        return RawDetail(
            native_id=native_id,
            name=metadata.display_name,
            summary=metadata.description,
            urls={key: value for key, value in links.items() if value},
            releases=[{"version": metadata.version}] if metadata.version else [],
        )
