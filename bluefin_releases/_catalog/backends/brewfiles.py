"""Curated Brewfiles from the projectbluefin/common repository."""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

import requests

from bluefin_releases.exceptions import APIError, CatalogError
from bluefin_releases.http_client import DEFAULT_TIMEOUT, get_default_headers, get_text
from bluefin_releases.logging_config import logger

from ..manifest import BREW_PATTERN, CASK_PATTERN, FLATPAK_PATTERN, extract_entries, extract_unique

BLUEFIN_COMMON_OWNER = "projectbluefin"
BLUEFIN_COMMON_REPO = "common"
BLUEFIN_COMMON_BRANCH = "main"
RAW_CONTENT_BASE = "https://raw.githubusercontent.com"

# Brewfile path -> app set name
FLATPAK_BREWFILES: Dict[str, str] = {
    "system_files/bluefin/usr/share/ublue-os/homebrew/system-flatpaks.Brewfile": "core",
    "system_files/bluefin/usr/share/ublue-os/homebrew/system-dx-flatpaks.Brewfile": "dx",
}

HOMEBREW_BREWFILES: List[str] = [
    f"system_files/shared/usr/share/ublue-os/homebrew/{name}.Brewfile"
    for name in (
        "cli",
        "fonts",
        "ai-tools",
        "k8s-tools",
        "cncf",
        "artwork",
        "ide",
        "experimental-ide",
        "swift",
    )
]


@dataclass(frozen=True)
class FlatpakEntry:
    """A curated Flatpak app id and the app set that ships it."""

    app_id: str
    app_set: str


@dataclass(frozen=True)
class BrewfileEntry:
    """A ``brew``/``cask`` line from a curated Brewfile."""

    native_id: str
    name: str
    package_type: str  # "formula" or "cask"
    tap: str
    brewfile: str


def brewfile_native_id(token: str, package_type: str) -> str:
    """
    Build the Homebrew native id for a Brewfile token.

    Formulae keep their name ("bat", "ublue-os/tap/foo"); casks get a "cask/"
    segment ("cask/firefox", "ublue-os/tap/cask/foo") so they never collide
    with a formula of the same name.
    """
    if package_type != "cask":
        return token
    parts = token.split("/")
    if len(parts) == 3:
        return f"{parts[0]}/{parts[1]}/cask/{parts[2]}"
    return f"cask/{token}"


def _tap_and_name(token: str, package_type: str) -> tuple:
    parts = token.split("/")
    if len(parts) == 3:
        return f"{parts[0]}/{parts[1]}", parts[2]
    return ("homebrew/cask" if package_type == "cask" else "homebrew/core"), token


class BrewfileRepository:
    """Reads Brewfiles straight from raw.githubusercontent.com."""

    def __init__(
        self,
        session: requests.Session,
        github_token: Optional[str] = None,
        owner: str = BLUEFIN_COMMON_OWNER,
        repo: str = BLUEFIN_COMMON_REPO,
        branch: str = BLUEFIN_COMMON_BRANCH,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._session = session
        self._headers = get_default_headers(github_token) if github_token else None
        self._owner = owner
        self._repo = repo
        self._branch = branch
        self._timeout = timeout

    def fetch(self, path: str) -> str:
        """
        Fetch one Brewfile.

        Raises:
            APIError: If the file is missing or cannot be fetched
        """
        url = f"{RAW_CONTENT_BASE}/{self._owner}/{self._repo}/{self._branch}/{path}"
        text = get_text(self._session, url, f"fetch {path}", headers=self._headers, timeout=self._timeout)
        if text is None:
            raise APIError(f"Failed to fetch {path}: file not found (404)")
        return text

    def _fetch_all(self, paths: Sequence[str]) -> Dict[str, str]:
        contents: Dict[str, str] = {}
        for path in paths:
            logger.info(f"  Fetching {path}...")
            try:
                contents[path] = self.fetch(path)
            except APIError as e:
                logger.warning(f"Skipping Brewfile {path}: {e}")
        return contents

    def fetch_flatpak_entries(self, brewfiles: Mapping[str, str] = FLATPAK_BREWFILES) -> List[FlatpakEntry]:
        """
        Collect the curated Flatpak ids with their app sets.

        Ids are deduplicated across files; the first file listing an id
        decides its app set.

        Raises:
            CatalogError: If none of the Brewfiles could be fetched
        """
        logger.info("Fetching Bluefin Flatpak list from Brewfiles...")
        contents = self._fetch_all(list(brewfiles))
        if not contents:
            raise CatalogError("Could not fetch any curated Flatpak Brewfile")

        app_sets: Dict[str, str] = {}
        for path, text in contents.items():
            app_ids = extract_entries(text, FLATPAK_PATTERN)
            logger.info(f"  Found {len(app_ids)} Flatpak app ids in {path}")
            for app_id in app_ids:
                app_sets.setdefault(app_id, brewfiles[path])

        all_lines = [line for text in contents.values() for line in text.splitlines()]
        entries = [FlatpakEntry(app_id, app_sets[app_id]) for app_id in extract_unique(all_lines, FLATPAK_PATTERN)]
        logger.info(f"Total Flatpak app ids: {len(entries)}")
        return entries

    def fetch_homebrew_entries(self, brewfiles: Sequence[str] = tuple(HOMEBREW_BREWFILES)) -> List[BrewfileEntry]:
        """Collect curated ``brew`` and ``cask`` entries, deduplicated across files."""
        logger.info("Fetching Bluefin Homebrew package list from Brewfiles...")
        contents = self._fetch_all(brewfiles)

        entries: List[BrewfileEntry] = []
        seen = set()
        for path, text in contents.items():
            brewfile = path.rsplit("/", 1)[-1]
            found = 0
            for package_type, pattern in (("formula", BREW_PATTERN), ("cask", CASK_PATTERN)):
                for token in extract_entries(text, pattern):
                    native_id = brewfile_native_id(token, package_type)
                    if native_id in seen:
                        continue
                    seen.add(native_id)
                    tap, name = _tap_and_name(token, package_type)
                    entries.append(BrewfileEntry(native_id, name, package_type, tap, brewfile))
                    found += 1
            logger.info(f"  Found {found} new Homebrew packages in {path}")

        logger.info(f"Total Homebrew packages: {len(entries)}")
        return entries
