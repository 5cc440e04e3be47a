"""Text parsers for Brewfiles and Homebrew formula/cask definitions."""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Union

# flatpak "org.gnome.Calculator"
FLATPAK_PATTERN = re.compile(r'flatpak\s+"([^"]+)"')
# brew "bat" (tap lines are deliberately not matched)
BREW_PATTERN = re.compile(r'\bbrew\s+"([^"]+)"')
# cask "visual-studio-code"
CASK_PATTERN = re.compile(r'\bcask\s+"([^"]+)"')

_DESC_PATTERN = re.compile(r'^\s*desc\s+"((?:[^"\\]|\\.)*)"', re.MULTILINE)
_HOMEPAGE_PATTERN = re.compile(r'^\s*homepage\s+"([^"]+)"', re.MULTILINE)
_VERSION_PATTERN = re.compile(r'^\s*version\s+"([^"]+)"', re.MULTILINE)
_URL_PATTERN = re.compile(r'^\s*url\s+"([^"]+)"', re.MULTILINE)
_CASK_NAME_PATTERN = re.compile(r'^\s*name\s+"([^"]+)"', re.MULTILINE)
_GITHUB_REPO_PATTERN = re.compile(r"github\.com/([^/\s\"]+)/([^/\s\"#?]+)")


def extract_unique(lines: Iterable[str], pattern: Union[str, Pattern[str]]) -> List[str]:
    """
    Extract the first capture group of every match, dropping repeats.

    Duplicates are collapsed by exact string equality and the first-seen
    order is preserved, so calling this over the concatenated lines of
    several files deduplicates across files too.

    Args:
        lines: Text lines to scan
        pattern: Regex with one capture group

    Returns:
        Ordered list of unique tokens

    Example:
        >>> extract_unique(['brew "bat"', 'brew "bat"', 'brew "gh"'], r'brew "([^"]+)"')
        ['bat', 'gh']
    """
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    seen = set()
    tokens: List[str] = []
    for line in lines:
        for match in regex.finditer(line):
            token = match.group(1)
            if token not in seen:
                seen.add(token)
                tokens.append(token)
    return tokens


def extract_entries(text: str, pattern: Union[str, Pattern[str]]) -> List[str]:
    """Extract unique tokens from a whole manifest text."""
    return extract_unique(text.splitlines(), pattern)


@dataclass
class FormulaMetadata:
    """Fields scraped from a Homebrew formula or cask Ruby file."""

    description: str = ""
    homepage: str = ""
    version: str = ""
    display_name: str = ""
    github_repo: Optional[str] = None  # "owner/repo"


def parse_formula(text: str) -> FormulaMetadata:
    """
    Scrape the metadata stanzas from formula or cask Ruby source.

    Only the literal ``desc``, ``homepage``, ``version``, ``name`` and ``url``
    stanzas are read; interpolated values are kept verbatim.
    """
    metadata = FormulaMetadata()

    if match := _DESC_PATTERN.search(text):
        metadata.description = match.group(1).replace('\\"', '"')
    if match := _HOMEPAGE_PATTERN.search(text):
        metadata.homepage = match.group(1)
    if match := _VERSION_PATTERN.search(text):
        metadata.version = match.group(1)
    if match := _CASK_NAME_PATTERN.search(text):
        metadata.display_name = match.group(1)

    # Download URLs are the most reliable pointer at the upstream repository
    candidates = [m.group(1) for m in _URL_PATTERN.finditer(text)]
    if metadata.homepage:
        candidates.append(metadata.homepage)
    for candidate in candidates:
        if repo_match := _GITHUB_REPO_PATTERN.search(candidate):
            owner, repo = repo_match.group(1), repo_match.group(2)
            if repo.endswith(".git"):
                repo = repo[: -len(".git")]
            metadata.github_repo = f"{owner}/{repo}"
            break

    return metadata
