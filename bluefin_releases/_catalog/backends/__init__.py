"""Catalog backends for the upstreams Bluefin ships packages from."""

from .bluefin_os import BluefinOSCatalog
from .brewfiles import BrewfileRepository
from .flathub import FlathubCatalog
from .homebrew import HomebrewCatalog

__all__ = [
    "BluefinOSCatalog",
    "BrewfileRepository",
    "FlathubCatalog",
    "HomebrewCatalog",
]
