"""Catalog backends and normalization into the unified item model."""

from .manifest import extract_entries, extract_unique
from .normalizer import make_item_id, normalize
from .protocol import CatalogBackend, RawItem

__all__ = [
    "CatalogBackend",
    "RawItem",
    "extract_entries",
    "extract_unique",
    "make_item_id",
    "normalize",
]
