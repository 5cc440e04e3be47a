"""Manually curated source repository overrides.

The table is loaded lazily, exactly once per process, and is read-only
afterwards. Problems with the override file never abort a run: the table
degrades to empty and a warning is logged.
"""

import json
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Union

import jsonschema
import yaml

from bluefin_releases.exceptions import OverrideDataError
from bluefin_releases.logging_config import logger

from ..models import HostKind, SourceRepo

PACKAGE_DIR = Path(__file__).parent.parent
DEFAULT_OVERRIDES_FILE = PACKAGE_DIR / "data" / "overrides.yaml"
OVERRIDES_SCHEMA_FILE = PACKAGE_DIR / "schemas" / "overrides.schema.json"


class OverrideTable:
    """Immutable mapping of item id to a curated SourceRepo."""

    def __init__(self, entries: Optional[Mapping[str, SourceRepo]] = None):
        self._entries: Mapping[str, SourceRepo] = MappingProxyType(dict(entries or {}))

    def get(self, item_id: str) -> Optional[SourceRepo]:
        return self._entries.get(item_id)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"OverrideTable({len(self._entries)} entries)"


def parse_overrides(data: Any) -> Dict[str, SourceRepo]:
    """
    Validate parsed override data and convert it to SourceRepos.

    Args:
        data: Parsed YAML document

    Returns:
        Mapping of item id to SourceRepo

    Raises:
        OverrideDataError: If the document does not match the override schema
    """
    with open(OVERRIDES_SCHEMA_FILE) as f:
        schema = json.load(f)

    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path)
        raise OverrideDataError(f"{e.message} (at {location or 'document root'})") from e

    entries: Dict[str, SourceRepo] = {}
    for item_id, entry in data["overrides"].items():
        entries[item_id] = SourceRepo(
            host_kind=HostKind(entry["type"]),
            url=entry["url"],
            owner=entry.get("owner") or None,
            repo=entry.get("repo") or None,
        )
    return entries


def load_override_table(path: Union[str, Path] = DEFAULT_OVERRIDES_FILE) -> OverrideTable:
    """
    Load an override file, degrading to an empty table on any problem.

    Args:
        path: YAML file with a top-level ``overrides`` mapping

    Returns:
        OverrideTable, empty if the file is missing or malformed
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
        entries = parse_overrides(data)
    except FileNotFoundError:
        logger.warning(f"Override file not found: {path}; continuing without overrides")
        return OverrideTable()
    except (OSError, yaml.YAMLError, OverrideDataError) as e:
        logger.warning(f"Ignoring malformed override file {path}: {e}")
        return OverrideTable()

    logger.debug(f"Loaded {len(entries)} source overrides from {path}")
    return OverrideTable(entries)


_override_path: Path = DEFAULT_OVERRIDES_FILE
_override_table: Optional[OverrideTable] = None
_override_lock = threading.Lock()


def set_override_file(path: Union[str, Path]) -> None:
    """Point the process-wide table at another file. Takes effect on the next load."""
    global _override_path, _override_table
    with _override_lock:
        _override_path = Path(path)
        _override_table = None


def get_override_table() -> OverrideTable:
    """Return the process-wide override table, loading it on first use."""
    global _override_table
    if _override_table is not None:
        return _override_table
    with _override_lock:
        if _override_table is None:
            _override_table = load_override_table(_override_path)
        return _override_table


def clear_cache() -> None:
    """Forget the loaded table and restore the packaged default file."""
    global _override_path, _override_table
    with _override_lock:
        _override_path = DEFAULT_OVERRIDES_FILE
        _override_table = None
