"""Dataset assembly, statistics and output serialization."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from bluefin_releases import __version__
from bluefin_releases.exceptions import OutputValidationError
from bluefin_releases.logging_config import logger

from .models import HostKind, Item, PackageKind, utc_timestamp
from .validation import validate_dataset

SCHEMA_VERSION = "1.0.0"
GENERATED_BY = f"bluefin-releases v{__version__}"


def format_duration(seconds: float) -> str:
    """Format a duration in seconds, e.g. ``"1m4.250s"`` or ``"0.812s"``."""
    seconds = max(seconds, 0.0)
    minutes, rest = divmod(seconds, 60)
    if minutes:
        return f"{int(minutes)}m{rest:.3f}s"
    return f"{rest:.3f}s"


@dataclass
class Stats:
    """Aggregate counts over the assembled items."""

    apps_total: int = 0
    apps_with_github_repo: int = 0
    apps_with_gitlab_repo: int = 0
    apps_with_changelogs: int = 0
    total_releases: int = 0
    flatpak_count: int = 0
    homebrew_count: int = 0
    os_count: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "appsTotal": self.apps_total,
            "appsWithGitHubRepo": self.apps_with_github_repo,
            "appsWithGitLabRepo": self.apps_with_gitlab_repo,
            "appsWithChangelogs": self.apps_with_changelogs,
            "totalReleases": self.total_releases,
            "flatpakCount": self.flatpak_count,
            "homebrewCount": self.homebrew_count,
            "osCount": self.os_count,
        }


@dataclass
class Performance:
    """Stage durations in seconds."""

    catalog: float = 0.0
    details: float = 0.0
    enrichment: float = 0.0
    output: float = 0.0

    def to_dict(self) -> Dict[str, str]:
        return {
            "catalogFetchDuration": format_duration(self.catalog),
            "detailsFetchDuration": format_duration(self.details),
            "enrichmentDuration": format_duration(self.enrichment),
            "outputDuration": format_duration(self.output),
        }


@dataclass
class Dataset:
    """The single artifact of a run: metadata plus the ordered items."""

    items: List[Item]
    stats: Stats
    generated_at: str
    build_duration: float = 0.0
    performance: Performance = field(default_factory=Performance)
    schema_version: str = SCHEMA_VERSION
    generated_by: str = GENERATED_BY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metadata": {
                "schemaVersion": self.schema_version,
                "generatedAt": self.generated_at,
                "generatedBy": self.generated_by,
                "buildDuration": format_duration(self.build_duration),
                "stats": self.stats.to_dict(),
                "performance": self.performance.to_dict(),
            },
            "apps": [item.to_dict() for item in self.items],
        }


def compute_stats(items: List[Item]) -> Stats:
    """Count items per kind, repository host and changelog presence."""
    stats = Stats(apps_total=len(items))
    for item in items:
        if item.source_repo is not None:
            if item.source_repo.host_kind is HostKind.GITHUB:
                stats.apps_with_github_repo += 1
            elif item.source_repo.host_kind is HostKind.GITLAB:
                stats.apps_with_gitlab_repo += 1
        if item.releases:
            stats.apps_with_changelogs += 1
            stats.total_releases += len(item.releases)
        if item.package_kind is PackageKind.FLATPAK:
            stats.flatpak_count += 1
        elif item.package_kind is PackageKind.HOMEBREW:
            stats.homebrew_count += 1
        else:
            stats.os_count += 1
    return stats


def assemble(items: List[Item], build_duration: float = 0.0, performance: Optional[Performance] = None) -> Dataset:
    """
    Build the output dataset from enriched items.

    Args:
        items: Items in output order
        build_duration: Seconds since the run started
        performance: Stage durations

    Returns:
        Dataset ready to be written
    """
    stats = compute_stats(items)
    logger.info(f"Apps with GitHub repos: {stats.apps_with_github_repo}")
    logger.info(f"Apps with GitLab repos: {stats.apps_with_gitlab_repo}")
    logger.info(f"Apps with changelogs: {stats.apps_with_changelogs}")
    logger.info(f"Total releases: {stats.total_releases}")
    return Dataset(
        items=items,
        stats=stats,
        generated_at=utc_timestamp(),
        build_duration=build_duration,
        performance=performance or Performance(),
    )


def write_dataset(dataset: Dataset, output_path: Union[str, Path]) -> Path:
    """
    Validate and write a dataset as pretty-printed UTF-8 JSON.

    Parent directories are created as needed.

    Raises:
        OutputValidationError: If the document does not match the dataset schema
    """
    document = dataset.to_dict()
    result = validate_dataset(document)
    if not result.valid:
        location = f" at {result.error_path}" if result.error_path else ""
        raise OutputValidationError(f"Output dataset is invalid: {result.error_message}{location}")

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2, ensure_ascii=False)
        f.write("\n")

    logger.info(f"Wrote {len(dataset.items)} items to {path}")
    return path


def load_dataset(input_path: Union[str, Path]) -> Dataset:
    """Read a written dataset back into Items."""
    with open(input_path, encoding="utf-8") as f:
        document = json.load(f)

    metadata = document.get("metadata", {})
    items = [Item.from_dict(app) for app in document.get("apps", [])]
    return Dataset(
        items=items,
        stats=compute_stats(items),
        generated_at=metadata.get("generatedAt", ""),
        schema_version=metadata.get("schemaVersion", SCHEMA_VERSION),
        generated_by=metadata.get("generatedBy", GENERATED_BY),
    )


def run_summary(dataset: Dataset, duration: float) -> Dict[str, Any]:
    """Machine-readable run summary printed for CI consumers."""
    stats = dataset.stats
    return {
        "success": True,
        "duration": format_duration(duration),
        "apps_total": stats.apps_total,
        "flatpak_count": stats.flatpak_count,
        "homebrew_count": stats.homebrew_count,
        "os_count": stats.os_count,
        "apps_with_github": stats.apps_with_github_repo,
        "apps_with_gitlab": stats.apps_with_gitlab_repo,
        "apps_with_changelog": stats.apps_with_changelogs,
        "total_releases": stats.total_releases,
    }
