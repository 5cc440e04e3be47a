"""Command-line entry point and pipeline for bluefin-releases."""

import json
import os
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import click
import requests
import sentry_sdk

from .. import __version__
from .._catalog.backends import BluefinOSCatalog, BrewfileRepository, FlathubCatalog, HomebrewCatalog
from .._catalog.collector import CatalogCollector
from .._enrichment import (
    DEFAULT_RELEASE_LIMIT,
    EnrichmentOrchestrator,
    SourceResolver,
    create_default_registry,
    set_override_file,
)
from ..assembler import Performance, assemble, run_summary, write_dataset
from ..console import (
    print_banner,
    print_dataset_summary,
    print_enrichment_summary,
    print_final_failure,
    print_final_success,
    print_step_end,
    print_step_header,
)
from ..exceptions import APIError, BluefinReleasesError, CatalogError, ConfigurationError
from ..http_client import create_session
from ..logging_config import logger, setup_logging
from ..models import Item

DEFAULT_OUTPUT_FILE = "src/data/apps.json"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

MODE_BLUEFIN = "bluefin"
MODE_LEGACY = "legacy"
MODE_APP_IDS = "app-ids"


@dataclass
class Config:
    """Configuration settings for one pipeline run."""

    output_file: str = DEFAULT_OUTPUT_FILE
    legacy: bool = False
    app_ids: List[str] = field(default_factory=list)
    overrides_file: Optional[str] = None
    github_token: Optional[str] = None
    gitlab_token: Optional[str] = None
    release_limit: int = DEFAULT_RELEASE_LIMIT
    log_level: str = "INFO"
    structured_logs: bool = False
    telemetry: bool = False
    sentry_dsn: Optional[str] = None

    @property
    def mode(self) -> str:
        if self.legacy:
            return MODE_LEGACY
        if self.app_ids:
            return MODE_APP_IDS
        return MODE_BLUEFIN

    def validate(self) -> None:
        """
        Validate configuration settings.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if self.release_limit < 1:
            raise ConfigurationError(f"RELEASE_LIMIT must be a positive integer, got {self.release_limit}")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown LOG_LEVEL '{self.log_level}'. Expected one of: {', '.join(LOG_LEVELS)}")
        if self.legacy and self.app_ids:
            raise ConfigurationError("--app-id cannot be combined with --legacy")
        if self.overrides_file and not Path(self.overrides_file).is_file():
            raise ConfigurationError(f"Override file not found: {self.overrides_file}")

        parent = Path(self.output_file).parent
        for ancestor in (parent, *parent.parents):
            if ancestor.exists():
                if not ancestor.is_dir():
                    raise ConfigurationError(f"Cannot write {self.output_file}: {ancestor} is not a directory")
                break


def evaluate_boolean(value: str) -> bool:
    """
    Evaluate string values as boolean.

    Args:
        value: String value to evaluate

    Returns:
        Boolean result
    """
    return value.lower() in ["true", "yes", "yeah", "1"]


def _split_ids(values: Sequence[str]) -> List[str]:
    ids: List[str] = []
    for value in values:
        for app_id in value.split(","):
            app_id = app_id.strip()
            if app_id and app_id not in ids:
                ids.append(app_id)
    return ids


def build_config(
    output_file: Optional[str] = None,
    legacy: bool = False,
    app_ids: Sequence[str] = (),
    overrides_file: Optional[str] = None,
    github_token: Optional[str] = None,
    gitlab_token: Optional[str] = None,
    release_limit: int = DEFAULT_RELEASE_LIMIT,
    log_level: str = "INFO",
    structured_logs: Optional[bool] = None,
    telemetry: Optional[bool] = None,
) -> Config:
    """
    Build a Config from CLI values, falling back to environment variables.

    Flags left unset (None) are read from LOG_FORMAT and TELEMETRY; app ids
    come from ``--app-id`` or the comma separated APP_IDS variable.
    Telemetry defaults to on only when SENTRY_DSN is set.

    Returns:
        Config (not yet validated)
    """
    if not app_ids and os.getenv("APP_IDS"):
        app_ids = [os.environ["APP_IDS"]]

    if structured_logs is None:
        structured_logs = os.getenv("LOG_FORMAT", "").lower() == "json"

    sentry_dsn = os.getenv("SENTRY_DSN") or None
    if telemetry is None:
        telemetry_env = os.getenv("TELEMETRY")
        telemetry = evaluate_boolean(telemetry_env) if telemetry_env is not None else bool(sentry_dsn)

    return Config(
        output_file=output_file or DEFAULT_OUTPUT_FILE,
        legacy=legacy,
        app_ids=_split_ids(app_ids),
        overrides_file=overrides_file or None,
        github_token=github_token or None,
        gitlab_token=gitlab_token or None,
        release_limit=release_limit,
        log_level=log_level.upper(),
        structured_logs=structured_logs,
        telemetry=telemetry and bool(sentry_dsn),
        sentry_dsn=sentry_dsn,
    )


def _before_send(event, hint):
    """
    Filter events before sending to Sentry.

    Configuration errors are user errors and are not reported.
    """
    if "exc_info" in hint:
        exc_type, exc_value, tb = hint["exc_info"]
        if isinstance(exc_value, ConfigurationError):
            return None
    return event


def initialize_sentry(dsn: str) -> None:
    """Initialize Sentry for error tracking."""
    sentry_sdk.init(
        dsn=dsn,
        release=f"bluefin-releases@{__version__}",
        traces_sample_rate=1.0,
        before_send=_before_send,
    )


def collect_flatpaks(config: Config, collector: CatalogCollector, brewfiles: BrewfileRepository) -> List[Item]:
    """
    Collect Flatpak items for the configured run mode.

    Raises:
        CatalogError: If the primary Flatpak listing cannot be fetched
    """
    if config.mode == MODE_LEGACY:
        logger.info("Fetching recently updated Flathub apps...")
        try:
            return collector.collect_recently_updated()
        except APIError as e:
            raise CatalogError(str(e)) from e

    if config.mode == MODE_APP_IDS:
        logger.info(f"Fetching {len(config.app_ids)} Flathub apps by id...")
        return collector.collect_ids(config.app_ids)

    entries = brewfiles.fetch_flatpak_entries()
    logger.info(f"Fetching {len(entries)} Bluefin-curated Flatpak apps from Flathub...")
    return collector.collect_ids(
        [entry.app_id for entry in entries],
        annotations={entry.app_id: {"app_set": entry.app_set} for entry in entries},
    )


def _collect_optional(collector: CatalogCollector) -> List[Item]:
    try:
        return collector.collect_all()
    except APIError as e:
        logger.warning(f"Failed to fetch {collector.backend.name} packages: {e}")
        return []


def run_pipeline(config: Config, session: Optional[requests.Session] = None) -> Dict[str, Any]:
    """
    Run the full pipeline and write the dataset.

    Args:
        config: Validated configuration
        session: Optional requests session (one is created otherwise)

    Returns:
        Run summary dictionary

    Raises:
        CatalogError: If the primary Flatpak discovery fails
        OutputValidationError: If the assembled dataset is invalid
    """
    started = time.monotonic()
    print_banner(__version__, config.mode)
    logger.info(f"Running in {config.mode.upper()} mode")

    if config.overrides_file:
        set_override_file(config.overrides_file)
    resolver = SourceResolver()

    own_session = session is None
    session = session or create_session()
    try:
        brewfiles = BrewfileRepository(session, github_token=config.github_token)
        collectors = [CatalogCollector(FlathubCatalog(session), resolver)]

        print_step_header(1, "Collect Flatpak apps")
        items = collect_flatpaks(config, collectors[0], brewfiles)
        print_step_end(1)

        if config.mode == MODE_BLUEFIN:
            print_step_header(2, "Collect Homebrew packages")
            homebrew = CatalogCollector(
                HomebrewCatalog(session, brewfiles=brewfiles, github_token=config.github_token), resolver
            )
            collectors.append(homebrew)
            homebrew_items = _collect_optional(homebrew)
            print_step_end(2)

            print_step_header(3, "Collect Bluefin OS releases")
            os_releases = CatalogCollector(BluefinOSCatalog(session, github_token=config.github_token), resolver)
            collectors.append(os_releases)
            os_items = _collect_optional(os_releases)
            print_step_end(3)

            items = items + homebrew_items + os_items

        counts: Dict[str, int] = {}
        for item in items:
            counts[item.package_kind.value] = counts.get(item.package_kind.value, 0) + 1
        logger.info(f"Total items: {len(items)} ({', '.join(f'{n} {kind}' for kind, n in counts.items())})")

        print_step_header(4, "Enrich with source repository releases")
        enrichment_started = time.monotonic()
        orchestrator = EnrichmentOrchestrator(
            create_default_registry(session, github_token=config.github_token, gitlab_token=config.gitlab_token),
            github_token=config.github_token,
            release_limit=config.release_limit,
        )
        result = orchestrator.run(items)
        enrichment_seconds = time.monotonic() - enrichment_started
        print_enrichment_summary(result.counts(), result.skipped_stage)
        print_step_end(4)
    finally:
        if own_session:
            session.close()

    print_step_header(5, "Write dataset")
    performance = Performance(
        catalog=sum(collector.listing_seconds for collector in collectors),
        details=sum(collector.details_seconds for collector in collectors),
        enrichment=enrichment_seconds,
    )
    dataset = assemble(result.items, build_duration=time.monotonic() - started, performance=performance)
    output_started = time.monotonic()
    write_dataset(dataset, config.output_file)
    performance.output = time.monotonic() - output_started
    print_step_end(5)

    summary = run_summary(dataset, time.monotonic() - started)
    print_dataset_summary(summary)
    print_final_success(config.output_file)
    return summary


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="bluefin-releases")
@click.option(
    "-o",
    "--output",
    "output_file",
    envvar="OUTPUT_FILE",
    default=DEFAULT_OUTPUT_FILE,
    show_default=True,
    help="Where to write the dataset JSON.",
)
@click.option(
    "--legacy/--no-legacy",
    envvar="LEGACY_MODE",
    default=False,
    help="Use Flathub's recently updated apps instead of the curated Bluefin lists.",
)
@click.option(
    "--app-id",
    "app_ids",
    multiple=True,
    help="Fetch specific Flathub app ids (repeatable, or comma separated APP_IDS).",
)
@click.option(
    "--overrides",
    "overrides_file",
    envvar="SOURCE_OVERRIDES_FILE",
    type=click.Path(dir_okay=False),
    help="YAML file of source repository overrides.",
)
@click.option("--github-token", envvar="GITHUB_TOKEN", help="GitHub token; without one enrichment is skipped.")
@click.option("--gitlab-token", envvar="GITLAB_TOKEN", help="Optional GitLab private token.")
@click.option(
    "--release-limit",
    envvar="RELEASE_LIMIT",
    type=int,
    default=DEFAULT_RELEASE_LIMIT,
    show_default=True,
    help="Releases fetched per source repository.",
)
@click.option("--log-level", envvar="LOG_LEVEL", default="INFO", show_default=True, help="Logging level.")
@click.option("--structured-logs/--plain-logs", default=None, help="Emit JSON log lines (LOG_FORMAT=json).")
@click.option("--telemetry/--no-telemetry", default=None, help="Report crashes to Sentry (needs SENTRY_DSN).")
def cli(
    output_file: str,
    legacy: bool,
    app_ids: Sequence[str],
    overrides_file: Optional[str],
    github_token: Optional[str],
    gitlab_token: Optional[str],
    release_limit: int,
    log_level: str,
    structured_logs: Optional[bool],
    telemetry: Optional[bool],
) -> None:
    """Aggregate Bluefin's Flatpak, Homebrew and OS releases into one changelog dataset."""
    config = build_config(
        output_file=output_file,
        legacy=legacy,
        app_ids=app_ids,
        overrides_file=overrides_file,
        github_token=github_token,
        gitlab_token=gitlab_token,
        release_limit=release_limit,
        log_level=log_level,
        structured_logs=structured_logs,
        telemetry=telemetry,
    )

    if config.telemetry:
        initialize_sentry(config.sentry_dsn)

    try:
        config.validate()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    setup_logging(config.log_level, config.structured_logs)

    try:
        summary = run_pipeline(config)
    except BluefinReleasesError as e:
        logger.error(f"Pipeline failed: {e}")
        print_final_failure(str(e))
        sys.exit(1)

    click.echo(json.dumps(summary, indent=2))


def main() -> None:
    """Entry point for ``python -m bluefin_releases``."""
    cli()
