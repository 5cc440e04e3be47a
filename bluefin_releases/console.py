"""Rich console utilities for bluefin-releases.

All human-facing output goes to stderr so stdout carries nothing but the
machine-readable run summary.
"""

import os
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional, Tuple

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

# Detect CI environments
IS_GITHUB_ACTIONS = os.getenv("GITHUB_ACTIONS") == "true"
IS_CI = os.getenv("CI") == "true" or IS_GITHUB_ACTIONS

# Bluefin palette; ANSI names in CI so both light and dark themes stay readable
BRAND_COLORS_HEX = {
    "blue": "#3584E4",
    "sky": "#62A0EA",
    "teal": "#2EC27E",
}
BRAND_COLORS_ADAPTIVE = {
    "blue": "blue",
    "sky": "bright_blue",
    "teal": "green",
}
BRAND_COLORS = BRAND_COLORS_ADAPTIVE if IS_CI else BRAND_COLORS_HEX

custom_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "step": "bold blue",
        "highlight": "magenta",
    }
)

# Shared console instance
console = Console(
    theme=custom_theme,
    stderr=True,
    force_terminal=IS_GITHUB_ACTIONS or None,
    color_system="auto",
)


def print_banner(version: str = "unknown", mode: str = "bluefin") -> None:
    """Print the run banner with the version and run mode."""
    banner = Text()
    banner.append("bluefin", style=f"bold {BRAND_COLORS['blue']}")
    banner.append("-", style=BRAND_COLORS["sky"])
    banner.append("releases", style=f"bold {BRAND_COLORS['teal']}")
    version_display = f"v{version}" if version and version[0:1].isdigit() else version
    banner.append(f" {version_display}", style=BRAND_COLORS["sky"])
    banner.append(f" - {mode} mode\n", style="dim")
    console.print(banner)


def _workflow_command(command: str) -> None:
    # Workflow commands go to stderr with the rest of the console; the runner reads both streams
    # and stdout carries only the JSON run summary
    console.out(command, highlight=False)


def print_step_header(step_num: int, title: str) -> None:
    """
    Print a styled step header.

    In GitHub Actions, uses ::group:: for collapsible sections.

    Args:
        step_num: Step number
        title: Step title
    """
    step_title = f"STEP {step_num}: {title}"

    if IS_GITHUB_ACTIONS:
        _workflow_command(f"::group::{step_title}")
        console.print(f"[bold blue]{step_title}[/bold blue]")
    else:
        console.print()
        console.rule(f"[bold blue]{step_title}[/bold blue]", style="blue")


def print_step_end(step_num: int, success: bool = True) -> None:
    """Print step completion status and close the GitHub Actions group."""
    if success:
        console.print(f"[success]✓ Step {step_num} completed successfully[/success]")
    else:
        console.print(f"[error]✗ Step {step_num} failed[/error]")

    if IS_GITHUB_ACTIONS:
        _workflow_command("::endgroup::")
    else:
        console.print()


@contextmanager
def gha_group(title: str) -> Generator[None, None, None]:
    """Context manager for GitHub Actions collapsible groups."""
    if IS_GITHUB_ACTIONS:
        _workflow_command(f"::group::{title}")
    try:
        yield
    finally:
        if IS_GITHUB_ACTIONS:
            _workflow_command("::endgroup::")


def gha_warning(message: str, title: Optional[str] = None) -> None:
    """Emit a warning that appears in the GitHub Actions job summary."""
    if IS_GITHUB_ACTIONS:
        prefix = f"::warning title={title}::" if title else "::warning::"
        _workflow_command(f"{prefix}{message}")
    elif title:
        console.print(f"[warning]Warning ({title}):[/warning] {message}")
    else:
        console.print(f"[warning]Warning:[/warning] {message}")


def gha_error(message: str, title: Optional[str] = None) -> None:
    """Emit an error that appears in the GitHub Actions job summary."""
    if IS_GITHUB_ACTIONS:
        prefix = f"::error title={title}::" if title else "::error::"
        _workflow_command(f"{prefix}{message}")
    elif title:
        console.print(f"[error]Error ({title}):[/error] {message}")
    else:
        console.print(f"[error]Error:[/error] {message}")


def print_summary_table(title: str, data: List[Tuple[str, Any]], show_if_empty: bool = False) -> None:
    """
    Print a two-column summary table.

    Args:
        title: Table title
        data: List of (label, value) tuples
        show_if_empty: Whether to keep rows whose value is 0/empty
    """
    if not show_if_empty:
        data = [(label, value) for label, value in data if value]

    if not data:
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    for label, value in data:
        table.add_row(label, str(value))

    console.print(table)


def print_dataset_summary(summary: Dict[str, Any]) -> None:
    """Print the run summary (as produced by ``assembler.run_summary``)."""
    data = [
        ("Packages", summary.get("apps_total", 0)),
        ("Flatpak", summary.get("flatpak_count", 0)),
        ("Homebrew", summary.get("homebrew_count", 0)),
        ("OS releases", summary.get("os_count", 0)),
        ("With GitHub repo", summary.get("apps_with_github", 0)),
        ("With GitLab repo", summary.get("apps_with_gitlab", 0)),
        ("With changelog", summary.get("apps_with_changelog", 0)),
        ("Total releases", summary.get("total_releases", 0)),
        ("Duration", summary.get("duration", "")),
    ]
    print_summary_table("Dataset Summary", data, show_if_empty=True)


def print_enrichment_summary(counts: Dict[str, int], skipped_stage: bool = False) -> None:
    """Print per-item enrichment outcomes."""
    if skipped_stage:
        gha_warning("GITHUB_TOKEN not set; release enrichment was skipped", title="Enrichment skipped")
        return
    data = [
        ("Merged", counts.get("merged", 0)),
        ("Skipped (no GitHub/GitLab repo)", counts.get("skipped", 0)),
        ("Failed (kept catalog releases)", counts.get("failed_soft", 0)),
    ]
    print_summary_table("Release Enrichment", data, show_if_empty=True)


def print_final_success(output_path: str) -> None:
    """Print final success message."""
    console.print()
    if IS_GITHUB_ACTIONS:
        console.print(f"[bold green]✓ SUCCESS![/bold green] Dataset written to {output_path}")
    else:
        console.rule("[bold green]SUCCESS[/bold green]", style="green")
        console.print(f"[bold green]Dataset written to {output_path}[/bold green]", justify="center")
    console.print()


def print_final_failure(message: str) -> None:
    """Print final failure message."""
    console.print()
    gha_error(message, title="Release Pipeline Failed")
    if not IS_GITHUB_ACTIONS:
        console.rule("[bold red]FAILED[/bold red]", style="red")
        console.print(f"[bold red]{message}[/bold red]", justify="center")
    console.print()
