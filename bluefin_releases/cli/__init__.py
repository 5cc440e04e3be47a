"""CLI module for bluefin-releases.

Every option can also be supplied through an environment variable, which is
how the GitHub workflow configures a run.
"""

from .main import (
    Config,
    build_config,
    cli,
    evaluate_boolean,
    main,
    run_pipeline,
)

__all__ = [
    "cli",
    "main",
    "Config",
    "build_config",
    "run_pipeline",
    "evaluate_boolean",
]
