"""Logging configuration for bluefin-releases."""

import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict

LOGGER_NAME = "bluefin_releases"


def setup_logging(level: str = "INFO", structured: bool = False) -> logging.Logger:
    """
    Set up logging configuration.

    Calling this again after the first setup only adjusts the level, so the
    CLI can apply ``--log-level`` to the logger that modules already imported.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        structured: Whether to use structured JSON logging

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    numeric_level = getattr(logging, level.upper())

    # Avoid duplicate handlers
    if logger.handlers:
        logger.setLevel(numeric_level)
        for handler in logger.handlers:
            handler.setLevel(numeric_level)
            if structured and not isinstance(handler.formatter, StructuredFormatter):
                handler.setFormatter(StructuredFormatter())
        return logger

    logger.setLevel(numeric_level)

    # Log to stderr so stdout stays free for the run summary JSON
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)

    if structured:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "[%(asctime)s] %(levelname)s - %(name)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


# Global logger instance
logger = setup_logging()
