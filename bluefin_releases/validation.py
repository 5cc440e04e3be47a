"""Dataset validation using a JSON schema.

Usage:
    from bluefin_releases.validation import validate_dataset

    result = validate_dataset(document)
    if not result.valid:
        print(f"Validation failed: {result.error_message} at {result.error_path}")
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from bluefin_releases.logging_config import logger

PACKAGE_DIR = Path(__file__).parent
DATASET_SCHEMA_FILE = PACKAGE_DIR / "schemas" / "dataset.schema.json"

# Cache for loaded schemas
_schema_cache: Dict[str, dict] = {}


@dataclass
class ValidationResult:
    """Result of dataset validation."""

    valid: bool
    error_message: Optional[str] = None
    error_path: Optional[str] = None

    @classmethod
    def success(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def failure(cls, error_message: str, error_path: Optional[str] = None) -> "ValidationResult":
        return cls(valid=False, error_message=error_message, error_path=error_path)


def _load_schema(schema_path: Path) -> dict:
    """Load a JSON schema from disk with caching."""
    cache_key = str(schema_path)
    if cache_key not in _schema_cache:
        with open(schema_path) as f:
            _schema_cache[cache_key] = json.load(f)
    return _schema_cache[cache_key]


def validate_dataset(document: Dict[str, Any]) -> ValidationResult:
    """
    Validate an output document against the dataset schema.

    Args:
        document: The ``{"metadata": ..., "apps": [...]}`` document

    Returns:
        ValidationResult with validation status and the first error
    """
    schema = _load_schema(DATASET_SCHEMA_FILE)
    try:
        jsonschema.validate(instance=document, schema=schema)
    except jsonschema.ValidationError as e:
        error_path = ".".join(str(p) for p in e.absolute_path) if e.absolute_path else None
        logger.error(f"Dataset validation failed: {e.message}")
        if error_path:
            logger.error(f"Error at path: {error_path}")
        return ValidationResult.failure(e.message, error_path)

    logger.debug("Dataset validated successfully")
    return ValidationResult.success()
