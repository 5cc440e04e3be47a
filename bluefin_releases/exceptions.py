"""Custom exceptions for bluefin-releases."""


class BluefinReleasesError(Exception):
    """Base exception for all bluefin-releases operations."""


class ConfigurationError(BluefinReleasesError):
    """Raised when configuration validation fails."""


class APIError(BluefinReleasesError):
    """Raised when a catalog or release backend request fails."""


class RateLimitError(APIError):
    """Raised when an upstream rejects a request with 403 or 429."""


class CatalogError(BluefinReleasesError):
    """Raised when the primary catalog discovery fails and nothing can be assembled."""


class OverrideDataError(BluefinReleasesError):
    """Raised when the source override data does not match its schema."""


class OutputValidationError(BluefinReleasesError):
    """Raised when the assembled dataset fails schema validation."""
