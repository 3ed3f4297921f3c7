"""Custom exception hierarchy for VulnMap.

Aggregation code raises validation errors for malformed input; the analytics
store raises storage errors. Callers can catch ``VulnMapError`` to handle
everything VulnMap-specific with a single except clause.
"""


class VulnMapError(Exception):
    """Base exception for all VulnMap errors."""
    pass


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(VulnMapError):
    """Base exception for input validation errors."""
    pass


class InvalidInputError(ValidationError):
    """Invalid input provided to a function or tool.

    Raised for findings whose severity is present but not a string, for
    structurally malformed findings, and for malformed tool identifiers.
    """
    pass


# =============================================================================
# Storage Errors
# =============================================================================

class StorageError(VulnMapError):
    """Base exception for analytics storage errors."""
    pass


class StorageUnavailableError(StorageError):
    """The analytics store could not complete a read or write."""
    pass


class NotFoundError(StorageError):
    """A specific analytics snapshot does not exist."""

    def __init__(self, message: str, snapshot_id: str | None = None):
        super().__init__(message)
        self.snapshot_id = snapshot_id


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(VulnMapError):
    """Configuration value is invalid or malformed."""
    pass
