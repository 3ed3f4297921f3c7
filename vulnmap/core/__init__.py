"""Core utilities for logging and the exception hierarchy."""

from .exceptions import (
    ConfigurationError,
    InvalidInputError,
    NotFoundError,
    StorageError,
    StorageUnavailableError,
    ValidationError,
    VulnMapError,
)
from .logging_config import configure_analytics_logging, get_analytics_logger

__all__ = [
    # Logging
    "configure_analytics_logging",
    "get_analytics_logger",
    # Exceptions
    "VulnMapError",
    "ValidationError",
    "InvalidInputError",
    "StorageError",
    "StorageUnavailableError",
    "NotFoundError",
    "ConfigurationError",
]
