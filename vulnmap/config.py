"""Environment-driven configuration.

Values are read at call time so tests and the server entry point can set
environment variables after import.
"""

import os
from pathlib import Path

from .core.exceptions import ConfigurationError

DEFAULT_MCP_PORT = 3000
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_analytics_base_path() -> Path:
    """Return the default base directory for the analytics store.

    Uses VULNMAP_ANALYTICS_DIR when set, otherwise the current directory.
    """
    configured = os.environ.get("VULNMAP_ANALYTICS_DIR")
    return Path(configured) if configured else Path.cwd()


def get_log_level() -> str:
    level = os.environ.get("VULNMAP_LOG_LEVEL", "INFO").upper()
    if level not in VALID_LOG_LEVELS:
        raise ConfigurationError(f"Invalid VULNMAP_LOG_LEVEL: {level}")
    return level


def get_log_file() -> str | None:
    return os.environ.get("VULNMAP_LOG_FILE") or None


def get_mcp_port() -> int:
    """Return the HTTP port for the MCP server (MCP_PORT, default 3000)."""
    raw = os.environ.get("MCP_PORT", str(DEFAULT_MCP_PORT))
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"MCP_PORT must be an integer, got {raw!r}") from e
