"""
Logging configuration for analytics events.

Tool invocations, analytics stores and retrievals are logged as one JSON
object per line on the ``vulnmap.analytics`` logger so they can be shipped
to a log pipeline or summarized offline.
"""

import json
import logging
from logging.handlers import TimedRotatingFileHandler
from typing import Any

from ..constants import SERVICE_NAME, SERVICE_VERSION

ANALYTICS_LOGGER_NAME = "vulnmap.analytics"


class AnalyticsLogFormatter(logging.Formatter):
    """Formats analytics log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log records with structured data."""
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": getattr(record, "service", SERVICE_NAME),
            "service_version": getattr(record, "service_version", SERVICE_VERSION),
        }

        if hasattr(record, "event"):
            log_entry["event"] = record.event

        for field in ["tool", "action", "snapshot_id", "repository", "status"]:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        # Free-form context (filters, option flags, counts)
        if hasattr(record, "context"):
            log_entry["context"] = record.context

        if hasattr(record, "error"):
            log_entry["error"] = record.error

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def configure_analytics_logging(
    log_file: str | None = None,
    log_level: str = "INFO",
    enable_console: bool = True,
) -> None:
    """
    Configure logging for analytics events.

    Args:
        log_file: Path to a log file for analytics events (optional)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        enable_console: Whether to also log to stderr
    """
    logger = logging.getLogger(ANALYTICS_LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper()))
    logger.propagate = False

    logger.handlers.clear()

    formatter = AnalyticsLogFormatter()

    if log_file:
        file_handler = TimedRotatingFileHandler(
            log_file,
            when='H',
            interval=1,
            backupCount=168,  # 7 days of hourly files
            encoding='utf-8',
            utc=False
        )
        file_handler.suffix = "%Y%m%d_%H%M%S.log"
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if enable_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)


def get_analytics_logger() -> logging.Logger:
    """Get the structured analytics logger."""
    return logging.getLogger(ANALYTICS_LOGGER_NAME)


def summarize_analytics_log(log_file: str) -> dict[str, Any]:
    """
    Summarize an analytics log file.

    Args:
        log_file: Path to a JSON-lines analytics log

    Returns:
        Counts of stores, retrievals and errors, plus per-tool store counts
    """
    stats: dict[str, Any] = {
        "stores": 0,
        "retrievals": 0,
        "maps_generated": 0,
        "errors": 0,
        "tools": {},
    }

    try:
        with open(log_file, encoding="utf-8") as f:
            for line in f:
                try:
                    entry = json.loads(line.strip())
                except json.JSONDecodeError:
                    continue

                event = entry.get("event")
                if event == "analytics_stored":
                    stats["stores"] += 1
                    tool = entry.get("tool", "unknown")
                    stats["tools"][tool] = stats["tools"].get(tool, 0) + 1
                elif event == "analytics_retrieved":
                    stats["retrievals"] += 1
                elif event == "vulnerability_maps_generated":
                    stats["maps_generated"] += 1

                if entry.get("level") == "ERROR":
                    stats["errors"] += 1
    except FileNotFoundError:
        pass

    return stats
