"""Tests for structured analytics logging."""

import json
import logging

import pytest

from vulnmap.core.logging_config import (
    ANALYTICS_LOGGER_NAME,
    AnalyticsLogFormatter,
    configure_analytics_logging,
    get_analytics_logger,
    summarize_analytics_log,
)


@pytest.fixture
def analytics_logger():
    yield get_analytics_logger()
    logger = logging.getLogger(ANALYTICS_LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


class TestAnalyticsLogFormatter:
    def test_structured_fields(self):
        record = logging.LogRecord("vulnmap.analytics", logging.INFO, __file__, 1, "stored", None, None)
        record.event = "analytics_stored"
        record.tool = "scanner"
        record.context = {"count": 2}

        entry = json.loads(AnalyticsLogFormatter().format(record))

        assert entry["message"] == "stored"
        assert entry["event"] == "analytics_stored"
        assert entry["tool"] == "scanner"
        assert entry["context"] == {"count": 2}
        assert entry["service"] == "vulnmap-mcp-service"
        assert "snapshot_id" not in entry


class TestConfigureAnalyticsLogging:
    def test_writes_json_lines(self, tmp_path, analytics_logger):
        log_file = tmp_path / "analytics.log"
        configure_analytics_logging(log_file=str(log_file), enable_console=False)

        analytics_logger.info("Stored", extra={"event": "analytics_stored", "tool": "scanner"})
        analytics_logger.info("Stored", extra={"event": "analytics_stored", "tool": "scanner"})
        analytics_logger.info("Read", extra={"event": "analytics_retrieved"})
        analytics_logger.error("Failed", extra={"event": "analytics_stored", "tool": "other"})
        for handler in analytics_logger.handlers:
            handler.flush()

        stats = summarize_analytics_log(str(log_file))

        assert stats["stores"] == 3
        assert stats["retrievals"] == 1
        assert stats["errors"] == 1
        assert stats["tools"] == {"scanner": 2, "other": 1}

    def test_level(self, analytics_logger):
        configure_analytics_logging(log_level="warning", enable_console=False)
        assert analytics_logger.level == logging.WARNING
        assert analytics_logger.propagate is False


class TestSummarizeAnalyticsLog:
    def test_missing_file(self, tmp_path):
        stats = summarize_analytics_log(str(tmp_path / "missing.log"))
        assert stats == {"stores": 0, "retrievals": 0, "maps_generated": 0, "errors": 0, "tools": {}}

    def test_skips_non_json_lines(self, tmp_path):
        log_file = tmp_path / "analytics.log"
        log_file.write_text(
            "not json\n" + json.dumps({"event": "vulnerability_maps_generated", "level": "INFO"}) + "\n"
        )
        assert summarize_analytics_log(str(log_file))["maps_generated"] == 1
