"""Tests for environment configuration."""

from pathlib import Path

import pytest

from vulnmap.config import get_analytics_base_path, get_log_file, get_log_level, get_mcp_port
from vulnmap.core.exceptions import ConfigurationError


class TestConfig:
    def test_defaults(self, monkeypatch):
        for name in ("VULNMAP_ANALYTICS_DIR", "VULNMAP_LOG_LEVEL", "VULNMAP_LOG_FILE", "MCP_PORT"):
            monkeypatch.delenv(name, raising=False)

        assert get_analytics_base_path() == Path.cwd()
        assert get_log_level() == "INFO"
        assert get_log_file() is None
        assert get_mcp_port() == 3000

    def test_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("VULNMAP_ANALYTICS_DIR", str(tmp_path))
        monkeypatch.setenv("VULNMAP_LOG_LEVEL", "debug")
        monkeypatch.setenv("VULNMAP_LOG_FILE", str(tmp_path / "a.log"))
        monkeypatch.setenv("MCP_PORT", "8080")

        assert get_analytics_base_path() == tmp_path
        assert get_log_level() == "DEBUG"
        assert get_log_file() == str(tmp_path / "a.log")
        assert get_mcp_port() == 8080

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("VULNMAP_LOG_LEVEL", "chatty")
        with pytest.raises(ConfigurationError):
            get_log_level()

    def test_invalid_port(self, monkeypatch):
        monkeypatch.setenv("MCP_PORT", "http")
        with pytest.raises(ConfigurationError):
            get_mcp_port()
