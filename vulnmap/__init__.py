"""VulnMap: finding aggregation, risk scoring and analytics storage over MCP."""

__version__ = "1.0.0"
