"""Constants and configuration values for VulnMap.

This module centralizes scoring policy and storage layout values
that are used across the codebase for easier maintenance.
"""

# =============================================================================
# Service Identity
# =============================================================================

SERVICE_NAME = "vulnmap-mcp-service"
SERVICE_VERSION = "1.0.0"

# Envelope schema version, bumped when the stored record layout changes
ANALYTICS_SCHEMA_VERSION = "1.0.0"


# =============================================================================
# Scoring Policy
# =============================================================================

# Recognized severity levels, most severe first
SEVERITY_LEVELS = ("critical", "high", "medium", "low", "info")

# Heat score weights per severity. Fixed policy: changing these breaks
# numeric compatibility with stored heatmaps.
SEVERITY_WEIGHTS = {
    "critical": 10,
    "high": 5,
    "medium": 2,
    "low": 1,
    "info": 0,
}

# Remediation priority base scores; anything unrecognized scores 1
PRIORITY_WEIGHTS = {
    "critical": 1000,
    "high": 500,
    "medium": 100,
    "low": 10,
}
DEFAULT_PRIORITY_WEIGHT = 1

# Score thresholds for risk labels, checked top-down
RISK_CATEGORY_THRESHOLDS = (
    (75, "Critical"),
    (50, "High"),
    (25, "Medium"),
)
LOWEST_RISK_CATEGORY = "Low"

# Finding categories scored individually
RISK_CATEGORIES = (
    "injection",
    "authentication",
    "authorization",
    "cryptography",
    "data-protection",
    "input-validation",
    "output-encoding",
    "session-management",
    "dependency",
    "configuration",
)

MAX_REMEDIATION_ITEMS = 20


# =============================================================================
# Analytics Storage
# =============================================================================

ANALYTICS_DIR_NAME = ".vulnmap"
ANALYTICS_SUBDIR = "analytics"
INDEX_FILE_NAME = "index.json"

DEFAULT_SNAPSHOT_LIMIT = 10

# Snapshot ids reported when analytics could not be or were not written
SNAPSHOT_SKIPPED = "analytics-skipped"
SNAPSHOT_FAILED = "analytics-failed"

