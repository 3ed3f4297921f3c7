"""Analytics envelope storage and collection."""

from .analytics_store import AnalyticsStore
from .collector import AnalyticsCollector, record_tool_analytics
from .models import AnalyticsEnvelope, AnalyticsMetadata, RepositoryInfo, StorageResult

__all__ = [
    "AnalyticsStore",
    "AnalyticsCollector",
    "record_tool_analytics",
    "AnalyticsEnvelope",
    "AnalyticsMetadata",
    "RepositoryInfo",
    "StorageResult",
]
