"""Per-tool analytics collection.

A collector is created when a tool starts handling a request. When the tool
finishes it stores its summary through the collector, which fills in the
envelope metadata (including how long the tool ran) and writes the record
into the analyzed repository's own analytics directory.
"""

import logging
import time
from pathlib import Path
from typing import Any

from ..constants import SNAPSHOT_FAILED, SNAPSHOT_SKIPPED
from ..core.exceptions import VulnMapError
from .analytics_store import AnalyticsStore
from .models import AnalyticsMetadata, RepositoryInfo, StorageResult

logger = logging.getLogger(__name__)


class AnalyticsCollector:
    """Collects and stores analytics for one tool invocation."""

    def __init__(self, tool_id: str, tool_version: str, repository_info: RepositoryInfo):
        self.tool_id = tool_id
        self.tool_version = tool_version
        self.repository_info = repository_info
        self._started = time.perf_counter()

    def _elapsed_ms(self) -> int:
        return int((time.perf_counter() - self._started) * 1000)

    def collect_metadata(self) -> AnalyticsMetadata:
        return AnalyticsMetadata(
            tool_id=self.tool_id,
            tool_version=self.tool_version,
            repository_info=self.repository_info,
            execution_time_ms=self._elapsed_ms(),
        )

    def store(
        self, summary: dict[str, Any], detailed: dict[str, Any] | None = None
    ) -> StorageResult:
        """Store analytics under the repository's analytics directory.

        Tools that do not operate on a repository path are skipped.

        Raises:
            InvalidInputError: If the payload is malformed
            StorageUnavailableError: If the record cannot be written
        """
        if not self.repository_info.path:
            logger.info(f"Skipping analytics storage for repository-less tool {self.tool_id}")
            return StorageResult(
                snapshot_id=SNAPSHOT_SKIPPED,
                snapshot_path="",
                metadata=self.collect_metadata(),
            )

        store = AnalyticsStore(base_path=Path(self.repository_info.path))
        return store.store(
            self.tool_id,
            summary,
            detailed,
            tool_version=self.tool_version,
            repository_info=self.repository_info,
            execution_time_ms=self._elapsed_ms(),
        )


def record_tool_analytics(
    collector: AnalyticsCollector,
    summary: dict[str, Any],
    detailed: dict[str, Any] | None = None,
) -> StorageResult:
    """Store a tool's analytics without letting storage failures fail the tool.

    Returns:
        The storage result, or a result with snapshot id "analytics-failed"
        and the error message if storage failed.
    """
    try:
        return collector.store(summary, detailed)
    except VulnMapError as e:
        logger.error(f"Failed to store analytics for {collector.tool_id}: {e}")
        return StorageResult(
            snapshot_id=SNAPSHOT_FAILED,
            snapshot_path="",
            metadata=collector.collect_metadata(),
            error=str(e),
        )
