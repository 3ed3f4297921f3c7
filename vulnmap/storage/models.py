"""Analytics envelope models.

An envelope pairs a tool's structured output with the metadata needed to
find it again: which tool produced it, against which repository, and when.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..constants import ANALYTICS_SCHEMA_VERSION, SERVICE_NAME, SERVICE_VERSION


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RepositoryInfo(BaseModel):
    """The repository an analytics record describes."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    branch: str | None = None
    commit_hash: str | None = Field(default=None, alias="commitHash")
    path: str | None = None


class AnalyticsMetadata(BaseModel):
    """Identifying metadata stored with every envelope."""

    tool_id: str
    tool_version: str = "unknown"
    schema_version: str = ANALYTICS_SCHEMA_VERSION
    service_name: str = SERVICE_NAME
    service_version: str = SERVICE_VERSION
    timestamp: datetime = Field(default_factory=_utcnow)
    repository_info: RepositoryInfo = Field(
        default_factory=lambda: RepositoryInfo(name="unknown")
    )
    execution_time_ms: int = 0


class AnalyticsEnvelope(BaseModel):
    """A stored analytics record. Immutable once written."""

    model_config = ConfigDict(frozen=True)

    id: str
    metadata: AnalyticsMetadata
    summary: dict[str, Any] = Field(default_factory=dict)
    detailed: dict[str, Any] | None = None


class StorageResult(BaseModel):
    """Outcome of storing an envelope."""

    model_config = ConfigDict(populate_by_name=True)

    snapshot_id: str = Field(alias="snapshotId")
    snapshot_path: str = Field(alias="snapshotPath")
    metadata: AnalyticsMetadata
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
