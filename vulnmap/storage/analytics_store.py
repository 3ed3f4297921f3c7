"""File-backed, append-only storage for analytics envelopes.

Records live under ``<base>/.vulnmap/analytics/<tool_id>/``: one JSON file
per record plus an ``index.json`` listing the tool's records in creation
order. Records are never rewritten or deleted by this module.
"""

import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config import get_analytics_base_path
from ..constants import (
    ANALYTICS_DIR_NAME,
    ANALYTICS_SUBDIR,
    DEFAULT_SNAPSHOT_LIMIT,
    INDEX_FILE_NAME,
)
from ..core.exceptions import InvalidInputError, NotFoundError, StorageUnavailableError
from ..core.logging_config import get_analytics_logger
from .models import AnalyticsEnvelope, AnalyticsMetadata, RepositoryInfo, StorageResult

logger = logging.getLogger(__name__)

# One write lock per tool directory, shared by every store instance in the
# process so concurrent appends keep index order. Entries are never removed;
# the registry is bounded by the number of tool directories.
_tool_locks: dict[str, threading.Lock] = {}
_tool_locks_guard = threading.Lock()


def _lock_for(tool_dir: Path) -> threading.Lock:
    key = str(tool_dir.resolve())
    with _tool_locks_guard:
        lock = _tool_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _tool_locks[key] = lock
        return lock


def _validate_identifier(value: Any, kind: str) -> str:
    """Reject identifiers that are empty or could escape the storage dir."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{kind} must be a non-empty string")
    if "/" in value or "\\" in value or value in (".", "..") or value.startswith("."):
        raise InvalidInputError(f"Invalid {kind}: {value!r}")
    return value


def _as_utc(value: datetime) -> datetime:
    # Naive filter bounds are taken to be UTC
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


class AnalyticsStore:
    """Stores and retrieves analytics envelopes keyed by tool id."""

    def __init__(self, base_path: Path | None = None):
        """Initialize analytics storage.

        Args:
            base_path: Base directory for storage. If None, uses
                VULNMAP_ANALYTICS_DIR or the current directory.

        Raises:
            StorageUnavailableError: If the storage directory cannot be created.
        """
        if base_path is None:
            base_path = get_analytics_base_path()

        self.storage_dir = Path(base_path) / ANALYTICS_DIR_NAME / ANALYTICS_SUBDIR
        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"Cannot create analytics directory {self.storage_dir}: {e}"
            ) from e

    def _tool_dir(self, tool_id: str) -> Path:
        return self.storage_dir / _validate_identifier(tool_id, "tool id")

    def _load_index(self, tool_dir: Path) -> list[dict[str, Any]]:
        index_file = tool_dir / INDEX_FILE_NAME
        if not index_file.exists():
            return []

        try:
            with open(index_file, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageUnavailableError(f"Cannot read analytics index {index_file}: {e}") from e

        if not isinstance(data, list):
            raise StorageUnavailableError(f"Analytics index {index_file} is corrupt")
        return data

    def _save_index(self, tool_dir: Path, index: list[dict[str, Any]]) -> None:
        index_file = tool_dir / INDEX_FILE_NAME
        tmp_file = index_file.with_suffix(".json.tmp")
        try:
            with open(tmp_file, "w", encoding="utf-8") as f:
                json.dump(index, f, indent=2, default=str)
            os.replace(tmp_file, index_file)
        except OSError as e:
            raise StorageUnavailableError(f"Cannot write analytics index {index_file}: {e}") from e

    def _load_record(self, tool_dir: Path, record_id: str) -> AnalyticsEnvelope:
        record_file = tool_dir / f"{record_id}.json"
        try:
            with open(record_file, encoding="utf-8") as f:
                return AnalyticsEnvelope.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValueError) as e:
            raise StorageUnavailableError(f"Cannot read analytics record {record_file}: {e}") from e

    def store(
        self,
        tool_id: str,
        summary: dict[str, Any],
        detailed: dict[str, Any] | None = None,
        *,
        tool_version: str = "unknown",
        repository_info: RepositoryInfo | None = None,
        execution_time_ms: int = 0,
    ) -> StorageResult:
        """Append a new envelope for a tool.

        Repeated calls for the same tool never overwrite earlier records.

        Args:
            tool_id: Identifier of the tool that produced the data
            summary: Summary payload (key metrics for dashboards)
            detailed: Optional detailed payload
            tool_version: Version of the producing tool
            repository_info: Repository the data describes
            execution_time_ms: Tool execution time to record

        Returns:
            StorageResult with the new record id and file path

        Raises:
            InvalidInputError: If the tool id or payload is malformed
            StorageUnavailableError: If the record cannot be written
        """
        tool_dir = self._tool_dir(tool_id)
        if not isinstance(summary, dict):
            raise InvalidInputError("Analytics summary must be an object")
        if detailed is not None and not isinstance(detailed, dict):
            raise InvalidInputError("Analytics detailed data must be an object")

        metadata = AnalyticsMetadata(
            tool_id=tool_id,
            tool_version=tool_version,
            repository_info=repository_info or RepositoryInfo(name="unknown"),
            execution_time_ms=execution_time_ms,
        )

        with _lock_for(tool_dir):
            try:
                tool_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageUnavailableError(f"Cannot create {tool_dir}: {e}") from e

            index = self._load_index(tool_dir)
            # Skip ids left behind by a crash between the record and index writes
            stamp = f"{metadata.timestamp:%Y%m%d-%H%M%S}"
            sequence = len(index) + 1
            while (tool_dir / f"{stamp}-{sequence:06d}.json").exists():
                sequence += 1
            record_id = f"{stamp}-{sequence:06d}"
            envelope = AnalyticsEnvelope(
                id=record_id, metadata=metadata, summary=summary, detailed=detailed
            )

            record_file = tool_dir / f"{record_id}.json"
            record = {
                "id": envelope.id,
                "metadata": envelope.metadata.model_dump(mode="json", by_alias=True),
                "summary": envelope.summary,
                "detailed": envelope.detailed,
            }
            try:
                with open(record_file, "x", encoding="utf-8") as f:
                    json.dump(record, f, indent=2, default=str)
            except OSError as e:
                raise StorageUnavailableError(f"Cannot write analytics record {record_file}: {e}") from e

            index.append({
                "id": record_id,
                "timestamp": metadata.timestamp.isoformat(),
                "tool_version": metadata.tool_version,
                "repository_info": metadata.repository_info.model_dump(mode="json", by_alias=True),
                "execution_time_ms": metadata.execution_time_ms,
            })
            try:
                self._save_index(tool_dir, index)
            except StorageUnavailableError:
                record_file.unlink(missing_ok=True)
                raise

        get_analytics_logger().info(
            f"Stored analytics for {tool_id}",
            extra={
                "event": "analytics_stored",
                "tool": tool_id,
                "snapshot_id": record_id,
                "repository": metadata.repository_info.name,
            },
        )
        return StorageResult(
            snapshot_id=record_id, snapshot_path=str(record_file), metadata=metadata
        )

    def retrieve(
        self,
        tool_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[AnalyticsEnvelope]:
        """Return a tool's envelopes in creation order.

        Args:
            tool_id: Tool identifier
            since: Only records at or after this time (naive means UTC)
            until: Only records at or before this time (naive means UTC)
            limit: Keep only the most recent ``limit`` matching records,
                still in creation order

        Returns:
            Matching envelopes; empty if the tool has no records

        Raises:
            InvalidInputError: If the tool id or limit is malformed
            StorageUnavailableError: If stored data cannot be read
        """
        tool_dir = self._tool_dir(tool_id)
        if limit is not None and limit < 0:
            raise InvalidInputError("limit must not be negative")
        if not tool_dir.is_dir():
            return []

        entries = self._load_index(tool_dir)
        if since is not None or until is not None:
            lower = _as_utc(since) if since is not None else None
            upper = _as_utc(until) if until is not None else None
            filtered = []
            for entry in entries:
                ts = _as_utc(datetime.fromisoformat(entry["timestamp"]))
                if lower is not None and ts < lower:
                    continue
                if upper is not None and ts > upper:
                    continue
                filtered.append(entry)
            entries = filtered

        if limit is not None:
            entries = entries[len(entries) - limit:] if limit else []

        logger.debug(f"Retrieving {len(entries)} analytics records for {tool_id}")
        return [self._load_record(tool_dir, entry["id"]) for entry in entries]

    def list_tools(self) -> list[str]:
        """List tool ids that have stored records."""
        if not self.storage_dir.is_dir():
            return []
        return sorted(
            d.name for d in self.storage_dir.iterdir()
            if d.is_dir() and (d / INDEX_FILE_NAME).exists()
        )

    def list_snapshots(
        self,
        limit: int = DEFAULT_SNAPSHOT_LIMIT,
        tool_id: str | None = None,
        repository_name: str | None = None,
    ) -> list[dict[str, Any]]:
        """List snapshot summaries across tools, newest first.

        Args:
            limit: Maximum number of summaries
            tool_id: Only this tool's snapshots
            repository_name: Only snapshots for this repository

        Returns:
            Index entries with an added ``tool_id`` key
        """
        tool_ids = [tool_id] if tool_id else self.list_tools()

        snapshots: list[dict[str, Any]] = []
        for tid in tool_ids:
            tool_dir = self._tool_dir(tid)
            if not tool_dir.is_dir():
                continue
            # Reversed so equal timestamps stay newest-first after the stable sort
            for entry in reversed(self._load_index(tool_dir)):
                if repository_name and entry.get("repository_info", {}).get("name") != repository_name:
                    continue
                snapshots.append({**entry, "tool_id": tid})

        snapshots.sort(key=lambda s: _as_utc(datetime.fromisoformat(s["timestamp"])), reverse=True)
        return snapshots[:limit]

    def get_latest(
        self, tool_id: str | None = None, repository_name: str | None = None
    ) -> AnalyticsEnvelope | None:
        """Return the most recent envelope matching the filters, if any."""
        snapshots = self.list_snapshots(1, tool_id=tool_id, repository_name=repository_name)
        if not snapshots:
            return None
        latest = snapshots[0]
        return self._load_record(self._tool_dir(latest["tool_id"]), latest["id"])

    def get_snapshot(self, snapshot_id: str, tool_id: str | None = None) -> AnalyticsEnvelope:
        """Return one envelope by id.

        Raises:
            InvalidInputError: If the snapshot id is malformed
            NotFoundError: If no tool has a snapshot with this id
        """
        _validate_identifier(snapshot_id, "snapshot id")
        tool_ids = [tool_id] if tool_id else self.list_tools()

        for tid in tool_ids:
            tool_dir = self._tool_dir(tid)
            if not tool_dir.is_dir():
                continue
            if any(entry["id"] == snapshot_id for entry in self._load_index(tool_dir)):
                return self._load_record(tool_dir, snapshot_id)

        raise NotFoundError(f"Snapshot {snapshot_id} not found", snapshot_id=snapshot_id)
