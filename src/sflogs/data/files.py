"""Writing downloaded logs, metadata sidecars and summaries to disk."""

from __future__ import annotations

import json
import logging
import re
import shutil
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sflogs.errors import PersistenceError
from sflogs.formatting import parse_timestamp
from sflogs.models.download import SpaceEstimate

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sflogs.models.logs import LogRecord
    from sflogs.models.search import LogMatch

logger = logging.getLogger(__name__)

SUMMARY_FILE_NAME = "download-summary.json"
# Per-file allowance for metadata and filesystem slack.
FILE_OVERHEAD_BYTES = 1024
FAILED_DOWNLOAD_REASON = "API Error"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]")


def ensure_directory(path: Path) -> None:
    """Create ``path`` and its parents if missing."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise PersistenceError(path, str(exc)) from exc


def write_file(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(path, str(exc)) from exc


def write_json(path: Path, data: Any) -> None:
    write_file(path, json.dumps(data, indent=2, default=str))


def approximate_file_size(log_length: int) -> int:
    return log_length + FILE_OVERHEAD_BYTES


def _nearest_existing(path: Path) -> Path:
    for candidate in (path, *path.parents):
        if candidate.exists():
            return candidate
    return Path.cwd()


def estimate_and_check_space(records: Iterable[LogRecord], directory: Path) -> SpaceEstimate:
    """Estimate bytes needed for ``records`` and compare with free space.

    Free space is read from the closest existing ancestor of ``directory``.
    If it cannot be read the estimate is reported as fitting.
    """
    estimated = sum(approximate_file_size(record.log_length) for record in records)
    try:
        free = shutil.disk_usage(_nearest_existing(directory.resolve())).free
    except OSError:
        logger.warning("Could not read free space for %s", directory, exc_info=True)
        return SpaceEstimate(ok=True, estimated_bytes=estimated)
    return SpaceEstimate(ok=free >= estimated, estimated_bytes=estimated)


def log_file_name(record: LogRecord, extension: str = ".log") -> str:
    """``{YYYY-MM-DD_HH-mm-ss}_{operation}_{id[:8]}{extension}``, time in UTC."""
    parsed = parse_timestamp(record.last_modified_date)
    timestamp = parsed.strftime("%Y-%m-%d_%H-%M-%S") if parsed else "unknown-time"
    operation = _UNSAFE_CHARS.sub("_", record.operation)
    return f"{timestamp}_{operation}_{record.id[:8]}{extension}"


def metadata_file_name(record: LogRecord) -> str:
    return log_file_name(record, ".json")


def fallback_file_name(log_id: str) -> str:
    """Name for a body whose metadata could not be recovered."""
    return f"{_UNSAFE_CHARS.sub('_', log_id)}.log"


def metadata_document(
    record: LogRecord,
    matches: list[LogMatch] | None = None,
    downloaded_at: datetime | None = None,
) -> dict[str, Any]:
    """Sidecar JSON describing one downloaded log and its matches."""
    return {
        "log": {
            "id": record.id,
            "userId": record.log_user_id,
            "lastModified": record.last_modified_date,
            "operation": record.operation,
            "application": record.application,
            "status": record.status,
            "duration": record.duration_milliseconds,
            "startTime": record.start_time,
            "location": record.location,
            "logLength": record.log_length,
        },
        "downloadedAt": (downloaded_at or datetime.now(UTC)).isoformat(),
        "matches": [match.model_dump(by_alias=True) for match in matches or []],
    }


def summary_document(
    search_text: str,
    total_logs_searched: int,
    matching_logs: int,
    downloaded_logs: int,
    failed_downloads: list[str],
    timestamp: datetime | None = None,
) -> dict[str, Any]:
    """Aggregate ``download-summary.json`` content for one session."""
    return {
        "searchText": search_text,
        "timestamp": (timestamp or datetime.now(UTC)).isoformat(),
        "statistics": {
            "totalLogsSearched": total_logs_searched,
            "logsWithMatches": matching_logs,
            "logsDownloaded": downloaded_logs,
            "downloadsFailed": len(failed_downloads),
        },
        "failedDownloads": [
            {"logId": log_id, "reason": FAILED_DOWNLOAD_REASON} for log_id in failed_downloads
        ],
    }
