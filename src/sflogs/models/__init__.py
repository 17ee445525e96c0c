"""Pydantic models for sflogs."""

from sflogs.models.download import (
    DIRECT_DOWNLOAD_LABEL,
    DownloadReport,
    DownloadRequest,
    SpaceEstimate,
)
from sflogs.models.filters import FilterKind, LogFilter, normalize_date
from sflogs.models.logs import APEX_LOG_FIELDS, LogCount, LogRecord
from sflogs.models.search import (
    DEFAULT_MAX_RESULTS,
    LogMatch,
    SearchReport,
    SearchRequest,
    SearchResult,
)
from sflogs.models.stats import BreakdownEntry, LogStats

__all__ = [
    "BreakdownEntry",
    "DownloadReport",
    "DownloadRequest",
    "FilterKind",
    "LogCount",
    "LogFilter",
    "LogMatch",
    "LogRecord",
    "LogStats",
    "SearchReport",
    "SearchRequest",
    "SearchResult",
    "SpaceEstimate",
    "APEX_LOG_FIELDS",
    "DEFAULT_MAX_RESULTS",
    "DIRECT_DOWNLOAD_LABEL",
    "normalize_date",
]
