"""Protocol definitions for services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from result import Result

from sflogs.models.download import DownloadReport, DownloadRequest
from sflogs.models.filters import LogFilter
from sflogs.models.logs import LogCount, LogRecord
from sflogs.models.search import SearchReport, SearchRequest
from sflogs.models.stats import LogStats

if TYPE_CHECKING:
    from sflogs.services.download_service import ProgressCallback


class SearchServiceProtocol(Protocol):
    """Interface for search operations."""

    async def search(
        self, request: SearchRequest, exhaustive: bool = False
    ) -> Result[SearchReport, str]: ...

    async def search_multiple_patterns(
        self,
        patterns: list[str],
        request: SearchRequest,
        exhaustive: bool = False,
    ) -> Result[dict[str, SearchReport], str]: ...


class DownloadServiceProtocol(Protocol):
    """Interface for download operations."""

    async def search_and_download(
        self,
        search_request: SearchRequest,
        download_request: DownloadRequest,
        exhaustive: bool = False,
        progress_callback: ProgressCallback | None = None,
    ) -> Result[DownloadReport, str]: ...

    async def download_by_ids(
        self,
        log_ids: list[str],
        download_request: DownloadRequest,
        progress_callback: ProgressCallback | None = None,
    ) -> Result[DownloadReport, str]: ...


class LogServiceProtocol(Protocol):
    """Interface for log metadata operations."""

    async def list_logs(
        self, log_filter: LogFilter, limit: int = 20
    ) -> Result[list[LogRecord], str]: ...

    async def count_logs(self, log_filter: LogFilter) -> Result[LogCount, str]: ...

    async def summarize(
        self,
        log_filter: LogFilter,
        max_logs: int | None = 2000,
        exhaustive: bool = False,
    ) -> Result[LogStats, str]: ...
