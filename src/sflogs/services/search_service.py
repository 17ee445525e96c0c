"""Search service — fetch logs, scan bodies, collect matches."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from result import Err, Ok, Result

from sflogs.data.matcher import TextMatcher
from sflogs.errors import RemoteError, ValidationError
from sflogs.models.search import DEFAULT_MAX_RESULTS, SearchReport, SearchResult

if TYPE_CHECKING:
    from sflogs.data.protocols import LogStoreProtocol
    from sflogs.models.filters import LogFilter
    from sflogs.models.logs import LogRecord
    from sflogs.models.search import SearchRequest

logger = logging.getLogger(__name__)


class SearchService:
    """Service for substring search across debug log bodies."""

    def __init__(self, store: LogStoreProtocol, matcher: TextMatcher | None = None) -> None:
        self._store = store
        self._matcher = matcher or TextMatcher()

    async def search(
        self, request: SearchRequest, exhaustive: bool = False
    ) -> Result[SearchReport, str]:
        """Search logs selected by ``request`` for its search text.

        Args:
            request: Pattern, case sensitivity and record filters.
            exhaustive: Page through every matching log instead of a single
                bounded query. ``max_results`` then caps the total; unset
                means unlimited.

        Returns:
            Ok with the report, or Err if the record set could not be fetched.
            Logs whose body cannot be fetched are skipped.
        """
        if not request.search_text:
            return Err("Search text cannot be empty")
        try:
            log_filter = request.to_filter()
        except ValidationError as exc:
            return Err(str(exc))

        try:
            records = await self._resolve_records(log_filter, request.max_results, exhaustive)
        except RemoteError as exc:
            return Err(str(exc))

        logger.info("Searching through %d debug logs...", len(records))
        results: list[SearchResult] = []
        for record in records:
            try:
                body = await self._store.fetch_log_body(record.id)
            except RemoteError as exc:
                logger.warning("Skipping log %s: %s", record.id, exc)
                continue
            matches = self._matcher.search(body, request.search_text, request.case_sensitive)
            if matches:
                results.append(SearchResult(log=record, matches=matches))

        return Ok(
            SearchReport(
                search_text=request.search_text,
                results=results,
                total_logs_searched=len(records),
            )
        )

    async def search_multiple_patterns(
        self,
        patterns: list[str],
        request: SearchRequest,
        exhaustive: bool = False,
    ) -> Result[dict[str, SearchReport], str]:
        """Run a full search per pattern, re-fetching logs each time."""
        reports: dict[str, SearchReport] = {}
        for pattern in patterns:
            outcome = await self.search(
                request.model_copy(update={"search_text": pattern}), exhaustive
            )
            if isinstance(outcome, Err):
                return Err(f"Pattern {pattern!r}: {outcome.err_value}")
            reports[pattern] = outcome.ok_value
        return Ok(reports)

    async def _resolve_records(
        self, log_filter: LogFilter, max_results: int | None, exhaustive: bool
    ) -> list[LogRecord]:
        if exhaustive:
            return await self._store.fetch_all_logs(log_filter, max_results)
        return await self._store.fetch_logs(log_filter, max_results or DEFAULT_MAX_RESULTS)
