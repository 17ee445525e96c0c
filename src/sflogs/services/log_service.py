"""Log service — listing, counting and summarizing debug logs."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from result import Err, Ok, Result

from sflogs.errors import RemoteError
from sflogs.formatting import parse_timestamp
from sflogs.models.stats import BreakdownEntry, LogStats

if TYPE_CHECKING:
    from sflogs.data.protocols import LogStoreProtocol
    from sflogs.models.filters import LogFilter
    from sflogs.models.logs import LogCount, LogRecord

_TOP_N = 10
DEFAULT_SUMMARY_LIMIT = 2000


class LogService:
    """Service for log metadata queries."""

    def __init__(self, store: LogStoreProtocol) -> None:
        self._store = store

    async def list_logs(
        self, log_filter: LogFilter, limit: int = 20
    ) -> Result[list[LogRecord], str]:
        """List the most recent logs matching ``log_filter``."""
        try:
            return Ok(await self._store.fetch_logs(log_filter, limit))
        except RemoteError as exc:
            return Err(str(exc))

    async def count_logs(self, log_filter: LogFilter) -> Result[LogCount, str]:
        """Count logs server-side; the count may be a flagged estimate."""
        try:
            return Ok(await self._store.count_logs(log_filter))
        except RemoteError as exc:
            return Err(str(exc))

    async def summarize(
        self,
        log_filter: LogFilter,
        max_logs: int | None = DEFAULT_SUMMARY_LIMIT,
        exhaustive: bool = False,
    ) -> Result[LogStats, str]:
        """Fetch logs and aggregate sizes, dates and breakdowns.

        Args:
            log_filter: Which logs to include.
            max_logs: Cap on fetched logs, reached by paging. Bounded mode
                falls back to ``DEFAULT_SUMMARY_LIMIT`` when unset; exhaustive
                mode treats None as unlimited.
            exhaustive: Ignore the default cap and page through every log.
        """
        cap = max_logs if exhaustive else max_logs or DEFAULT_SUMMARY_LIMIT
        records = await self._store.fetch_all_logs(log_filter, cap)
        return Ok(compute_stats(records))


def _breakdown(counter: Counter[str], limit: int | None = None) -> list[BreakdownEntry]:
    return [BreakdownEntry(key=key, count=count) for key, count in counter.most_common(limit)]


def compute_stats(records: list[LogRecord]) -> LogStats:
    """Aggregate a record set into totals and top-N breakdowns."""
    if not records:
        return LogStats()

    total_size = sum(record.log_length for record in records)
    dated = sorted(
        (parsed, record.last_modified_date)
        for record in records
        if (parsed := parse_timestamp(record.last_modified_date)) is not None
    )
    return LogStats(
        total_logs=len(records),
        total_size=total_size,
        average_size=total_size / len(records),
        oldest=dated[0][1] if dated else "",
        newest=dated[-1][1] if dated else "",
        by_user=_breakdown(Counter(record.log_user_id for record in records), _TOP_N),
        by_operation=_breakdown(Counter(record.operation for record in records), _TOP_N),
        by_status=_breakdown(Counter(record.status for record in records)),
    )
