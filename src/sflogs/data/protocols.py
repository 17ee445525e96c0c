"""Protocol definitions for data access."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from sflogs.models.filters import LogFilter
    from sflogs.models.logs import LogCount, LogRecord


class LogStoreProtocol(Protocol):
    """Async access to debug log records and bodies."""

    async def fetch_logs(self, log_filter: LogFilter, limit: int = 100) -> list[LogRecord]: ...

    async def fetch_all_logs(
        self, log_filter: LogFilter, max_logs: int | None = None
    ) -> list[LogRecord]: ...

    async def fetch_log_body(self, log_id: str) -> str: ...

    async def fetch_log_bodies_batch(self, log_ids: list[str]) -> dict[str, str]: ...

    async def count_logs(self, log_filter: LogFilter) -> LogCount: ...

    async def test_connection(self) -> bool: ...
