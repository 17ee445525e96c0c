"""Async access to ApexLog records and bodies over the Tooling API."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from types import TracebackType
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from sflogs.errors import RemoteError
from sflogs.models.logs import APEX_LOG_FIELDS, LogCount, LogRecord

if TYPE_CHECKING:
    from sflogs.config import Config
    from sflogs.models.filters import LogFilter

logger = logging.getLogger(__name__)

# Tooling API query cap per request.
PAGE_SIZE = 200
BODY_BATCH_SIZE = 10
COUNT_SAMPLE_SIZE = 200
_COURTESY_DELAY_S = 0.1

_QUERY_PATH = "/tooling/query/"
_SELECT_LOGS = "SELECT " + ", ".join(APEX_LOG_FIELDS) + " FROM ApexLog"


async def _courtesy_pause() -> None:
    """Fixed pause between pages and body groups; not a backoff."""
    await asyncio.sleep(_COURTESY_DELAY_S)


def clamp_limit(limit: int) -> int:
    """Clamp a requested row count to ``[1, PAGE_SIZE]``."""
    return max(1, min(limit, PAGE_SIZE))


def build_log_query(log_filter: LogFilter, limit: int, offset: int = 0) -> str:
    """SOQL for one window of logs, most recent first."""
    soql = (
        f"{_SELECT_LOGS}{log_filter.where_clause()} "
        f"ORDER BY LastModifiedDate DESC LIMIT {clamp_limit(limit)}"
    )
    if offset > 0:
        soql += f" OFFSET {offset}"
    return soql


@dataclass
class _PageCursor:
    """Accumulator for offset pagination.

    The offset advances by the rows actually returned, so a short page
    never causes rows to be skipped.
    """

    max_logs: int | None = None
    offset: int = 0
    accumulated: list[LogRecord] = field(default_factory=list)
    done: bool = False
    pages: int = 0
    seen_ids: set[str] = field(default_factory=set)

    def next_limit(self) -> int:
        if self.max_logs:
            return min(PAGE_SIZE, self.max_logs - len(self.accumulated))
        return PAGE_SIZE

    def advance(self, page: list[LogRecord], requested: int) -> None:
        self.pages += 1
        self.offset += len(page)
        for record in page:
            if record.id in self.seen_ids:
                continue
            self.seen_ids.add(record.id)
            self.accumulated.append(record)
        if len(page) < requested:
            self.done = True
        elif self.max_logs and len(self.accumulated) >= self.max_logs:
            self.done = True


class RemoteLogStore:
    """Async Tooling API client for debug logs using httpx."""

    def __init__(
        self,
        config: Config,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> RemoteLogStore:
        return await self.connect()

    async def connect(self) -> RemoteLogStore:
        """Open the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                headers=self._config.auth_headers,
                transport=self._transport,
            )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "Store not connected. Use 'async with RemoteLogStore(config) as store:'"
            raise RuntimeError(msg)
        return self._client

    async def _query(self, soql: str) -> list[dict[str, Any]]:
        response = await self.client.get(_QUERY_PATH, params={"q": soql})
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            msg = f"Unexpected query response: {type(payload).__name__}"
            raise ValueError(msg)
        return payload.get("records", [])

    async def _fetch_records(
        self, soql: str, operation: str, log_filter: LogFilter
    ) -> list[LogRecord]:
        try:
            rows = await self._query(soql)
            return [LogRecord.model_validate(row) for row in rows]
        except (httpx.HTTPError, ValueError) as exc:
            raise RemoteError(operation, str(exc), log_filter=log_filter) from exc

    async def fetch_logs(self, log_filter: LogFilter, limit: int = 100) -> list[LogRecord]:
        """Fetch the most recent logs matching ``log_filter`` in one query.

        Raises:
            RemoteError: On any transport, HTTP or decoding failure.
        """
        if limit > PAGE_SIZE:
            logger.debug("Clamping limit %d to %d", limit, PAGE_SIZE)
        return await self._fetch_records(
            build_log_query(log_filter, limit), "retrieve debug logs", log_filter
        )

    async def fetch_page(self, log_filter: LogFilter, limit: int, offset: int) -> list[LogRecord]:
        """Fetch one window of logs starting at ``offset``."""
        return await self._fetch_records(
            build_log_query(log_filter, limit, offset),
            f"retrieve debug logs at offset {offset}",
            log_filter,
        )

    async def fetch_all_logs(
        self, log_filter: LogFilter, max_logs: int | None = None
    ) -> list[LogRecord]:
        """Page through all logs matching ``log_filter``.

        Stops on a short page, once ``max_logs`` records are accumulated, or
        when a page fails; in the last case the records gathered so far are
        returned. ``max_logs`` of ``None`` or ``0`` means unlimited.
        """
        cursor = _PageCursor(max_logs=max_logs if max_logs and max_logs > 0 else None)
        logger.info("Fetching %s in pages of %d...", log_filter.describe(), PAGE_SIZE)

        while not cursor.done:
            requested = cursor.next_limit()
            try:
                page = await self.fetch_page(log_filter, requested, cursor.offset)
            except RemoteError as exc:
                logger.warning("Stopping pagination at offset %d: %s", cursor.offset, exc)
                break
            cursor.advance(page, requested)
            logger.info(
                "Page %d: %d logs (total: %d)", cursor.pages, len(page), len(cursor.accumulated)
            )
            if not cursor.done:
                await _courtesy_pause()

        logger.info("Fetched %d logs", len(cursor.accumulated))
        return cursor.accumulated

    async def fetch_log_body(self, log_id: str) -> str:
        """Fetch the raw body of one log.

        Raises:
            RemoteError: Tagged with ``log_id``.
        """
        path = f"/tooling/sobjects/ApexLog/{quote(log_id, safe='')}/Body"
        try:
            response = await self.client.get(path)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise RemoteError("retrieve debug log body", str(exc), log_id=log_id) from exc
        return response.text

    async def _fetch_body_or_none(self, log_id: str) -> str | None:
        try:
            return await self.fetch_log_body(log_id)
        except RemoteError as exc:
            logger.warning("%s", exc)
            return None

    async def fetch_log_bodies_batch(self, log_ids: list[str]) -> dict[str, str]:
        """Fetch many bodies, ``BODY_BATCH_SIZE`` at a time.

        Each group runs concurrently and completes before the next starts.
        Ids whose fetch fails are left out of the returned mapping.
        """
        unique_ids = list(dict.fromkeys(log_ids))
        bodies: dict[str, str] = {}
        for start in range(0, len(unique_ids), BODY_BATCH_SIZE):
            group = unique_ids[start : start + BODY_BATCH_SIZE]
            fetched = await asyncio.gather(*(self._fetch_body_or_none(i) for i in group))
            for log_id, body in zip(group, fetched, strict=True):
                if body is not None:
                    bodies[log_id] = body
            logger.info(
                "Fetched bodies %d-%d of %d", start + 1, start + len(group), len(unique_ids)
            )
            if start + BODY_BATCH_SIZE < len(unique_ids):
                await _courtesy_pause()
        return bodies

    async def count_logs(self, log_filter: LogFilter) -> LogCount:
        """Count logs with an aggregate query, falling back to a sample.

        The fallback reports the size of one ``COUNT_SAMPLE_SIZE`` page and is
        always flagged as an estimate.

        Raises:
            RemoteError: If both the aggregate query and the sample fail.
        """
        soql = f"SELECT COUNT(Id) totalCount FROM ApexLog{log_filter.where_clause()}"
        try:
            rows = await self._query(soql)
            total = int(rows[0].get("totalCount") or 0) if rows else 0
            return LogCount(total=total)
        except (httpx.HTTPError, ValueError, TypeError) as exc:
            logger.warning("COUNT query failed, estimating from a sample: %s", exc)
        sample = await self.fetch_logs(log_filter, COUNT_SAMPLE_SIZE)
        return LogCount(total=len(sample), is_estimate=True)

    async def test_connection(self) -> bool:
        """Return whether a minimal query succeeds. Never raises."""
        try:
            await self._query("SELECT Id FROM ApexLog LIMIT 1")
        except Exception:
            logger.debug("Connection test failed", exc_info=True)
            return False
        return True
