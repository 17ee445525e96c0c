"""Shared fixtures for sflogs tests."""

from __future__ import annotations

import re
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest

from sflogs.config import Config
from sflogs.data.remote import RemoteLogStore
from sflogs.errors import RemoteError
from sflogs.models.filters import FilterKind, LogFilter
from sflogs.models.logs import LogCount, LogRecord

_LIMIT_RE = re.compile(r"LIMIT (\d+)")
_OFFSET_RE = re.compile(r"OFFSET (\d+)")
_USER_RE = re.compile(r"LogUserId = '([^']*)'")


def make_row(index: int, **overrides: Any) -> dict[str, Any]:
    """An ApexLog row as the Tooling API returns it."""
    row: dict[str, Any] = {
        "attributes": {"type": "ApexLog"},
        "Id": f"07L5g{index:013d}",
        "LogUserId": "005USER000000001",
        "LogLength": 2048,
        "LastModifiedDate": f"2024-01-15T10:{index % 60:02d}:45.000+0000",
        "Request": "Api",
        "Operation": "/apex/ApexClass",
        "Application": "Unknown",
        "Status": "Success",
        "DurationMilliseconds": 120,
        "StartTime": "2024-01-15T10:30:44.000+0000",
        "Location": "SystemLog",
    }
    row.update(overrides)
    return row


def make_record(index: int, **overrides: Any) -> LogRecord:
    return LogRecord.model_validate(make_row(index, **overrides))


class FakeOrg:
    """In-memory Tooling API served through ``httpx.MockTransport``."""

    def __init__(self, rows: list[dict[str, Any]] | None = None) -> None:
        self.rows: list[dict[str, Any]] = rows or []
        self.bodies: dict[str, str] = {}
        self.failing_bodies: set[str] = set()
        self.failing_offsets: set[int] = set()
        self.count_fails = False
        self.query_fails = False
        self.queries: list[str] = []
        self.body_requests: list[str] = []
        self.auth_headers: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.auth_headers.append(request.headers.get("Authorization", ""))
        path = request.url.path
        if path.endswith("/Body"):
            log_id = path.split("/")[-2]
            self.body_requests.append(log_id)
            if log_id in self.failing_bodies or log_id not in self.bodies:
                return httpx.Response(404, json=[{"errorCode": "NOT_FOUND"}])
            return httpx.Response(200, text=self.bodies[log_id])

        soql = request.url.params["q"]
        self.queries.append(soql)
        if self.query_fails:
            return httpx.Response(401, json=[{"errorCode": "INVALID_SESSION_ID"}])
        rows = self.rows
        user = _USER_RE.search(soql)
        if user:
            rows = [row for row in rows if row["LogUserId"] == user.group(1)]
        if "COUNT(Id)" in soql:
            if self.count_fails:
                return httpx.Response(400, json=[{"errorCode": "MALFORMED_QUERY"}])
            return httpx.Response(200, json={"records": [{"totalCount": len(rows)}]})

        offset_match = _OFFSET_RE.search(soql)
        offset = int(offset_match.group(1)) if offset_match else 0
        if offset in self.failing_offsets:
            return httpx.Response(500, json=[{"errorCode": "UNKNOWN_EXCEPTION"}])
        limit_match = _LIMIT_RE.search(soql)
        limit = int(limit_match.group(1)) if limit_match else len(rows)
        page = rows[offset : offset + limit]
        return httpx.Response(200, json={"totalSize": len(page), "done": True, "records": page})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class FakeLogStore:
    """Store double for service tests; records every call."""

    def __init__(self, records: list[LogRecord] | None = None) -> None:
        self.records = records or []
        self.bodies: dict[str, str] = {}
        self.failing_bodies: set[str] = set()
        self.fetch_logs_error: RemoteError | None = None
        self.calls: list[tuple[str, Any]] = []

    async def fetch_logs(self, log_filter: LogFilter, limit: int = 100) -> list[LogRecord]:
        self.calls.append(("fetch_logs", (log_filter, limit)))
        if self.fetch_logs_error is not None:
            raise self.fetch_logs_error
        return self._filtered(log_filter)[:limit]

    async def fetch_all_logs(
        self, log_filter: LogFilter, max_logs: int | None = None
    ) -> list[LogRecord]:
        self.calls.append(("fetch_all_logs", (log_filter, max_logs)))
        records = self._filtered(log_filter)
        return records[:max_logs] if max_logs else records

    async def fetch_log_body(self, log_id: str) -> str:
        self.calls.append(("fetch_log_body", log_id))
        if log_id in self.failing_bodies or log_id not in self.bodies:
            raise RemoteError("retrieve debug log body", "404", log_id=log_id)
        return self.bodies[log_id]

    async def fetch_log_bodies_batch(self, log_ids: list[str]) -> dict[str, str]:
        self.calls.append(("fetch_log_bodies_batch", list(log_ids)))
        return {
            log_id: self.bodies[log_id]
            for log_id in log_ids
            if log_id in self.bodies and log_id not in self.failing_bodies
        }

    async def count_logs(self, log_filter: LogFilter) -> LogCount:
        self.calls.append(("count_logs", log_filter))
        return LogCount(total=len(self._filtered(log_filter)))

    async def test_connection(self) -> bool:
        return True

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def _filtered(self, log_filter: LogFilter) -> list[LogRecord]:
        if log_filter.kind is FilterKind.USER:
            return [r for r in self.records if r.log_user_id == log_filter.user_id]
        return list(self.records)


@pytest.fixture
def config() -> Config:
    return Config(
        instance_url="https://example.my.salesforce.com",
        session_token="00Dxx!token",
    )


@pytest.fixture(autouse=True)
def no_courtesy_delay(monkeypatch: pytest.MonkeyPatch) -> list[int]:
    """Replace the inter-batch pause with a counter."""
    pauses: list[int] = []

    async def fake_pause() -> None:
        pauses.append(1)

    monkeypatch.setattr("sflogs.data.remote._courtesy_pause", fake_pause)
    return pauses


@pytest.fixture
def fake_org() -> FakeOrg:
    return FakeOrg([make_row(i) for i in range(5)])


@pytest.fixture
async def store(config: Config, fake_org: FakeOrg) -> AsyncGenerator[RemoteLogStore, None]:
    async with RemoteLogStore(config, transport=fake_org.transport()) as connected:
        yield connected
