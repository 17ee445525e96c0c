"""Aggregate statistics over a set of log records."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BreakdownEntry(BaseModel):
    """Number of logs sharing one key (user, operation or status)."""

    key: str
    count: int = 0


class LogStats(BaseModel):
    """Totals and breakdowns for the ``count --detailed`` view."""

    total_logs: int = 0
    total_size: int = 0
    average_size: float = 0.0
    oldest: str = ""
    newest: str = ""
    by_user: list[BreakdownEntry] = Field(default_factory=list)
    by_operation: list[BreakdownEntry] = Field(default_factory=list)
    by_status: list[BreakdownEntry] = Field(default_factory=list)
