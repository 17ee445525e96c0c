"""Search models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from sflogs.models.filters import LogFilter
from sflogs.models.logs import LogRecord

DEFAULT_MAX_RESULTS = 100


class SearchRequest(BaseModel):
    """What to look for and which logs to look in."""

    search_text: str = ""
    case_sensitive: bool = False
    max_results: int | None = None
    user_id: str | None = None
    date_from: str | None = None
    date_to: str | None = None

    def to_filter(self) -> LogFilter:
        """Build the record filter; raises ValidationError on a bad date."""
        return LogFilter.from_options(self.user_id, self.date_from, self.date_to)


class LogMatch(BaseModel):
    """A matching line with its surrounding context."""

    model_config = ConfigDict(populate_by_name=True)

    line_number: int = Field(serialization_alias="lineNumber")
    line: str
    context: list[str] = Field(default_factory=list)


class SearchResult(BaseModel):
    """A log with at least one matching line."""

    log: LogRecord
    matches: list[LogMatch] = Field(min_length=1)


class SearchReport(BaseModel):
    """Results of one search plus how many logs were examined."""

    search_text: str = ""
    results: list[SearchResult] = Field(default_factory=list)
    total_logs_searched: int = 0

    @property
    def matching_logs(self) -> int:
        return len(self.results)
