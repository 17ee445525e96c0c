"""Debug log record models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Columns selected from ApexLog, in query order.
APEX_LOG_FIELDS: tuple[str, ...] = (
    "Id",
    "LogUserId",
    "LogLength",
    "LastModifiedDate",
    "Request",
    "Operation",
    "Application",
    "Status",
    "DurationMilliseconds",
    "StartTime",
    "Location",
)


class LogRecord(BaseModel):
    """Metadata for one ApexLog row as returned by the Tooling API."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(alias="Id")
    log_user_id: str = Field(default="", alias="LogUserId")
    log_length: int = Field(default=0, alias="LogLength")
    last_modified_date: str = Field(default="", alias="LastModifiedDate")
    request: str = Field(default="", alias="Request")
    operation: str = Field(default="", alias="Operation")
    application: str = Field(default="", alias="Application")
    status: str = Field(default="", alias="Status")
    duration_milliseconds: int = Field(default=0, alias="DurationMilliseconds")
    start_time: str = Field(default="", alias="StartTime")
    location: str = Field(default="", alias="Location")

    @field_validator(
        "log_user_id",
        "last_modified_date",
        "request",
        "operation",
        "application",
        "status",
        "start_time",
        "location",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("log_length", "duration_milliseconds", mode="before")
    @classmethod
    def _none_to_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


class LogCount(BaseModel):
    """Number of logs matching a filter.

    ``is_estimate`` is set when the aggregate query failed and the total is
    the size of a single sample page, which understates large sets.
    """

    total: int = 0
    is_estimate: bool = False
