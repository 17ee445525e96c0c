"""Exception types raised by the data layer."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from sflogs.models.filters import LogFilter


class SflogsError(Exception):
    """Base class for sflogs errors."""


class RemoteError(SflogsError):
    """A request to the Salesforce API failed."""

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        log_id: str | None = None,
        log_filter: LogFilter | None = None,
    ) -> None:
        self.operation = operation
        self.log_id = log_id
        self.log_filter = log_filter
        target = ""
        if log_id:
            target = f" for log {log_id}"
        elif log_filter is not None:
            target = f" ({log_filter.describe()})"
        super().__init__(f"Failed to {operation}{target}: {message}")


class PersistenceError(SflogsError):
    """Writing a file or directory failed."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"Failed to write {path}: {message}")


class ValidationError(SflogsError, ValueError):
    """User input was rejected before any request was made."""
