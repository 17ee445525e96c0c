"""Record-set filters and date normalization."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from sflogs.errors import ValidationError


class FilterKind(StrEnum):
    """Which subset of ApexLog rows a query selects."""

    ALL = "all"
    USER = "user"
    DATE_RANGE = "date_range"


def normalize_date(value: str | None) -> str | None:
    """Return a SOQL datetime literal for ``YYYY-MM-DD`` or ISO-8601 input.

    Values with a time part and an offset are validated and passed through.
    Without an offset they are taken as UTC. Plain dates become midnight UTC.

    Raises:
        ValidationError: If the value cannot be parsed.
    """
    if value is None or not value.strip():
        return None
    value = value.strip()
    if "T" in value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            msg = f"Invalid date format: {value}. Use YYYY-MM-DD or ISO format."
            raise ValidationError(msg) from exc
        if parsed.tzinfo is None:
            # SOQL datetime literals need an offset; naive input is UTC.
            return parsed.strftime("%Y-%m-%dT%H:%M:%SZ")
        return value
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        msg = f"Invalid date format: {value}. Use YYYY-MM-DD or ISO format."
        raise ValidationError(msg) from exc
    return parsed.strftime("%Y-%m-%dT%H:%M:%SZ")


def _soql_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


@dataclass(frozen=True)
class LogFilter:
    """One of: all logs, logs of one user, or logs in a date range."""

    kind: FilterKind = FilterKind.ALL
    user_id: str = ""
    date_from: str | None = None
    date_to: str | None = None

    @classmethod
    def all(cls) -> LogFilter:
        return cls()

    @classmethod
    def by_user(cls, user_id: str) -> LogFilter:
        return cls(kind=FilterKind.USER, user_id=user_id)

    @classmethod
    def by_date_range(cls, date_from: str | None = None, date_to: str | None = None) -> LogFilter:
        """Build a date filter, normalizing both bounds.

        Raises:
            ValidationError: If either bound is not a valid date.
        """
        return cls(
            kind=FilterKind.DATE_RANGE,
            date_from=normalize_date(date_from),
            date_to=normalize_date(date_to),
        )

    @classmethod
    def from_options(
        cls,
        user_id: str | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
    ) -> LogFilter:
        """Pick a filter from CLI-style options: user first, then dates."""
        if user_id:
            return cls.by_user(user_id)
        if date_from or date_to:
            return cls.by_date_range(date_from, date_to)
        return cls.all()

    def soql_conditions(self) -> list[str]:
        match self.kind:
            case FilterKind.USER:
                return [f"LogUserId = {_soql_string(self.user_id)}"]
            case FilterKind.DATE_RANGE:
                conditions: list[str] = []
                if self.date_from:
                    conditions.append(f"LastModifiedDate >= {self.date_from}")
                if self.date_to:
                    conditions.append(f"LastModifiedDate <= {self.date_to}")
                return conditions
            case _:
                return []

    def where_clause(self) -> str:
        conditions = self.soql_conditions()
        if not conditions:
            return ""
        return " WHERE " + " AND ".join(conditions)

    def describe(self) -> str:
        match self.kind:
            case FilterKind.USER:
                return f"user {self.user_id}"
            case FilterKind.DATE_RANGE:
                parts = []
                if self.date_from:
                    parts.append(f"from {self.date_from}")
                if self.date_to:
                    parts.append(f"to {self.date_to}")
                return " ".join(parts) or "all logs"
            case _:
                return "all logs"
