"""Display helpers for sizes and Salesforce timestamps."""

from __future__ import annotations

import re
from datetime import UTC, datetime

_BYTE_UNITS = ("Bytes", "KB", "MB", "GB")
_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")


def format_bytes(size: float) -> str:
    """Render a byte count like ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    exponent = 0
    while size >= 1024 and exponent < len(_BYTE_UNITS) - 1:
        size /= 1024
        exponent += 1
    return f"{round(size, 2):g} {_BYTE_UNITS[exponent]}"


def parse_timestamp(value: str) -> datetime | None:
    """Parse a Salesforce datetime such as ``2024-01-15T10:30:45.000+0000``.

    The result is always in UTC; values without an offset are taken as UTC.
    Returns None when unparsable.
    """
    if not value:
        return None
    normalized = _COMPACT_OFFSET.sub(r"\1:\2", value.strip().replace("Z", "+00:00"))
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def format_timestamp(value: str, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    """Format a Salesforce datetime, or return it unchanged if unparsable."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return value
    return parsed.strftime(fmt)
