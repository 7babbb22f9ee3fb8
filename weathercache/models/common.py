"""Common types and helpers shared across models."""

from datetime import UTC, datetime
from typing import TypeAlias

LocationId: TypeAlias = str


def utc_now() -> datetime:
    return datetime.now(UTC)


def parse_timestamp(iso_str: str | None) -> datetime | None:
    """Parse an ISO timestamp, treating naive values as UTC."""
    if not iso_str:
        return None
    try:
        dt = datetime.fromisoformat(iso_str)
    except (ValueError, TypeError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt
