"""Staleness checks and age formatting for cached forecasts."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from weathercache.models.common import parse_timestamp, utc_now

DEFAULT_MAX_AGE = timedelta(minutes=5)


def is_stale(
    last_updated: datetime | str | None,
    now: datetime | None = None,
    max_age: timedelta = DEFAULT_MAX_AGE,
) -> bool:
    """Check whether a cached forecast is due for a refresh.

    Never-fetched (or unparseable) timestamps are stale. The boundary is
    inclusive: an entry exactly ``max_age`` old is stale.
    """
    if now is None:
        now = utc_now()
    updated = _coerce(last_updated)
    if updated is None:
        return True
    return now - updated >= max_age


def can_refresh(
    last_updated: datetime | str | None,
    now: datetime | None = None,
    cooldown: timedelta = DEFAULT_MAX_AGE,
) -> bool:
    """Whether a user may manually refresh an entry updated at ``last_updated``."""
    return is_stale(last_updated, now, cooldown)


def humanize_age(last_updated: datetime | str | None, now: datetime | None = None) -> str:
    """Describe how long ago ``last_updated`` was, in coarse buckets."""
    if now is None:
        now = utc_now()
    updated = _coerce(last_updated)
    if updated is None:
        return "never updated"

    seconds = int((now - updated).total_seconds())
    if seconds < 30:
        return "just now"
    if seconds < 60:
        return f"{seconds}s ago"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes} min ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return updated.astimezone().strftime("%d/%m %H:%M")


@dataclass(frozen=True)
class StalenessPolicy:
    """Thresholds for bulk reloads and for the per-entry manual refresh."""

    max_age: timedelta = DEFAULT_MAX_AGE
    manual_refresh_cooldown: timedelta = DEFAULT_MAX_AGE

    @classmethod
    def from_minutes(cls, stale_after: float, manual_cooldown: float) -> "StalenessPolicy":
        return cls(timedelta(minutes=stale_after), timedelta(minutes=manual_cooldown))

    def is_stale(self, last_updated: datetime | str | None, now: datetime | None = None) -> bool:
        return is_stale(last_updated, now, self.max_age)

    def can_refresh(self, last_updated: datetime | str | None, now: datetime | None = None) -> bool:
        return can_refresh(last_updated, now, self.manual_refresh_cooldown)


def _coerce(value: datetime | str | None) -> datetime | None:
    if isinstance(value, datetime):
        # Naive values are UTC, same as naive ISO strings
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    return parse_timestamp(value)
