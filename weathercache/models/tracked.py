"""Tracked (favorite) locations and their cached forecast state."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeAlias

from weathercache.models.common import LocationId, parse_timestamp
from weathercache.models.forecast import ForecastBundle
from weathercache.models.location import Location


@dataclass(frozen=True)
class Unfetched:
    """No forecast has been stored for this location yet."""


@dataclass(frozen=True)
class Fetched:
    bundle: ForecastBundle
    at: datetime


Freshness: TypeAlias = Unfetched | Fetched

UNFETCHED = Unfetched()


@dataclass(frozen=True)
class TrackedLocation:
    location: Location
    freshness: Freshness = UNFETCHED

    @property
    def id(self) -> LocationId:
        return self.location.id

    @property
    def weather_data(self) -> ForecastBundle | None:
        if isinstance(self.freshness, Fetched):
            return self.freshness.bundle
        return None

    @property
    def last_updated(self) -> datetime | None:
        if isinstance(self.freshness, Fetched):
            return self.freshness.at
        return None

    def with_forecast(self, bundle: ForecastBundle, at: datetime) -> "TrackedLocation":
        """Return a copy carrying a new bundle and its fetch time."""
        return TrackedLocation(self.location, Fetched(bundle, at))

    def to_dict(self) -> dict[str, Any]:
        data = self.location.to_dict()
        if isinstance(self.freshness, Fetched):
            data["weatherData"] = self.freshness.bundle.to_payload()
            data["lastUpdated"] = self.freshness.at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackedLocation":
        location = Location.from_dict(data)
        raw_bundle = data.get("weatherData")
        at = parse_timestamp(data.get("lastUpdated"))
        # Data without a timestamp (or the reverse) can't be trusted as fresh
        if raw_bundle is None or at is None:
            return cls(location)
        return cls(location, Fetched(ForecastBundle.from_payload(raw_bundle), at))
