"""Geocoded location model."""

from dataclasses import dataclass
from typing import Any

from weathercache.errors import ParseError
from weathercache.models.common import LocationId


@dataclass(frozen=True)
class Location:
    id: LocationId
    name: str
    country: str
    lat: float
    lon: float
    display_name: str
    city: str | None = None
    state: str | None = None
    place_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "country": self.country,
            "lat": self.lat,
            "lon": self.lon,
            "display_name": self.display_name,
        }
        # Optional qualifiers are omitted rather than written as null
        if self.city is not None:
            data["city"] = self.city
        if self.state is not None:
            data["state"] = self.state
        if self.place_type is not None:
            data["type"] = self.place_type
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Location":
        try:
            return cls(
                id=str(data["id"]),
                name=data["name"],
                country=data.get("country") or "N/A",
                lat=float(data["lat"]),
                lon=float(data["lon"]),
                display_name=data.get("display_name") or data["name"],
                city=data.get("city"),
                state=data.get("state"),
                place_type=data.get("type"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError(f"Invalid location record: {e}") from e


def location_display_name(location: Location) -> str:
    """Join name, city, state and country, skipping blanks and repeats."""
    parts: list[str] = []
    for part in (location.name, location.city, location.state, location.country):
        if part and part != "N/A" and part not in parts:
            parts.append(part)
    return ", ".join(parts)
