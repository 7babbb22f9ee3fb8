"""Forecast bundle models mirroring the Open-Meteo current/hourly/daily blocks."""

from dataclasses import dataclass, fields
from typing import Any

from weathercache.errors import ParseError

CURRENT_VARIABLES = (
    "temperature_2m",
    "relative_humidity_2m",
    "precipitation",
    "weather_code",
)
HOURLY_VARIABLES = (
    "temperature_2m",
    "relative_humidity_2m",
    "precipitation_probability",
    "weather_code",
)
DAILY_VARIABLES = (
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_probability_max",
    "weather_code",
)


def _check_aligned(series: Any) -> None:
    lengths = {f.name: len(getattr(series, f.name)) for f in fields(series)}
    if len(set(lengths.values())) > 1:
        raise ParseError(
            f"{type(series).__name__} sequences differ in length: {lengths}"
        )


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)


@dataclass(frozen=True)
class CurrentConditions:
    time: str
    # Open-Meteo reports null for gaps in any variable
    temperature: float | None
    relative_humidity: float | None
    precipitation: float | None
    weather_code: int | None


@dataclass(frozen=True)
class HourlySeries:
    time: tuple[str, ...]
    temperature: tuple[float | None, ...]
    relative_humidity: tuple[float | None, ...]
    precipitation_probability: tuple[float | None, ...]
    weather_code: tuple[int | None, ...]

    def __post_init__(self) -> None:
        _check_aligned(self)

    def __len__(self) -> int:
        return len(self.time)


@dataclass(frozen=True)
class DailySeries:
    time: tuple[str, ...]
    temperature_max: tuple[float | None, ...]
    temperature_min: tuple[float | None, ...]
    precipitation_probability_max: tuple[float | None, ...]
    weather_code: tuple[int | None, ...]

    def __post_init__(self) -> None:
        _check_aligned(self)

    def __len__(self) -> int:
        return len(self.time)


@dataclass(frozen=True)
class ForecastBundle:
    latitude: float
    longitude: float
    current: CurrentConditions
    hourly: HourlySeries
    daily: DailySeries
    timezone: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ForecastBundle":
        """Build a bundle from an Open-Meteo response (or its persisted copy).

        Raises ParseError if any expected block or variable is missing.
        """
        try:
            current = payload["current"]
            hourly = payload["hourly"]
            daily = payload["daily"]
            return cls(
                latitude=float(payload["latitude"]),
                longitude=float(payload["longitude"]),
                current=CurrentConditions(
                    time=current["time"],
                    temperature=current["temperature_2m"],
                    relative_humidity=current["relative_humidity_2m"],
                    precipitation=current["precipitation"],
                    weather_code=_optional_int(current["weather_code"]),
                ),
                hourly=HourlySeries(
                    time=tuple(hourly["time"]),
                    temperature=tuple(hourly["temperature_2m"]),
                    relative_humidity=tuple(hourly["relative_humidity_2m"]),
                    precipitation_probability=tuple(hourly["precipitation_probability"]),
                    weather_code=tuple(hourly["weather_code"]),
                ),
                daily=DailySeries(
                    time=tuple(daily["time"]),
                    temperature_max=tuple(daily["temperature_2m_max"]),
                    temperature_min=tuple(daily["temperature_2m_min"]),
                    precipitation_probability_max=tuple(
                        daily["precipitation_probability_max"]
                    ),
                    weather_code=tuple(daily["weather_code"]),
                ),
                timezone=payload.get("timezone"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ParseError(f"Forecast payload missing or malformed field: {e}") from e

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "current": {
                "time": self.current.time,
                "temperature_2m": self.current.temperature,
                "relative_humidity_2m": self.current.relative_humidity,
                "precipitation": self.current.precipitation,
                "weather_code": self.current.weather_code,
            },
            "hourly": {
                "time": list(self.hourly.time),
                "temperature_2m": list(self.hourly.temperature),
                "relative_humidity_2m": list(self.hourly.relative_humidity),
                "precipitation_probability": list(self.hourly.precipitation_probability),
                "weather_code": list(self.hourly.weather_code),
            },
            "daily": {
                "time": list(self.daily.time),
                "temperature_2m_max": list(self.daily.temperature_max),
                "temperature_2m_min": list(self.daily.temperature_min),
                "precipitation_probability_max": list(
                    self.daily.precipitation_probability_max
                ),
                "weather_code": list(self.daily.weather_code),
            },
        }
        if self.timezone is not None:
            payload["timezone"] = self.timezone
        return payload
