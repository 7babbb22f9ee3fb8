"""Row views over a forecast bundle: the next hours and the next days."""

from dataclasses import dataclass
from datetime import date, datetime

from weathercache.ingest.weather_codes import describe_weather_code, weather_code_icon
from weathercache.models.forecast import ForecastBundle


@dataclass(frozen=True)
class HourlyEntry:
    time: str
    temperature: float | None
    humidity: float | None
    precipitation_probability: float | None
    weather_code: int | None

    @property
    def icon(self) -> str:
        return weather_code_icon(self.weather_code, self.time)

    @property
    def description(self) -> str:
        return describe_weather_code(self.weather_code)


@dataclass(frozen=True)
class DailyEntry:
    date: str  # YYYY-MM-DD
    temperature_max: float | None
    temperature_min: float | None
    precipitation_probability_max: float | None
    weather_code: int | None

    @property
    def icon(self) -> str:
        # Day rows always use the daytime glyph
        return weather_code_icon(self.weather_code, f"{self.date}T12:00:00")

    @property
    def description(self) -> str:
        return describe_weather_code(self.weather_code)


def upcoming_hours(
    bundle: ForecastBundle, now: datetime | None = None, limit: int = 24
) -> list[HourlyEntry]:
    """Hourly rows from the current hour onward.

    Provider times are the location's local wall clock without an offset, so
    ``now`` is compared as a naive local time.
    """
    current_hour = _naive(now or datetime.now()).replace(minute=0, second=0, microsecond=0)
    hourly = bundle.hourly
    entries = []
    for i, time in enumerate(hourly.time):
        if datetime.fromisoformat(time) < current_hour:
            continue
        entries.append(
            HourlyEntry(
                time=time,
                temperature=hourly.temperature[i],
                humidity=hourly.relative_humidity[i],
                precipitation_probability=hourly.precipitation_probability[i],
                weather_code=hourly.weather_code[i],
            )
        )
        if len(entries) >= limit:
            break
    return entries


def upcoming_days(
    bundle: ForecastBundle, today: date | None = None, limit: int = 7
) -> list[DailyEntry]:
    """Daily rows from ``today`` onward."""
    if today is None:
        today = date.today()
    daily = bundle.daily
    entries = []
    for i, day in enumerate(daily.time):
        if date.fromisoformat(day[:10]) < today:
            continue
        entries.append(
            DailyEntry(
                date=day,
                temperature_max=daily.temperature_max[i],
                temperature_min=daily.temperature_min[i],
                precipitation_probability_max=daily.precipitation_probability_max[i],
                weather_code=daily.weather_code[i],
            )
        )
        if len(entries) >= limit:
            break
    return entries


def _naive(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)
