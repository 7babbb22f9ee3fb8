"""WMO weather interpretation codes used by Open-Meteo."""

from datetime import datetime

WEATHER_CODE_DESCRIPTIONS: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    61: "Light rain",
    63: "Moderate rain",
    65: "Heavy rain",
    71: "Light snow",
    73: "Moderate snow",
    75: "Heavy snow",
    80: "Light rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    95: "Thunderstorm",
    96: "Thunderstorm with light hail",
    99: "Thunderstorm with heavy hail",
}

UNKNOWN_CONDITION = "Unknown condition"

NIGHT_STARTS_HOUR = 18
NIGHT_ENDS_HOUR = 6


def describe_weather_code(code: int | None) -> str:
    if code is None:
        return UNKNOWN_CONDITION
    return WEATHER_CODE_DESCRIPTIONS.get(code, UNKNOWN_CONDITION)


def is_night(at_time: datetime | str | None = None) -> bool:
    """Night is before 06:00 or from 18:00, read off the wall clock of ``at_time``.

    Provider timestamps are local to the location (timezone=auto) and carry
    no offset, so the hour is taken as written.
    """
    if isinstance(at_time, str):
        try:
            at_time = datetime.fromisoformat(at_time)
        except ValueError:
            at_time = None
    hour = at_time.hour if at_time is not None else datetime.now().hour
    return hour < NIGHT_ENDS_HOUR or hour >= NIGHT_STARTS_HOUR


def weather_code_icon(code: int | None, at_time: datetime | str | None = None) -> str:
    night = is_night(at_time)
    if code is None:
        return "🌃" if night else "🌤️"

    if code in (0, 1):
        return "🌙" if night else "☀️"
    if code in (2, 3):
        return "☁️" if night else "⛅"
    if 45 <= code <= 48:
        return "🌫️"
    if 51 <= code <= 65:
        return "🌧️"
    if 71 <= code <= 75:
        return "❄️"
    # Showers use the plain rain glyph, never sun-behind-rain
    if 80 <= code <= 82:
        return "🌧️"
    if 95 <= code <= 99:
        return "⛈️"
    return "🌃" if night else "🌤️"
