"""Open-Meteo forecast client."""

import logging

import httpx

from weathercache.errors import NetworkError, ParseError, UpstreamError
from weathercache.models.forecast import (
    CURRENT_VARIABLES,
    DAILY_VARIABLES,
    HOURLY_VARIABLES,
    ForecastBundle,
)

logger = logging.getLogger(__name__)

OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
DEFAULT_FORECAST_DAYS = 7


class ForecastClient:
    def __init__(
        self,
        base_url: str = OPEN_METEO_FORECAST_URL,
        forecast_days: int = DEFAULT_FORECAST_DAYS,
        timeout: float = 15.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url
        self.forecast_days = forecast_days
        self.timeout = timeout
        self._http = http_client

    def build_params(self, lat: float, lon: float) -> dict[str, str]:
        return {
            "latitude": str(lat),
            "longitude": str(lon),
            "current": ",".join(CURRENT_VARIABLES),
            "hourly": ",".join(HOURLY_VARIABLES),
            "daily": ",".join(DAILY_VARIABLES),
            "timezone": "auto",
            "forecast_days": str(self.forecast_days),
        }

    async def fetch(self, lat: float, lon: float) -> ForecastBundle:
        """Fetch current, hourly and daily forecast for a coordinate pair.

        No caching here; callers decide when a fetch is needed.
        """
        params = self.build_params(lat, lon)
        try:
            if self._http is None:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.get(self.base_url, params=params)
            else:
                resp = await self._http.get(self.base_url, params=params, timeout=self.timeout)
        except httpx.RequestError as e:
            raise NetworkError(
                f"Network error while fetching forecast for ({lat}, {lon}): {e}"
            ) from e

        if not resp.is_success:
            raise UpstreamError(
                f"Forecast API returned {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise UpstreamError(f"Forecast response is not JSON: {e}") from e
        if not isinstance(payload, dict):
            raise ParseError("Forecast response is not a JSON object")

        bundle = ForecastBundle.from_payload(payload)
        logger.debug(
            "Fetched forecast for (%s, %s): %d hourly, %d daily entries",
            lat, lon, len(bundle.hourly), len(bundle.daily),
        )
        return bundle
