"""Nominatim place-search client."""

import logging
from typing import Any

import httpx

from weathercache.errors import NetworkError, UpstreamError
from weathercache.ingest.throttle import RequestThrottle
from weathercache.models.location import Location

logger = logging.getLogger(__name__)

NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_USER_AGENT = "weathercache/0.1.0 (https://github.com/weathercache/weathercache)"
DEFAULT_REFERER = "https://github.com/weathercache/weathercache"
DEFAULT_RESULT_LIMIT = 10

CITY_FIELDS = ("city", "town", "village", "municipality")
STATE_FIELDS = ("state", "region", "province")


class GeocodingClient:
    def __init__(
        self,
        throttle: RequestThrottle,
        base_url: str = NOMINATIM_SEARCH_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        referer: str = DEFAULT_REFERER,
        result_limit: int = DEFAULT_RESULT_LIMIT,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.throttle = throttle
        self.base_url = base_url
        self.user_agent = user_agent
        self.referer = referer
        self.result_limit = result_limit
        self.timeout = timeout
        self._http = http_client

    async def search(self, query: str) -> list[Location]:
        """Look up candidate locations for a free-text query.

        Waits on the shared throttle first. No retries: NetworkError and
        UpstreamError go straight to the caller.
        """
        await self.throttle.acquire()

        params = {
            "q": query,
            "format": "json",
            "limit": self.result_limit,
            "addressdetails": 1,
        }
        headers = {"User-Agent": self.user_agent, "Referer": self.referer}
        try:
            if self._http is None:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.get(self.base_url, params=params, headers=headers)
            else:
                resp = await self._http.get(
                    self.base_url, params=params, headers=headers, timeout=self.timeout
                )
        except httpx.RequestError as e:
            logger.error("Geocoding request failed for query=%r: %s", query, e)
            raise NetworkError(f"Network error while searching '{query}': {e}") from e

        if not resp.is_success:
            logger.error("Geocoding API returned %d for query=%r", resp.status_code, query)
            raise UpstreamError(
                f"Geocoding API returned {resp.status_code}", status_code=resp.status_code
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError(f"Geocoding response is not JSON: {e}") from e
        if not isinstance(data, list):
            raise UpstreamError("Geocoding response is not a list of places")

        locations: list[Location] = []
        seen: set[str] = set()
        for item in data:
            location = _parse_place(item)
            if location.id in seen:
                continue
            seen.add(location.id)
            locations.append(location)
        logger.debug("Geocoding query=%r returned %d places", query, len(locations))
        return locations


def _parse_place(item: Any) -> Location:
    try:
        display_name: str = item["display_name"]
        address: dict[str, Any] = item.get("address") or {}
        name = display_name.split(",")[0].strip()
        return Location(
            id=str(item["place_id"]),
            name=name,
            country=address.get("country") or "N/A",
            lat=float(item["lat"]),
            lon=float(item["lon"]),
            display_name=display_name,
            city=_first_distinct(address, CITY_FIELDS, name),
            state=_first_distinct(address, STATE_FIELDS, name),
            place_type=address.get("type") or item.get("addresstype") or item.get("type"),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise UpstreamError(f"Malformed place in geocoding response: {e}") from e


def _first_distinct(address: dict[str, Any], keys: tuple[str, ...], name: str) -> str | None:
    """First populated address field among ``keys``, unless it just repeats the name."""
    for key in keys:
        value = address.get(key)
        if value:
            return value if value != name else None
    return None
