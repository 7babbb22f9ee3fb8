"""Error taxonomy for provider access and local persistence."""


class WeatherCacheError(Exception):
    """Base exception for all weathercache errors."""


class ProviderError(WeatherCacheError):
    """Base for failures talking to an upstream weather or geocoding API."""


class NetworkError(ProviderError):
    """Transport-level failure; no response was received."""


class UpstreamError(ProviderError):
    """The provider answered with a non-success status or an unusable body."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(ProviderError):
    """The response body is missing fields or has the wrong shape."""


class StorageError(WeatherCacheError):
    """Reading or writing the local blob store failed."""
