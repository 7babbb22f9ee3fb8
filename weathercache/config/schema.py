"""Pydantic v2 configuration schema with strict validation."""

from pydantic import BaseModel, Field

from weathercache.ingest.forecast_client import DEFAULT_FORECAST_DAYS, OPEN_METEO_FORECAST_URL
from weathercache.ingest.geocoding_client import (
    DEFAULT_REFERER,
    DEFAULT_RESULT_LIMIT,
    DEFAULT_USER_AGENT,
    NOMINATIM_SEARCH_URL,
)
from weathercache.storage.favorites_store import FAVORITES_KEY


class GeocodingConfig(BaseModel):
    model_config = {"extra": "forbid"}

    base_url: str = NOMINATIM_SEARCH_URL
    user_agent: str = DEFAULT_USER_AGENT
    referer: str = DEFAULT_REFERER
    result_limit: int = Field(default=DEFAULT_RESULT_LIMIT, ge=1, le=50)
    min_interval_ms: int = Field(default=1000, ge=0)
    timeout_seconds: float = Field(default=10.0, gt=0.0)


class ForecastConfig(BaseModel):
    model_config = {"extra": "forbid"}

    base_url: str = OPEN_METEO_FORECAST_URL
    forecast_days: int = Field(default=DEFAULT_FORECAST_DAYS, ge=1, le=16)
    timeout_seconds: float = Field(default=15.0, gt=0.0)


class FreshnessConfig(BaseModel):
    model_config = {"extra": "forbid"}

    stale_after_minutes: float = Field(default=5.0, ge=0.0)
    manual_refresh_cooldown_minutes: float = Field(default=5.0, ge=0.0)


class StorageConfig(BaseModel):
    model_config = {"extra": "forbid"}

    db_path: str = "data/weathercache.db"
    favorites_key: str = Field(default=FAVORITES_KEY, min_length=1)


class WeatherCacheConfig(BaseModel):
    model_config = {"extra": "forbid"}

    geocoding: GeocodingConfig = GeocodingConfig()
    forecast: ForecastConfig = ForecastConfig()
    freshness: FreshnessConfig = FreshnessConfig()
    storage: StorageConfig = StorageConfig()
