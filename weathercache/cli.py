"""CLI entry point for the weather cache."""

import argparse
import asyncio
import logging
import sqlite3
from dataclasses import dataclass

from weathercache.config.loader import config_hash, get_config_value, load_config
from weathercache.config.schema import WeatherCacheConfig
from weathercache.errors import WeatherCacheError
from weathercache.ingest.forecast_client import ForecastClient
from weathercache.ingest.geocoding_client import GeocodingClient
from weathercache.ingest.staleness import StalenessPolicy, humanize_age
from weathercache.ingest.throttle import RequestThrottle
from weathercache.ingest.weather_codes import describe_weather_code, weather_code_icon
from weathercache.models.location import location_display_name
from weathercache.models.tracked import TrackedLocation
from weathercache.pipeline.refresh_coordinator import RefreshCoordinator
from weathercache.reporting.forecast_window import upcoming_days, upcoming_hours
from weathercache.storage.blob_store import SqliteBlobStore
from weathercache.storage.database import open_database
from weathercache.storage.favorites_store import FavoritesStore

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


@dataclass
class Services:
    conn: sqlite3.Connection
    geocoder: GeocodingClient
    coordinator: RefreshCoordinator


def build_services(config: WeatherCacheConfig, db_path: str | None = None) -> Services:
    """Wire clients, store and coordinator from config."""
    conn = open_database(db_path or config.storage.db_path)
    policy = StalenessPolicy.from_minutes(
        config.freshness.stale_after_minutes,
        config.freshness.manual_refresh_cooldown_minutes,
    )
    store = FavoritesStore(
        SqliteBlobStore(conn), key=config.storage.favorites_key, policy=policy
    )
    throttle = RequestThrottle(min_interval=config.geocoding.min_interval_ms / 1000)
    geocoder = GeocodingClient(
        throttle,
        base_url=config.geocoding.base_url,
        user_agent=config.geocoding.user_agent,
        referer=config.geocoding.referer,
        result_limit=config.geocoding.result_limit,
        timeout=config.geocoding.timeout_seconds,
    )
    forecasts = ForecastClient(
        base_url=config.forecast.base_url,
        forecast_days=config.forecast.forecast_days,
        timeout=config.forecast.timeout_seconds,
    )
    return Services(conn, geocoder, RefreshCoordinator(store, forecasts, policy))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="weathercache",
        description="Track locations and cache their weather forecasts",
    )
    parser.add_argument("--config", default=None, help="Config YAML path")
    parser.add_argument("--db", default=None, help="SQLite DB path")

    sub = parser.add_subparsers(dest="command")

    search_p = sub.add_parser("search", help="Search for a location")
    search_p.add_argument("query")

    add_p = sub.add_parser("add", help="Search and track a location")
    add_p.add_argument("query")
    add_p.add_argument("--index", type=int, default=0, help="Which search result to add")

    remove_p = sub.add_parser("remove", help="Stop tracking a location")
    remove_p.add_argument("location_id")

    sub.add_parser("list", help="List tracked locations")

    show_p = sub.add_parser("show", help="Show the forecast of a tracked location")
    show_p.add_argument("location_id")

    load_p = sub.add_parser("load", help="Load forecasts, fetching stale ones")
    load_p.add_argument("--force", action="store_true", help="Re-fetch everything")

    sub.add_parser("refresh", help="Refresh every stale location")

    one_p = sub.add_parser("refresh-one", help="Re-fetch one location now")
    one_p.add_argument("location_id")

    config_p = sub.add_parser("config", help="Config operations")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Display current config")
    get_p = config_sub.add_parser("get", help="Display one config value")
    get_p.add_argument("key")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)

    if args.command == "config":
        return _cmd_config(config, args)

    logger.debug("Config loaded (hash=%s)", config_hash(config))
    services = build_services(config, args.db)
    try:
        return _dispatch(services, args)
    finally:
        services.conn.close()


def _dispatch(services: Services, args) -> int:
    if args.command == "search":
        return asyncio.run(_cmd_search(services, args))
    elif args.command == "add":
        return asyncio.run(_cmd_add(services, args))
    elif args.command == "remove":
        return _cmd_remove(services, args)
    elif args.command == "list":
        return _cmd_list(services)
    elif args.command == "show":
        return _cmd_show(services, args)
    elif args.command == "load":
        return asyncio.run(_cmd_load(services, args))
    elif args.command == "refresh":
        return asyncio.run(_cmd_refresh(services))
    elif args.command == "refresh-one":
        return asyncio.run(_cmd_refresh_one(services, args))
    else:
        return 1


async def _search(services: Services, query: str):
    query = query.strip()
    if len(query) < MIN_QUERY_LENGTH:
        print(f"Enter at least {MIN_QUERY_LENGTH} characters to search")
        return None
    try:
        return await services.geocoder.search(query)
    except WeatherCacheError as e:
        print(f"Search failed: {e}")
        return None


async def _cmd_search(services: Services, args) -> int:
    results = await _search(services, args.query)
    if results is None:
        return 1
    if not results:
        print("No locations found. Try another search term.")
        return 0
    for i, loc in enumerate(results):
        print(f"[{i}] {location_display_name(loc)}  (id={loc.id}, {loc.lat:.4f}, {loc.lon:.4f})")
    return 0


async def _cmd_add(services: Services, args) -> int:
    results = await _search(services, args.query)
    if not results:
        if results is not None:
            print("No locations found. Try another search term.")
        return 1
    if not 0 <= args.index < len(results):
        print(f"Error: --index must be between 0 and {len(results) - 1}")
        return 1
    location = results[args.index]
    try:
        await services.coordinator.add_location(location)
    except WeatherCacheError as e:
        print(f"Could not add {location.name}: {e}")
        return 1
    print(f"{location.name} added to favorites (id={location.id})")
    return 0


def _cmd_remove(services: Services, args) -> int:
    coordinator = services.coordinator
    if not coordinator.is_favorite(args.location_id):
        print(f"Location {args.location_id} is not tracked")
        return 1
    coordinator.remove(args.location_id)
    print(f"Removed {args.location_id}")
    return 0


def _cmd_list(services: Services) -> int:
    favorites = services.coordinator.list()
    if not favorites:
        print("No tracked locations")
        return 0
    for tracked in favorites:
        _print_summary(services, tracked)
    return 0


def _cmd_show(services: Services, args) -> int:
    tracked = services.coordinator.store.get(args.location_id)
    if tracked is None:
        print(f"Location {args.location_id} is not tracked")
        return 1
    _print_summary(services, tracked)
    bundle = tracked.weather_data
    if bundle is None:
        return 0
    print("Next hours:")
    for hour in upcoming_hours(bundle):
        print(
            f"  {hour.time[11:16]} {hour.icon} {_temp(hour.temperature)} "
            f"rain {_pct(hour.precipitation_probability)}"
        )
    print("Next days:")
    for day in upcoming_days(bundle):
        print(
            f"  {day.date} {day.icon} {_temp(day.temperature_min)} - "
            f"{_temp(day.temperature_max)} rain {_pct(day.precipitation_probability_max)} "
            f"{day.description}"
        )
    return 0


async def _cmd_load(services: Services, args) -> int:
    favorites = await services.coordinator.load_all(force=args.force)
    for tracked in favorites:
        _print_summary(services, tracked)
    return 0


async def _cmd_refresh(services: Services) -> int:
    result = await services.coordinator.refresh_eligible()
    print(result.message)
    return 0


async def _cmd_refresh_one(services: Services, args) -> int:
    coordinator = services.coordinator
    tracked = coordinator.store.get(args.location_id)
    if tracked is None:
        print(f"Location {args.location_id} is not tracked")
        return 1
    try:
        updated = await coordinator.refresh_one(tracked)
    except WeatherCacheError:
        print("Could not update the weather data.")
        return 1
    _print_summary(services, updated)
    return 0


def _cmd_config(config: WeatherCacheConfig, args) -> int:
    if args.config_command == "show":
        print(config.model_dump_json(indent=2))
        return 0
    elif args.config_command == "get":
        try:
            print(get_config_value(config, args.key))
            return 0
        except KeyError as e:
            print(f"Error: {e}")
            return 1
    else:
        print("Use: config show | config get KEY")
        return 1


def _print_summary(services: Services, tracked: TrackedLocation) -> None:
    policy = services.coordinator.policy
    name = location_display_name(tracked.location)
    refresh_hint = " [refresh available]" if policy.can_refresh(tracked.last_updated) else ""
    bundle = tracked.weather_data
    if bundle is None:
        print(f"{tracked.id}: {name} - no data yet{refresh_hint}")
        return
    current = bundle.current
    print(
        f"{tracked.id}: {name} {weather_code_icon(current.weather_code, current.time)} "
        f"{_temp(current.temperature)} {describe_weather_code(current.weather_code)}, "
        f"humidity {_pct(current.relative_humidity)}, "
        f"updated {humanize_age(tracked.last_updated)}{refresh_hint}"
    )


def _temp(value: float | None) -> str:
    return "--" if value is None else f"{round(value)}°"


def _pct(value: float | None) -> str:
    return "--" if value is None else f"{value:.0f}%"
