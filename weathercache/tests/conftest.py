"""Shared test fixtures."""

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from weathercache.models.forecast import ForecastBundle
from weathercache.models.location import Location
from weathercache.storage.blob_store import InMemoryBlobStore
from weathercache.storage.favorites_store import FavoritesStore

FIXTURE_DIR = Path(__file__).parent / "fixtures"


class FakeClock:
    """Manually advanced UTC clock; ``sleep`` advances it instead of waiting."""

    def __init__(self, start: datetime = datetime(2026, 10, 19, 12, 0, 0, tzinfo=UTC)):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> datetime:
        return self.now

    def monotonic(self) -> float:
        return self.now.timestamp()

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return FIXTURE_DIR


@pytest.fixture
def forecast_payload() -> dict:
    with open(FIXTURE_DIR / "open_meteo_lisbon.json") as f:
        return json.load(f)


@pytest.fixture
def geocoding_payload() -> list[dict]:
    with open(FIXTURE_DIR / "nominatim_lisboa.json") as f:
        return json.load(f)


@pytest.fixture
def bundle(forecast_payload: dict) -> ForecastBundle:
    return ForecastBundle.from_payload(forecast_payload)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def blobs() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def store(blobs: InMemoryBlobStore, clock: FakeClock) -> FavoritesStore:
    return FavoritesStore(blobs, now=clock)


@pytest.fixture
def lisboa() -> Location:
    return Location(
        id="1",
        name="Lisboa",
        country="Portugal",
        lat=38.7,
        lon=-9.1,
        display_name="Lisboa, Portugal",
    )


@pytest.fixture
def porto() -> Location:
    return Location(
        id="2",
        name="Porto",
        country="Portugal",
        lat=41.15,
        lon=-8.61,
        display_name="Porto, Portugal",
    )


@pytest.fixture
def madrid() -> Location:
    return Location(
        id="3",
        name="Madrid",
        country="Spain",
        lat=40.42,
        lon=-3.70,
        display_name="Madrid, Comunidad de Madrid, España",
        state="Comunidad de Madrid",
    )
