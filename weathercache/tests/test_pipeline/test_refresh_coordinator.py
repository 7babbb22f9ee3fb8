"""Tests for the refresh coordinator with a fake forecast client."""

import asyncio
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from weathercache.errors import NetworkError, ParseError, StorageError, UpstreamError
from weathercache.ingest.forecast_client import ForecastClient
from weathercache.ingest.staleness import StalenessPolicy
from weathercache.models.forecast import ForecastBundle
from weathercache.models.location import Location
from weathercache.models.tracked import Fetched, TrackedLocation
from weathercache.pipeline.refresh_coordinator import RefreshCoordinator, RefreshResult
from weathercache.storage.favorites_store import FavoritesStore


class FakeForecastClient:
    """Returns ``bundle`` for every coordinate except those mapped to an error."""

    def __init__(self, bundle: ForecastBundle, errors: dict[float, Exception] | None = None):
        self.bundle = bundle
        self.errors = errors or {}
        self.calls: list[tuple[float, float]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, lat: float, lon: float) -> ForecastBundle:
        self.calls.append((lat, lon))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if lat in self.errors:
                raise self.errors[lat]
            return ForecastBundle.from_payload(self.bundle.to_payload() | {"latitude": lat})
        finally:
            self.in_flight -= 1


class RemovingForecastClient(FakeForecastClient):
    """Untracks ``location_id`` while a fetch is in flight."""

    def __init__(self, bundle: ForecastBundle, store: FavoritesStore, location_id: str):
        super().__init__(bundle)
        self.store = store
        self.location_id = location_id

    async def fetch(self, lat: float, lon: float) -> ForecastBundle:
        self.store.remove(self.location_id)
        return await super().fetch(lat, lon)


@pytest.fixture
def fake_forecasts(bundle: ForecastBundle) -> FakeForecastClient:
    return FakeForecastClient(bundle)


@pytest.fixture
def coordinator(store: FavoritesStore, fake_forecasts, clock) -> RefreshCoordinator:
    return RefreshCoordinator(store, fake_forecasts, now=clock)


class TestLoadAll:
    async def test_fetches_unfetched(
        self, coordinator, store, fake_forecasts, lisboa: Location, porto: Location, clock
    ):
        store.add(TrackedLocation(lisboa))
        store.add(TrackedLocation(porto))

        result = await coordinator.load_all()

        assert sorted(fake_forecasts.calls) == [(38.7, -9.1), (41.15, -8.61)]
        assert all(t.last_updated == clock() for t in result)
        assert store.get("1").weather_data.latitude == 38.7
        assert store.get("2").weather_data.latitude == 41.15

    async def test_fresh_entries_left_alone(
        self, coordinator, store, fake_forecasts, lisboa: Location, bundle, clock
    ):
        fresh = TrackedLocation(lisboa, Fetched(bundle, clock() - timedelta(minutes=2)))
        store.add(fresh)

        result = await coordinator.load_all()

        assert fake_forecasts.calls == []
        assert result == [fresh]

    async def test_stale_entries_refetched(
        self, coordinator, store, fake_forecasts, lisboa: Location, bundle, clock
    ):
        store.add(TrackedLocation(lisboa, Fetched(bundle, clock() - timedelta(minutes=5))))

        result = await coordinator.load_all()

        assert len(fake_forecasts.calls) == 1
        assert result[0].last_updated == clock()

    async def test_force_refetches_fresh(
        self, coordinator, store, fake_forecasts, lisboa: Location, bundle, clock
    ):
        store.add(TrackedLocation(lisboa, Fetched(bundle, clock())))

        await coordinator.load_all(force=True)

        assert len(fake_forecasts.calls) == 1

    async def test_one_failure_does_not_block_others(
        self, store, bundle, clock, lisboa: Location, porto: Location, madrid: Location
    ):
        previous = Fetched(bundle, clock() - timedelta(hours=1))
        store.add(TrackedLocation(lisboa))
        store.add(TrackedLocation(porto, previous))
        store.add(TrackedLocation(madrid))
        forecasts = FakeForecastClient(bundle, errors={41.15: UpstreamError("boom", 500)})
        coordinator = RefreshCoordinator(store, forecasts, now=clock)

        result = await coordinator.load_all()

        by_id = {t.id: t for t in result}
        assert set(by_id) == {"1", "2", "3"}
        assert by_id["1"].last_updated == clock()
        assert by_id["3"].last_updated == clock()
        assert by_id["2"].freshness == previous
        assert store.get("2").freshness == previous

    @pytest.mark.parametrize(
        "error", [NetworkError("down"), UpstreamError("bad", 502), ParseError("shape")]
    )
    async def test_all_provider_errors_swallowed(self, store, bundle, clock, lisboa, error):
        store.add(TrackedLocation(lisboa))
        coordinator = RefreshCoordinator(
            store, FakeForecastClient(bundle, errors={38.7: error}), now=clock
        )

        result = await coordinator.load_all()

        assert result == [TrackedLocation(lisboa)]

    async def test_fetches_run_concurrently(
        self, coordinator, store, fake_forecasts, lisboa, porto, madrid
    ):
        for loc in (lisboa, porto, madrid):
            store.add(TrackedLocation(loc))

        await coordinator.load_all()

        assert fake_forecasts.max_in_flight == 3

    async def test_explicit_collection(self, coordinator, fake_forecasts, lisboa: Location):
        result = await coordinator.load_all([TrackedLocation(lisboa)])

        assert len(fake_forecasts.calls) == 1
        # Not tracked in the store, so the fresh data is only in the result
        assert result[0].weather_data is not None
        assert coordinator.store.get("1") is None

    async def test_storage_error_propagates_after_siblings(
        self, bundle, clock, lisboa: Location, porto: Location
    ):
        store = MagicMock(spec=FavoritesStore)
        store.policy = StalenessPolicy()
        store.update_forecast.side_effect = StorageError("disk full")
        forecasts = FakeForecastClient(bundle)
        coordinator = RefreshCoordinator(store, forecasts, now=clock)

        with pytest.raises(StorageError):
            await coordinator.load_all([TrackedLocation(lisboa), TrackedLocation(porto)])

        assert len(forecasts.calls) == 2


class TestEndToEnd:
    async def test_second_load_is_served_from_cache(self, coordinator, store, fake_forecasts, clock):
        store.add(
            TrackedLocation(
                Location(
                    id="1",
                    name="Lisboa",
                    country="Portugal",
                    lat=38.7,
                    lon=-9.1,
                    display_name="Lisboa",
                )
            )
        )

        first = await coordinator.load_all()
        assert len(fake_forecasts.calls) == 1
        assert abs((first[0].last_updated - clock()).total_seconds()) < 1

        clock.advance(1)
        second = await coordinator.load_all()

        assert len(fake_forecasts.calls) == 1
        assert second[0].weather_data == first[0].weather_data
        assert second[0].last_updated == first[0].last_updated


class TestRefreshEligible:
    async def test_counts_refreshed(
        self, coordinator, store, bundle, clock, lisboa: Location, porto: Location
    ):
        store.add(TrackedLocation(lisboa, Fetched(bundle, clock())))
        store.add(TrackedLocation(porto, Fetched(bundle, clock() - timedelta(minutes=10))))

        result = await coordinator.refresh_eligible()

        assert isinstance(result, RefreshResult)
        assert result.refreshed_count == 1
        assert {t.id for t in result.locations} == {"1", "2"}
        assert result.message == "1 location updated."

    async def test_nothing_stale(self, coordinator, store, bundle, clock, lisboa: Location):
        store.add(TrackedLocation(lisboa, Fetched(bundle, clock())))

        result = await coordinator.refresh_eligible()

        assert result.refreshed_count == 0
        assert "No update needed" in result.message

    async def test_unfetched_counts_as_eligible(self, coordinator, store, lisboa, porto):
        store.add(TrackedLocation(lisboa))
        store.add(TrackedLocation(porto))

        result = await coordinator.refresh_eligible()

        assert result.refreshed_count == 2
        assert result.message == "2 locations updated."

    async def test_failures_not_counted(self, store, bundle, clock, lisboa, porto):
        store.add(TrackedLocation(lisboa))
        store.add(TrackedLocation(porto))
        forecasts = FakeForecastClient(bundle, errors={38.7: NetworkError("offline")})
        coordinator = RefreshCoordinator(store, forecasts, now=clock)

        result = await coordinator.refresh_eligible()

        assert result.refreshed_count == 1

    async def test_removed_during_fetch_not_counted(self, store, bundle, clock, lisboa):
        store.add(TrackedLocation(lisboa))
        coordinator = RefreshCoordinator(
            store, RemovingForecastClient(bundle, store, "1"), now=clock
        )

        result = await coordinator.refresh_eligible()

        assert result.refreshed_count == 0
        assert "No update needed" in result.message
        assert store.list() == []

    async def test_removed_sibling_not_counted(self, store, bundle, clock, lisboa, porto):
        store.add(TrackedLocation(lisboa))
        store.add(TrackedLocation(porto))
        coordinator = RefreshCoordinator(
            store, RemovingForecastClient(bundle, store, "1"), now=clock
        )

        result = await coordinator.refresh_eligible()

        assert result.refreshed_count == 1
        assert [t.id for t in store.list()] == ["2"]
        assert store.get("2").last_updated == clock()

    async def test_configurable_threshold(self, store, fake_forecasts, bundle, clock, lisboa):
        store.add(TrackedLocation(lisboa, Fetched(bundle, clock() - timedelta(minutes=10))))
        coordinator = RefreshCoordinator(
            store, fake_forecasts, policy=StalenessPolicy.from_minutes(15, 5), now=clock
        )

        result = await coordinator.refresh_eligible()

        assert result.refreshed_count == 0


class TestRefreshOne:
    async def test_bypasses_staleness(self, coordinator, store, fake_forecasts, bundle, clock, lisboa):
        store.add(TrackedLocation(lisboa, Fetched(bundle, clock())))
        clock.advance(10)

        updated = await coordinator.refresh_one(store.get("1"))

        assert len(fake_forecasts.calls) == 1
        assert updated.last_updated == clock()
        assert store.get("1").last_updated == clock()

    async def test_error_propagates(self, store, bundle, clock, lisboa):
        store.add(TrackedLocation(lisboa))
        coordinator = RefreshCoordinator(
            store, FakeForecastClient(bundle, errors={38.7: NetworkError("offline")}), now=clock
        )

        with pytest.raises(NetworkError):
            await coordinator.refresh_one(store.get("1"))
        assert store.get("1").last_updated is None

    async def test_removed_during_fetch(self, coordinator, store, lisboa, clock):
        tracked = TrackedLocation(lisboa)

        updated = await coordinator.refresh_one(tracked)

        assert updated.last_updated == clock()
        assert store.list() == []

    async def test_with_mocked_client(self, store, bundle, clock, lisboa):
        forecasts = MagicMock(spec=ForecastClient)
        forecasts.fetch.return_value = bundle
        store.add(TrackedLocation(lisboa))
        coordinator = RefreshCoordinator(store, forecasts, now=clock)

        updated = await coordinator.refresh_one(store.get("1"))

        forecasts.fetch.assert_awaited_once_with(38.7, -9.1)
        assert updated.weather_data == bundle


class TestFavoritesOperations:
    async def test_add_location_fetches_and_stores(
        self, coordinator, store, fake_forecasts, lisboa, clock
    ):
        tracked = await coordinator.add_location(lisboa)

        assert fake_forecasts.calls == [(38.7, -9.1)]
        assert tracked.last_updated == clock()
        assert coordinator.is_favorite("1") is True
        assert coordinator.list() == [tracked]

    async def test_add_existing_is_noop(self, coordinator, store, fake_forecasts, lisboa):
        store.add(TrackedLocation(lisboa))

        tracked = await coordinator.add_location(lisboa)

        assert fake_forecasts.calls == []
        assert tracked == TrackedLocation(lisboa)

    async def test_add_fetch_error_propagates(self, store, bundle, clock, lisboa):
        coordinator = RefreshCoordinator(
            store, FakeForecastClient(bundle, errors={38.7: UpstreamError("bad", 500)}), now=clock
        )

        with pytest.raises(UpstreamError):
            await coordinator.add_location(lisboa)
        assert store.list() == []

    def test_remove(self, coordinator, store, lisboa):
        store.add(TrackedLocation(lisboa))
        coordinator.remove("1")
        assert coordinator.is_favorite("1") is False
