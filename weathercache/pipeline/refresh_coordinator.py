"""Refresh coordination: decides which tracked locations to re-fetch and writes results back."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from weathercache.errors import ProviderError
from weathercache.ingest.forecast_client import ForecastClient
from weathercache.ingest.staleness import StalenessPolicy
from weathercache.models.common import LocationId, utc_now
from weathercache.models.location import Location
from weathercache.models.tracked import Fetched, TrackedLocation
from weathercache.storage.favorites_store import FavoritesStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshResult:
    locations: list[TrackedLocation]
    refreshed_count: int

    @property
    def message(self) -> str:
        if self.refreshed_count == 0:
            return "No update needed: every location was refreshed recently."
        noun = "location" if self.refreshed_count == 1 else "locations"
        return f"{self.refreshed_count} {noun} updated."


class RefreshCoordinator:
    def __init__(
        self,
        store: FavoritesStore,
        forecasts: ForecastClient,
        policy: StalenessPolicy | None = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.forecasts = forecasts
        self.policy = policy or store.policy
        self._now = now

    # --- Favorites passthrough ---

    def list(self) -> list[TrackedLocation]:
        return self.store.list()

    def is_favorite(self, location_id: LocationId) -> bool:
        return self.store.contains(location_id)

    def remove(self, location_id: LocationId) -> None:
        self.store.remove(location_id)

    async def add_location(self, location: Location) -> TrackedLocation:
        """Fetch a first forecast for ``location`` and start tracking it.

        Already-tracked ids are left as they are. Fetch errors propagate.
        """
        existing = self.store.get(location.id)
        if existing is not None:
            return existing
        bundle = await self.forecasts.fetch(location.lat, location.lon)
        tracked = TrackedLocation(location, Fetched(bundle, self._now()))
        self.store.add(tracked)
        return tracked

    # --- Refresh ---

    async def load_all(
        self, collection: list[TrackedLocation] | None = None, force: bool = False
    ) -> list[TrackedLocation]:
        """Refresh every location without data or past the staleness threshold.

        ``force`` refreshes everything. Fetch failures keep the prior data.
        """
        result = await self._refresh_many(collection, force=force)
        return result.locations

    async def refresh_eligible(
        self, collection: list[TrackedLocation] | None = None
    ) -> RefreshResult:
        """Refresh stale locations and report how many were actually refreshed."""
        return await self._refresh_many(collection, force=False)

    async def refresh_one(self, tracked: TrackedLocation) -> TrackedLocation:
        """Unconditionally re-fetch one location. Errors propagate to the caller."""
        location = tracked.location
        bundle = await self.forecasts.fetch(location.lat, location.lon)
        updated = self.store.update_forecast(location.id, bundle)
        if updated is None:
            # Removed while the fetch was in flight; hand back the fresh data anyway
            updated = tracked.with_forecast(bundle, self._now())
        logger.info("Refreshed %s (%s)", location.name, location.id)
        return updated

    async def _refresh_many(
        self, collection: list[TrackedLocation] | None, force: bool
    ) -> RefreshResult:
        if collection is None:
            collection = self.store.list()
        now = self._now()

        outcomes = await asyncio.gather(
            *(
                self._refresh_quietly(t)
                if force or self.policy.is_stale(t.last_updated, now)
                else _unchanged(t)
                for t in collection
            ),
            return_exceptions=True,
        )

        # Siblings have all settled; anything left is not a fetch failure
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome

        locations = [tracked for tracked, _ in outcomes]
        refreshed = sum(1 for _, was_refreshed in outcomes if was_refreshed)
        logger.info("Refreshed %d of %d tracked locations", refreshed, len(collection))
        return RefreshResult(locations, refreshed)

    async def _refresh_quietly(self, tracked: TrackedLocation) -> tuple[TrackedLocation, bool]:
        location = tracked.location
        try:
            bundle = await self.forecasts.fetch(location.lat, location.lon)
        except ProviderError as e:
            logger.warning(
                "Failed to refresh %s (%s), keeping cached data: %s",
                location.name, tracked.id, e,
            )
            return tracked, False

        updated = self.store.update_forecast(location.id, bundle)
        if updated is None:
            # Untracked or removed mid-fetch; nothing was written
            logger.debug("Location %s not tracked, forecast not stored", location.id)
            return tracked.with_forecast(bundle, self._now()), False
        return updated, True


async def _unchanged(tracked: TrackedLocation) -> tuple[TrackedLocation, bool]:
    return tracked, False
