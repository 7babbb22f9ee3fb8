"""Durable collection of tracked locations, kept as one JSON blob."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime

from weathercache.errors import ParseError, StorageError
from weathercache.ingest.staleness import StalenessPolicy
from weathercache.models.common import LocationId, utc_now
from weathercache.models.forecast import ForecastBundle
from weathercache.models.tracked import TrackedLocation
from weathercache.storage.blob_store import BlobStore

logger = logging.getLogger(__name__)

FAVORITES_KEY = "favorite_cities"


class FavoritesStore:
    """Owns the persisted, ordered list of tracked locations.

    Every mutation is a whole-collection read-modify-write against the blob
    store; the last writer wins.
    """

    def __init__(
        self,
        blobs: BlobStore,
        key: str = FAVORITES_KEY,
        policy: StalenessPolicy | None = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self.blobs = blobs
        self.key = key
        self.policy = policy or StalenessPolicy()
        self._now = now

    def list(self) -> list[TrackedLocation]:
        raw = self.blobs.get(self.key)
        if raw is None:
            return []
        try:
            records = json.loads(raw)
            if not isinstance(records, list):
                raise StorageError(f"Blob {self.key!r} does not hold a list")
            return [TrackedLocation.from_dict(r) for r in records]
        except (ValueError, ParseError) as e:
            raise StorageError(f"Corrupt favorites blob {self.key!r}: {e}") from e

    def get(self, location_id: LocationId) -> TrackedLocation | None:
        for tracked in self.list():
            if tracked.id == location_id:
                return tracked
        return None

    def contains(self, location_id: LocationId) -> bool:
        return self.get(location_id) is not None

    def add(self, tracked: TrackedLocation) -> bool:
        """Append ``tracked`` unless its id is already present. Returns True if added."""
        favorites = self.list()
        if any(f.id == tracked.id for f in favorites):
            logger.debug("Location %s already tracked, skipping add", tracked.id)
            return False
        favorites.append(tracked)
        self._save(favorites)
        logger.info("Tracking %s (%s)", tracked.location.name, tracked.id)
        return True

    def remove(self, location_id: LocationId) -> None:
        favorites = [f for f in self.list() if f.id != location_id]
        self._save(favorites)

    def update_forecast(
        self, location_id: LocationId, bundle: ForecastBundle
    ) -> TrackedLocation | None:
        """Store a fresh bundle stamped with the current time.

        Returns the updated record, or None if the id is no longer tracked.
        """
        favorites = self.list()
        index = {f.id: i for i, f in enumerate(favorites)}
        position = index.get(location_id)
        if position is None:
            logger.debug("Location %s removed before forecast update, ignoring", location_id)
            return None
        updated = favorites[position].with_forecast(bundle, self._now())
        favorites[position] = updated
        self._save(favorites)
        return updated

    def needs_refresh(self, location_id: LocationId) -> bool:
        tracked = self.get(location_id)
        if tracked is None:
            return True
        return self.policy.is_stale(tracked.last_updated, self._now())

    def _save(self, favorites: list[TrackedLocation]) -> None:
        payload = json.dumps([f.to_dict() for f in favorites], ensure_ascii=False)
        self.blobs.set(self.key, payload)
        logger.debug("Persisted %d favorites under %r", len(favorites), self.key)
