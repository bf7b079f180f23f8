"""Event Ingestor - Dedup, enrich and persist.

Walks normalized events in arrival order and writes each unseen one
exactly once. Each event's check-then-write runs to completion before the
next begins. Counters live in the IngestStats of each pass, so overlapping
runs never mix their counts.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from src.core.dedup import EventPath, event_path
from src.core.errors import PersistenceError
from src.core.event import EventSource, QuakeEvent, event_to_record, is_valid_coordinates
from src.core.places import PlaceLookup


logger = logging.getLogger(__name__)


# Only the first few saves of a run are logged individually
MAX_LOGGED_SAVES = 10


class EventStore(Protocol):
    """What the ingestor needs from persistence."""

    def exists(self, path: EventPath) -> bool: ...

    def create(self, path: EventPath, record: dict[str, Any]) -> bool: ...


class PlaceResolver(Protocol):
    """What the ingestor needs from enrichment."""

    def resolve(self, latitude: float, longitude: float, fallback: str) -> PlaceLookup: ...


@dataclass
class IngestStats:
    """Counters for one ingest pass.

    Attributes:
        new: Events written
        skipped: Events already in the store
        rejected: Events dropped for invalid coordinates
        failed: Events lost to store errors (retried next cycle)
        geocode_lookups: Reverse-geocoding calls made during this pass
        errors: Error messages for failed events
    """
    new: int = 0
    skipped: int = 0
    rejected: int = 0
    failed: int = 0
    geocode_lookups: int = 0
    errors: list[str] = field(default_factory=list)


class EventIngestor:
    """Writes unseen events to the store, enriching feed events first."""

    def __init__(self, store: EventStore, resolver: PlaceResolver) -> None:
        """Initialize ingestor.

        Args:
            store: Event store
            resolver: Place-name resolver for feed events
        """
        self.store = store
        self.resolver = resolver

    def _resolve_place(self, event: QuakeEvent) -> PlaceLookup:
        # Scraped locations are already authoritative
        if event.source != EventSource.FEED:
            return PlaceLookup(name=event.place)
        return self.resolver.resolve(event.latitude, event.longitude, event.place)

    def ingest(self, events: list[QuakeEvent]) -> IngestStats:
        """Persist every event not already stored.

        Args:
            events: Normalized events in arrival order

        Returns:
            IngestStats for this pass
        """
        stats = IngestStats()

        for event in events:
            if not is_valid_coordinates(event.latitude, event.longitude):
                logger.warning(
                    "Rejecting %s with invalid coordinates (%s, %s)",
                    event.id,
                    event.latitude,
                    event.longitude,
                )
                stats.rejected += 1
                continue

            path = event_path(event)

            try:
                if self.store.exists(path):
                    stats.skipped += 1
                    continue

                lookup = self._resolve_place(event)
                if lookup.looked_up:
                    stats.geocode_lookups += 1
                place = lookup.name
                record = event_to_record(event, place)

                if not self.store.create(path, record):
                    stats.skipped += 1
                    continue

            except PersistenceError as e:
                logger.error("Failed to persist %s: %s", path, e)
                stats.failed += 1
                stats.errors.append(str(e))
                continue

            stats.new += 1
            if stats.new <= MAX_LOGGED_SAVES:
                logger.info(
                    "Saved %s | M%.1f | %s [%s]",
                    path.key[:30],
                    event.magnitude,
                    place[:50],
                    event.source.value.upper(),
                )

        return stats
