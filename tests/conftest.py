"""Shared fixtures.

InMemoryEventStore mirrors the FirestoreEventStore interface so the
ingestor and orchestrator can be tested without Firestore.
"""

from typing import Any
from unittest.mock import Mock

import pytest

from src.core.dedup import EventPath
from src.core.errors import PersistenceError


# 2025-10-05 06:28:00 UTC (02:28 PM Philippine time)
T_MS = 1759645680000


class InMemoryEventStore:
    """Dict-backed event store with the same surface as FirestoreEventStore."""

    def __init__(self) -> None:
        self.partitions: dict[str, dict[str, dict[str, Any]]] = {}
        self.fail_keys: set[str] = set()
        self.create_calls = 0

    def exists(self, path: EventPath) -> bool:
        return path.key in self.partitions.get(path.partition, {})

    def create(self, path: EventPath, record: dict[str, Any]) -> bool:
        self.create_calls += 1
        if path.key in self.fail_keys:
            raise PersistenceError(f"Write failed for {path}")
        events = self.partitions.setdefault(path.partition, {})
        if path.key in events:
            return False
        events[path.key] = {**record, "createdAt": "SERVER_TIMESTAMP"}
        return True

    def list_partitions(self) -> list[str]:
        return sorted(self.partitions)

    def read_partition(self, partition: str) -> list[dict[str, Any]]:
        return list(self.partitions.get(partition, {}).values())

    def iter_records(self):
        for partition in self.list_partitions():
            yield from self.read_partition(partition)

    def delete_partition(self, partition: str) -> int:
        return len(self.partitions.pop(partition, {}))

    def all_keys(self) -> set[str]:
        return {key for events in self.partitions.values() for key in events}


def make_feature(
    event_id: str | None = "us7000abcd",
    latitude: float = 13.5,
    longitude: float = 121.0,
    depth: float | None = 10.0,
    magnitude: float | None = 4.2,
    time_ms: int | None = T_MS,
    place: str | None = "15 km SW of Calapan, Philippines",
) -> dict[str, Any]:
    """Build a USGS GeoJSON feature."""
    coordinates: list[Any] = [longitude, latitude]
    if depth is not None:
        coordinates.append(depth)

    feature: dict[str, Any] = {
        "type": "Feature",
        "properties": {
            "mag": magnitude,
            "place": place,
            "time": time_ms,
            "url": f"https://earthquake.usgs.gov/earthquakes/eventpage/{event_id}",
            "title": f"M {magnitude} - {place}",
            "status": "reviewed",
            "type": "earthquake",
        },
        "geometry": {"type": "Point", "coordinates": coordinates},
    }
    if event_id is not None:
        feature["id"] = event_id
    return feature


def make_geojson(*features: dict[str, Any]) -> dict[str, Any]:
    """Wrap features in a FeatureCollection."""
    return {
        "type": "FeatureCollection",
        "metadata": {"count": len(features)},
        "features": list(features),
    }


@pytest.fixture
def store():
    """Empty in-memory event store."""
    return InMemoryEventStore()


@pytest.fixture
def geocode_client():
    """Mock Nominatim client resolving everything to one village."""
    client = Mock()
    client.reverse.return_value = {
        "address": {"village": "Bayanan", "province": "Oriental Mindoro"},
        "display_name": "Bayanan, Calapan, Oriental Mindoro, Philippines",
    }
    return client
