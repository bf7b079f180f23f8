"""Earthquake event model - Pure functions.

This module defines the canonical event shape both sources are normalized
into, plus the helpers that turn an event into a persisted record.
All functions are pure with no side effects.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


DEFAULT_CATEGORY = "earthquake"

# Characters the store does not accept inside a key segment
_ILLEGAL_KEY_CHARS = re.compile(r"[.#$\[\]/]")


class EventSource(str, Enum):
    """Where an event came from.

    The values are what gets persisted and reported in stats.
    """
    FEED = "usgs"
    SCRAPE = "phivolcs"


@dataclass(frozen=True)
class QuakeEvent:
    """Immutable normalized earthquake event.

    Attributes:
        id: Stable identifier for this physical event within its source
        source: Feed or scrape origin
        magnitude: Magnitude (0 when the source had none)
        latitude: Epicenter latitude
        longitude: Epicenter longitude
        depth: Depth in kilometers (0 when the source had none)
        occurred_at_ms: Origin time, epoch milliseconds (UTC)
        place: Source-provided place label
        category: Event type, e.g. "earthquake"
        detail_url: Link to the source's detail page (optional)
        raw: Source-native fields kept for audit/display
    """
    id: str
    source: EventSource
    magnitude: float
    latitude: float
    longitude: float
    depth: float
    occurred_at_ms: int
    place: str
    category: str = DEFAULT_CATEGORY
    detail_url: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def coordinates(self) -> tuple[float, float]:
        """Return (latitude, longitude) tuple."""
        return (self.latitude, self.longitude)


def is_valid_coordinates(latitude: float, longitude: float) -> bool:
    """Check that a point lies in the valid geographic range."""
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def sanitize_key(value: str) -> str:
    """Replace characters that are illegal in a store key with underscores.

    Pure function.

    Args:
        value: Raw identifier

    Returns:
        Identifier safe to use as a single key segment
    """
    return _ILLEGAL_KEY_CHARS.sub("_", value)


def sanitize_location(place: str | None) -> str:
    """Turn a place label into a grouping key.

    "Bogo City, Cebu" becomes "Bogo-City,-Cebu". Used by downstream
    summaries that group events by location.
    """
    if not place:
        return "Unknown"
    cleaned = _ILLEGAL_KEY_CHARS.sub("", place)
    return re.sub(r"\s+", "-", cleaned.strip())


def event_to_record(event: QuakeEvent, place: str | None = None) -> dict[str, Any]:
    """Build the document persisted for an event.

    Pure function. The server timestamp (createdAt) is added by the store.

    Args:
        event: Normalized event
        place: Enriched place name, overrides event.place when given

    Returns:
        Dict ready to be written
    """
    resolved_place = place or event.place
    return {
        "id": sanitize_key(event.id),
        "source": event.source.value,
        "magnitude": event.magnitude,
        "latitude": event.latitude,
        "longitude": event.longitude,
        "depth": event.depth,
        "time": event.occurred_at_ms,
        "place": resolved_place,
        "type": event.category,
        "url": event.detail_url,
        "raw": dict(event.raw),
        "locationKey": sanitize_location(resolved_place),
    }
