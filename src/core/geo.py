"""Geographic filtering - Pure functions.

This module provides the bounding-box check used to keep only events in
the monitored region. All functions are pure with no side effects.
"""

from dataclasses import dataclass

from src.core.event import QuakeEvent


@dataclass(frozen=True)
class BoundingBox:
    """Geographic bounding box.

    Attributes:
        min_latitude: Southern boundary
        max_latitude: Northern boundary
        min_longitude: Western boundary
        max_longitude: Eastern boundary
    """
    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float

    def contains(self, latitude: float, longitude: float) -> bool:
        """Check if a point is within this bounding box (edges included)."""
        return (
            self.min_latitude <= latitude <= self.max_latitude
            and self.min_longitude <= longitude <= self.max_longitude
        )


# The Philippines area of responsibility (4.5N-21N, 116E-127E)
MONITORED_REGION = BoundingBox(
    min_latitude=4.5,
    max_latitude=21.0,
    min_longitude=116.0,
    max_longitude=127.0,
)


def is_within_bounds(event: QuakeEvent, bounds: BoundingBox) -> bool:
    """Check if an event is within a bounding box.

    Pure function.

    Args:
        event: Event to check
        bounds: Bounding box to check against

    Returns:
        True if the event is within bounds
    """
    return bounds.contains(event.latitude, event.longitude)


def filter_by_bounds(
    events: list[QuakeEvent],
    bounds: BoundingBox = MONITORED_REGION,
) -> list[QuakeEvent]:
    """Filter events to only those within a bounding box.

    Pure function. Order is preserved.

    Args:
        events: Events to filter
        bounds: Bounding box to filter by

    Returns:
        Events within the bounds
    """
    return [e for e in events if is_within_bounds(e, bounds)]
