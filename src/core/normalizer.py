"""Source normalizers - Pure functions.

Maps the USGS GeoJSON features and the PHIVOLCS table rows into
QuakeEvent objects. No I/O happens here; fetching is done by the shell.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from src.core.event import (
    DEFAULT_CATEGORY,
    EventSource,
    QuakeEvent,
    is_valid_coordinates,
)


DEFAULT_FEED_PLACE = "Unknown Location"
DEFAULT_SCRAPE_PLACE = "Philippines"

# PHIVOLCS publishes Philippine Standard Time (UTC+8) without a zone marker
REGION_UTC_OFFSET = timedelta(hours=8)

_REGIONAL_DATETIME = re.compile(
    r"(\d{1,2})\s+([A-Za-z]+)\s+(\d{4})\s+-\s+(\d{1,2}):(\d{2})\s+(AM|PM)",
    re.IGNORECASE,
)

_MONTHS = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}


@dataclass
class FeedBatch:
    """Normalized feed features.

    Attributes:
        events: Successfully normalized events, in feed order
        invalid: Number of features dropped as malformed
    """
    events: list[QuakeEvent] = field(default_factory=list)
    invalid: int = 0


def _to_float(value: Any) -> float | None:
    """Parse a number, returning None when it is missing or not numeric."""
    if value is None:
        return None
    try:
        result = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if result != result:  # NaN
        return None
    return result


def _coordinate_id(prefix: str, time_ms: int, latitude: float, longitude: float) -> str:
    lat_part = f"{latitude:.2f}".replace(".", "_")
    lon_part = f"{longitude:.2f}".replace(".", "_")
    return f"{prefix}_{time_ms}_{lat_part}_{lon_part}"


def make_scrape_id(time_ms: int, latitude: float, longitude: float) -> str:
    """Derive the identifier of a scraped event.

    The scraped table has no event IDs, so the origin time and the
    coordinates rounded to two decimals identify the event.

    >>> make_scrape_id(1759645680000, 12.34, 124.56)
    'scrape_1759645680000_12_34_124_56'
    """
    return _coordinate_id("scrape", time_ms, latitude, longitude)


def parse_regional_datetime(value: str) -> datetime | None:
    """Parse a PHIVOLCS timestamp such as "05 October 2025 - 02:28 PM".

    Pure function. The calendar fields are read as wall-clock time and
    shifted by a fixed 8 hours; no timezone database is consulted.

    Args:
        value: Cell text from the first table column

    Returns:
        Timezone-aware UTC datetime, or None if the text does not parse
    """
    match = _REGIONAL_DATETIME.search(value or "")
    if not match:
        return None

    day, month_name, year, hour, minute, period = match.groups()
    month = _MONTHS.get(month_name.lower())
    if month is None:
        return None

    hours = int(hour)
    if hours > 12:
        return None
    if period.upper() == "PM" and hours != 12:
        hours += 12
    if period.upper() == "AM" and hours == 12:
        hours = 0

    try:
        wall_clock = datetime(
            int(year), month, int(day), hours, int(minute), tzinfo=timezone.utc
        )
    except ValueError:
        return None

    return wall_clock - REGION_UTC_OFFSET


def format_regional_datetime(time_ms: int) -> str:
    """Format epoch milliseconds the way PHIVOLCS prints timestamps.

    >>> format_regional_datetime(1759645680000)
    '05 October 2025 - 02:28 PM'
    """
    local = datetime.fromtimestamp(time_ms / 1000, tz=timezone.utc) + REGION_UTC_OFFSET
    return local.strftime("%d %B %Y - %I:%M %p")


def to_epoch_ms(moment: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds."""
    return int(round(moment.timestamp() * 1000))


def normalize_feed_feature(feature: dict[str, Any]) -> QuakeEvent | None:
    """Normalize a single USGS GeoJSON feature.

    Pure function: returns None when the feature has no usable time or
    coordinates, or when the coordinates are out of range.

    Args:
        feature: GeoJSON feature dict

    Returns:
        QuakeEvent or None if the feature is malformed
    """
    try:
        props = feature.get("properties") or {}
        geometry = feature.get("geometry") or {}
        coords = geometry.get("coordinates") or []

        if len(coords) < 2:
            return None

        longitude = _to_float(coords[0])
        latitude = _to_float(coords[1])
        if latitude is None or longitude is None:
            return None
        if not is_valid_coordinates(latitude, longitude):
            return None

        time_value = props.get("time")
        if time_value is None:
            return None
        time_ms = int(time_value)

        depth = _to_float(coords[2]) if len(coords) > 2 else None
        magnitude = _to_float(props.get("mag"))
        place = props.get("place") or DEFAULT_FEED_PLACE

        event_id = feature.get("id") or _coordinate_id("feed", time_ms, latitude, longitude)

        return QuakeEvent(
            id=str(event_id),
            source=EventSource.FEED,
            magnitude=max(magnitude or 0.0, 0.0),
            latitude=latitude,
            longitude=longitude,
            depth=max(depth or 0.0, 0.0),
            occurred_at_ms=time_ms,
            place=place,
            category=props.get("type") or DEFAULT_CATEGORY,
            detail_url=props.get("url"),
            raw={
                "dateTimeStr": format_regional_datetime(time_ms),
                "location": place,
                "mag": props.get("mag"),
                "time": time_ms,
                "place": props.get("place"),
                "title": props.get("title"),
                "status": props.get("status"),
                "type": props.get("type"),
            },
        )
    except (AttributeError, TypeError, ValueError, OverflowError):
        return None


def normalize_feed(geojson: dict[str, Any]) -> FeedBatch:
    """Normalize a USGS FeatureCollection.

    Pure function: malformed features are dropped and counted.

    Args:
        geojson: Full GeoJSON FeatureCollection

    Returns:
        FeedBatch with events in feed order
    """
    batch = FeedBatch()

    for feature in geojson.get("features") or []:
        event = normalize_feed_feature(feature)
        if event is None:
            batch.invalid += 1
        else:
            batch.events.append(event)

    return batch


def normalize_scrape_row(
    cells: list[str],
    source_url: str | None = None,
) -> QuakeEvent | None:
    """Normalize one PHIVOLCS table row.

    Pure function. Row layout is
    [datetime, latitude, longitude, depth, magnitude, location?].
    The retention window is applied by the caller, which knows the fetch
    time.

    Args:
        cells: Plain-text cell values of the row
        source_url: Page the row was scraped from

    Returns:
        QuakeEvent or None if the row is malformed
    """
    if len(cells) < 5:
        return None

    date_text = cells[0].strip()
    occurred_at = parse_regional_datetime(date_text)
    latitude = _to_float(cells[1])
    longitude = _to_float(cells[2])

    if occurred_at is None or latitude is None or longitude is None:
        return None
    if not is_valid_coordinates(latitude, longitude):
        return None

    depth = _to_float(cells[3])
    magnitude = _to_float(cells[4])
    location = cells[5].strip() if len(cells) > 5 else ""
    location = location or DEFAULT_SCRAPE_PLACE
    time_ms = to_epoch_ms(occurred_at)

    return QuakeEvent(
        id=make_scrape_id(time_ms, latitude, longitude),
        source=EventSource.SCRAPE,
        magnitude=max(magnitude or 0.0, 0.0),
        latitude=latitude,
        longitude=longitude,
        depth=max(depth or 0.0, 0.0),
        occurred_at_ms=time_ms,
        place=location,
        category=DEFAULT_CATEGORY,
        detail_url=source_url,
        raw={
            "dateTimeStr": date_text,
            "location": location,
        },
    )
