"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Event model and store record layout
- Source normalization (USGS GeoJSON, PHIVOLCS table rows)
- Geographic filtering
- Deduplication paths and retention
- Place-name cache and selection
- Stats and location summaries

All functions here are deterministic and have no I/O.
"""

from src.core.event import EventSource, QuakeEvent, event_to_record, sanitize_key
from src.core.normalizer import normalize_feed, normalize_scrape_row, parse_regional_datetime
from src.core.geo import BoundingBox, MONITORED_REGION, filter_by_bounds
from src.core.dedup import EventPath, event_path, partitions_to_expire
from src.core.places import PlaceNameCache, cache_key, choose_place_name
from src.core.stats import compute_stats, summarize_by_location

__all__ = [
    # Event
    "EventSource",
    "QuakeEvent",
    "event_to_record",
    "sanitize_key",
    # Normalizer
    "normalize_feed",
    "normalize_scrape_row",
    "parse_regional_datetime",
    # Geo
    "BoundingBox",
    "MONITORED_REGION",
    "filter_by_bounds",
    # Dedup
    "EventPath",
    "event_path",
    "partitions_to_expire",
    # Places
    "PlaceNameCache",
    "cache_key",
    "choose_place_name",
    # Stats
    "compute_stats",
    "summarize_by_location",
]
