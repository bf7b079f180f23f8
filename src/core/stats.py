"""Event statistics and location summaries - Pure functions.

These work on persisted records (plain dicts as read back from the store),
not on QuakeEvent objects, since they are computed over stored history.
"""

from typing import Any

from src.core.event import EventSource, sanitize_location


HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS
WEEK_MS = 7 * DAY_MS

# Events included per location in a summary
MAX_EVENTS_PER_LOCATION = 50


def _magnitude(record: dict[str, Any]) -> float:
    try:
        return float(record.get("magnitude") or 0)
    except (TypeError, ValueError):
        return 0.0


def _time(record: dict[str, Any]) -> int:
    try:
        return int(record.get("time") or 0)
    except (TypeError, ValueError):
        return 0


def sort_newest_first(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Sort records by origin time, newest first."""
    return sorted(records, key=_time, reverse=True)


def compute_stats(records: list[dict[str, Any]], now_ms: int) -> dict[str, Any]:
    """Count stored events by time window and by source.

    Pure function.

    Args:
        records: Persisted event records
        now_ms: Current time in epoch milliseconds

    Returns:
        Stats dict (total, lastHour, last24Hours, lastWeek, bySource,
        avgMagnitude, maxMagnitude)
    """
    magnitudes = [_magnitude(r) for r in records]

    return {
        "total": len(records),
        "lastHour": sum(1 for r in records if _time(r) >= now_ms - HOUR_MS),
        "last24Hours": sum(1 for r in records if _time(r) >= now_ms - DAY_MS),
        "lastWeek": sum(1 for r in records if _time(r) >= now_ms - WEEK_MS),
        "bySource": {
            source.value: sum(1 for r in records if r.get("source") == source.value)
            for source in EventSource
        },
        "avgMagnitude": round(sum(magnitudes) / len(magnitudes), 2) if magnitudes else 0,
        "maxMagnitude": round(max(magnitudes), 1) if magnitudes else 0,
    }


def classify_risk(max_magnitude: float, total_events: int) -> str:
    """Classify seismic activity for one location.

    Pure function.

    >>> classify_risk(4.2, 3)
    'moderate'
    """
    if max_magnitude >= 6.0:
        return "critical"
    if max_magnitude >= 5.0 or total_events > 20:
        return "high"
    if max_magnitude >= 4.0 or total_events > 10:
        return "moderate"
    return "low"


def summarize_by_location(
    records: list[dict[str, Any]],
    now_ms: int,
    window_ms: int = DAY_MS,
) -> dict[str, dict[str, Any]]:
    """Group recent events by location key.

    Pure function. This is the aggregated view handed to the AI
    summarizer.

    Args:
        records: Persisted event records
        now_ms: Current time in epoch milliseconds
        window_ms: How far back to include events

    Returns:
        Mapping of location key to summary
    """
    groups: dict[str, list[dict[str, Any]]] = {}
    for record in sort_newest_first(records):
        if _time(record) < now_ms - window_ms:
            continue
        key = record.get("locationKey") or sanitize_location(record.get("place"))
        groups.setdefault(key, []).append(record)

    summaries = {}
    for location, events in groups.items():
        magnitudes = [_magnitude(e) for e in events]
        max_magnitude = max(magnitudes)
        summaries[location] = {
            "totalEvents": len(events),
            "maxMagnitude": max_magnitude,
            "avgMagnitude": round(sum(magnitudes) / len(magnitudes), 2),
            "riskLevel": classify_risk(max_magnitude, len(events)),
            "events": [
                {
                    "magnitude": _magnitude(e),
                    "latitude": e.get("latitude"),
                    "longitude": e.get("longitude"),
                    "depth": e.get("depth"),
                    "dateTime": (e.get("raw") or {}).get("dateTimeStr"),
                    "source": e.get("source"),
                }
                for e in events[:MAX_EVENTS_PER_LOCATION]
            ],
        }

    return summaries
