"""Unit tests for stats and location summaries."""

from conftest import T_MS
from src.core.stats import (
    DAY_MS,
    HOUR_MS,
    WEEK_MS,
    classify_risk,
    compute_stats,
    sort_newest_first,
    summarize_by_location,
)


def _record(time_ms, magnitude=3.0, source="usgs", place="Bogo City, Cebu", event_id="eq"):
    return {
        "id": event_id,
        "source": source,
        "magnitude": magnitude,
        "latitude": 11.0,
        "longitude": 124.0,
        "depth": 10.0,
        "time": time_ms,
        "place": place,
        "locationKey": place.replace(" ", "-"),
        "raw": {"dateTimeStr": "05 October 2025 - 02:28 PM"},
    }


class TestSortNewestFirst:
    """Tests for sort_newest_first()."""

    def test_orders_by_time_descending(self):
        records = [_record(1, event_id="old"), _record(3, event_id="new"), _record(2, event_id="mid")]
        assert [r["id"] for r in sort_newest_first(records)] == ["new", "mid", "old"]


class TestComputeStats:
    """Tests for compute_stats()."""

    def test_counts_windows_and_sources(self):
        records = [
            _record(T_MS - HOUR_MS // 2, magnitude=4.0),
            _record(T_MS - 2 * HOUR_MS, magnitude=2.0, source="phivolcs"),
            _record(T_MS - 3 * DAY_MS, magnitude=3.0),
            _record(T_MS - 2 * WEEK_MS, magnitude=6.25, source="phivolcs"),
        ]

        stats = compute_stats(records, now_ms=T_MS)

        assert stats["total"] == 4
        assert stats["lastHour"] == 1
        assert stats["last24Hours"] == 2
        assert stats["lastWeek"] == 3
        assert stats["bySource"] == {"usgs": 2, "phivolcs": 2}
        assert stats["avgMagnitude"] == 3.81
        assert stats["maxMagnitude"] == 6.2

    def test_empty(self):
        stats = compute_stats([], now_ms=T_MS)

        assert stats["total"] == 0
        assert stats["bySource"] == {"usgs": 0, "phivolcs": 0}
        assert stats["avgMagnitude"] == 0
        assert stats["maxMagnitude"] == 0


class TestClassifyRisk:
    """Tests for classify_risk()."""

    def test_levels(self):
        assert classify_risk(6.1, 1) == "critical"
        assert classify_risk(5.0, 1) == "high"
        assert classify_risk(2.0, 21) == "high"
        assert classify_risk(4.2, 3) == "moderate"
        assert classify_risk(2.0, 11) == "moderate"
        assert classify_risk(2.5, 2) == "low"


class TestSummarizeByLocation:
    """Tests for summarize_by_location()."""

    def test_groups_recent_events(self):
        records = [
            _record(T_MS - HOUR_MS, magnitude=4.5),
            _record(T_MS - 2 * HOUR_MS, magnitude=3.5),
            _record(T_MS - HOUR_MS, magnitude=2.0, place="Dolores"),
            _record(T_MS - 2 * DAY_MS, magnitude=5.5),
        ]

        summaries = summarize_by_location(records, now_ms=T_MS)

        assert set(summaries) == {"Bogo-City,-Cebu", "Dolores"}
        bogo = summaries["Bogo-City,-Cebu"]
        assert bogo["totalEvents"] == 2
        assert bogo["maxMagnitude"] == 4.5
        assert bogo["avgMagnitude"] == 4.0
        assert bogo["riskLevel"] == "moderate"
        assert [e["magnitude"] for e in bogo["events"]] == [4.5, 3.5]
        assert bogo["events"][0]["dateTime"] == "05 October 2025 - 02:28 PM"

    def test_missing_location_key_uses_place(self):
        record = _record(T_MS, place="Bogo City")
        del record["locationKey"]

        summaries = summarize_by_location([record], now_ms=T_MS)

        assert list(summaries) == ["Bogo-City"]

    def test_nothing_recent(self):
        assert summarize_by_location([_record(T_MS - 2 * DAY_MS)], now_ms=T_MS) == {}
