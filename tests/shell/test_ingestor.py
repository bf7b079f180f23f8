"""Tests for the event ingestor.

Uses the in-memory store and a mock geocoder.
"""

from unittest.mock import Mock

from conftest import T_MS, make_feature
from src.core.event import EventSource, QuakeEvent
from src.core.normalizer import normalize_feed_feature, normalize_scrape_row
from src.core.places import PlaceLookup
from src.ingestor import EventIngestor


SCRAPE_ROW = ["05 October 2025 - 02:28 PM", "12.34", "124.56", "10", "4.0", "Dolores (Eastern Samar)"]


def _resolver(name="Bayanan", looked_up=True):
    resolver = Mock()
    resolver.resolve.return_value = PlaceLookup(name=name, looked_up=looked_up)
    return resolver


class TestEventIngestor:
    """Tests for EventIngestor.ingest()."""

    def test_writes_new_feed_event_with_enriched_place(self, store):
        resolver = _resolver()
        event = normalize_feed_feature(make_feature())

        stats = EventIngestor(store, resolver).ingest([event])

        assert stats.new == 1
        record = store.read_partition("2025-10-05")[0]
        assert record["place"] == "Bayanan"
        assert record["source"] == "usgs"
        assert record["time"] == T_MS
        assert record["createdAt"] == "SERVER_TIMESTAMP"
        resolver.resolve.assert_called_once_with(13.5, 121.0, "15 km SW of Calapan, Philippines")

    def test_scrape_event_keeps_source_location(self, store):
        resolver = _resolver()
        event = normalize_scrape_row(SCRAPE_ROW)

        stats = EventIngestor(store, resolver).ingest([event])

        assert stats.new == 1
        assert store.read_partition("2025-10-05")[0]["place"] == "Dolores (Eastern Samar)"
        resolver.resolve.assert_not_called()

    def test_existing_event_is_skipped_without_lookup(self, store):
        resolver = _resolver()
        event = normalize_feed_feature(make_feature())
        ingestor = EventIngestor(store, resolver)
        ingestor.ingest([event])
        resolver.reset_mock()

        stats = ingestor.ingest([event])

        assert stats.new == 0
        assert stats.skipped == 1
        resolver.resolve.assert_not_called()

    def test_duplicate_within_batch_written_once(self, store):
        event = normalize_feed_feature(make_feature())

        stats = EventIngestor(store, _resolver()).ingest([event, event])

        assert stats.new == 1
        assert stats.skipped == 1
        assert store.all_keys() == {"us7000abcd"}

    def test_invalid_coordinates_rejected(self, store):
        event = QuakeEvent(
            id="bad",
            source=EventSource.FEED,
            magnitude=3.0,
            latitude=95.0,
            longitude=121.0,
            depth=5.0,
            occurred_at_ms=T_MS,
            place="Nowhere",
        )

        stats = EventIngestor(store, _resolver()).ingest([event])

        assert stats.rejected == 1
        assert stats.new == 0
        assert store.create_calls == 0

    def test_lost_race_counts_as_skipped(self, store):
        event = normalize_feed_feature(make_feature())
        store.exists = Mock(return_value=False)
        store.partitions["2025-10-05"] = {"us7000abcd": {"id": "us7000abcd"}}

        stats = EventIngestor(store, _resolver()).ingest([event])

        assert stats.skipped == 1
        assert stats.new == 0

    def test_persistence_failure_continues_with_next_event(self, store):
        first = normalize_feed_feature(make_feature(event_id="us-fail"))
        second = normalize_feed_feature(make_feature(event_id="us-ok", latitude=14.0))
        store.fail_keys.add("us-fail")

        stats = EventIngestor(store, _resolver()).ingest([first, second])

        assert stats.failed == 1
        assert stats.new == 1
        assert len(stats.errors) == 1
        assert store.all_keys() == {"us-ok"}

    def test_counts_geocode_lookups_for_this_pass(self, store):
        resolver = Mock()
        resolver.resolve.side_effect = [
            PlaceLookup(name="Bayanan", looked_up=True),
            PlaceLookup(name="Bayanan", looked_up=False),
        ]
        events = [
            normalize_feed_feature(make_feature(event_id="a")),
            normalize_feed_feature(make_feature(event_id="b")),
            normalize_scrape_row(SCRAPE_ROW),
        ]

        stats = EventIngestor(store, resolver).ingest(events)

        assert stats.new == 3
        assert stats.geocode_lookups == 1

    def test_skipped_event_makes_no_lookup(self, store):
        event = normalize_feed_feature(make_feature())
        ingestor = EventIngestor(store, _resolver())
        ingestor.ingest([event])

        stats = ingestor.ingest([event])

        assert stats.geocode_lookups == 0
