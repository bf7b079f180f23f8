"""Unit tests for the event model and record layout."""

from conftest import T_MS
from src.core.event import (
    EventSource,
    QuakeEvent,
    event_to_record,
    is_valid_coordinates,
    sanitize_key,
    sanitize_location,
)


def _event(**overrides):
    values = dict(
        id="us7000abcd",
        source=EventSource.FEED,
        magnitude=4.2,
        latitude=13.5,
        longitude=121.0,
        depth=10.0,
        occurred_at_ms=T_MS,
        place="15 km SW of Calapan, Philippines",
        detail_url="https://example.com/us7000abcd",
        raw={"mag": 4.2},
    )
    values.update(overrides)
    return QuakeEvent(**values)


class TestSanitizeKey:
    """Tests for sanitize_key()."""

    def test_replaces_illegal_characters(self):
        assert sanitize_key("a.b#c$d[e]f/g") == "a_b_c_d_e_f_g"

    def test_leaves_legal_ids_alone(self):
        assert sanitize_key("scrape_1759645680000_12_34_124_56") == "scrape_1759645680000_12_34_124_56"


class TestSanitizeLocation:
    """Tests for sanitize_location()."""

    def test_replaces_whitespace_with_dashes(self):
        assert sanitize_location("Bogo City, Cebu") == "Bogo-City,-Cebu"

    def test_strips_illegal_characters(self):
        assert sanitize_location("St. Bernard [Leyte]") == "St-Bernard-Leyte"

    def test_empty_is_unknown(self):
        assert sanitize_location(None) == "Unknown"
        assert sanitize_location("") == "Unknown"


class TestIsValidCoordinates:
    """Tests for is_valid_coordinates()."""

    def test_edges_are_valid(self):
        assert is_valid_coordinates(90, 180) is True
        assert is_valid_coordinates(-90, -180) is True

    def test_out_of_range(self):
        assert is_valid_coordinates(95, 121) is False
        assert is_valid_coordinates(13, 181) is False


class TestEventToRecord:
    """Tests for event_to_record()."""

    def test_builds_full_record(self):
        record = event_to_record(_event())

        assert record == {
            "id": "us7000abcd",
            "source": "usgs",
            "magnitude": 4.2,
            "latitude": 13.5,
            "longitude": 121.0,
            "depth": 10.0,
            "time": T_MS,
            "place": "15 km SW of Calapan, Philippines",
            "type": "earthquake",
            "url": "https://example.com/us7000abcd",
            "raw": {"mag": 4.2},
            "locationKey": "15-km-SW-of-Calapan,-Philippines",
        }

    def test_enriched_place_overrides(self):
        record = event_to_record(_event(), place="Bayanan")
        assert record["place"] == "Bayanan"
        assert record["locationKey"] == "Bayanan"

    def test_id_is_sanitized(self):
        record = event_to_record(_event(id="ci.123#4"))
        assert record["id"] == "ci_123_4"

    def test_scrape_source_value(self):
        record = event_to_record(_event(source=EventSource.SCRAPE))
        assert record["source"] == "phivolcs"

    def test_raw_is_ignored_by_equality(self):
        assert _event(raw={"a": 1}) == _event(raw={"b": 2})
