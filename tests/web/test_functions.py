"""Tests for the Cloud Function entry points.

The shared orchestrator is replaced with a mock.
"""

from unittest.mock import Mock, patch

import pytest

import src.main
from src.orchestrator import CleanupResult, IngestResult
from src.shell.usgs_client import FeedMode


def _request(**args):
    request = Mock()
    request.args = args
    return request


@pytest.fixture
def orchestrator():
    mock = Mock()
    mock.run.return_value = IngestResult(mode=FeedMode.RECENT, new_count=1)
    with patch.object(src.main, "_get_orchestrator", return_value=mock):
        yield mock


class TestQuakeIngest:
    """Tests for quake_ingest()."""

    def test_success(self, orchestrator):
        body, status = src.main.quake_ingest(_request())

        assert status == 200
        assert body["status"] == "success"
        assert body["new"] == 1
        orchestrator.run.assert_called_once_with(use_api=False, include_scrape=True)

    def test_query_flags(self, orchestrator):
        src.main.quake_ingest(_request(useAPI="true", phivolcs="false"))
        orchestrator.run.assert_called_once_with(use_api=True, include_scrape=False)

    @pytest.mark.parametrize("value", ["1", "true", "TRUE", "yes", ""])
    def test_scrape_stays_on_unless_false(self, orchestrator, value):
        src.main.quake_ingest(_request(phivolcs=value))
        orchestrator.run.assert_called_once_with(use_api=False, include_scrape=True)

    def test_use_api_accepts_one(self, orchestrator):
        src.main.quake_ingest(_request(useAPI="1"))
        orchestrator.run.assert_called_once_with(use_api=True, include_scrape=True)

    def test_partial_failure_is_207(self, orchestrator):
        orchestrator.run.return_value = IngestResult(
            mode=FeedMode.RECENT, errors=["phivolcs: timed out after 3 attempts"]
        )

        body, status = src.main.quake_ingest(_request())

        assert status == 207
        assert body["status"] == "partial_failure"
        assert body["errors"] == ["phivolcs: timed out after 3 attempts"]

    def test_unexpected_error_is_500(self, orchestrator):
        orchestrator.run.side_effect = RuntimeError("boom")

        body, status = src.main.quake_ingest(_request())

        assert status == 500
        assert body["message"] == "boom"


class TestQuakeIngestPubsub:
    """Tests for quake_ingest_pubsub()."""

    def test_regional_mode_attribute(self, orchestrator):
        event = Mock()
        event.data = {"message": {"attributes": {"mode": "regional"}}}

        src.main.quake_ingest_pubsub(event)

        orchestrator.run.assert_called_once_with(use_api=True)

    def test_errors_propagate_for_retry(self, orchestrator):
        orchestrator.run.side_effect = RuntimeError("boom")
        event = Mock()
        event.data = {}

        with pytest.raises(RuntimeError):
            src.main.quake_ingest_pubsub(event)


class TestQuakeCleanup:
    """Tests for quake_cleanup()."""

    def test_reports_deleted_partitions(self, orchestrator):
        orchestrator.cleanup.return_value = CleanupResult(
            deleted_partitions=["2025-09-01"],
            deleted_events=3,
        )

        body, status = src.main.quake_cleanup(_request())

        assert status == 200
        assert body["deletedFolders"] == 1
        assert body["deletedEvents"] == 3
