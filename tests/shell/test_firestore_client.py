"""Tests for the Firestore event store.

The Firestore client is replaced with a MagicMock so no emulator or
credentials are needed.
"""

from unittest.mock import MagicMock, Mock, patch

import pytest
from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore

from src.core.config import StoreConfig
from src.core.dedup import EventPath
from src.core.errors import PersistenceError
from src.shell.firestore_client import FirestoreEventStore


PATH = EventPath(partition="2025-10-05", key="us7000abcd")


@pytest.fixture
def event_store():
    """Store wired to a mock client."""
    store = FirestoreEventStore(StoreConfig(collection="events", subcollection="quakes"))
    store._client = MagicMock()
    return store


def _events_collection(store):
    return store._client.collection.return_value.document.return_value.collection.return_value


class TestFirestoreEventStoreInit:
    """Tests for client construction."""

    @patch("src.shell.firestore_client.firestore.Client")
    def test_client_uses_project_and_database(self, mock_client_class):
        store = FirestoreEventStore(StoreConfig(project_id="quake-prod", database="quakes-db"))

        store.client

        mock_client_class.assert_called_once_with(project="quake-prod", database="quakes-db")

    @patch("src.shell.firestore_client.firestore.Client")
    def test_client_defaults(self, mock_client_class):
        FirestoreEventStore().client
        mock_client_class.assert_called_once_with()


class TestFirestoreEventStoreWrites:
    """Tests for exists() and create()."""

    def test_exists_reads_partitioned_path(self, event_store):
        events = _events_collection(event_store)
        events.document.return_value.get.return_value.exists = True

        assert event_store.exists(PATH) is True

        event_store._client.collection.assert_called_with("events")
        event_store._client.collection.return_value.document.assert_called_with("2025-10-05")
        event_store._client.collection.return_value.document.return_value.collection.assert_called_with("quakes")
        events.document.assert_called_with("us7000abcd")

    def test_exists_error_raises_persistence_error(self, event_store):
        events = _events_collection(event_store)
        events.document.return_value.get.side_effect = gcp_exceptions.ServiceUnavailable("down")

        with pytest.raises(PersistenceError):
            event_store.exists(PATH)

    def test_create_adds_server_timestamp(self, event_store):
        doc = _events_collection(event_store).document.return_value

        assert event_store.create(PATH, {"id": "us7000abcd", "magnitude": 4.2}) is True

        written = doc.create.call_args[0][0]
        assert written["id"] == "us7000abcd"
        assert written["createdAt"] is firestore.SERVER_TIMESTAMP

    def test_create_existing_returns_false(self, event_store):
        doc = _events_collection(event_store).document.return_value
        doc.create.side_effect = gcp_exceptions.AlreadyExists("exists")

        assert event_store.create(PATH, {"id": "us7000abcd"}) is False

    def test_create_error_raises_persistence_error(self, event_store):
        doc = _events_collection(event_store).document.return_value
        doc.create.side_effect = gcp_exceptions.DeadlineExceeded("slow")

        with pytest.raises(PersistenceError, match="Write failed"):
            event_store.create(PATH, {"id": "us7000abcd"})


class TestFirestoreEventStoreReads:
    """Tests for listing and reading partitions."""

    def test_list_partitions_sorted(self, event_store):
        docs = [Mock(id="2025-10-05"), Mock(id="2025-10-03"), Mock(id="2025-10-04")]
        event_store._client.collection.return_value.list_documents.return_value = docs

        assert event_store.list_partitions() == ["2025-10-03", "2025-10-04", "2025-10-05"]

    def test_iter_records(self, event_store):
        event_store._client.collection.return_value.list_documents.return_value = [Mock(id="2025-10-05")]
        snapshot = Mock()
        snapshot.to_dict.return_value = {"id": "us7000abcd"}
        _events_collection(event_store).stream.return_value = [snapshot]

        assert list(event_store.iter_records()) == [{"id": "us7000abcd"}]


class TestFirestoreEventStoreDeletePartition:
    """Tests for delete_partition()."""

    @patch("src.shell.firestore_client.BATCH_SIZE", 2)
    def test_deletes_in_batches(self, event_store):
        refs = [Mock() for _ in range(5)]
        _events_collection(event_store).list_documents.return_value = refs
        batch = event_store._client.batch.return_value

        deleted = event_store.delete_partition("2025-09-01")

        assert deleted == 5
        assert batch.delete.call_count == 5
        assert batch.commit.call_count == 3
        event_store._client.collection.return_value.document.return_value.delete.assert_called_once()

    def test_empty_partition_skips_commit(self, event_store):
        _events_collection(event_store).list_documents.return_value = []
        batch = event_store._client.batch.return_value

        assert event_store.delete_partition("2025-09-01") == 0
        batch.commit.assert_not_called()

    def test_delete_error_raises_persistence_error(self, event_store):
        _events_collection(event_store).list_documents.side_effect = gcp_exceptions.PermissionDenied("no")

        with pytest.raises(PersistenceError):
            event_store.delete_partition("2025-09-01")
