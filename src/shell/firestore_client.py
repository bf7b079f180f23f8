"""Firestore Event Store - Imperative Shell.

This module persists normalized earthquake events, grouped into daily
partitions. Uses Google Cloud Firestore.

All I/O is contained here; path and retention logic are in the core module.
"""

import logging
from collections.abc import Iterator
from typing import Any

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore

from src.core.config import StoreConfig
from src.core.dedup import EventPath
from src.core.errors import PersistenceError


logger = logging.getLogger(__name__)


# Firestore caps a write batch at 500 operations
BATCH_SIZE = 400


class FirestoreEventStore:
    """Event store backed by Firestore.

    This is part of the imperative shell - it handles database I/O.

    Layout:
        {collection}/{YYYY-MM-DD}/{subcollection}/{event_id}
        {
            "id": ..., "source": "usgs" | "phivolcs", "magnitude": ...,
            "time": <epoch ms>, "place": ..., "createdAt": <server timestamp>
        }
    """

    def __init__(self, config: StoreConfig | None = None) -> None:
        """Initialize Firestore event store.

        Args:
            config: Store configuration
        """
        self.config = config or StoreConfig()
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs = {}
            if self.config.project_id:
                kwargs['project'] = self.config.project_id
            if self.config.database:
                kwargs['database'] = self.config.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _partitions(self) -> Any:
        return self.client.collection(self.config.collection)

    def _events(self, partition: str) -> Any:
        return (
            self._partitions()
            .document(partition)
            .collection(self.config.subcollection)
        )

    def _doc_ref(self, path: EventPath) -> Any:
        return self._events(path.partition).document(path.key)

    def exists(self, path: EventPath) -> bool:
        """Check whether an event has already been stored.

        This method performs database I/O.

        Raises:
            PersistenceError: If the read fails
        """
        try:
            return self._doc_ref(path).get().exists
        except gcp_exceptions.GoogleAPIError as e:
            raise PersistenceError(f"Existence check failed for {path}: {e}") from e

    def create(self, path: EventPath, record: dict[str, Any]) -> bool:
        """Write an event record once, stamping createdAt on the server.

        This method performs database I/O.

        Args:
            path: Where to write
            record: Event record (without createdAt)

        Returns:
            True if written, False if a record was already at that path

        Raises:
            PersistenceError: If the write fails
        """
        try:
            self._doc_ref(path).create({
                **record,
                "createdAt": firestore.SERVER_TIMESTAMP,
            })
            return True
        except gcp_exceptions.AlreadyExists:
            logger.info("Event %s was written concurrently, skipping", path)
            return False
        except gcp_exceptions.GoogleAPIError as e:
            raise PersistenceError(f"Write failed for {path}: {e}") from e

    def list_partitions(self) -> list[str]:
        """List the date partitions currently holding events.

        Raises:
            PersistenceError: If the listing fails
        """
        try:
            return sorted(doc.id for doc in self._partitions().list_documents())
        except gcp_exceptions.GoogleAPIError as e:
            raise PersistenceError(f"Listing partitions failed: {e}") from e

    def read_partition(self, partition: str) -> list[dict[str, Any]]:
        """Read every event record in one partition.

        Raises:
            PersistenceError: If the read fails
        """
        try:
            return [doc.to_dict() for doc in self._events(partition).stream()]
        except gcp_exceptions.GoogleAPIError as e:
            raise PersistenceError(f"Reading partition {partition} failed: {e}") from e

    def iter_records(self) -> Iterator[dict[str, Any]]:
        """Yield every stored event record, partition by partition."""
        for partition in self.list_partitions():
            yield from self.read_partition(partition)

    def delete_partition(self, partition: str) -> int:
        """Delete a partition and every event in it.

        Args:
            partition: Partition name ("YYYY-MM-DD")

        Returns:
            Number of event documents deleted

        Raises:
            PersistenceError: If a delete fails
        """
        logger.info("Deleting partition %s", partition)

        try:
            deleted = 0
            batch = self.client.batch()
            pending = 0

            for doc_ref in self._events(partition).list_documents():
                batch.delete(doc_ref)
                pending += 1
                deleted += 1
                if pending >= BATCH_SIZE:
                    batch.commit()
                    batch = self.client.batch()
                    pending = 0

            if pending:
                batch.commit()

            self._partitions().document(partition).delete()

        except gcp_exceptions.GoogleAPIError as e:
            raise PersistenceError(f"Deleting partition {partition} failed: {e}") from e

        logger.info("Deleted %d events from partition %s", deleted, partition)
        return deleted
