"""Orchestrator - Wires Functional Core and Imperative Shell.

This module coordinates the flow of data between the pure functional
core and the I/O-performing shell components. It's the "glue" that
makes the application work.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from src.core.config import Config
from src.core.dedup import partitions_to_expire
from src.core.errors import PersistenceError, SourceUnavailableError
from src.core.event import QuakeEvent
from src.core.geo import filter_by_bounds
from src.core.normalizer import normalize_feed, to_epoch_ms
from src.core.places import PlaceNameCache
from src.core.stats import compute_stats, sort_newest_first, summarize_by_location
from src.ingestor import EventIngestor
from src.shell.firestore_client import FirestoreEventStore
from src.shell.phivolcs_client import PhivolcsClient, ScrapeResult
from src.shell.place_resolver import PlaceNameResolver
from src.shell.usgs_client import FeedMode, USGSClient


logger = logging.getLogger(__name__)


@dataclass
class FeedOutcome:
    """Feed events for one run, after normalization and filtering."""
    events: list[QuakeEvent] = field(default_factory=list)
    fetched: int = 0
    invalid: int = 0
    outside_region: int = 0
    error: str | None = None


@dataclass
class IngestResult:
    """Result of a complete ingestion run.

    Attributes:
        mode: Feed mode used for the run
        feed_fetched: Features returned by USGS
        feed_invalid: Features dropped as malformed
        feed_outside_region: Features dropped by the region filter
        scrape_events: PHIVOLCS rows inside the retention window
        scrape_skipped_old: PHIVOLCS rows older than the window
        scrape_skipped_invalid: PHIVOLCS rows that could not be parsed
        new_count: Events written
        skipped_count: Events already stored
        rejected_count: Events dropped for invalid coordinates
        failed_count: Events lost to store errors
        geocode_lookups: External reverse-geocoding calls made
        duration_seconds: Wall time of the run
        errors: Any errors that occurred
    """
    mode: FeedMode
    feed_fetched: int = 0
    feed_invalid: int = 0
    feed_outside_region: int = 0
    scrape_events: int = 0
    scrape_skipped_old: int = 0
    scrape_skipped_invalid: int = 0
    new_count: int = 0
    skipped_count: int = 0
    rejected_count: int = 0
    failed_count: int = 0
    geocode_lookups: int = 0
    duration_seconds: float = 0.0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Returns True if no errors occurred."""
        return len(self.errors) == 0

    @property
    def summary(self) -> str:
        """Human-readable summary of the run."""
        return (
            f"Completed in {self.duration_seconds:.2f}s | "
            f"New: {self.new_count} | Skipped: {self.skipped_count} | "
            f"Failed: {self.failed_count}"
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view for HTTP responses."""
        data = {
            "mode": self.mode.value,
            "summary": self.summary,
            "feed_fetched": self.feed_fetched,
            "feed_invalid": self.feed_invalid,
            "feed_outside_region": self.feed_outside_region,
            "scrape_events": self.scrape_events,
            "scrape_skipped_old": self.scrape_skipped_old,
            "scrape_skipped_invalid": self.scrape_skipped_invalid,
            "new": self.new_count,
            "skipped": self.skipped_count,
            "rejected": self.rejected_count,
            "failed": self.failed_count,
            "geocode_lookups": self.geocode_lookups,
        }
        if self.errors:
            data["errors"] = self.errors
        return data


@dataclass
class CleanupResult:
    """Result of a retention cleanup.

    Attributes:
        deleted_partitions: Partition names removed
        deleted_events: Event documents removed
        errors: Any errors that occurred
    """
    deleted_partitions: list[str] = field(default_factory=list)
    deleted_events: int = 0
    errors: list[str] = field(default_factory=list)


class Orchestrator:
    """Coordinates earthquake ingestion.

    This class wires together:
    - USGS client (structured feed)
    - PHIVOLCS client (HTML scrape)
    - Core functions (normalization, region filter, paths, stats)
    - Place-name resolver (cached reverse geocoding)
    - Firestore event store (dedup state and persistence)
    """

    def __init__(
        self,
        config: Config,
        usgs_client: USGSClient | None = None,
        phivolcs_client: PhivolcsClient | None = None,
        resolver: PlaceNameResolver | None = None,
        store: FirestoreEventStore | None = None,
    ) -> None:
        """Initialize orchestrator with configuration.

        Args:
            config: Application configuration
            usgs_client: USGS client (created if not provided)
            phivolcs_client: PHIVOLCS client (created if not provided)
            resolver: Place-name resolver (created if not provided)
            store: Event store (created if not provided)
        """
        self.config = config
        self.usgs_client = usgs_client or USGSClient(config.feed)
        self.phivolcs_client = phivolcs_client or PhivolcsClient(config.scrape)
        self.resolver = resolver or PlaceNameResolver(
            config.geocode,
            cache=PlaceNameCache(config.geocode.cache_capacity),
        )
        self.store = store or FirestoreEventStore(config.store)
        self.ingestor = EventIngestor(self.store, self.resolver)

    def _fetch_feed(self, mode: FeedMode, now: datetime) -> FeedOutcome:
        """Fetch, normalize and (in recent mode) region-filter feed events."""
        outcome = FeedOutcome()

        try:
            geojson = self.usgs_client.fetch(mode, now=now)
        except SourceUnavailableError as e:
            logger.error("USGS unavailable: %s", e)
            outcome.error = str(e)
            return outcome
        except Exception as e:
            logger.exception("Unexpected error fetching USGS")
            outcome.error = f"usgs: {e}"
            return outcome

        batch = normalize_feed(geojson)
        outcome.fetched = len(batch.events) + batch.invalid
        outcome.invalid = batch.invalid

        if mode == FeedMode.RECENT:
            outcome.events = filter_by_bounds(batch.events, self.config.feed.region)
        else:
            outcome.events = batch.events
        outcome.outside_region = len(batch.events) - len(outcome.events)

        logger.info("%d USGS events in monitored region", len(outcome.events))
        return outcome

    def _fetch_scrape(self, now: datetime) -> tuple[ScrapeResult, str | None]:
        """Fetch PHIVOLCS events; failures yield an empty result."""
        try:
            return self.phivolcs_client.fetch_events(now=now), None
        except SourceUnavailableError as e:
            logger.error("PHIVOLCS scraping failed: %s", e)
            return ScrapeResult(), str(e)
        except Exception as e:
            logger.exception("Unexpected error scraping PHIVOLCS")
            return ScrapeResult(), f"phivolcs: {e}"

    def run(
        self,
        use_api: bool = False,
        include_scrape: bool = True,
        now: datetime | None = None,
    ) -> IngestResult:
        """Run one ingestion cycle.

        This is the main entry point that:
        1. Fetches USGS and PHIVOLCS data concurrently
        2. Normalizes and region-filters the feed
        3. Persists unseen events (feed events are reverse-geocoded first)

        A failing source contributes zero events; the run continues.

        Args:
            use_api: Use the regional USGS query instead of the summary feed
            include_scrape: Also scrape PHIVOLCS
            now: Current time (defaults to the wall clock)

        Returns:
            IngestResult with details of what happened
        """
        started = time.monotonic()
        now = now or datetime.now(timezone.utc)
        mode = FeedMode.REGIONAL if use_api else FeedMode.RECENT
        result = IngestResult(mode=mode)

        logger.info("Fetching earthquake data (mode=%s, phivolcs=%s)", mode.value, include_scrape)

        with ThreadPoolExecutor(max_workers=2) as executor:
            feed_future = executor.submit(self._fetch_feed, mode, now)
            scrape_future = (
                executor.submit(self._fetch_scrape, now) if include_scrape else None
            )
            feed = feed_future.result()
            scrape, scrape_error = (
                scrape_future.result() if scrape_future else (ScrapeResult(), None)
            )

        result.feed_fetched = feed.fetched
        result.feed_invalid = feed.invalid
        result.feed_outside_region = feed.outside_region
        result.scrape_events = len(scrape.events)
        result.scrape_skipped_old = scrape.skipped_old
        result.scrape_skipped_invalid = scrape.skipped_invalid
        for error in (feed.error, scrape_error):
            if error:
                result.errors.append(error)

        stats = self.ingestor.ingest(feed.events + scrape.events)

        result.new_count = stats.new
        result.skipped_count = stats.skipped
        result.rejected_count = stats.rejected
        result.failed_count = stats.failed
        result.geocode_lookups = stats.geocode_lookups
        result.errors.extend(stats.errors)
        result.duration_seconds = time.monotonic() - started

        logger.info(result.summary)
        return result

    def cleanup(self, now: datetime | None = None) -> CleanupResult:
        """Delete date partitions older than the retention window.

        Never called by run(); triggered by operators or a separate job.

        Args:
            now: Current time (defaults to the wall clock)

        Returns:
            CleanupResult
        """
        now = now or datetime.now(timezone.utc)
        result = CleanupResult()

        try:
            partitions = self.store.list_partitions()
        except PersistenceError as e:
            logger.error("Cleanup could not list partitions: %s", e)
            result.errors.append(str(e))
            return result

        expired = partitions_to_expire(partitions, now, self.config.store.retention_days)
        logger.info("%d of %d partitions past retention", len(expired), len(partitions))

        for partition in expired:
            try:
                result.deleted_events += self.store.delete_partition(partition)
                result.deleted_partitions.append(partition)
            except PersistenceError as e:
                logger.error("Cleanup failed for %s: %s", partition, e)
                result.errors.append(str(e))

        return result

    def load_events(self, source: str | None = None) -> list[dict[str, Any]]:
        """Read stored events, newest first, optionally for one source."""
        records = list(self.store.iter_records())
        if source is not None:
            records = [r for r in records if r.get("source") == source.lower()]
        return sort_newest_first(records)

    def stats(self, now: datetime | None = None) -> dict[str, Any]:
        """Counts of stored events by time window and source."""
        now = now or datetime.now(timezone.utc)
        return compute_stats(self.load_events(), to_epoch_ms(now))

    def location_summaries(self, now: datetime | None = None) -> dict[str, Any]:
        """Last-24h events grouped by location, for the AI summarizer."""
        now = now or datetime.now(timezone.utc)
        return summarize_by_location(self.load_events(), to_epoch_ms(now))
