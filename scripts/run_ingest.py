#!/usr/bin/env python3
"""Run the ingestion pipeline from the command line.

Usage:
    # One recent-window run (USGS summary feed + PHIVOLCS)
    python scripts/run_ingest.py

    # Regional USGS query, skip PHIVOLCS
    python scripts/run_ingest.py --use-api --no-phivolcs

    # Fetch and normalize only, nothing is written
    python scripts/run_ingest.py --dry-run

    # Delete partitions older than the retention window
    python scripts/run_ingest.py --cleanup

    # Keep polling on the configured schedule
    python scripts/run_ingest.py --schedule

Environment:
    CONFIG_PATH: Path to config file (default: environment-only config)
    LOG_LEVEL: Logging level (default: INFO)
"""

import argparse
import json
import logging
import os
import signal
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.errors import SourceUnavailableError
from src.core.geo import filter_by_bounds
from src.core.normalizer import normalize_feed
from src.orchestrator import Orchestrator
from src.scheduler import PollScheduler, build_jobs
from src.shell.config_loader import load_config, load_config_from_env
from src.shell.phivolcs_client import PhivolcsClient
from src.shell.usgs_client import FeedMode, USGSClient

logging.basicConfig(
    level=getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def dry_run(config, use_api: bool, include_scrape: bool) -> int:
    """Fetch and normalize without touching the store."""
    mode = FeedMode.REGIONAL if use_api else FeedMode.RECENT
    events = []

    try:
        batch = normalize_feed(USGSClient(config.feed).fetch(mode))
        feed_events = batch.events
        if mode == FeedMode.RECENT:
            feed_events = filter_by_bounds(feed_events, config.feed.region)
        print(f"USGS: {len(feed_events)} events ({batch.invalid} malformed)")
        events.extend(feed_events)
    except SourceUnavailableError as e:
        print(f"USGS unavailable: {e}")

    if include_scrape:
        try:
            scrape = PhivolcsClient(config.scrape).fetch_events()
            print(
                f"PHIVOLCS: {len(scrape.events)} events "
                f"({scrape.skipped_old} old, {scrape.skipped_invalid} invalid)"
            )
            events.extend(scrape.events)
        except SourceUnavailableError as e:
            print(f"PHIVOLCS unavailable: {e}")

    for event in events:
        print(f"  M{event.magnitude:.1f} {event.place} [{event.source.value}] {event.id}")

    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Ingest Philippine earthquake events")
    parser.add_argument("--use-api", action="store_true", help="Use the regional USGS query")
    parser.add_argument("--no-phivolcs", action="store_true", help="Skip the PHIVOLCS scrape")
    parser.add_argument("--dry-run", action="store_true", help="Fetch and print, do not store")
    parser.add_argument("--cleanup", action="store_true", help="Delete expired partitions")
    parser.add_argument("--schedule", action="store_true", help="Poll on the configured schedule")
    parser.add_argument("--config", help="Path to YAML config file")
    args = parser.parse_args()

    if args.config or os.environ.get("CONFIG_PATH"):
        config = load_config(args.config)
    else:
        config = load_config_from_env()

    include_scrape = not args.no_phivolcs

    if args.dry_run:
        return dry_run(config, args.use_api, include_scrape)

    orchestrator = Orchestrator(config)

    if args.cleanup:
        result = orchestrator.cleanup()
        print(f"Deleted {len(result.deleted_partitions)} partitions, {result.deleted_events} events")
        for error in result.errors:
            print(f"Error: {error}")
        return 1 if result.errors else 0

    if args.schedule:
        scheduler = PollScheduler(build_jobs(config, orchestrator))
        signal.signal(signal.SIGINT, lambda *_: scheduler.stop())
        signal.signal(signal.SIGTERM, lambda *_: scheduler.stop())
        scheduler.start()
        scheduler.wait()
        return 0

    result = orchestrator.run(use_api=args.use_api, include_scrape=include_scrape)
    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
