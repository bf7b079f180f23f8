"""Interval Scheduler - In-process polling driver.

Used when the service runs as a long-lived process instead of behind
Cloud Scheduler. Each job re-arms its own timer, so a slow run never
delays other jobs and runs of different jobs may overlap.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from src.core.config import Config
from src.orchestrator import Orchestrator


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduledJob:
    """A callable run every `interval_seconds`."""
    name: str
    interval_seconds: float
    action: Callable[[], object]


class PollScheduler:
    """Runs jobs on independent repeating timers."""

    def __init__(self, jobs: list[ScheduledJob]) -> None:
        self.jobs = jobs
        self._timers: dict[str, threading.Timer] = {}
        self._lock = threading.Lock()
        self._stopped = threading.Event()

    def _arm(self, job: ScheduledJob) -> None:
        with self._lock:
            if self._stopped.is_set():
                return
            timer = threading.Timer(job.interval_seconds, self._fire, args=(job,))
            timer.daemon = True
            self._timers[job.name] = timer
            timer.start()

    def _fire(self, job: ScheduledJob) -> None:
        # Re-arm first so the next tick is not pushed back by this run
        self._arm(job)
        self.run_job(job)

    def run_job(self, job: ScheduledJob) -> None:
        """Run a job once, logging instead of raising."""
        logger.info("Job %s triggered", job.name)
        try:
            job.action()
        except Exception:
            logger.exception("Job %s failed", job.name)

    def start(self, run_immediately: bool = True) -> None:
        """Start all timers, optionally running each job once right away."""
        self._stopped.clear()
        for job in self.jobs:
            if run_immediately:
                threading.Thread(target=self.run_job, args=(job,), daemon=True).start()
            self._arm(job)
        logger.info("Scheduler started with %d jobs", len(self.jobs))

    def stop(self) -> None:
        """Cancel all pending timers. Runs in progress finish on their own."""
        self._stopped.set()
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
        logger.info("Scheduler stopped")

    def wait(self) -> None:
        """Block until stop() is called."""
        self._stopped.wait()


def build_jobs(config: Config, orchestrator: Orchestrator) -> list[ScheduledJob]:
    """The default polling plan.

    A recent-window run every poll interval and a wider regional run every
    sync interval, both including PHIVOLCS when enabled.
    """
    include_scrape = config.scrape.enabled
    return [
        ScheduledJob(
            name="poll",
            interval_seconds=config.schedule.poll_interval_seconds,
            action=lambda: orchestrator.run(use_api=False, include_scrape=include_scrape),
        ),
        ScheduledJob(
            name="regional-sync",
            interval_seconds=config.schedule.sync_interval_seconds,
            action=lambda: orchestrator.run(use_api=True, include_scrape=include_scrape),
        ),
    ]
