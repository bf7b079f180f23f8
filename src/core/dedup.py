"""Deduplication and partitioning logic - Pure functions.

This module decides where an event lives in the store and which date
partitions have aged out. All functions are pure with no side effects.

Note: The actual existence checks and writes are handled by the imperative
shell (Firestore event store). This module only contains the pure logic.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from src.core.event import QuakeEvent, sanitize_key


# Partitions older than this many days are removed by cleanup
DEFAULT_RETENTION_DAYS = 30


@dataclass(frozen=True)
class EventPath:
    """Location of an event record in the store.

    Attributes:
        partition: UTC calendar date of the event, "YYYY-MM-DD"
        key: Sanitized event identifier
    """
    partition: str
    key: str

    def __str__(self) -> str:
        return f"{self.partition}/{self.key}"


def partition_for(occurred_at_ms: int) -> str:
    """Return the date partition for an origin time.

    Pure function.

    >>> partition_for(1759645680000)
    '2025-10-05'
    """
    moment = datetime.fromtimestamp(occurred_at_ms / 1000, tz=timezone.utc)
    return moment.date().isoformat()


def event_path(event: QuakeEvent) -> EventPath:
    """Compute the store path for an event.

    Pure function. The same physical event always maps to the same path,
    which is what makes re-polling idempotent.
    """
    return EventPath(
        partition=partition_for(event.occurred_at_ms),
        key=sanitize_key(event.id),
    )


def _parse_partition(name: str) -> date | None:
    try:
        return date.fromisoformat(name)
    except ValueError:
        return None


def partitions_to_expire(
    partitions: list[str],
    now: datetime,
    retention_days: int = DEFAULT_RETENTION_DAYS,
) -> list[str]:
    """Compute which date partitions lie entirely before the retention horizon.

    Pure function. A partition expires only once its whole calendar day
    (UTC) ends at or before `now - retention_days`. Names that are not
    ISO dates are never expired.

    Args:
        partitions: Partition names currently in the store
        now: Current time (timezone-aware)
        retention_days: Days of history to keep

    Returns:
        Sorted partition names to delete
    """
    horizon = now - timedelta(days=retention_days)
    expired = []

    for name in partitions:
        day = _parse_partition(name)
        if day is None:
            continue
        day_end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=timezone.utc)
        if day_end <= horizon:
            expired.append(name)

    return sorted(expired)
