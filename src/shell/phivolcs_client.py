"""PHIVOLCS Scraper Client - Imperative Shell.

This module fetches the PHIVOLCS earthquake information page and turns
its table into events. HTTP and HTML handling live here; the per-row
mapping is in the core normalizer.

The PHIVOLCS site serves an incomplete certificate chain, so TLS
verification is disabled for this endpoint only.
"""

import logging
import warnings
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import requests
from bs4 import BeautifulSoup
from urllib3.exceptions import InsecureRequestWarning

from src.core.config import ScrapeConfig
from src.core.errors import SourceUnavailableError
from src.core.event import EventSource, QuakeEvent
from src.core.normalizer import normalize_scrape_row, to_epoch_ms


logger = logging.getLogger(__name__)


# Most specific first; the page layout is not stable
ROW_SELECTORS = (
    "table#quakeinfo tbody tr",
    "table tbody tr",
    "table tr",
)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}


@dataclass
class ScrapeResult:
    """Outcome of one scrape.

    Attributes:
        events: Events inside the retention window, in table order
        skipped_old: Rows older than the window (expected, not an error)
        skipped_invalid: Rows that could not be parsed
        selector: The row selector that matched (None if no table found)
    """
    events: list[QuakeEvent] = field(default_factory=list)
    skipped_old: int = 0
    skipped_invalid: int = 0
    selector: str | None = None


def extract_rows(html: str) -> tuple[str | None, list[list[str]]]:
    """Find the earthquake table rows in the page.

    Tries each selector in ROW_SELECTORS and uses the first that matches
    anything. Text split across inline tags is joined with single spaces.

    Args:
        html: Page HTML

    Returns:
        Tuple of (matching selector, rows as lists of cell text)
    """
    soup = BeautifulSoup(html, "html.parser")

    for selector in ROW_SELECTORS:
        rows = soup.select(selector)
        if rows:
            return selector, [
                [cell.get_text(" ", strip=True) for cell in row.find_all("td")]
                for row in rows
            ]

    return None, []


def parse_page(
    html: str,
    fetched_at: datetime,
    window_hours: int = 24,
    source_url: str | None = None,
) -> ScrapeResult:
    """Parse a PHIVOLCS page into events.

    Rows whose origin time is more than `window_hours` before `fetched_at`
    are counted as old and left out.

    Args:
        html: Page HTML
        fetched_at: When the page was fetched (timezone-aware)
        window_hours: Retention window
        source_url: Page URL, stored as each event's detail URL

    Returns:
        ScrapeResult
    """
    selector, rows = extract_rows(html)
    result = ScrapeResult(selector=selector)

    if selector is None:
        logger.warning("No table rows found on PHIVOLCS page")
        return result

    logger.info("Found %d rows with selector '%s'", len(rows), selector)
    cutoff_ms = to_epoch_ms(fetched_at - timedelta(hours=window_hours))

    for cells in rows:
        event = normalize_scrape_row(cells, source_url=source_url)
        if event is None:
            result.skipped_invalid += 1
            continue
        if event.occurred_at_ms < cutoff_ms:
            result.skipped_old += 1
            continue
        result.events.append(event)

    return result


class PhivolcsClient:
    """Client for scraping the PHIVOLCS earthquake table.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(self, config: ScrapeConfig | None = None) -> None:
        """Initialize PHIVOLCS client.

        Args:
            config: Scrape configuration (URL, timeout, attempts, window)
        """
        self.config = config or ScrapeConfig()

    def _get_page(self) -> str:
        """Download the page, retrying on timeouts only.

        Raises:
            SourceUnavailableError: After the last timed-out attempt, or
                immediately on any other request error
        """
        attempts = max(self.config.max_attempts, 1)

        for attempt in range(1, attempts + 1):
            try:
                with warnings.catch_warnings():
                    warnings.simplefilter("ignore", InsecureRequestWarning)
                    response = requests.get(
                        self.config.url,
                        headers=BROWSER_HEADERS,
                        timeout=self.config.timeout_seconds,
                        verify=False,
                    )
                response.raise_for_status()
                return response.text
            except requests.Timeout as e:
                logger.warning(
                    "PHIVOLCS request timed out (attempt %d/%d)",
                    attempt,
                    attempts,
                )
                if attempt == attempts:
                    raise SourceUnavailableError(
                        EventSource.SCRAPE.value,
                        f"timed out after {attempts} attempts",
                    ) from e
            except requests.RequestException as e:
                raise SourceUnavailableError(EventSource.SCRAPE.value, str(e)) from e

        raise SourceUnavailableError(EventSource.SCRAPE.value, "no attempts made")

    def fetch_events(self, now: datetime | None = None) -> ScrapeResult:
        """Fetch and parse recent PHIVOLCS events.

        This method performs HTTP I/O.

        Args:
            now: Fetch time for the retention window (defaults to wall clock)

        Returns:
            ScrapeResult

        Raises:
            SourceUnavailableError: If the page could not be downloaded
        """
        logger.info("Scraping PHIVOLCS data (last %d hours)", self.config.window_hours)

        html = self._get_page()
        fetched_at = now or datetime.now(timezone.utc)

        result = parse_page(
            html,
            fetched_at=fetched_at,
            window_hours=self.config.window_hours,
            source_url=self.config.url,
        )

        logger.info(
            "Scraped %d PHIVOLCS events, skipped %d old and %d invalid rows",
            len(result.events),
            result.skipped_old,
            result.skipped_invalid,
        )

        return result
