"""USGS API Client - Imperative Shell.

This module handles HTTP communication with the USGS Earthquake API.
All I/O is contained here; normalization is in the core module.
"""

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

import requests

from src.core.config import FeedConfig
from src.core.errors import SourceUnavailableError
from src.core.event import EventSource


logger = logging.getLogger(__name__)


class FeedMode(str, Enum):
    """Which USGS endpoint to poll.

    RECENT reads the global hourly summary feed, which must then be
    filtered to the monitored region. REGIONAL runs a parameterized query
    that the server already restricts to the region.
    """
    RECENT = "recent"
    REGIONAL = "regional"


class USGSClient:
    """Client for fetching earthquake data from USGS.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(self, config: FeedConfig | None = None) -> None:
        """Initialize USGS client.

        Args:
            config: Feed configuration (URLs, region, timeout)
        """
        self.config = config or FeedConfig()

    def _build_query_params(self, now: datetime) -> dict[str, str]:
        """Build query parameters for the regional FDSN query.

        Args:
            now: Current time, the end of the lookback window

        Returns:
            Dict of URL query parameters
        """
        region = self.config.region
        start = now - timedelta(hours=self.config.lookback_hours)

        return {
            "format": "geojson",
            "starttime": start.strftime("%Y-%m-%dT%H:%M:%S"),
            "minlatitude": str(region.min_latitude),
            "maxlatitude": str(region.max_latitude),
            "minlongitude": str(region.min_longitude),
            "maxlongitude": str(region.max_longitude),
            "minmagnitude": str(self.config.min_magnitude),
            "orderby": "time",
        }

    def _get(self, url: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        try:
            response = requests.get(
                url,
                params=params,
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
            return response.json()
        except requests.Timeout as e:
            raise SourceUnavailableError(EventSource.FEED.value, "request timed out") from e
        except requests.RequestException as e:
            raise SourceUnavailableError(EventSource.FEED.value, str(e)) from e
        except ValueError as e:
            raise SourceUnavailableError(EventSource.FEED.value, f"invalid JSON: {e}") from e

    def fetch(self, mode: FeedMode, now: datetime | None = None) -> dict[str, Any]:
        """Fetch a GeoJSON FeatureCollection from USGS.

        This method performs HTTP I/O.

        Args:
            mode: Which endpoint to use
            now: Current time (defaults to the wall clock)

        Returns:
            Raw GeoJSON response

        Raises:
            SourceUnavailableError: On network errors, timeouts or non-2xx
        """
        if mode == FeedMode.REGIONAL:
            now = now or datetime.now(timezone.utc)
            params = self._build_query_params(now)
            logger.info("Fetching regional query from USGS", extra={"params": params})
            data = self._get(self.config.query_url, params=params)
        else:
            logger.info("Fetching USGS summary feed")
            data = self._get(self.config.summary_url)

        logger.info(
            "Fetched %d features from USGS (%s)",
            len(data.get("features") or []),
            mode.value,
        )

        return data
