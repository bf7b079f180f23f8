"""Reverse Geocoding Client - Imperative Shell.

This module handles HTTP communication with the Nominatim reverse
geocoding service. Choosing a name from the response is done in the core.
"""

import logging
from typing import Any

import requests

from src.core.config import GeocodeConfig


logger = logging.getLogger(__name__)


class NominatimClient:
    """Client for Nominatim reverse lookups.

    This is part of the imperative shell - it handles HTTP I/O.
    Failures never raise; they return None so callers fall back to the
    source-provided place.
    """

    def __init__(self, config: GeocodeConfig | None = None) -> None:
        """Initialize Nominatim client.

        Args:
            config: Geocoding configuration (URL, User-Agent, timeout)
        """
        self.config = config or GeocodeConfig()

    def reverse(self, latitude: float, longitude: float) -> dict[str, Any] | None:
        """Look up the address at a coordinate.

        This method performs HTTP I/O.

        Args:
            latitude: Point latitude
            longitude: Point longitude

        Returns:
            Parsed JSON (with "address" and "display_name"), or None on failure
        """
        params = {
            "format": "jsonv2",
            "lat": str(latitude),
            "lon": str(longitude),
            "zoom": "18",
            "addressdetails": "1",
        }

        try:
            response = requests.get(
                self.config.url,
                params=params,
                headers={"User-Agent": self.config.user_agent},
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
            data = response.json()
        except requests.Timeout:
            logger.warning("Reverse geocode timed out for (%.4f, %.4f)", latitude, longitude)
            return None
        except requests.RequestException as e:
            logger.warning("Reverse geocode failed for (%.4f, %.4f): %s", latitude, longitude, e)
            return None
        except ValueError:
            logger.warning("Reverse geocode returned invalid JSON for (%.4f, %.4f)", latitude, longitude)
            return None

        if not isinstance(data, dict) or "error" in data:
            logger.info("No reverse geocode result for (%.4f, %.4f)", latitude, longitude)
            return None

        return data
