"""Place-Name Resolver - Imperative Shell.

Combines the bounded cache from the core with the Nominatim client and
the courtesy delay the geocoder requires between uncached lookups.
"""

import logging
import time
from collections.abc import Callable

from src.core.config import GeocodeConfig
from src.core.places import PlaceLookup, PlaceNameCache, cache_key, choose_place_name
from src.shell.geocode_client import NominatimClient


logger = logging.getLogger(__name__)


class PlaceNameResolver:
    """Resolves coordinates to place names, caching by rounded coordinate."""

    def __init__(
        self,
        config: GeocodeConfig | None = None,
        client: NominatimClient | None = None,
        cache: PlaceNameCache | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize resolver.

        Args:
            config: Geocoding configuration
            client: Nominatim client (created if not provided)
            cache: Place-name cache (created if not provided)
            sleep: Delay function, replaceable in tests
        """
        self.config = config or GeocodeConfig()
        self.client = client or NominatimClient(self.config)
        self.cache = cache if cache is not None else PlaceNameCache(self.config.cache_capacity)
        self._sleep = sleep

    def resolve(self, latitude: float, longitude: float, fallback: str) -> PlaceLookup:
        """Return a human place name for a coordinate.

        Cache hits return immediately. Misses wait `delay_seconds`, query
        the geocoder and cache whatever name was chosen, including the
        fallback when the lookup failed.

        Args:
            latitude: Point latitude
            longitude: Point longitude
            fallback: Source-provided place text

        Returns:
            PlaceLookup with the name and whether the geocoder was called
        """
        key = cache_key(latitude, longitude)
        cached = self.cache.get(key)
        if cached:
            return PlaceLookup(name=cached)

        self._sleep(self.config.delay_seconds)
        response = self.client.reverse(latitude, longitude)
        name = choose_place_name(response, fallback)

        if response is None:
            logger.info("Using source place for %s: %s", key, fallback)

        self.cache.put(key, name)
        return PlaceLookup(name=name, looked_up=True)
