"""Place-name cache and selection - Pure logic.

The cache is an owned object rather than module state so each
orchestrator (and each test) gets its own.
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any


DEFAULT_CACHE_CAPACITY = 1000

# Address components tried in order, most specific first
ADDRESS_PREFERENCE = ("village", "municipality", "town", "city", "province")


@dataclass(frozen=True)
class PlaceLookup:
    """A resolved place name.

    Attributes:
        name: Place name to persist
        looked_up: True if the geocoder was called (cache miss)
    """
    name: str
    looked_up: bool = False


def cache_key(latitude: float, longitude: float) -> str:
    """Build the cache key for a coordinate pair.

    >>> cache_key(13.456, 121.0)
    '13.46,121.00'
    """
    return f"{latitude:.2f},{longitude:.2f}"


class PlaceNameCache:
    """Bounded place-name cache with insertion-order (FIFO) eviction.

    Re-setting an existing key updates its value without changing its
    position, so eviction order always follows first insertion.
    """

    def __init__(self, capacity: int = DEFAULT_CACHE_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"Cache capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: OrderedDict[str, str] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> str | None:
        """Return the cached name for a key, or None."""
        return self._entries.get(key)

    def put(self, key: str, name: str) -> None:
        """Store a name, evicting the oldest entries past capacity."""
        self._entries[key] = name
        while len(self._entries) > self.capacity:
            self._entries.popitem(last=False)

    def keys(self) -> list[str]:
        """Keys in insertion order, oldest first."""
        return list(self._entries)


def choose_place_name(response: dict[str, Any] | None, fallback: str) -> str:
    """Pick the most useful name from a reverse-geocoding response.

    Pure function. Prefers village, municipality, town, city and province
    from the address, then the display name, then the fallback.

    Args:
        response: Parsed reverse-geocoding JSON (None if the lookup failed)
        fallback: Source-provided place text

    Returns:
        Place name to persist
    """
    if not response:
        return fallback

    address = response.get("address") or {}
    for component in ADDRESS_PREFERENCE:
        value = address.get(component)
        if value:
            return value

    return response.get("display_name") or fallback
