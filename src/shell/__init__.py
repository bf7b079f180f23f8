"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- USGS API client (HTTP)
- PHIVOLCS scraper (HTTP + HTML)
- Nominatim reverse geocoding client and cached resolver (HTTP)
- Firestore event store (database)
- Configuration loading (environment/files)

Keep this layer thin and simple. All business logic should be in core.
"""

from src.shell.usgs_client import USGSClient, FeedMode
from src.shell.phivolcs_client import PhivolcsClient, ScrapeResult
from src.shell.geocode_client import NominatimClient
from src.shell.place_resolver import PlaceNameResolver
from src.shell.firestore_client import FirestoreEventStore
from src.shell.config_loader import load_config, load_config_from_env

__all__ = [
    "USGSClient",
    "FeedMode",
    "PhivolcsClient",
    "ScrapeResult",
    "NominatimClient",
    "PlaceNameResolver",
    "FirestoreEventStore",
    "load_config",
    "load_config_from_env",
]
