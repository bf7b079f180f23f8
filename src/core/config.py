"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from src.core.dedup import DEFAULT_RETENTION_DAYS
from src.core.geo import MONITORED_REGION, BoundingBox
from src.core.places import DEFAULT_CACHE_CAPACITY


USGS_SUMMARY_FEED = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/all_hour.geojson"
USGS_QUERY_API = "https://earthquake.usgs.gov/fdsnws/event/1/query"
PHIVOLCS_URL = "https://earthquake.phivolcs.dost.gov.ph/"
NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"
DEFAULT_USER_AGENT = "quake-ingest/1.0"


@dataclass
class FeedConfig:
    """USGS feed settings.

    Attributes:
        summary_url: Hourly summary GeoJSON feed (recent-window mode)
        query_url: FDSN event query endpoint (regional mode)
        region: Bounds used for filtering and for the regional query
        min_magnitude: Magnitude floor for the regional query
        lookback_hours: How far back the regional query reaches
        timeout_seconds: Request timeout
    """
    summary_url: str = USGS_SUMMARY_FEED
    query_url: str = USGS_QUERY_API
    region: BoundingBox = MONITORED_REGION
    min_magnitude: float = 1.5
    lookback_hours: int = 1
    timeout_seconds: float = 10


@dataclass
class ScrapeConfig:
    """PHIVOLCS scrape settings.

    Attributes:
        enabled: Whether scheduled runs include the scrape by default
        url: Page holding the earthquake table
        timeout_seconds: Per-attempt request timeout
        max_attempts: Attempts on timeout before giving up
        window_hours: Rows older than this (relative to fetch time) are skipped
    """
    enabled: bool = True
    url: str = PHIVOLCS_URL
    timeout_seconds: float = 30
    max_attempts: int = 3
    window_hours: int = 24


@dataclass
class GeocodeConfig:
    """Reverse-geocoding settings.

    Attributes:
        url: Nominatim reverse endpoint
        user_agent: Identifying User-Agent required by Nominatim's usage policy
        delay_seconds: Pause before every uncached lookup
        timeout_seconds: Request timeout
        cache_capacity: Maximum cached place names
    """
    url: str = NOMINATIM_REVERSE_URL
    user_agent: str = DEFAULT_USER_AGENT
    delay_seconds: float = 1.1
    timeout_seconds: float = 10
    cache_capacity: int = DEFAULT_CACHE_CAPACITY


@dataclass
class StoreConfig:
    """Firestore layout.

    Events live at {collection}/{YYYY-MM-DD}/{subcollection}/{event_id}.

    Attributes:
        project_id: GCP project ID (None for default)
        database: Firestore database name (None for default database)
        collection: Top-level collection holding date partitions
        subcollection: Per-partition collection holding events
        retention_days: Days of partitions kept by cleanup
    """
    project_id: str | None = None
    database: str | None = None
    collection: str = "events"
    subcollection: str = "quakes"
    retention_days: int = DEFAULT_RETENTION_DAYS


@dataclass
class ScheduleConfig:
    """Polling cadence.

    Attributes:
        poll_interval_seconds: Recent-window feed + scrape run
        sync_interval_seconds: Wider regional query + scrape run
    """
    poll_interval_seconds: int = 300
    sync_interval_seconds: int = 3600


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.
    """
    feed: FeedConfig = field(default_factory=FeedConfig)
    scrape: ScrapeConfig = field(default_factory=ScrapeConfig)
    geocode: GeocodeConfig = field(default_factory=GeocodeConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def validate_coordinates(lat: float, lon: float, field_name: str) -> list[ValidationError]:
    """Validate latitude/longitude coordinates.

    Pure function.

    Args:
        lat: Latitude value
        lon: Longitude value
        field_name: Name of the field for error messages

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not -90 <= lat <= 90:
        errors.append(ValidationError(
            field=field_name,
            message=f"Latitude {lat} out of range [-90, 90]",
        ))

    if not -180 <= lon <= 180:
        errors.append(ValidationError(
            field=field_name,
            message=f"Longitude {lon} out of range [-180, 180]",
        ))

    return errors


def validate_bounds(bounds: BoundingBox, field_name: str) -> list[ValidationError]:
    """Validate a bounding box.

    Pure function.

    Args:
        bounds: Bounding box to validate
        field_name: Name of the field for error messages

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    errors.extend(validate_coordinates(
        bounds.min_latitude, bounds.min_longitude,
        f"{field_name}.min",
    ))
    errors.extend(validate_coordinates(
        bounds.max_latitude, bounds.max_longitude,
        f"{field_name}.max",
    ))

    if bounds.min_latitude > bounds.max_latitude:
        errors.append(ValidationError(
            field=field_name,
            message=f"min_latitude ({bounds.min_latitude}) > max_latitude ({bounds.max_latitude})",
        ))

    if bounds.min_longitude > bounds.max_longitude:
        errors.append(ValidationError(
            field=field_name,
            message=f"min_longitude ({bounds.min_longitude}) > max_longitude ({bounds.max_longitude})",
        ))

    return errors


def _require_positive(value: float, field_name: str) -> list[ValidationError]:
    if value <= 0:
        return [ValidationError(
            field=field_name,
            message=f"Must be positive, got {value}",
        )]
    return []


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    errors.extend(validate_bounds(config.feed.region, "feed.region"))
    errors.extend(_require_positive(config.feed.timeout_seconds, "feed.timeout_seconds"))
    errors.extend(_require_positive(config.feed.lookback_hours, "feed.lookback_hours"))

    if config.feed.min_magnitude < 0:
        errors.append(ValidationError(
            field="feed.min_magnitude",
            message=f"Magnitude floor cannot be negative, got {config.feed.min_magnitude}",
        ))

    errors.extend(_require_positive(config.scrape.timeout_seconds, "scrape.timeout_seconds"))
    errors.extend(_require_positive(config.scrape.max_attempts, "scrape.max_attempts"))
    errors.extend(_require_positive(config.scrape.window_hours, "scrape.window_hours"))

    errors.extend(_require_positive(config.geocode.timeout_seconds, "geocode.timeout_seconds"))
    errors.extend(_require_positive(config.geocode.cache_capacity, "geocode.cache_capacity"))

    # Nominatim's policy asks for at most one request per second
    if config.geocode.delay_seconds < 1.0:
        errors.append(ValidationError(
            field="geocode.delay_seconds",
            message=f"Delay {config.geocode.delay_seconds}s is below the 1s geocoder limit",
            severity="warning",
        ))

    if config.geocode.user_agent == DEFAULT_USER_AGENT:
        errors.append(ValidationError(
            field="geocode.user_agent",
            message="Default User-Agent in use; set one with contact details",
            severity="warning",
        ))

    errors.extend(_require_positive(config.store.retention_days, "store.retention_days"))
    errors.extend(_require_positive(
        config.schedule.poll_interval_seconds, "schedule.poll_interval_seconds",
    ))
    errors.extend(_require_positive(
        config.schedule.sync_interval_seconds, "schedule.sync_interval_seconds",
    ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
