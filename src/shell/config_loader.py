"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config and its sections) are defined in src/core/config.py
to avoid information leakage between layers.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from src.core.config import (
    Config,
    FeedConfig,
    GeocodeConfig,
    ScheduleConfig,
    ScrapeConfig,
    StoreConfig,
    validate_config,
)
from src.core.geo import BoundingBox


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config/config.yaml"


def _resolve_value(value: Any) -> Any:
    """Resolve a ${ENV_VAR} placeholder from the environment.

    Non-string values and plain strings are returned unchanged. An unset
    variable leaves the placeholder in place.

    Args:
        value: Value to resolve

    Returns:
        Resolved value
    """
    if not isinstance(value, str):
        return value

    if value.startswith("${") and value.endswith("}"):
        var_name = value[2:-1]
        env_value = os.environ.get(var_name)
        if env_value:
            return env_value
        logger.warning("Environment variable %s not set", var_name)

    return value


def _resolve_optional(value: Any, default: Any = None) -> Any:
    """Resolve a value, using the default when a placeholder stays unresolved."""
    resolved = _resolve_value(value)
    if resolved is None or (isinstance(resolved, str) and resolved.startswith("${")):
        return default
    return resolved


def _parse_bounds(data: dict[str, Any]) -> BoundingBox:
    """Parse a bounding box from config data."""
    return BoundingBox(
        min_latitude=float(data["min_latitude"]),
        max_latitude=float(data["max_latitude"]),
        min_longitude=float(data["min_longitude"]),
        max_longitude=float(data["max_longitude"]),
    )


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _parse_feed(data: dict[str, Any]) -> FeedConfig:
    """Parse the feed section."""
    defaults = FeedConfig()
    region = defaults.region
    if "region" in data:
        region = _parse_bounds(data["region"])

    return FeedConfig(
        summary_url=_resolve_value(data.get("summary_url", defaults.summary_url)),
        query_url=_resolve_value(data.get("query_url", defaults.query_url)),
        region=region,
        min_magnitude=float(data.get("min_magnitude", defaults.min_magnitude)),
        lookback_hours=int(data.get("lookback_hours", defaults.lookback_hours)),
        timeout_seconds=float(data.get("timeout_seconds", defaults.timeout_seconds)),
    )


def _parse_scrape(data: dict[str, Any]) -> ScrapeConfig:
    """Parse the scrape section."""
    defaults = ScrapeConfig()
    return ScrapeConfig(
        enabled=_parse_bool(data.get("enabled", defaults.enabled)),
        url=_resolve_value(data.get("url", defaults.url)),
        timeout_seconds=float(data.get("timeout_seconds", defaults.timeout_seconds)),
        max_attempts=int(data.get("max_attempts", defaults.max_attempts)),
        window_hours=int(data.get("window_hours", defaults.window_hours)),
    )


def _parse_geocode(data: dict[str, Any]) -> GeocodeConfig:
    """Parse the geocode section."""
    defaults = GeocodeConfig()
    return GeocodeConfig(
        url=_resolve_value(data.get("url", defaults.url)),
        user_agent=_resolve_optional(data.get("user_agent"), defaults.user_agent),
        delay_seconds=float(data.get("delay_seconds", defaults.delay_seconds)),
        timeout_seconds=float(data.get("timeout_seconds", defaults.timeout_seconds)),
        cache_capacity=int(data.get("cache_capacity", defaults.cache_capacity)),
    )


def _parse_store(data: dict[str, Any]) -> StoreConfig:
    """Parse the store section."""
    defaults = StoreConfig()
    return StoreConfig(
        project_id=_resolve_optional(data.get("project_id")),
        database=_resolve_optional(data.get("database")),
        collection=data.get("collection", defaults.collection),
        subcollection=data.get("subcollection", defaults.subcollection),
        retention_days=int(data.get("retention_days", defaults.retention_days)),
    )


def _parse_schedule(data: dict[str, Any]) -> ScheduleConfig:
    """Parse the schedule section."""
    defaults = ScheduleConfig()
    return ScheduleConfig(
        poll_interval_seconds=int(
            data.get("poll_interval_seconds", defaults.poll_interval_seconds)
        ),
        sync_interval_seconds=int(
            data.get("sync_interval_seconds", defaults.sync_interval_seconds)
        ),
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only env var expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    return Config(
        feed=_parse_feed(data.get("feed") or {}),
        scrape=_parse_scrape(data.get("scrape") or {}),
        geocode=_parse_geocode(data.get("geocode") or {}),
        store=_parse_store(data.get("store") or {}),
        schedule=_parse_schedule(data.get("schedule") or {}),
    )


def _log_validation(config: Config) -> None:
    result = validate_config(config)
    for error in result.errors:
        if error.severity == "error":
            logger.error("Config error in %s: %s", error.field, error.message)
        else:
            logger.warning("Config warning in %s: %s", error.field, error.message)


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)
    _log_validation(config)

    logger.info(
        "Loaded config: collection=%s, poll every %ds, scrape %s",
        config.store.collection,
        config.schedule.poll_interval_seconds,
        "enabled" if config.scrape.enabled else "disabled",
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        USGS_FEED: Summary feed URL
        PHIVOLCS_URL: Page to scrape
        INCLUDE_PHIVOLCS: Whether scheduled runs scrape PHIVOLCS
        SCRAPE_MAX_ATTEMPTS: Attempts on scrape timeouts
        NOMINATIM_USER_AGENT: User-Agent sent to the geocoder
        FIRESTORE_DATABASE: Firestore database name
        FIRESTORE_COLLECTION: Top-level events collection
        POLL_INTERVAL_SECONDS: Recent-window polling interval
        RETENTION_DAYS: Days of partitions kept by cleanup

    Returns:
        Config object from environment
    """
    feed = FeedConfig()
    scrape = ScrapeConfig()
    geocode = GeocodeConfig()
    store = StoreConfig()
    schedule = ScheduleConfig()

    if os.environ.get("USGS_FEED"):
        feed.summary_url = os.environ["USGS_FEED"]

    if os.environ.get("PHIVOLCS_URL"):
        scrape.url = os.environ["PHIVOLCS_URL"]
    if os.environ.get("INCLUDE_PHIVOLCS"):
        scrape.enabled = _parse_bool(os.environ["INCLUDE_PHIVOLCS"])
    scrape.max_attempts = int(os.environ.get("SCRAPE_MAX_ATTEMPTS", scrape.max_attempts))

    if os.environ.get("NOMINATIM_USER_AGENT"):
        geocode.user_agent = os.environ["NOMINATIM_USER_AGENT"]

    store.project_id = os.environ.get("GCP_PROJECT") or None
    store.database = os.environ.get("FIRESTORE_DATABASE") or None
    store.collection = os.environ.get("FIRESTORE_COLLECTION", store.collection)
    store.retention_days = int(os.environ.get("RETENTION_DAYS", store.retention_days))

    schedule.poll_interval_seconds = int(
        os.environ.get("POLL_INTERVAL_SECONDS", schedule.poll_interval_seconds)
    )

    config = Config(
        feed=feed,
        scrape=scrape,
        geocode=geocode,
        store=store,
        schedule=schedule,
    )
    _log_validation(config)
    return config
