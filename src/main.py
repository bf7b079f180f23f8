"""Cloud Function Entry Points.

This module provides the entry points for Google Cloud Functions.
They are thin wrappers that load configuration and invoke the orchestrator.
Cloud Scheduler hits quake_ingest every 5 minutes and with useAPI=true
every hour.
"""

import logging
import os
import json
from typing import Any

import functions_framework
from flask import Request

from src.orchestrator import Orchestrator
from src.shell.config_loader import load_config, load_config_from_env


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

_orchestrator: Orchestrator | None = None


def _get_config():
    """Load configuration from file or environment."""
    if os.environ.get("CONFIG_PATH"):
        return load_config(os.environ["CONFIG_PATH"])
    return load_config_from_env()


def _get_orchestrator() -> Orchestrator:
    """Reuse one orchestrator per instance so the place cache survives calls."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = Orchestrator(_get_config())
    return _orchestrator


def _flag(value: str | None, default: bool) -> bool:
    """Read a query flag. Only an explicit "false" turns off a default-on flag."""
    if value is None:
        return default
    value = value.strip().lower()
    if default:
        return value != "false"
    return value in ("true", "1", "yes", "on")


@functions_framework.http
def quake_ingest(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point.

    Query params:
        useAPI: "true" to use the regional USGS query (default false)
        phivolcs: "false" to skip the PHIVOLCS scrape (default true)

    Args:
        request: Flask request object

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    logger.info("Starting earthquake ingestion cycle")

    try:
        use_api = _flag(request.args.get("useAPI"), False)
        include_scrape = _flag(request.args.get("phivolcs"), True)

        result = _get_orchestrator().run(use_api=use_api, include_scrape=include_scrape)

        response = {
            "status": "success" if result.success else "partial_failure",
            **result.to_dict(),
        }

        status_code = 200 if result.success else 207  # 207 = Multi-Status
        return response, status_code

    except Exception as e:
        logger.exception("Unexpected error in earthquake ingestion")
        return {
            "status": "error",
            "message": str(e),
        }, 500


@functions_framework.cloud_event
def quake_ingest_pubsub(cloud_event: Any) -> None:
    """Pub/Sub Cloud Function entry point.

    The message attribute "mode" selects the feed: "regional" for the
    hourly sync, anything else for the recent-window poll.

    Args:
        cloud_event: CloudEvent from Pub/Sub
    """
    logger.info("Starting earthquake ingestion cycle (Pub/Sub trigger)")

    try:
        message = (cloud_event.data or {}).get("message", {})
        attributes = message.get("attributes") or {}
        use_api = attributes.get("mode") == "regional"

        result = _get_orchestrator().run(use_api=use_api)

        logger.info("Completed: %s", result.summary)

        for error in result.errors:
            logger.error("Error: %s", error)

    except Exception:
        logger.exception("Unexpected error in earthquake ingestion")
        raise


@functions_framework.http
def quake_cleanup(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point for retention cleanup.

    Args:
        request: Flask request object (not used, but required by framework)

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    logger.info("Starting retention cleanup")

    try:
        result = _get_orchestrator().cleanup()

        response = {
            "status": "success" if not result.errors else "partial_failure",
            "deletedFolders": len(result.deleted_partitions),
            "deletedEvents": result.deleted_events,
        }
        if result.errors:
            response["errors"] = result.errors

        return response, 200 if not result.errors else 207

    except Exception as e:
        logger.exception("Unexpected error in retention cleanup")
        return {
            "status": "error",
            "message": str(e),
        }, 500


# For local testing
if __name__ == "__main__":
    print("Running earthquake ingestion locally...")

    class MockRequest:
        args: dict[str, str] = {}

    response, status = quake_ingest(MockRequest())
    print(f"\nResponse ({status}):")
    print(json.dumps(response, indent=2))
