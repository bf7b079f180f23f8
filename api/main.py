"""Quake API - FastAPI operator service.

Serves stored events and stats for the dashboard, and exposes manual
triggers for ingestion and retention cleanup. Deployed as a single
Cloud Run service.
"""

import logging
import os
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import BackgroundTasks, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from src.core.errors import PersistenceError
from src.core.event import EventSource
from src.orchestrator import Orchestrator
from src.shell.config_loader import load_config, load_config_from_env

logging.basicConfig(
    level=getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Quake API",
    description="Philippine earthquake events from USGS and PHIVOLCS",
    version="1.0.0",
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Admin API key (set in Cloud Run environment)
ADMIN_API_KEY = os.environ.get("ADMIN_API_KEY")

# ===== Response Models =====

class HealthResponse(BaseModel):
    status: str
    time: int
    uptime: float
    cacheSize: int


class TriggerFetchResponse(BaseModel):
    message: str
    useAPI: bool
    includePHIVOLCS: bool


class CleanupResponse(BaseModel):
    message: str
    deletedFolders: int
    deletedEvents: int
    errors: list[str] | None = None


_started_at = time.time()
_orchestrator: Orchestrator | None = None


def _get_orchestrator() -> Orchestrator:
    """Get or create the shared orchestrator."""
    global _orchestrator
    if _orchestrator is None:
        if os.environ.get("CONFIG_PATH"):
            config = load_config(os.environ["CONFIG_PATH"])
        else:
            config = load_config_from_env()
        _orchestrator = Orchestrator(config)
    return _orchestrator


def _verify_admin_key(x_admin_key: str | None) -> None:
    """Verify admin API key."""
    if not ADMIN_API_KEY:
        raise HTTPException(status_code=500, detail="Admin API key not configured")

    if x_admin_key != ADMIN_API_KEY:
        raise HTTPException(status_code=401, detail="Invalid admin key")


def _load_events(source: str | None = None) -> list[dict[str, Any]]:
    try:
        return _get_orchestrator().load_events(source)
    except PersistenceError as e:
        logger.error("Failed to read events: %s", e)
        raise HTTPException(status_code=502, detail="Failed to read events")


def _run_ingest(use_api: bool, include_scrape: bool) -> None:
    """Background task body; errors are logged, never raised."""
    try:
        result = _get_orchestrator().run(use_api=use_api, include_scrape=include_scrape)
        logger.info("Manual fetch finished: %s", result.summary)
    except Exception:
        logger.exception("Manual fetch failed")


# ===== Public Endpoints =====

@app.get("/health", response_model=HealthResponse)
async def health():
    """Liveness check."""
    return HealthResponse(
        status="ok",
        time=int(time.time() * 1000),
        uptime=round(time.time() - _started_at, 1),
        cacheSize=len(_get_orchestrator().resolver.cache),
    )


@app.get("/api/events")
def get_events():
    """All stored events, newest first."""
    events = _load_events()
    return {"count": len(events), "events": events}


@app.get("/api/events/{source}")
def get_events_by_source(source: str):
    """Stored events from one source ("usgs" or "phivolcs")."""
    valid = [s.value for s in EventSource]
    if source.lower() not in valid:
        raise HTTPException(
            status_code=404,
            detail={"error": f"Unknown source: {source}", "available": valid},
        )

    events = _load_events(source)
    return {"count": len(events), "source": source.lower(), "events": events}


@app.get("/api/stats")
def get_stats():
    """Event counts by time window and source."""
    try:
        return _get_orchestrator().stats()
    except PersistenceError as e:
        logger.error("Failed to compute stats: %s", e)
        raise HTTPException(status_code=502, detail="Failed to read events")


@app.get("/api/location-summaries")
def get_location_summaries():
    """Last-24h events grouped by location with a risk level."""
    try:
        summaries = _get_orchestrator().location_summaries()
    except PersistenceError as e:
        logger.error("Failed to build location summaries: %s", e)
        raise HTTPException(status_code=502, detail="Failed to read events")

    return {
        "locationSummaries": summaries,
        "generatedAt": datetime.now(timezone.utc).isoformat(),
    }


# ===== Operator Endpoints =====

@app.post("/api/trigger-fetch", response_model=TriggerFetchResponse)
async def trigger_fetch(
    background_tasks: BackgroundTasks,
    use_api: bool = Query(default=False, alias="useAPI"),
    phivolcs: bool = Query(default=True),
):
    """Start an ingestion run in the background."""
    logger.info("Manual fetch triggered (useAPI=%s, phivolcs=%s)", use_api, phivolcs)
    background_tasks.add_task(_run_ingest, use_api, phivolcs)
    return TriggerFetchResponse(
        message="Fetch triggered",
        useAPI=use_api,
        includePHIVOLCS=phivolcs,
    )


@app.post("/api/cleanup", response_model=CleanupResponse, response_model_exclude_none=True)
def cleanup(x_admin_key: str | None = Header(default=None)):
    """Delete date partitions older than the retention window."""
    _verify_admin_key(x_admin_key)

    result = _get_orchestrator().cleanup()
    if result.errors and not result.deleted_partitions:
        raise HTTPException(status_code=502, detail={"errors": result.errors})

    return CleanupResponse(
        message="Cleanup completed",
        deletedFolders=len(result.deleted_partitions),
        deletedEvents=result.deleted_events,
        errors=result.errors or None,
    )
