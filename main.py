"""Cloud Function Entry Point - Root Module.

This is the root-level entry point for Google Cloud Functions.
It imports from the src package.
"""

from src.main import (
    quake_cleanup,
    quake_ingest,
    quake_ingest_pubsub,
)

__all__ = [
    "quake_cleanup",
    "quake_ingest",
    "quake_ingest_pubsub",
]
