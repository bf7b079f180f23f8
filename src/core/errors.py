"""Error types shared by the core and the shell.

Only failures that cross a component boundary are exceptions. Per-record
problems (malformed rows, out-of-window rows, failed enrichment) are
counted by the component that finds them instead of raised.
"""


class QuakeIngestError(Exception):
    """Base class for ingestion errors."""


class SourceUnavailableError(QuakeIngestError):
    """An upstream source could not be fetched.

    Attributes:
        source: Name of the source that failed ("usgs" or "phivolcs")
    """

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


class PersistenceError(QuakeIngestError):
    """A read or write against the event store failed."""
