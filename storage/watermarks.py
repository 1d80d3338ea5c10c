"""Watermark storage interface used by the extraction orchestrator."""

from datetime import datetime
from typing import Optional, Protocol


class WatermarkStore(Protocol):
    """Key-value store of entity type -> last successful extraction instant.

    ``get_last_extraction_timestamp`` must never raise: a failed lookup
    resolves to None (a full fetch for that entity type).
    ``update_last_extraction_timestamp`` raises on failure, because the
    caller needs to know the next run will not be incremental.
    """

    def get_last_extraction_timestamp(self, entity_type: str) -> Optional[datetime]:
        ...

    def update_last_extraction_timestamp(self, entity_type: str, timestamp: datetime) -> None:
        ...
