"""Incremental "since" filtering for extracted entities.

Items whose timestamp is missing or cannot be parsed are always kept. This
can re-load a few records on the next run, but never silently drops data.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a GitHub ISO-8601 timestamp into an aware UTC datetime.

    Returns None for missing or unparsable values.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    return _as_utc(parsed)


def filter_since(
    items: Iterable[T],
    since: Optional[datetime],
    timestamp_of: Callable[[T], Optional[str]],
) -> list[T]:
    """Keep items updated strictly after ``since``.

    Args:
        items: Extracted items, in API order
        since: Watermark; None disables filtering
        timestamp_of: Returns the item's timestamp string (or None)

    Returns:
        Kept items, in their original order
    """
    items = list(items)
    if since is None:
        return items

    watermark = _as_utc(since)
    kept = []
    for item in items:
        parsed = parse_timestamp(timestamp_of(item))
        if parsed is None or parsed > watermark:
            kept.append(item)

    logger.debug(f"Since-filter kept {len(kept)}/{len(items)} items after {watermark.isoformat()}")
    return kept


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
