"""
Time slug of the upstream publish path

The source publishes one page every 5 minutes under a path such as
``20240301-1205z.html``.
"""

from datetime import datetime, timezone
from typing import Optional

CADENCE_MINUTES = 5


def to_utc(now: Optional[datetime] = None) -> datetime:
    """Current UTC time, or `now` converted to UTC (naive values are taken as UTC)"""
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def time_slug(now: Optional[datetime] = None, cadence: int = CADENCE_MINUTES) -> str:
    """
    Build the YYYYMMDD-HHMMz slug, minutes floored to the cadence

    >>> time_slug(datetime(2024, 3, 1, 12, 7, tzinfo=timezone.utc))
    '20240301-1205z'
    """
    now = to_utc(now)
    minute = now.minute - now.minute % cadence
    return f"{now:%Y%m%d}-{now.hour:02d}{minute:02d}z"
