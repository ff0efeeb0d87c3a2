"""Human-readable "time since" strings for the last reading."""

from __future__ import annotations

import math
from datetime import datetime, timezone

from healthpath.core.storage.models import parse_date

# (seconds per unit, label), largest first
_BUCKETS: tuple[tuple[int, str], ...] = (
    (31_536_000, "years"),
    (2_592_000, "months"),
    (86_400, "days"),
    (3_600, "hours"),
    (60, "minutes"),
)


def time_since(past: datetime | str, now: datetime | None = None) -> str:
    """Describe how long ago ``past`` was, e.g. ``"3 hours ago"``.

    The first bucket whose quotient is strictly greater than 1 is used, so
    a reading up to one minute old is ``"Just now"`` and 61 seconds is
    ``"1 minutes ago"``.
    """
    if isinstance(past, str):
        past = parse_date(past)
    elif past.tzinfo is None:
        past = past.replace(tzinfo=timezone.utc)
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)

    seconds = math.floor((current - past).total_seconds())
    for size, label in _BUCKETS:
        interval = seconds / size
        if interval > 1:
            return f"{math.floor(interval)} {label} ago"
    return "Just now"
