"""Countdown Math - server-authoritative remaining-time computation.

Invariants:
    - remaining_seconds is never negative, for any elapsed time
    - Elapsed time is floored to whole seconds
    - Naive datetimes (SQLite round-trips) are treated as UTC
    - A missing reference start means the countdown has not begun: full interval

Design Decisions:
    - Client-submitted elapsed time is never accepted; every response recomputes
      from the stored reference start and the server clock
"""

import math
from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Default clock source."""
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def elapsed_seconds(start: datetime, now: datetime) -> int:
    """Whole seconds between start and now, clamped at 0 for clock skew."""
    delta = (as_utc(now) - as_utc(start)).total_seconds()
    return max(0, math.floor(delta))


def remaining_seconds(
    interval_seconds: int, start: datetime | None, now: datetime,
) -> int:
    """max(0, interval - floor(now - start))."""
    if start is None:
        return max(0, interval_seconds)
    return max(0, interval_seconds - elapsed_seconds(start, now))


def deadline_at(start: datetime, interval_seconds: int) -> datetime:
    return as_utc(start) + timedelta(seconds=interval_seconds)


def isoformat_or_none(moment: datetime | None) -> str | None:
    return as_utc(moment).isoformat() if moment else None
