"""
Clock utilities used to compute snapshot expiration cutoffs.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current instant as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def fixed_clock(instant: datetime) -> Clock:
    """
    Build a clock that always returns the same instant.

    Args:
        instant: Instant to return

    Returns:
        Zero-argument callable returning ``instant``
    """
    return lambda: instant


def cutoff(now: datetime, age_days: int) -> datetime:
    """
    Compute the expiration cutoff for a retention period.

    Args:
        now: Current instant
        age_days: Retention period in days

    Returns:
        Instant ``age_days`` days before ``now``
    """
    return now - timedelta(days=age_days)
