"""
Date helpers for action scheduling.

The engines are free of wall-clock reads; the only time-dependent value in
the pipeline is an action's target completion date, computed here from an
injectable ``today`` so tests stay deterministic.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def utc_today() -> date:
    """Return today's date in UTC."""
    return utcnow().date()


def target_completion_date(days_from_now: int, today: Optional[date] = None) -> date:
    """Return the date ``days_from_now`` days after ``today``.

    Args:
        days_from_now: Non-negative timeframe in days.
        today: Reference date; defaults to the current UTC date.

    Raises:
        ValueError: If ``days_from_now`` is negative.
    """
    if days_from_now < 0:
        raise ValueError(f"days_from_now must be >= 0, got {days_from_now}.")
    base = today or utc_today()
    return base + timedelta(days=days_from_now)
