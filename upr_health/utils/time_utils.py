"""
Time helpers shared by the loader and the pipeline.

UPR review years and GHO reference years are bare integers; both are anchored
to January 1st so that every date column in the system has the same meaning.
"""

from __future__ import annotations

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def year_start(year: int) -> date:
    """Return January 1st of ``year``."""
    return date(int(year), 1, 1)
