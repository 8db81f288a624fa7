"""Date helpers shared by the test modules."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

# Wednesday; the surrounding Monday-first week is 2025-03-17 .. 2025-03-23.
TODAY = date(2025, 3, 19)


def at(day: date, hour: int = 9, minute: int = 0) -> datetime:
    """Timestamp on ``day`` at a given wall-clock time."""
    return datetime.combine(day, time(hour, minute))


def days_ago(*offsets: int, today: date = TODAY, hour: int = 9) -> list[datetime]:
    """Timestamps ``offset`` days before ``today``, one per offset."""
    return [at(today - timedelta(days=offset), hour) for offset in offsets]
