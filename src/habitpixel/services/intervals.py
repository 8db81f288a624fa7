"""Interval policy: map a frequency and a date onto its containing interval.

Every boundary is a ``datetime.date``; intervals are half-open ``[start, end)``.
Timestamps are reduced to calendar days through a single ``IntervalPolicy`` so
callers that need deterministic results pass the zone explicitly instead of
relying on the process-wide local zone.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum


class FrequencyKind(str, Enum):
    """Granularity at which a habit goal is measured."""

    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"

    @classmethod
    def parse(cls, value: "FrequencyKind | str") -> "FrequencyKind":
        """Parse a stored frequency name (case-insensitive) into the enum."""

        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(f"Unknown frequency: {value!r}")


def parse_weekday(value: str | int) -> int:
    """Return the ``calendar`` weekday number (Monday=0) for a name or number."""

    if isinstance(value, int):
        if not 0 <= value <= 6:
            raise ValueError(f"Weekday must be between 0 and 6, got {value}")
        return value
    normalized = value.strip().lower()
    for index, name in enumerate(calendar.day_name):
        if name.lower() == normalized or calendar.day_abbr[index].lower() == normalized:
            return index
    raise ValueError(f"Unknown weekday: {value!r}")


def add_months(value: date, months: int) -> date:
    """Shift ``value`` by whole months, clamping to the target month's last day."""

    index = value.year * 12 + (value.month - 1) + months
    year, month_index = divmod(index, 12)
    month = month_index + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def weeks_between(start: date, end: date) -> int:
    """Number of whole weeks from ``start`` to ``end`` (negative if reversed)."""

    return (end - start).days // 7


@dataclass(frozen=True, slots=True)
class IntervalBounds:
    """Half-open ``[start, end)`` range of calendar days."""

    start: date
    end: date

    def __contains__(self, day: object) -> bool:
        if isinstance(day, datetime):
            day = day.date()
        if not isinstance(day, date):
            return False
        return self.start <= day < self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days


@dataclass(frozen=True, slots=True)
class IntervalPolicy:
    """Calendar context shared by every engine computation.

    ``tz`` converts aware timestamps before their calendar day is taken; naive
    timestamps are read as wall-clock time in that zone already. ``first_weekday``
    uses ``calendar`` numbering and defaults to Monday.
    """

    tz: tzinfo | None = None
    first_weekday: int = calendar.MONDAY

    def day_of(self, value: date | datetime) -> date:
        """Normalize a timestamp (or a day) to its calendar day."""

        if isinstance(value, datetime):
            if self.tz is not None and value.tzinfo is not None:
                value = value.astimezone(self.tz)
            return value.date()
        if isinstance(value, date):
            return value
        raise TypeError(f"Expected a date or datetime, got {type(value).__name__}")

    def start_of_week(self, value: date | datetime) -> date:
        day = self.day_of(value)
        return day - timedelta(days=(day.weekday() - self.first_weekday) % 7)

    def bounds(self, kind: FrequencyKind, value: date | datetime) -> IntervalBounds:
        """Return the interval of granularity ``kind`` containing ``value``."""

        day = self.day_of(value)
        if kind is FrequencyKind.DAILY:
            return IntervalBounds(day, day + timedelta(days=1))
        if kind is FrequencyKind.WEEKLY:
            start = self.start_of_week(day)
            return IntervalBounds(start, start + timedelta(days=7))
        if kind is FrequencyKind.MONTHLY:
            start = day.replace(day=1)
            return IntervalBounds(start, add_months(start, 1))
        raise ValueError(f"Unsupported frequency: {kind!r}")

    def shift(self, kind: FrequencyKind, value: date, count: int) -> date:
        """Move ``value`` by ``count`` calendar units of the given granularity."""

        if kind is FrequencyKind.DAILY:
            return value + timedelta(days=count)
        if kind is FrequencyKind.WEEKLY:
            return value + timedelta(weeks=count)
        if kind is FrequencyKind.MONTHLY:
            return add_months(value, count)
        raise ValueError(f"Unsupported frequency: {kind!r}")

    def previous(self, kind: FrequencyKind, bounds: IntervalBounds) -> IntervalBounds:
        """Interval immediately preceding ``bounds``."""

        return self.bounds(kind, self.shift(kind, bounds.start, -1))


DEFAULT_POLICY = IntervalPolicy()


def get_interval_bounds(
    kind: FrequencyKind | str,
    value: date | datetime,
    *,
    policy: IntervalPolicy = DEFAULT_POLICY,
) -> IntervalBounds:
    """Module-level convenience wrapper around :meth:`IntervalPolicy.bounds`."""

    return policy.bounds(FrequencyKind.parse(kind), value)


__all__ = [
    "DEFAULT_POLICY",
    "FrequencyKind",
    "IntervalBounds",
    "IntervalPolicy",
    "add_months",
    "get_interval_bounds",
    "parse_weekday",
    "weeks_between",
]
