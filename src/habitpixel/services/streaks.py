"""Habit goal progress and streak calculations.

Two counting conventions coexist:

* raw entries: every recorded completion counts, so two entries on one day
  count twice. Goal comparisons (``x / goal``, interval completeness and the
  interval streak) are defined against this count.
* day presence: a day is either completed or not, as reported by a
  :class:`CompletionIndex`.
"""

from __future__ import annotations

from bisect import bisect_left
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable

from .completion_index import CompletionIndex
from .intervals import DEFAULT_POLICY, FrequencyKind, IntervalBounds, IntervalPolicy


class CountMode(str, Enum):
    """How completions inside an interval are counted."""

    RAW = "raw"
    DAYS = "days"


class HabitValidationError(ValueError):
    """A user-correctable problem with a habit's goal configuration."""

    code = "invalid"

    def __init__(self, message: str, *, goal: int, frequency: FrequencyKind) -> None:
        super().__init__(message)
        self.message = message
        self.goal = goal
        self.frequency = frequency


class InvalidGoal(HabitValidationError):
    code = "invalid_goal"


class WeeklyGoalExceeded(HabitValidationError):
    code = "weekly_goal_exceeded"


class MonthlyGoalExceeded(HabitValidationError):
    code = "monthly_goal_exceeded"


MAX_WEEKLY_GOAL = 7
MAX_MONTHLY_GOAL = 31


def validate(goal: int, frequency: FrequencyKind | str) -> HabitValidationError | None:
    """Return the validation error for a goal/frequency pair, or None if valid."""

    kind = FrequencyKind.parse(frequency)
    if goal < 1:
        return InvalidGoal("Goal must be at least 1", goal=goal, frequency=kind)
    if kind is FrequencyKind.WEEKLY and goal > MAX_WEEKLY_GOAL:
        return WeeklyGoalExceeded(
            f"Weekly goal cannot exceed {MAX_WEEKLY_GOAL} days", goal=goal, frequency=kind
        )
    if kind is FrequencyKind.MONTHLY and goal > MAX_MONTHLY_GOAL:
        return MonthlyGoalExceeded(
            f"Monthly goal cannot exceed {MAX_MONTHLY_GOAL} days", goal=goal, frequency=kind
        )
    return None


def ensure_valid(goal: int, frequency: FrequencyKind | str) -> None:
    """Raise the error :func:`validate` would return."""

    error = validate(goal, frequency)
    if error is not None:
        raise error


class _EntryDays:
    """Sorted day of every raw entry, duplicates kept, for range counting."""

    __slots__ = ("days",)

    def __init__(self, timestamps: Iterable[date | datetime], policy: IntervalPolicy) -> None:
        self.days = sorted(policy.day_of(ts) for ts in timestamps)

    def count_in(self, bounds: IntervalBounds) -> int:
        return bisect_left(self.days, bounds.end) - bisect_left(self.days, bounds.start)


def entries_in_interval(
    timestamps: Iterable[date | datetime],
    bounds: IntervalBounds,
    *,
    policy: IntervalPolicy = DEFAULT_POLICY,
) -> int:
    """Raw entry count whose calendar day falls inside ``bounds``."""

    return sum(1 for ts in timestamps if policy.day_of(ts) in bounds)


def days_in_interval(index: CompletionIndex, bounds: IntervalBounds) -> int:
    """Number of distinct completed days inside ``bounds``."""

    return index.count_in(bounds)


def completions_in_interval(
    completions: Iterable[date | datetime] | CompletionIndex,
    bounds: IntervalBounds,
    *,
    mode: CountMode = CountMode.RAW,
    policy: IntervalPolicy = DEFAULT_POLICY,
) -> int:
    """Count completions in ``bounds`` using the requested convention."""

    if mode is CountMode.DAYS:
        if not isinstance(completions, CompletionIndex):
            completions = CompletionIndex.build(completions, policy=policy)
        return days_in_interval(completions, bounds)
    if isinstance(completions, CompletionIndex):
        raise TypeError("Raw entry counting needs the entry timestamps, not a CompletionIndex")
    return entries_in_interval(completions, bounds, policy=policy)


def current_streak(
    frequency: FrequencyKind | str,
    goal: int,
    completions: Iterable[date | datetime] | CompletionIndex,
    reference: date | datetime,
    *,
    mode: CountMode = CountMode.RAW,
    policy: IntervalPolicy = DEFAULT_POLICY,
) -> int:
    """Consecutive intervals meeting ``goal``, scanning back from ``reference``.

    The interval containing ``reference`` counts only when already met; an unmet
    current interval does not break the chain of met intervals before it. The
    scan stops at the first earlier interval below goal.
    """

    kind = FrequencyKind.parse(frequency)
    if goal < 1:
        raise InvalidGoal("Goal must be at least 1", goal=goal, frequency=kind)

    if mode is CountMode.DAYS:
        counter = (
            completions
            if isinstance(completions, CompletionIndex)
            else CompletionIndex.build(completions, policy=policy)
        )
    else:
        if isinstance(completions, CompletionIndex):
            raise TypeError("Raw entry counting needs the entry timestamps, not a CompletionIndex")
        counter = _EntryDays(completions, policy)

    bounds = policy.bounds(kind, reference)
    streak = 1 if counter.count_in(bounds) >= goal else 0

    bounds = policy.previous(kind, bounds)
    while counter.count_in(bounds) >= goal:
        streak += 1
        bounds = policy.previous(kind, bounds)
    return streak


def remaining_for_interval(
    timestamps: Iterable[date | datetime],
    bounds: IntervalBounds,
    goal: int,
    *,
    policy: IntervalPolicy = DEFAULT_POLICY,
) -> int:
    """Completions still needed in ``bounds`` to reach ``goal``; never negative."""

    return max(0, goal - entries_in_interval(timestamps, bounds, policy=policy))


def is_interval_complete(
    timestamps: Iterable[date | datetime],
    bounds: IntervalBounds,
    goal: int,
    *,
    policy: IntervalPolicy = DEFAULT_POLICY,
) -> bool:
    return entries_in_interval(timestamps, bounds, policy=policy) >= goal


def consecutive_day_streak(index: CompletionIndex, reference: date | datetime) -> int:
    """Completed days in a row ending at ``reference``, ignoring any goal."""

    streak = 0
    cursor = index.policy.day_of(reference)
    while index.is_completed(cursor):
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def longest_day_streak(
    index: CompletionIndex,
    *,
    start: date | None = None,
    end: date | None = None,
) -> int:
    """Longest run of consecutive completed days, optionally within ``[start, end]``."""

    longest = 0
    run = 0
    last_day: date | None = None
    for day in index:
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            break
        if last_day is not None and day == last_day + timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        last_day = day
    return longest


def completion_rate(
    timestamps: Iterable[date | datetime],
    window: IntervalBounds,
    *,
    possible: int | None = None,
    policy: IntervalPolicy = DEFAULT_POLICY,
) -> float:
    """Raw entries in ``window`` as a percentage of ``possible`` completions.

    ``possible`` defaults to the number of days in the window. Multiple entries
    per day can push the rate above 100.
    """

    total = window.days if possible is None else possible
    if total <= 0:
        return 0.0
    return entries_in_interval(timestamps, window, policy=policy) / total * 100


__all__ = [
    "CountMode",
    "HabitValidationError",
    "InvalidGoal",
    "MonthlyGoalExceeded",
    "WeeklyGoalExceeded",
    "completion_rate",
    "completions_in_interval",
    "consecutive_day_streak",
    "current_streak",
    "days_in_interval",
    "ensure_valid",
    "entries_in_interval",
    "is_interval_complete",
    "longest_day_streak",
    "remaining_for_interval",
    "validate",
]
