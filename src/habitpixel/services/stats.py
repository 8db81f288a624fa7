"""Statistics aggregated across habits for a chosen time frame."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Sequence

from . import streaks
from .habits import HabitProgress
from .intervals import DEFAULT_POLICY, IntervalBounds, IntervalPolicy, add_months

ALL_TIME_DAYS = 365


class TimeFrame(str, Enum):
    WEEK = "Week"
    MONTH = "Month"
    YEAR = "Year"
    ALL = "All Time"


def time_frame_window(
    frame: TimeFrame, today: date | datetime, *, policy: IntervalPolicy = DEFAULT_POLICY
) -> IntervalBounds:
    """Days covered by ``frame``, ending with ``today`` inclusive."""

    end = policy.day_of(today)
    if frame is TimeFrame.WEEK:
        start = end - timedelta(days=7)
    elif frame is TimeFrame.MONTH:
        start = add_months(end, -1)
    elif frame is TimeFrame.YEAR:
        start = add_months(end, -12)
    else:
        start = date.min
    return IntervalBounds(start, end + timedelta(days=1))


def number_of_days(
    frame: TimeFrame, today: date | datetime, *, policy: IntervalPolicy = DEFAULT_POLICY
) -> int:
    """Day count used as the denominator of completion rates."""

    if frame is TimeFrame.ALL:
        return ALL_TIME_DAYS
    window = time_frame_window(frame, today, policy=policy)
    # window includes today; the rate denominator counts the days back from it
    return window.days - 1


@dataclass(slots=True)
class StatsSummary:
    """Overview figures for a set of habits."""

    frame: TimeFrame
    total_completions: int
    longest_streak: int
    completion_rate: float

    @property
    def total_completions_label(self) -> str:
        return format_count(self.total_completions)


def format_count(value: int) -> str:
    if value >= 1000:
        return f"{value / 1000:.1f}K"
    return str(value)


def total_completions(habits: Sequence[HabitProgress], frame: TimeFrame, today: date | datetime) -> int:
    total = 0
    for habit in habits:
        window = time_frame_window(frame, today, policy=habit.policy)
        total += habit.completions_in_interval(window)
    return total


def longest_streak(habits: Sequence[HabitProgress], frame: TimeFrame, today: date | datetime) -> int:
    best = 0
    for habit in habits:
        window = time_frame_window(frame, today, policy=habit.policy)
        best = max(best, habit.longest_streak(start=window.start, end=window.end - timedelta(days=1)))
    return best


def completion_rate(habits: Sequence[HabitProgress], frame: TimeFrame, today: date | datetime) -> float:
    """Raw completions in the frame as a percentage of one per habit per day."""

    if not habits:
        return 0.0
    possible = len(habits) * number_of_days(frame, today, policy=habits[0].policy)
    completed = total_completions(habits, frame, today)
    if possible <= 0:
        return 0.0
    return completed / possible * 100


def habit_completion_rate(habit: HabitProgress, frame: TimeFrame, today: date | datetime) -> float:
    return streaks.completion_rate(
        habit.entries,
        time_frame_window(frame, today, policy=habit.policy),
        possible=number_of_days(frame, today, policy=habit.policy),
        policy=habit.policy,
    )


def summarize(habits: Sequence[HabitProgress], frame: TimeFrame, today: date | datetime) -> StatsSummary:
    return StatsSummary(
        frame=frame,
        total_completions=total_completions(habits, frame, today),
        longest_streak=longest_streak(habits, frame, today),
        completion_rate=completion_rate(habits, frame, today),
    )


__all__ = [
    "StatsSummary",
    "TimeFrame",
    "completion_rate",
    "format_count",
    "habit_completion_rate",
    "longest_streak",
    "number_of_days",
    "summarize",
    "time_frame_window",
    "total_completions",
]
