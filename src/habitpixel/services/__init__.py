"""Service module exports."""

from . import completion_index, grid, habits, intervals, snapshot, stats, streaks

__all__ = [
    "completion_index",
    "grid",
    "habits",
    "intervals",
    "snapshot",
    "stats",
    "streaks",
]
