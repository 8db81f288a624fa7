"""Habit repository protocol."""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol

from ...models.habit import Habit, HabitEntry
from ...services.habits import HabitProgress
from ...services.intervals import IntervalPolicy


class HabitRepository(Protocol):
    """Persistence collaborator supplying habits and their completion entries."""

    def get_by_id(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def get_by_title(self, title: str) -> Optional[Habit]:
        """Retrieve a habit by title."""
        ...

    def list_all(self, include_archived: bool = False) -> list[Habit]:
        """List habits, archived ones only on request."""
        ...

    def set_archived(self, habit_id: int, archived: bool = True) -> None:
        """Archive or restore a habit."""
        ...

    def create(self, habit: Habit) -> Habit:
        """Validate and persist a new habit."""
        ...

    def update(self, habit: Habit) -> Habit:
        """Validate and persist changes to a habit."""
        ...

    def delete(self, habit_id: int) -> None:
        """Delete a habit and its entries."""
        ...

    def add_entry(self, habit_id: int, timestamp: datetime) -> HabitEntry:
        """Record one completion."""
        ...

    def remove_entry(self, habit_id: int, day: date) -> bool:
        """Remove one completion recorded on ``day``."""
        ...

    def get_entries_for_habit(
        self, habit_id: int, start_date: date | None = None, end_date: date | None = None
    ) -> list[HabitEntry]:
        """Entries for a habit, oldest first, optionally within an inclusive day range."""
        ...

    def import_entries(self, habit_id: int, timestamps: Iterable[datetime]) -> int:
        """Bulk-insert completions and invalidate derived caches."""
        ...

    def load_progress(self, habit_id: int, policy: IntervalPolicy) -> Optional[HabitProgress]:
        """Build an engine context for a habit."""
        ...

    def load_all_progress(
        self, policy: IntervalPolicy, include_archived: bool = False
    ) -> list[HabitProgress]:
        """Engine contexts for every listed habit."""
        ...
