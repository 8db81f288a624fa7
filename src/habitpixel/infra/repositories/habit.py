"""SQLModel implementation of Habit repository."""

from __future__ import annotations

import weakref
from datetime import date, datetime, time, timedelta
from typing import Callable, Iterable, Optional

from sqlalchemy.orm import selectinload
from sqlmodel import Session, select

from ...logging_config import get_logger
from ...models.habit import Habit, HabitEntry
from ...services.habits import HabitConfig, HabitProgress
from ...services.intervals import DEFAULT_POLICY, FrequencyKind, IntervalPolicy
from ...services.streaks import ensure_valid

logger = get_logger(__name__)


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min)


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation.

    Progress contexts handed out by :meth:`load_progress` are tracked weakly so
    entry changes made here are mirrored into them; bulk imports replace their
    entries wholesale, which drops their completion caches.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory
        self._watched: dict[int, weakref.WeakSet[HabitProgress]] = {}

    def get_by_id(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = session.get(Habit, habit_id, options=[selectinload(Habit.entries)])  # type: ignore
            if obj:
                session.expunge(obj)
            return obj

    def get_by_title(self, title: str) -> Optional[Habit]:
        """Retrieve a habit by title."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Habit)
                .where(Habit.title == title)
                .options(selectinload(Habit.entries))  # type: ignore
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, include_archived: bool = False) -> list[Habit]:
        """List habits ordered by creation, optionally including archived ones."""
        with self.session_factory() as session:
            statement = (
                select(Habit)
                .options(selectinload(Habit.entries))  # type: ignore
                .order_by(Habit.created_at, Habit.id)  # type: ignore
            )
            if not include_archived:
                statement = statement.where(Habit.is_archived == False)  # noqa: E712
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, habit: Habit) -> Habit:
        """Validate and persist a new habit."""
        habit.frequency = FrequencyKind.parse(habit.frequency).value
        ensure_valid(habit.goal, habit.frequency)
        with self.session_factory() as session:
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
        logger.info("Habit created", extra={"habit_id": habit.id, "title": habit.title})
        return habit

    def update(self, habit: Habit) -> Habit:
        """Validate and persist changes to an existing habit."""
        habit.frequency = FrequencyKind.parse(habit.frequency).value
        ensure_valid(habit.goal, habit.frequency)
        with self.session_factory() as session:
            habit = session.merge(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
        for progress in self._watchers(habit.id):
            progress.config = HabitConfig.from_record(habit)
        return habit

    def set_archived(self, habit_id: int, archived: bool = True) -> None:
        with self.session_factory() as session:
            habit = session.get(Habit, habit_id)
            if habit:
                habit.is_archived = archived
                session.add(habit)
                session.commit()

    def delete(self, habit_id: int) -> None:
        """Delete a habit and its entries."""
        with self.session_factory() as session:
            habit = session.get(Habit, habit_id)
            if habit:
                session.delete(habit)
                session.commit()
                logger.info("Habit deleted", extra={"habit_id": habit_id})
        self._watched.pop(habit_id, None)

    # Habit entry operations
    def add_entry(self, habit_id: int, timestamp: datetime | None = None) -> HabitEntry:
        """Record one completion (defaults to now)."""
        entry = HabitEntry(habit_id=habit_id, timestamp=timestamp or datetime.now())
        with self.session_factory() as session:
            session.add(entry)
            session.commit()
            session.refresh(entry)
            session.expunge(entry)
        for progress in self._watchers(habit_id):
            progress.add_entry(entry.timestamp)
        return entry

    def remove_entry(self, habit_id: int, day: date) -> bool:
        """Remove the earliest completion recorded on ``day``."""
        with self.session_factory() as session:
            entry = session.exec(
                select(HabitEntry)
                .where(HabitEntry.habit_id == habit_id)
                .where(HabitEntry.timestamp >= _day_start(day))
                .where(HabitEntry.timestamp < _day_start(day + timedelta(days=1)))
                .order_by(HabitEntry.timestamp)  # type: ignore
            ).first()
            if not entry:
                return False
            session.delete(entry)
            session.commit()
        for progress in self._watchers(habit_id):
            progress.remove_entry(day)
        return True

    def get_entries_for_habit(
        self, habit_id: int, start_date: date | None = None, end_date: date | None = None
    ) -> list[HabitEntry]:
        """Entries for a habit, oldest first, optionally within an inclusive day range."""
        with self.session_factory() as session:
            statement = select(HabitEntry).where(HabitEntry.habit_id == habit_id)
            if start_date is not None:
                statement = statement.where(HabitEntry.timestamp >= _day_start(start_date))
            if end_date is not None:
                statement = statement.where(
                    HabitEntry.timestamp < _day_start(end_date + timedelta(days=1))
                )
            rows = list(session.exec(statement.order_by(HabitEntry.timestamp)).all())  # type: ignore
            session.expunge_all()
            return rows

    def import_entries(self, habit_id: int, timestamps: Iterable[datetime]) -> int:
        """Bulk-insert completions; watched progress contexts are reloaded."""
        with self.session_factory() as session:
            entries = [HabitEntry(habit_id=habit_id, timestamp=ts) for ts in timestamps]
            session.add_all(entries)
            session.commit()
        logger.info("Entries imported", extra={"habit_id": habit_id, "count": len(entries)})

        watchers = list(self._watchers(habit_id))
        if watchers:
            fresh = [entry.timestamp for entry in self.get_entries_for_habit(habit_id)]
            for progress in watchers:
                progress.replace_entries(fresh)
        return len(entries)

    # Engine contexts
    def load_progress(
        self, habit_id: int, policy: IntervalPolicy = DEFAULT_POLICY
    ) -> Optional[HabitProgress]:
        """Build and track an engine context for a habit; None if it does not exist."""
        habit = self.get_by_id(habit_id)
        if habit is None:
            return None
        progress = HabitProgress.from_record(habit, policy=policy)
        self._watched.setdefault(habit_id, weakref.WeakSet()).add(progress)
        return progress

    def load_all_progress(
        self, policy: IntervalPolicy = DEFAULT_POLICY, include_archived: bool = False
    ) -> list[HabitProgress]:
        progresses = []
        for habit in self.list_all(include_archived=include_archived):
            progress = self.load_progress(habit.id, policy)
            if progress is not None:
                progresses.append(progress)
        return progresses

    def _watchers(self, habit_id: int) -> list[HabitProgress]:
        watched = self._watched.get(habit_id)
        return list(watched) if watched else []
