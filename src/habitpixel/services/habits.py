"""Per-habit progress context tying configuration, entries and the completion cache."""

from __future__ import annotations

from concurrent.futures import Executor
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Iterable

from ..logging_config import get_logger
from . import streaks
from .completion_index import CompletionCache
from .grid import DEFAULT_BATCH_SIZE, DEFAULT_LOOKBACK_MONTHS, GridData, build_grid_data
from .intervals import DEFAULT_POLICY, FrequencyKind, IntervalBounds, IntervalPolicy

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class HabitConfig:
    """Immutable view of the habit settings the engine needs."""

    id: Any
    goal: int
    frequency: FrequencyKind
    created_at: datetime
    title: str = ""
    icon_name: str = "checkmark"
    color: str = "#0A84FF"

    @classmethod
    def from_record(cls, habit: Any) -> "HabitConfig":
        """Build from any object exposing the habit record attributes."""

        return cls(
            id=habit.id,
            goal=habit.goal,
            frequency=FrequencyKind.parse(habit.frequency),
            created_at=habit.created_at,
            title=getattr(habit, "title", ""),
            icon_name=getattr(habit, "icon_name", "checkmark"),
            color=getattr(habit, "color", "#0A84FF"),
        )


class HabitProgress:
    """Goal, streak and grid queries for one habit.

    Owns the raw entry timestamps and a :class:`CompletionCache` over them.
    Mutations made through :meth:`add_entry`, :meth:`remove_entry` or
    :meth:`toggle_completion` patch the cache in place; anything else must go
    through :meth:`replace_entries` or be followed by :meth:`invalidate`.
    Not thread-safe: serialize writers per habit.
    """

    def __init__(
        self,
        config: HabitConfig,
        timestamps: Iterable[datetime] = (),
        *,
        policy: IntervalPolicy = DEFAULT_POLICY,
    ) -> None:
        self.config = config
        self.policy = policy
        self._entries: list[datetime] = list(timestamps)
        self.cache = CompletionCache(lambda: self._entries, policy=policy, label=str(config.id))

    @classmethod
    def from_record(cls, habit: Any, *, policy: IntervalPolicy = DEFAULT_POLICY) -> "HabitProgress":
        return cls(
            HabitConfig.from_record(habit),
            (entry.timestamp for entry in habit.entries),
            policy=policy,
        )

    # Entries -------------------------------------------------------------------

    @property
    def entries(self) -> tuple[datetime, ...]:
        return tuple(self._entries)

    def replace_entries(self, timestamps: Iterable[datetime]) -> None:
        """Swap the whole entry list (bulk import, reload) and drop the cache."""

        self._entries = list(timestamps)
        self.invalidate()

    def invalidate(self) -> None:
        self.cache.invalidate()

    def add_entry(self, timestamp: datetime) -> None:
        self._entries.append(timestamp)
        if self.cache.is_built:
            self.cache.add_completion(timestamp)

    def remove_entry(self, day: date | datetime) -> datetime | None:
        """Remove one entry recorded on ``day``; returns it, or None if absent."""

        target = self.policy.day_of(day)
        for position, timestamp in enumerate(self._entries):
            if self.policy.day_of(timestamp) == target:
                removed = self._entries.pop(position)
                break
        else:
            return None
        if self.cache.is_built and self.completions_for_day(target) == 0:
            self.cache.remove_completion(target)
        return removed

    def toggle_completion(self, day: date | datetime, today: date | datetime) -> bool:
        """Flip the completed state of ``day``. Future days are refused.

        Returns True when something changed.
        """

        target = self.policy.day_of(day)
        if target > self.policy.day_of(today):
            logger.debug("Refusing to toggle a future day", extra={"day": target.isoformat()})
            return False
        if self.is_date_completed(target):
            return self.remove_entry(target) is not None
        self.add_entry(datetime.combine(target, time.min))
        return True

    # Day-presence queries ------------------------------------------------------

    def is_date_completed(self, day: date | datetime) -> bool:
        return self.cache.is_completed(day)

    @property
    def sorted_days(self) -> tuple[date, ...]:
        return self.cache.sorted_days

    @property
    def date_range(self) -> tuple[date, date] | None:
        return self.cache.date_range

    def consecutive_day_streak(self, reference: date | datetime) -> int:
        return streaks.consecutive_day_streak(self.cache.index, reference)

    def longest_streak(self, *, start: date | None = None, end: date | None = None) -> int:
        return streaks.longest_day_streak(self.cache.index, start=start, end=end)

    # Goal queries (raw entry counts) -------------------------------------------

    def completions_for_day(self, day: date | datetime) -> int:
        return self.completions_in_interval(self.interval_for(day, FrequencyKind.DAILY))

    def interval_for(self, day: date | datetime, kind: FrequencyKind | None = None) -> IntervalBounds:
        return self.policy.bounds(kind or self.config.frequency, day)

    def completions_in_interval(
        self, bounds: IntervalBounds, *, mode: streaks.CountMode = streaks.CountMode.RAW
    ) -> int:
        if mode is streaks.CountMode.DAYS:
            return streaks.days_in_interval(self.cache.index, bounds)
        return streaks.entries_in_interval(self._entries, bounds, policy=self.policy)

    def completions_in_current_interval(self, today: date | datetime) -> int:
        return self.completions_in_interval(self.interval_for(today))

    def remaining_for_current_interval(self, today: date | datetime) -> int:
        return streaks.remaining_for_interval(
            self._entries, self.interval_for(today), self.config.goal, policy=self.policy
        )

    def is_interval_complete(self, day: date | datetime) -> bool:
        return streaks.is_interval_complete(
            self._entries, self.interval_for(day), self.config.goal, policy=self.policy
        )

    def goal_progress(self, today: date | datetime) -> str:
        return f"{self.completions_in_current_interval(today)}/{self.config.goal}"

    def current_streak(
        self,
        reference: date | datetime,
        *,
        mode: streaks.CountMode = streaks.CountMode.RAW,
    ) -> int:
        completions = self.cache.index if mode is streaks.CountMode.DAYS else self._entries
        return streaks.current_streak(
            self.config.frequency,
            self.config.goal,
            completions,
            reference,
            mode=mode,
            policy=self.policy,
        )

    def validate(self) -> streaks.HabitValidationError | None:
        return streaks.validate(self.config.goal, self.config.frequency)

    # Grid ----------------------------------------------------------------------

    def grid(
        self,
        today: date | datetime,
        *,
        lookback_months: int = DEFAULT_LOOKBACK_MONTHS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        executor: Executor | None = None,
    ) -> GridData:
        return build_grid_data(
            self._entries,
            today,
            policy=self.policy,
            lookback_months=lookback_months,
            batch_size=batch_size,
            executor=executor,
        )

    def __repr__(self) -> str:
        return (
            f"HabitProgress(id={self.config.id!r}, goal={self.config.goal}, "
            f"frequency={self.config.frequency.value}, entries={len(self._entries)})"
        )


__all__ = ["HabitConfig", "HabitProgress"]
