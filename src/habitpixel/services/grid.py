"""Week-aligned calendar grid projection of a habit's completion history."""

from __future__ import annotations

import time
from concurrent.futures import Executor
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from itertools import repeat
from typing import Iterable, Iterator, Sequence

from ..logging_config import get_logger
from .intervals import DEFAULT_POLICY, IntervalPolicy, add_months, weeks_between

logger = get_logger(__name__)

DAYS_IN_WEEK = 7
DEFAULT_LOOKBACK_MONTHS = 15
DEFAULT_BATCH_SIZE = 100


class CellState(str, Enum):
    """Classification of one grid cell."""

    COMPLETED = "completed"
    WITHIN_RANGE_INCOMPLETE = "within_range_incomplete"
    OUT_OF_RANGE = "out_of_range"


# Presentation hint for renderers; not used by the engine itself.
CELL_OPACITY = {
    CellState.COMPLETED: 1.0,
    CellState.WITHIN_RANGE_INCOMPLETE: 0.4,
    CellState.OUT_OF_RANGE: 0.15,
}


def cell_state(
    day: date,
    completed_days: frozenset[date] | set[date],
    date_range_hint: tuple[date, date] | None,
) -> CellState:
    """Classify ``day`` against the completed set and the shading range."""

    if day in completed_days:
        return CellState.COMPLETED
    if date_range_hint is not None:
        first, last = date_range_hint
        if first <= day <= last:
            return CellState.WITHIN_RANGE_INCOMPLETE
    return CellState.OUT_OF_RANGE


@dataclass(frozen=True, slots=True)
class GridData:
    """Read-only snapshot consumed by grid renderers.

    Equality covers ``start_date``, ``number_of_weeks`` and ``completed_days``;
    the shading hint is carried along but never compared.
    """

    start_date: date
    number_of_weeks: int
    completed_days: frozenset[date]
    date_range_hint: tuple[date, date] | None = field(default=None, compare=False)

    @property
    def end_date(self) -> date:
        """Exclusive end of the visible window."""
        return self.start_date + timedelta(days=self.number_of_weeks * DAYS_IN_WEEK)

    def date_for(self, week_index: int, day_index: int) -> date:
        """Calendar day shown in column ``week_index``, row ``day_index``."""
        return self.start_date + timedelta(days=week_index * DAYS_IN_WEEK + day_index)

    def cell_state(self, day: date) -> CellState:
        return cell_state(day, self.completed_days, self.date_range_hint)

    def visible_completed_days(self) -> frozenset[date]:
        end = self.end_date
        return frozenset(d for d in self.completed_days if self.start_date <= d < end)

    def iter_weeks(self) -> Iterator[list[tuple[date, CellState]]]:
        """Yield each week column as ``(day, state)`` pairs."""
        for week in range(self.number_of_weeks):
            yield [
                (day, self.cell_state(day))
                for day in (self.date_for(week, offset) for offset in range(DAYS_IN_WEEK))
            ]


def _normalize_batch(batch: Sequence[date | datetime], policy: IntervalPolicy) -> frozenset[date]:
    return frozenset(policy.day_of(ts) for ts in batch)


def normalize_completions(
    timestamps: Sequence[date | datetime],
    *,
    policy: IntervalPolicy = DEFAULT_POLICY,
    batch_size: int = DEFAULT_BATCH_SIZE,
    executor: Executor | None = None,
) -> frozenset[date]:
    """Reduce timestamps to the set of completed days, chunk by chunk.

    With an ``executor`` the chunks run concurrently; the union of the chunk
    results is identical to a sequential pass either way. A failing chunk
    propagates its exception.
    """

    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    batches = [timestamps[i : i + batch_size] for i in range(0, len(timestamps), batch_size)]
    if executor is None or len(batches) <= 1:
        results: Iterable[frozenset[date]] = (_normalize_batch(b, policy) for b in batches)
    else:
        results = executor.map(_normalize_batch, batches, repeat(policy))

    merged: set[date] = set()
    for days in results:
        merged |= days
    return frozenset(merged)


def build_grid_data(
    completions: Iterable[date | datetime],
    today: date | datetime,
    *,
    policy: IntervalPolicy = DEFAULT_POLICY,
    lookback_months: int = DEFAULT_LOOKBACK_MONTHS,
    batch_size: int = DEFAULT_BATCH_SIZE,
    executor: Executor | None = None,
) -> GridData:
    """Build the grid window ending with the week that contains ``today``.

    The window starts ``lookback_months`` before today, or at the first
    completion when that is earlier, snapped back to the policy's first weekday.
    ``completed_days`` holds the full history, not just the visible window.
    """

    started = time.perf_counter()
    today_day = policy.day_of(today)
    completed = normalize_completions(
        list(completions), policy=policy, batch_size=batch_size, executor=executor
    )

    window_start = add_months(today_day, -lookback_months)
    first_completed = min(completed) if completed else None
    if first_completed is not None and first_completed < window_start:
        window_start = first_completed
    start_date = policy.start_of_week(window_start)

    number_of_weeks = max(weeks_between(start_date, today_day) + 1, 1)
    hint = (first_completed or start_date, today_day)

    logger.debug(
        "Grid data built",
        extra={
            "start_date": start_date.isoformat(),
            "weeks": number_of_weeks,
            "completed_days": len(completed),
            "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )
    return GridData(
        start_date=start_date,
        number_of_weeks=number_of_weeks,
        completed_days=completed,
        date_range_hint=hint,
    )


__all__ = [
    "CELL_OPACITY",
    "CellState",
    "DAYS_IN_WEEK",
    "GridData",
    "build_grid_data",
    "cell_state",
    "normalize_completions",
]
