"""Day-granularity index over a habit's completion timestamps."""

from __future__ import annotations

from bisect import bisect_left, insort
from datetime import date, datetime
from typing import Callable, Iterable, Iterator

from ..logging_config import get_logger
from .intervals import DEFAULT_POLICY, IntervalBounds, IntervalPolicy

logger = get_logger(__name__)


class CompletionIndex:
    """Deduplicated, sorted set of completed calendar days.

    Membership is a set lookup; ``sorted_days`` stays strictly ascending across
    ``add_completion``/``remove_completion`` so first/last reads never rescan.
    """

    __slots__ = ("policy", "_days", "_sorted")

    def __init__(self, *, policy: IntervalPolicy = DEFAULT_POLICY) -> None:
        self.policy = policy
        self._days: set[date] = set()
        self._sorted: list[date] = []

    @classmethod
    def build(
        cls,
        timestamps: Iterable[date | datetime],
        *,
        policy: IntervalPolicy = DEFAULT_POLICY,
    ) -> "CompletionIndex":
        """Normalize, deduplicate and sort ``timestamps`` into a fresh index."""

        index = cls(policy=policy)
        index._days = {policy.day_of(ts) for ts in timestamps}
        index._sorted = sorted(index._days)
        return index

    # Read side -----------------------------------------------------------------

    @property
    def day_map(self) -> dict[date, bool]:
        return dict.fromkeys(self._sorted, True)

    @property
    def sorted_days(self) -> tuple[date, ...]:
        return tuple(self._sorted)

    @property
    def first_day(self) -> date | None:
        return self._sorted[0] if self._sorted else None

    @property
    def last_day(self) -> date | None:
        return self._sorted[-1] if self._sorted else None

    def is_completed(self, value: date | datetime) -> bool:
        return self.policy.day_of(value) in self._days

    def count_in(self, bounds: IntervalBounds) -> int:
        """Number of completed days inside ``[bounds.start, bounds.end)``."""

        return bisect_left(self._sorted, bounds.end) - bisect_left(self._sorted, bounds.start)

    def days_in(self, bounds: IntervalBounds) -> list[date]:
        lo = bisect_left(self._sorted, bounds.start)
        hi = bisect_left(self._sorted, bounds.end)
        return self._sorted[lo:hi]

    # Write side ----------------------------------------------------------------

    def add_completion(self, value: date | datetime) -> bool:
        """Mark a day complete. Returns False when it already was."""

        day = self.policy.day_of(value)
        if day in self._days:
            return False
        self._days.add(day)
        insort(self._sorted, day)
        return True

    def remove_completion(self, value: date | datetime) -> bool:
        """Unmark a day. Returns False when it was not complete."""

        day = self.policy.day_of(value)
        if day not in self._days:
            return False
        self._days.discard(day)
        del self._sorted[bisect_left(self._sorted, day)]
        return True

    # Dunder helpers ------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._sorted)

    def __iter__(self) -> Iterator[date]:
        return iter(self._sorted)

    def __contains__(self, value: object) -> bool:
        if isinstance(value, date):
            return self.is_completed(value)
        return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompletionIndex):
            return NotImplemented
        return self._sorted == other._sorted

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"CompletionIndex(days={len(self._sorted)}, first={self.first_day}, last={self.last_day})"


class CompletionCache:
    """Lazily built ``CompletionIndex`` over a source-of-truth collection.

    ``source`` is called on first access and after every ``invalidate()``. The
    owner must call ``invalidate()`` after mutating the source through any path
    that bypasses :meth:`add_completion`/:meth:`remove_completion`.
    """

    def __init__(
        self,
        source: Callable[[], Iterable[date | datetime]],
        *,
        policy: IntervalPolicy = DEFAULT_POLICY,
        label: str | None = None,
    ) -> None:
        self._source = source
        self.policy = policy
        self.label = label
        self._index: CompletionIndex | None = None

    @property
    def is_built(self) -> bool:
        return self._index is not None

    @property
    def index(self) -> CompletionIndex:
        if self._index is None:
            self._index = CompletionIndex.build(self._source(), policy=self.policy)
            logger.debug(
                "Completion index built",
                extra={"habit": self.label, "days": len(self._index)},
            )
        return self._index

    def invalidate(self) -> None:
        if self._index is not None:
            logger.debug("Completion index invalidated", extra={"habit": self.label})
        self._index = None

    def is_completed(self, value: date | datetime) -> bool:
        return self.index.is_completed(value)

    def add_completion(self, value: date | datetime) -> bool:
        return self.index.add_completion(value)

    def remove_completion(self, value: date | datetime) -> bool:
        return self.index.remove_completion(value)

    @property
    def sorted_days(self) -> tuple[date, ...]:
        return self.index.sorted_days

    @property
    def date_range(self) -> tuple[date, date] | None:
        """``(first_day, last_day)`` of the completions, ``None`` when empty."""

        index = self.index
        if index.first_day is None or index.last_day is None:
            return None
        return index.first_day, index.last_day


__all__ = ["CompletionCache", "CompletionIndex"]
