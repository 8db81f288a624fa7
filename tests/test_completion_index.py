"""Tests for the day-granularity completion index and its lazy cache."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from factories import TODAY, at, days_ago
from habitpixel.services.completion_index import CompletionCache, CompletionIndex
from habitpixel.services.intervals import FrequencyKind


class TestBuild:
    def test_empty_build(self):
        index = CompletionIndex.build([])
        assert len(index) == 0
        assert index.sorted_days == ()
        assert index.day_map == {}
        assert index.first_day is None
        assert index.last_day is None

    def test_build_normalizes_dedupes_and_sorts(self, policy):
        raw = [
            at(TODAY, 8),
            at(TODAY, 21),
            at(date(2025, 3, 17), 7),
            date(2025, 3, 18),
            at(date(2025, 3, 17), 22),
        ]
        index = CompletionIndex.build(raw)

        expected = sorted({policy.day_of(ts) for ts in raw})
        assert list(index.sorted_days) == expected
        assert index.sorted_days == (date(2025, 3, 17), date(2025, 3, 18), TODAY)
        assert set(index.day_map) == set(index.sorted_days)
        assert all(index.day_map.values())
        assert index.first_day == date(2025, 3, 17)
        assert index.last_day == TODAY

    def test_lookup_ignores_time_of_day(self):
        index = CompletionIndex.build([at(TODAY, 6)])
        assert index.is_completed(TODAY)
        assert index.is_completed(at(TODAY, 23, 59))
        assert at(TODAY, 12) in index
        assert not index.is_completed(TODAY - timedelta(days=1))
        assert "today" not in index


class TestMutation:
    def test_add_extends_range(self):
        index = CompletionIndex.build(days_ago(0, 1))
        earlier = TODAY - timedelta(days=10)

        assert index.add_completion(earlier) is True
        assert index.first_day == earlier
        assert index.last_day == TODAY
        assert list(index.sorted_days) == sorted(index.sorted_days)

    def test_add_is_idempotent(self):
        index = CompletionIndex.build(days_ago(0, 1))
        assert index.add_completion(at(TODAY, 18)) is False
        assert len(index) == 2
        assert index.sorted_days.count(TODAY) == 1

    def test_add_into_middle_keeps_order(self):
        index = CompletionIndex.build(days_ago(0, 4))
        index.add_completion(TODAY - timedelta(days=2))
        assert index.sorted_days == tuple(
            TODAY - timedelta(days=offset) for offset in (4, 2, 0)
        )

    def test_remove_absent_is_noop(self):
        index = CompletionIndex.build(days_ago(0, 1))
        before = index.sorted_days
        assert index.remove_completion(TODAY - timedelta(days=5)) is False
        assert index.sorted_days == before

    def test_remove_bound_recomputes_range(self):
        index = CompletionIndex.build(days_ago(0, 1, 2))
        index.remove_completion(TODAY)
        assert index.last_day == TODAY - timedelta(days=1)
        index.remove_completion(TODAY - timedelta(days=2))
        assert index.first_day == index.last_day == TODAY - timedelta(days=1)
        index.remove_completion(TODAY - timedelta(days=1))
        assert index.first_day is None and index.last_day is None

    @pytest.mark.parametrize("offset", [-3, 0, 5, 40])
    def test_add_then_remove_restores_index(self, offset):
        original = CompletionIndex.build(days_ago(1, 2, 9))
        patched = CompletionIndex.build(days_ago(1, 2, 9))
        day = TODAY + timedelta(days=offset)

        patched.add_completion(day)
        patched.remove_completion(day)

        assert patched == original
        assert patched.day_map == original.day_map
        assert patched.sorted_days == original.sorted_days
        assert (patched.first_day, patched.last_day) == (original.first_day, original.last_day)


class TestRangeCounting:
    def test_count_in_uses_half_open_bounds(self, policy):
        index = CompletionIndex.build(
            [at(date(2025, 3, 16)), at(date(2025, 3, 17)), at(date(2025, 3, 23)), at(date(2025, 3, 24))]
        )
        week = policy.bounds(FrequencyKind.WEEKLY, TODAY)
        assert index.count_in(week) == 2
        assert index.days_in(week) == [date(2025, 3, 17), date(2025, 3, 23)]


class TestCompletionCache:
    def test_built_lazily_on_first_query(self):
        calls = []
        source = days_ago(0, 1)

        def load():
            calls.append(1)
            return source

        cache = CompletionCache(load)
        assert not cache.is_built
        assert calls == []

        assert cache.is_completed(TODAY)
        assert cache.is_built
        cache.is_completed(TODAY)
        assert len(calls) == 1

    def test_invalidate_picks_up_out_of_band_changes(self):
        source = days_ago(0)
        cache = CompletionCache(lambda: source)
        assert cache.sorted_days == (TODAY,)

        # Out-of-band mutation is invisible until the owner invalidates.
        source.extend(days_ago(1, 2))
        assert cache.sorted_days == (TODAY,)

        cache.invalidate()
        assert not cache.is_built
        assert len(cache.sorted_days) == 3

    def test_mutations_build_first(self):
        cache = CompletionCache(lambda: days_ago(3))
        assert cache.add_completion(TODAY) is True
        assert cache.sorted_days == (TODAY - timedelta(days=3), TODAY)
        assert cache.remove_completion(TODAY - timedelta(days=3)) is True
        assert cache.date_range == (TODAY, TODAY)

    def test_date_range_empty(self):
        assert CompletionCache(lambda: []).date_range is None
