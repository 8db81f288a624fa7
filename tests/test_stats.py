"""Tests for cross-habit statistics."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from factories import TODAY, at, days_ago
from habitpixel.services.stats import (
    ALL_TIME_DAYS,
    TimeFrame,
    completion_rate,
    format_count,
    habit_completion_rate,
    longest_streak,
    number_of_days,
    summarize,
    time_frame_window,
    total_completions,
)


class TestWindows:
    def test_week_window_includes_today(self):
        window = time_frame_window(TimeFrame.WEEK, TODAY)
        assert window.start == date(2025, 3, 12)
        assert window.end == date(2025, 3, 20)
        assert TODAY in window

    @pytest.mark.parametrize(
        "frame, expected",
        [
            (TimeFrame.WEEK, 7),
            (TimeFrame.MONTH, 28),  # Feb 19 .. Mar 19
            (TimeFrame.YEAR, 365),
            (TimeFrame.ALL, ALL_TIME_DAYS),
        ],
    )
    def test_number_of_days(self, frame, expected):
        assert number_of_days(frame, TODAY) == expected

    def test_all_time_window_has_no_lower_bound(self):
        window = time_frame_window(TimeFrame.ALL, TODAY)
        assert date(1999, 1, 1) in window
        assert TODAY + timedelta(days=1) not in window


class TestAggregates:
    def test_totals_only_count_inside_frame(self, progress_factory):
        first = progress_factory(days_ago(0, 1, 2, 30), habit_id=1)
        second = progress_factory([at(TODAY, 7), at(TODAY, 19)], habit_id=2)

        assert total_completions([first, second], TimeFrame.WEEK, TODAY) == 5
        assert total_completions([first, second], TimeFrame.ALL, TODAY) == 6

    def test_completion_rate_across_habits(self, progress_factory):
        first = progress_factory(days_ago(0, 1, 2, 3), habit_id=1)
        second = progress_factory(days_ago(0, 1, 2), habit_id=2)
        assert completion_rate([first, second], TimeFrame.WEEK, TODAY) == pytest.approx(50.0)

    def test_habit_completion_rate(self, progress_factory):
        progress = progress_factory(days_ago(0, 1, 2, 3, 4, 5, 6))
        assert habit_completion_rate(progress, TimeFrame.WEEK, TODAY) == pytest.approx(100.0)

    def test_longest_streak_respects_frame(self, progress_factory):
        progress = progress_factory(days_ago(0, 1) + days_ago(*range(40, 50)))
        assert longest_streak([progress], TimeFrame.WEEK, TODAY) == 2
        assert longest_streak([progress], TimeFrame.YEAR, TODAY) == 10

    def test_summarize_empty(self):
        summary = summarize([], TimeFrame.MONTH, TODAY)
        assert summary.total_completions == 0
        assert summary.longest_streak == 0
        assert summary.completion_rate == 0.0
        assert summary.total_completions_label == "0"


@pytest.mark.parametrize(
    "value, expected",
    [(0, "0"), (999, "999"), (1000, "1.0K"), (1500, "1.5K"), (12345, "12.3K")],
)
def test_format_count(value, expected):
    assert format_count(value) == expected
