"""
Tests for Streak Calculator Tool
"""

from datetime import date, timedelta
from typing import List, Tuple

from tools.date_bucketer import DayBucket, adherence_percentage
from tools.streak_calculator import calculate_streak


TODAY = date(2026, 3, 18)


def series(days: List[Tuple[int, int]]) -> List[DayBucket]:
    """Daily buckets from (taken, total) pairs; the last pair is today"""
    first = TODAY - timedelta(days=len(days) - 1)
    return [
        DayBucket(
            date=first + timedelta(days=i),
            taken=taken,
            missed=total - taken,
            skipped=0,
            total=total,
            percentage=adherence_percentage(taken, total)
        )
        for i, (taken, total) in enumerate(days)
    ]


class TestCurrentStreak:
    """Tests for the streak ending at the most recent scheduled day"""

    def test_five_adherent_days_ending_today(self):
        summary = calculate_streak(series([(1, 1)] * 5))

        assert summary.current == 5
        assert summary.longest == 5
        assert summary.last_perfect_day == TODAY

    def test_gap_day_does_not_reset(self):
        """A day with nothing scheduled neither extends nor breaks a run"""
        summary = calculate_streak(series([(1, 1), (0, 0)] + [(1, 1)] * 5))

        assert summary.current == 6
        assert summary.longest == 6

    def test_zero_dose_today_looks_further_back(self):
        summary = calculate_streak(series([(2, 2)] * 3 + [(0, 0)]))

        assert summary.current == 3
        assert summary.last_perfect_day == TODAY - timedelta(days=1)

    def test_partial_day_breaks_streak(self):
        summary = calculate_streak(series([(2, 2), (2, 2), (1, 2)]))

        assert summary.current == 0
        assert summary.longest == 2

    def test_recent_break(self):
        summary = calculate_streak(series([(1, 1)] * 3 + [(0, 1), (1, 1)]))

        assert summary.current == 1
        assert summary.longest == 3


class TestLongestStreak:
    """Tests for the longest run"""

    def test_longest_in_the_past(self):
        summary = calculate_streak(series([(1, 1)] * 4 + [(0, 1)] + [(1, 1)] * 2))

        assert summary.longest == 4
        assert summary.current == 2

    def test_longest_never_below_current(self):
        summary = calculate_streak(series([(0, 1)] + [(1, 1)] * 3))

        assert summary.longest >= summary.current

    def test_no_days(self):
        summary = calculate_streak([])

        assert summary.current == 0
        assert summary.longest == 0
        assert summary.last_perfect_day is None

    def test_nothing_scheduled(self):
        summary = calculate_streak(series([(0, 0)] * 7))

        assert summary.current == 0
        assert summary.longest == 0
        assert summary.last_perfect_day is None

    def test_last_perfect_day_after_break(self):
        summary = calculate_streak(series([(1, 1), (0, 1)]))

        assert summary.current == 0
        assert summary.longest == 1
        assert summary.last_perfect_day == TODAY - timedelta(days=1)
