"""
Streak Calculator Tool
Current and longest runs of fully adherent days
"""

from typing import Optional, Sequence
from dataclasses import dataclass
from datetime import date

from tools.date_bucketer import DayBucket


@dataclass
class StreakSummary:
    """Consecutive fully adherent days"""
    current: int = 0
    longest: int = 0
    last_perfect_day: Optional[date] = None


def calculate_streak(days: Sequence[DayBucket]) -> StreakSummary:
    """
    Compute streaks from daily buckets in ascending date order.

    A day counts when every dose scheduled on it was taken. Days with no
    scheduled doses are ignored: they neither extend nor break a run.
    The current streak is counted back from the most recent day with doses.
    """
    longest = 0
    run = 0
    for day in days:
        if not day.has_doses:
            continue
        if day.is_fully_adherent:
            run += 1
            longest = max(longest, run)
        else:
            run = 0

    current = 0
    last_perfect_day = None
    for day in reversed(days):
        if not day.has_doses:
            continue
        if not day.is_fully_adherent:
            break
        if last_perfect_day is None:
            last_perfect_day = day.date
        current += 1

    if last_perfect_day is None:
        for day in reversed(days):
            if day.is_fully_adherent:
                last_perfect_day = day.date
                break

    return StreakSummary(
        current=current,
        longest=max(longest, current),
        last_perfect_day=last_perfect_day
    )
