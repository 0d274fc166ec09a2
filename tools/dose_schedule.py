"""
Dose Schedule Tool
Schedule descriptors that materialize the expected dose times for a day
"""

import logging
from typing import List, Optional, Sequence, Tuple, Union
from dataclasses import dataclass, field
from datetime import datetime, date, time


logger = logging.getLogger(__name__)


# Fixed slots for the common daily frequencies
DEFAULT_DOSE_TIMES = {
    1: ["08:00"],
    2: ["08:00", "20:00"],
    3: ["08:00", "14:00", "20:00"],
    4: ["08:00", "12:00", "16:00", "20:00"],
}

# Waking hours used to spread larger frequencies
SPREAD_START_HOUR = 7
SPREAD_END_HOUR = 22

ALL_DAYS: Tuple[int, ...] = (0, 1, 2, 3, 4, 5, 6)


def parse_clock_time(val: Union[str, time]) -> time:
    """Parse an "HH:MM" (or "HH:MM:SS") string into a time"""
    if isinstance(val, time):
        return val
    if isinstance(val, str):
        for fmt in ("%H:%M", "%H:%M:%S"):
            try:
                return datetime.strptime(val.strip(), fmt).time()
            except ValueError:
                continue
    raise ValueError(f"Cannot parse dose time: {val!r}")


def default_dose_times(times_per_day: int) -> List[time]:
    """Default clock times for a number of daily doses"""
    if times_per_day < 1:
        raise ValueError(f"times_per_day must be at least 1, got {times_per_day}")

    if times_per_day in DEFAULT_DOSE_TIMES:
        return [parse_clock_time(t) for t in DEFAULT_DOSE_TIMES[times_per_day]]

    interval = (SPREAD_END_HOUR - SPREAD_START_HOUR) / times_per_day
    times = []
    for i in range(times_per_day):
        total_minutes = round((SPREAD_START_HOUR + interval * i) * 60)
        times.append(time(total_minutes // 60, total_minutes % 60))
    return times


def _normalize_days(days_of_week: Optional[Sequence[int]]) -> Tuple[int, ...]:
    if not days_of_week:
        return ALL_DAYS
    days = sorted({int(d) for d in days_of_week})
    for d in days:
        if d < 0 or d > 6:
            raise ValueError(f"Day of week must be 0 (Monday) to 6 (Sunday), got {d}")
    return tuple(days)


@dataclass(frozen=True)
class DoseSchedule:
    """Base schedule: which weekdays a medication is taken on"""
    days_of_week: Tuple[int, ...] = ALL_DAYS

    def applies_on(self, day: date) -> bool:
        return day.weekday() in self.days_of_week

    def clock_times(self) -> List[time]:
        raise NotImplementedError

    def dose_times_on(self, day: date) -> List[time]:
        """Expected local clock times of doses on the given day"""
        if not self.applies_on(day):
            return []
        return self.clock_times()


@dataclass(frozen=True)
class FixedTimesSchedule(DoseSchedule):
    """Doses at explicit clock times"""
    times: Tuple[time, ...] = field(default_factory=tuple)

    def clock_times(self) -> List[time]:
        return list(self.times)


@dataclass(frozen=True)
class EvenlySpacedSchedule(DoseSchedule):
    """A number of doses per day at default times"""
    times_per_day: int = 1

    def clock_times(self) -> List[time]:
        return default_dose_times(self.times_per_day)


def build_schedule(
    times_per_day: int = 1,
    specific_times: Optional[Sequence[Union[str, time]]] = None,
    days_of_week: Optional[Sequence[int]] = None
) -> DoseSchedule:
    """
    Build the schedule descriptor for a medication's frequency settings

    Args:
        times_per_day: Number of daily doses, used when no explicit times are given
        specific_times: Explicit "HH:MM" clock times
        days_of_week: Weekdays (Monday=0) the medication is taken; empty means every day

    Returns:
        FixedTimesSchedule when explicit times exist, else EvenlySpacedSchedule
    """
    days = _normalize_days(days_of_week)

    if specific_times:
        times = tuple(sorted({parse_clock_time(t) for t in specific_times}))
        return FixedTimesSchedule(days_of_week=days, times=times)

    return EvenlySpacedSchedule(days_of_week=days, times_per_day=times_per_day)
