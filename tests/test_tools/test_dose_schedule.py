"""
Tests for Dose Schedule Tool
Tests the schedule descriptors and their daily dose times
"""

import pytest
from datetime import date, time

from tools.dose_schedule import (
    EvenlySpacedSchedule,
    FixedTimesSchedule,
    build_schedule,
    default_dose_times,
    parse_clock_time
)


WEDNESDAY = date(2026, 3, 18)
SATURDAY = date(2026, 3, 21)


class TestParseClockTime:
    """Tests for clock time parsing"""

    def test_hours_and_minutes(self):
        assert parse_clock_time("08:30") == time(8, 30)

    def test_with_seconds(self):
        assert parse_clock_time("21:15:00") == time(21, 15)

    def test_time_passes_through(self):
        assert parse_clock_time(time(7, 0)) == time(7, 0)

    @pytest.mark.parametrize("value", ["8am", "25:00", "", None])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_clock_time(value)


class TestDefaultDoseTimes:
    """Tests for default times per daily frequency"""

    def test_common_frequencies(self):
        assert default_dose_times(1) == [time(8, 0)]
        assert default_dose_times(2) == [time(8, 0), time(20, 0)]
        assert default_dose_times(3) == [time(8, 0), time(14, 0), time(20, 0)]
        assert default_dose_times(4) == [time(8, 0), time(12, 0), time(16, 0), time(20, 0)]

    def test_larger_frequency_spread_over_waking_hours(self):
        times = default_dose_times(6)

        assert len(times) == 6
        assert times[0] == time(7, 0)
        assert times == sorted(times)
        assert times[-1] < time(22, 0)

    def test_zero_rejected(self):
        with pytest.raises(ValueError):
            default_dose_times(0)


class TestBuildSchedule:
    """Tests for picking the schedule variant"""

    def test_explicit_times(self):
        schedule = build_schedule(times_per_day=2, specific_times=["20:00", "07:30"])

        assert isinstance(schedule, FixedTimesSchedule)
        assert schedule.dose_times_on(WEDNESDAY) == [time(7, 30), time(20, 0)]

    def test_duplicate_times_collapse(self):
        schedule = build_schedule(specific_times=["08:00", "08:00"])
        assert schedule.dose_times_on(WEDNESDAY) == [time(8, 0)]

    def test_times_per_day(self):
        schedule = build_schedule(times_per_day=3)

        assert isinstance(schedule, EvenlySpacedSchedule)
        assert len(schedule.dose_times_on(WEDNESDAY)) == 3

    def test_every_day_by_default(self):
        schedule = build_schedule(times_per_day=1, days_of_week=[])
        assert all(schedule.applies_on(date(2026, 3, d)) for d in range(16, 23))

    def test_days_of_week_mask(self):
        """Monday=0: weekends only"""
        schedule = build_schedule(times_per_day=1, days_of_week=[5, 6])

        assert schedule.applies_on(SATURDAY)
        assert not schedule.applies_on(WEDNESDAY)
        assert schedule.dose_times_on(WEDNESDAY) == []
        assert schedule.dose_times_on(SATURDAY) == [time(8, 0)]

    def test_invalid_day_rejected(self):
        with pytest.raises(ValueError):
            build_schedule(days_of_week=[7])

    def test_invalid_time_rejected(self):
        with pytest.raises(ValueError):
            build_schedule(specific_times=["noon"])
