"""
Tools Package
Pure calendar, schedule, streak and statistics helpers for AdherenceLens
"""

from .dose_schedule import (
    DoseSchedule,
    FixedTimesSchedule,
    EvenlySpacedSchedule,
    DEFAULT_DOSE_TIMES,
    build_schedule,
    parse_clock_time,
    default_dose_times
)

from .date_bucketer import (
    TimeOfDay,
    Tally,
    DayBucket,
    PeriodBucket,
    TimeOfDayBucket,
    clamp_days,
    adherence_percentage,
    classify_time_of_day,
    bucket_by_day,
    bucket_by_iso_week,
    bucket_by_month,
    bucket_by_time_of_day
)

from .dose_projection import (
    DoseView,
    project_dose_record,
    project_dose_records,
    materialize_unlogged_doses
)

from .streak_calculator import (
    StreakSummary,
    calculate_streak
)

from .correlation_math import (
    calculate_pearson_correlation,
    calculate_average,
    determine_confidence,
    determine_impact_direction,
    describe_strength
)

__all__ = [
    # Dose Schedule
    "DoseSchedule",
    "FixedTimesSchedule",
    "EvenlySpacedSchedule",
    "DEFAULT_DOSE_TIMES",
    "build_schedule",
    "parse_clock_time",
    "default_dose_times",

    # Date Bucketer
    "TimeOfDay",
    "Tally",
    "DayBucket",
    "PeriodBucket",
    "TimeOfDayBucket",
    "clamp_days",
    "adherence_percentage",
    "classify_time_of_day",
    "bucket_by_day",
    "bucket_by_iso_week",
    "bucket_by_month",
    "bucket_by_time_of_day",

    # Dose Projection
    "DoseView",
    "project_dose_record",
    "project_dose_records",
    "materialize_unlogged_doses",

    # Streak Calculator
    "StreakSummary",
    "calculate_streak",

    # Correlation Math
    "calculate_pearson_correlation",
    "calculate_average",
    "determine_confidence",
    "determine_impact_direction",
    "describe_strength"
]
