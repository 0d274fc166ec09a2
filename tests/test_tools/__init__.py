"""
Test Tools Package
Tests for the tools module (date bucketing, streaks, schedules, projection, correlation math)
"""

__all__ = [
    "test_date_bucketer",
    "test_streak_calculator",
    "test_dose_schedule",
    "test_dose_projection",
    "test_correlation_math",
]
