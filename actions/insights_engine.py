"""
Insights Engine
Rule-based insights over a computed adherence overview
"""

import logging
from typing import List, Optional, Sequence

from config import AnalyticsConfig, analytics_config
from schemas.adherence import (
    AdherenceOverview,
    AdherenceStreak,
    DailyAdherence,
    Insight,
    InsightAction,
    InsightSeverity,
    InsightType,
    MedicationAdherence
)
from tools.date_bucketer import adherence_percentage


logger = logging.getLogger(__name__)


SEVERITY_RANK = {
    InsightSeverity.WARNING: 2,
    InsightSeverity.INFO: 1,
    InsightSeverity.SUCCESS: 0,
}

TIME_LABELS = {
    "morning": "morning (5 AM - 12 PM)",
    "afternoon": "afternoon (12 PM - 6 PM)",
    "evening": "evening (6 PM - 12 AM)",
    "night": "night (12 AM - 5 AM)",
}


class InsightsEngine:
    """
    Engine for generating insights from an adherence overview

    Insights are transient: they are recomputed on every overview and never
    stored. Output order is streak, medication specific (most severe first),
    time of day, then weekly patterns, capped at config.max_insights.
    """

    def __init__(self, config: Optional[AnalyticsConfig] = None):
        self.config = config or analytics_config

    def generate(self, overview: AdherenceOverview) -> List[Insight]:
        """
        Evaluate every rule against the overview

        Args:
            overview: Computed adherence overview

        Returns:
            Ordered list of insights
        """
        insights: List[Insight] = []

        streak_insight = self.generate_streak_insight(overview.streak)
        if streak_insight:
            insights.append(streak_insight)

        medication_insights = [
            insight for insight in (
                self.generate_low_adherence_insight(med)
                for med in overview.per_medication
            )
            if insight
        ]
        medication_insights.sort(key=lambda i: SEVERITY_RANK[i.severity], reverse=True)
        insights.extend(medication_insights)

        for med in overview.per_medication:
            time_insight = self.generate_time_pattern_insight(med)
            if time_insight:
                insights.append(time_insight)

        day_insight = self.generate_day_pattern_insight(overview.weekly_series)
        if day_insight:
            insights.append(day_insight)

        trend_insight = self.generate_trend_insight(overview.weekly_series)
        if trend_insight:
            insights.append(trend_insight)

        if len(insights) > self.config.max_insights:
            logger.debug(
                f"Dropping {len(insights) - self.config.max_insights} insights "
                f"for user {overview.user_id}"
            )
        return insights[:self.config.max_insights]

    def generate_streak_insight(self, streak: AdherenceStreak) -> Optional[Insight]:
        """Praise a long streak, or nudge a restart after a broken one"""
        if streak.current >= self.config.streak_praise_days:
            return Insight(
                type=InsightType.STREAK,
                severity=InsightSeverity.SUCCESS,
                title="Great Streak!",
                message=f"You've had {streak.current} perfect days in a row!",
                suggestion="Keep it up! Consistency is key to getting the most from your medications."
            )

        if streak.current == 0 and streak.longest > 0:
            return Insight(
                type=InsightType.STREAK,
                severity=InsightSeverity.INFO,
                title="Restart Your Streak",
                message=f"Your longest streak was {streak.longest} days. Let's get back on track!",
                suggestion="Start fresh today - every perfect day counts!"
            )

        return None

    def generate_low_adherence_insight(self, med: MedicationAdherence) -> Optional[Insight]:
        """Warn about a medication taken too rarely over enough doses"""
        if med.total < self.config.low_adherence_min_doses:
            return None
        if med.percentage >= self.config.low_adherence_percentage:
            return None

        return Insight(
            type=InsightType.MEDICATION_SPECIFIC,
            severity=InsightSeverity.WARNING,
            title=f"{med.medication_name} Needs Attention",
            message=f"You've only taken {med.percentage}% of your {med.medication_name} doses.",
            suggestion="Consider setting a reminder for this medication.",
            action_type=InsightAction.VIEW_MEDICATION,
            action_data={"medication_id": med.medication_id}
        )

    def generate_time_pattern_insight(self, med: MedicationAdherence) -> Optional[Insight]:
        """
        Flag a time of day whose missed share clearly stands out

        The worst period needs enough doses, a missed share above the
        threshold and a clear margin over the best of the other periods.
        """
        patterns = sorted(med.time_patterns, key=lambda p: p.missed_percentage, reverse=True)
        if len(patterns) < 2:
            return None

        worst = patterns[0]
        runner_up = patterns[1]

        if worst.total < self.config.time_pattern_min_doses:
            return None
        if worst.missed_percentage < self.config.time_pattern_missed_percentage:
            return None
        if worst.missed_percentage - runner_up.missed_percentage < self.config.time_pattern_margin:
            return None

        severity = InsightSeverity.INFO
        if worst.missed_percentage >= self.config.time_pattern_warning_percentage:
            severity = InsightSeverity.WARNING

        label = TIME_LABELS.get(worst.pattern, worst.pattern)
        return Insight(
            type=InsightType.TIME_PATTERN,
            severity=severity,
            title=f"{worst.pattern.capitalize()} {med.medication_name} Doses Need Attention",
            message=(
                f"You miss {worst.missed_percentage}% of your {label} "
                f"{med.medication_name} doses."
            ),
            suggestion="Consider moving this dose to a time that fits your routine better.",
            action_type=InsightAction.CHANGE_TIME,
            action_data={"medication_id": med.medication_id, "pattern": worst.pattern}
        )

    def generate_day_pattern_insight(self, days: Sequence[DailyAdherence]) -> Optional[Insight]:
        """Compare weekend adherence with weekdays over the last week"""
        weekday_taken = weekday_total = 0
        weekend_taken = weekend_total = 0

        for day in days:
            if day.date.weekday() >= 5:
                weekend_taken += day.taken
                weekend_total += day.total
            else:
                weekday_taken += day.taken
                weekday_total += day.total

        if weekday_total == 0 or weekend_total == 0:
            return None

        weekday_rate = adherence_percentage(weekday_taken, weekday_total)
        weekend_rate = adherence_percentage(weekend_taken, weekend_total)

        if weekday_rate - weekend_rate <= self.config.weekend_gap_percentage:
            return None

        return Insight(
            type=InsightType.DAY_PATTERN,
            severity=InsightSeverity.WARNING,
            title="Weekend Reminder",
            message=(
                f"Your weekend adherence ({weekend_rate}%) is lower than "
                f"weekdays ({weekday_rate}%)."
            ),
            suggestion="Set up weekend-specific reminders to stay on track.",
            action_type=InsightAction.SET_REMINDER
        )

    def generate_trend_insight(self, days: Sequence[DailyAdherence]) -> Optional[Insight]:
        """Compare the first three days of the week with the last three"""
        if len(days) < 7:
            return None

        # Days with nothing scheduled say nothing about the trend
        first = [d.percentage for d in days[:3] if d.total > 0]
        last = [d.percentage for d in days[-3:] if d.total > 0]
        if not first or not last:
            return None

        change = sum(last) / len(last) - sum(first) / len(first)

        if change > self.config.trend_change_percentage:
            return Insight(
                type=InsightType.IMPROVEMENT,
                severity=InsightSeverity.SUCCESS,
                title="Improving!",
                message=f"Your adherence has improved by {round(change)}% this week!",
                suggestion="Great progress! Keep up the good work."
            )

        if -change > self.config.trend_change_percentage:
            return Insight(
                type=InsightType.DECLINING,
                severity=InsightSeverity.WARNING,
                title="Adherence Declining",
                message=f"Your adherence has dropped by {round(-change)}% recently.",
                suggestion="Try to identify what changed and get back on track."
            )

        return None


# Singleton instance
insights_engine = InsightsEngine()
