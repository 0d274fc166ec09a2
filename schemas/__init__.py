"""
Schemas Module
Pydantic result models returned by the AdherenceLens engines
"""

from schemas.adherence import (
    InsightType,
    InsightSeverity,
    InsightAction,
    DailyAdherence,
    PeriodAdherence,
    TimePattern,
    AdherenceTally,
    MedicationAdherence,
    AdherenceStreak,
    OverallStats,
    Insight,
    AdherenceOverview,
    MedicationSummary,
    MedicationAdherenceDetail
)

from schemas.correlation import (
    CorrelationAnalysis,
    CorrelationInsight
)


__all__ = [
    # Adherence
    "InsightType",
    "InsightSeverity",
    "InsightAction",
    "DailyAdherence",
    "PeriodAdherence",
    "TimePattern",
    "AdherenceTally",
    "MedicationAdherence",
    "AdherenceStreak",
    "OverallStats",
    "Insight",
    "AdherenceOverview",
    "MedicationSummary",
    "MedicationAdherenceDetail",
    # Correlation
    "CorrelationAnalysis",
    "CorrelationInsight",
]
