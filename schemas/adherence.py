"""
Adherence Schemas
Pydantic models for adherence overviews, medication detail and insights
"""

from typing import Optional, List, Dict, Any
import datetime
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum


class InsightType(str, Enum):
    """Kinds of adherence insight"""
    STREAK = "streak"
    MEDICATION_SPECIFIC = "medication_specific"
    TIME_PATTERN = "time_pattern"
    DAY_PATTERN = "day_pattern"
    IMPROVEMENT = "improvement"
    DECLINING = "declining"


class InsightSeverity(str, Enum):
    """Insight severity"""
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"


class InsightAction(str, Enum):
    """Follow-up action suggested by an insight"""
    CHANGE_TIME = "change_time"
    SET_REMINDER = "set_reminder"
    VIEW_MEDICATION = "view_medication"


# ==================== SERIES ====================

class DailyAdherence(BaseModel):
    """Adherence for one local calendar day; total 0 means nothing was scheduled"""
    date: datetime.date
    taken: int
    missed: int
    skipped: int
    total: int
    percentage: int = Field(..., ge=0, le=100)

    model_config = ConfigDict(from_attributes=True)


class PeriodAdherence(BaseModel):
    """Adherence for an ISO week ("2026-W11") or calendar month ("2026-03")"""
    period: str
    start: datetime.date
    taken: int
    missed: int
    skipped: int
    total: int
    percentage: int = Field(..., ge=0, le=100)

    model_config = ConfigDict(from_attributes=True)


class TimePattern(BaseModel):
    """Doses grouped by time-of-day period"""
    pattern: str  # "morning", "afternoon", "evening", "night"
    taken: int
    missed: int
    total: int
    missed_percentage: int = Field(..., ge=0, le=100)


class AdherenceTally(BaseModel):
    """Taken/total summary"""
    taken: int
    total: int
    percentage: int = Field(..., ge=0, le=100)


# ==================== SUMMARIES ====================

class MedicationAdherence(BaseModel):
    """Adherence breakdown for one medication"""
    medication_id: int
    medication_name: str
    taken: int
    missed: int
    skipped: int
    total: int
    percentage: int = Field(..., ge=0, le=100)
    time_patterns: List[TimePattern] = Field(default_factory=list)


class AdherenceStreak(BaseModel):
    """Consecutive fully adherent days"""
    current: int = 0
    longest: int = 0
    last_perfect_day: Optional[datetime.date] = None


class OverallStats(BaseModel):
    """Adherence over the last week, last month and all recorded history"""
    this_week: AdherenceTally
    this_month: AdherenceTally
    all_time: AdherenceTally


class Insight(BaseModel):
    """Transient, human-readable observation about adherence"""
    type: InsightType
    severity: InsightSeverity
    title: str
    message: str
    suggestion: Optional[str] = None
    action_type: Optional[InsightAction] = None
    action_data: Optional[Dict[str, Any]] = None


class AdherenceOverview(BaseModel):
    """Complete adherence picture for a user"""
    user_id: int
    window_days: int
    daily_series: List[DailyAdherence]
    weekly_series: List[DailyAdherence]
    monthly_series: List[DailyAdherence]
    weekly_totals: List[PeriodAdherence] = Field(default_factory=list)
    monthly_totals: List[PeriodAdherence] = Field(default_factory=list)
    per_medication: List[MedicationAdherence]
    streak: AdherenceStreak
    overall_stats: OverallStats
    insights: List[Insight] = Field(default_factory=list)


class MedicationSummary(BaseModel):
    """Display data for a medication"""
    id: int
    name: str
    dosage_amount: float
    dosage_unit: Optional[str] = None
    times_per_day: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class MedicationAdherenceDetail(BaseModel):
    """Adherence detail for a single medication; medication and stats are None when not found"""
    medication: Optional[MedicationSummary] = None
    daily_series: List[DailyAdherence] = Field(default_factory=list)
    stats: Optional[MedicationAdherence] = None
    time_patterns: List[TimePattern] = Field(default_factory=list)
