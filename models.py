"""
Database Models
SQLAlchemy ORM models for AdherenceLens
"""

from sqlalchemy import Column, Integer, String, Boolean, Float, DateTime, ForeignKey, Text, Date, Enum, Index, UniqueConstraint, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum

from database import Base


# ==================== ENUMS ====================

class DoseStatus(str, PyEnum):
    """Status of a scheduled medication dose"""
    PENDING = "pending"
    TAKEN = "taken"
    SKIPPED = "skipped"
    MISSED = "missed"


class MedicationType(str, PyEnum):
    """Kinds of tracked medication"""
    PRESCRIPTION = "prescription"
    SUPPLEMENT = "supplement"
    OTC = "otc"


class MetricType(str, PyEnum):
    """Body metrics that can be recorded"""
    WEIGHT = "weight"
    BODY_FAT_PERCENTAGE = "body_fat_percentage"
    HEART_RATE = "heart_rate"
    BLOOD_PRESSURE = "blood_pressure"
    SLEEP_QUALITY = "sleep_quality"
    ENERGY_LEVEL = "energy_level"
    MOOD = "mood"


class ImpactDirection(str, PyEnum):
    """Sign of a medication/metric correlation"""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NONE = "none"


class ConfidenceLevel(str, PyEnum):
    """Coarse trust level of a correlation result"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ==================== MODELS ====================

class User(Base):
    """Person whose doses and body metrics are tracked"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    display_name = Column(String(100), nullable=False)

    # IANA zone used for calendar-day bucketing
    timezone = Column(String(50), default="UTC")

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    medications = relationship("Medication", back_populates="user", cascade="all, delete-orphan")
    metric_samples = relationship("MetricSample", back_populates="user", cascade="all, delete-orphan")


class Medication(Base):
    """Medication or supplement with its dosing schedule"""
    __tablename__ = "medications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    name = Column(String(255), nullable=False)
    medication_type = Column(Enum(MedicationType), default=MedicationType.PRESCRIPTION)

    # Dosage
    dosage_amount = Column(Float, nullable=False, default=1)
    dosage_unit = Column(String(20), default="tablets")  # mg, ml, iu, mcg, g, tablets, capsules
    dosage_form = Column(String(20), default="tablet")  # tablet, capsule, liquid, ...

    # Frequency
    times_per_day = Column(Integer, nullable=False, default=1)
    specific_times = Column(JSON, default=list)  # ["08:00", "20:00"]
    days_of_week = Column(JSON, default=list)  # Monday=0; empty means every day
    with_food = Column(Boolean, default=False)
    notes = Column(Text)

    # Metrics this medication is expected to influence
    affects_metrics = Column(JSON, default=list)

    # Status
    is_active = Column(Boolean, default=True)
    start_date = Column(Date)
    end_date = Column(Date)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="medications")
    dose_records = relationship("DoseRecord", back_populates="medication", cascade="all, delete-orphan", passive_deletes=True)
    correlation_results = relationship("CorrelationResult", back_populates="medication", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_medication_user_name"),
        Index("ix_medications_user_active", "user_id", "is_active"),
    )

    @property
    def schedule(self):
        """Schedule descriptor built from the frequency columns"""
        from tools.dose_schedule import build_schedule

        return build_schedule(
            times_per_day=self.times_per_day or 1,
            specific_times=self.specific_times,
            days_of_week=self.days_of_week
        )


class DoseRecord(Base):
    """One scheduled or logged dose of a medication"""
    __tablename__ = "dose_records"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    medication_id = Column(Integer, ForeignKey("medications.id", ondelete="CASCADE"), nullable=False)

    # Timing (naive UTC)
    scheduled_time = Column(DateTime, nullable=False)
    taken_at = Column(DateTime)

    status = Column(Enum(DoseStatus), nullable=False, default=DoseStatus.PENDING)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    medication = relationship("Medication", back_populates="dose_records")

    __table_args__ = (
        UniqueConstraint("medication_id", "scheduled_time", name="uq_dose_medication_time"),
        Index("ix_dose_records_user_time", "user_id", "scheduled_time"),
    )


class MetricSample(Base):
    """One body-metric measurement for a calendar date"""
    __tablename__ = "metric_samples"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    metric = Column(Enum(MetricType), nullable=False)
    measured_on = Column(Date, nullable=False)
    value = Column(Float, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="metric_samples")

    __table_args__ = (
        UniqueConstraint("user_id", "metric", "measured_on", name="uq_metric_user_date"),
    )


class CorrelationResult(Base):
    """Persisted medication/metric correlation, one row per (user, medication, metric)"""
    __tablename__ = "correlation_results"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    medication_id = Column(Integer, ForeignKey("medications.id", ondelete="CASCADE"), nullable=False)
    metric = Column(Enum(MetricType), nullable=False)

    correlation_coefficient = Column(Float, nullable=False)  # -1 to 1
    impact_direction = Column(Enum(ImpactDirection), nullable=False)
    data_points = Column(Integer, nullable=False, default=0)
    confidence_level = Column(Enum(ConfidenceLevel), nullable=False, default=ConfidenceLevel.LOW)
    observations = Column(JSON, default=list)
    sample_period_days = Column(Integer, nullable=False, default=90)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    medication = relationship("Medication", back_populates="correlation_results")

    __table_args__ = (
        UniqueConstraint("user_id", "medication_id", "metric", name="uq_correlation_user_med_metric"),
        Index("ix_correlation_results_user", "user_id"),
    )
