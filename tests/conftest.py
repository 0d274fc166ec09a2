"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all AdherenceLens tests.
Fixtures include database sessions, a pinned clock, sample users and
medications, and factories for dose records and metric samples.
"""

import os
import sys
from datetime import datetime, date, timedelta
from typing import Callable, Generator, List, Optional

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import AnalyticsConfig
from database import Base
from models import (
    User, Medication, DoseRecord, MetricSample,
    DoseStatus, MetricType
)


# Wednesday evening, UTC
NOW = datetime(2026, 3, 18, 20, 0)
TODAY = NOW.date()


# ==================== DATABASE FIXTURES ====================

def _enable_foreign_keys(engine) -> None:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    _enable_foreign_keys(engine)

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a test database session"""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def file_engine(tmp_path):
    """SQLite file database with a real connection pool, for multi-threaded tests"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'adherence_lens_test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
        echo=False
    )
    _enable_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)

    yield engine

    engine.dispose()


# ==================== CLOCK AND CONFIG FIXTURES ====================

@pytest.fixture
def now() -> datetime:
    """Pinned current instant (naive UTC)"""
    return NOW


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def logged_only_config() -> AnalyticsConfig:
    """Thresholds with unlogged schedule slots left out of the counts"""
    return AnalyticsConfig(derive_unlogged_missed=False)


# ==================== SAMPLE DATA FIXTURES ====================

@pytest.fixture
def test_user(db_session: Session) -> User:
    """Create and return a test user in UTC"""
    user = User(display_name="Jane Doe", timezone="UTC")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_user(db_session: Session) -> User:
    """A second user, for ownership checks"""
    user = User(display_name="John Roe", timezone="UTC")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def make_medication(db_session: Session) -> Callable[..., Medication]:
    """Factory for medications; defaults to one 08:00 dose a day for the last 60 days"""
    def _make(user: User, name: str = "Metformin", **overrides) -> Medication:
        data = {
            "user_id": user.id,
            "name": name,
            "dosage_amount": 500,
            "dosage_unit": "mg",
            "times_per_day": 1,
            "specific_times": ["08:00"],
            "days_of_week": [],
            "is_active": True,
            "start_date": TODAY - timedelta(days=60),
        }
        data.update(overrides)
        medication = Medication(**data)
        db_session.add(medication)
        db_session.commit()
        db_session.refresh(medication)
        return medication

    return _make


@pytest.fixture
def test_medication(test_user: User, make_medication) -> Medication:
    """Create and return a test medication linked to the test user"""
    return make_medication(test_user)


@pytest.fixture
def make_dose(db_session: Session) -> Callable[..., DoseRecord]:
    """Factory for stored dose records; taken doses default to five minutes late"""
    def _make(
        medication: Medication,
        scheduled_time: datetime,
        status: DoseStatus = DoseStatus.TAKEN,
        taken_at: Optional[datetime] = None
    ) -> DoseRecord:
        if status == DoseStatus.TAKEN and taken_at is None:
            taken_at = scheduled_time + timedelta(minutes=5)
        record = DoseRecord(
            user_id=medication.user_id,
            medication_id=medication.id,
            scheduled_time=scheduled_time,
            status=status,
            taken_at=taken_at
        )
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record

    return _make


@pytest.fixture
def make_daily_doses(make_dose) -> Callable[..., List[DoseRecord]]:
    """
    Factory for one dose a day at the given hour

    statuses[0] is the oldest day and statuses[-1] falls on `last_day`.
    None leaves the day unlogged.
    """
    def _make(
        medication: Medication,
        statuses: List[Optional[DoseStatus]],
        last_day: date = TODAY,
        hour: int = 8
    ) -> List[DoseRecord]:
        first_day = last_day - timedelta(days=len(statuses) - 1)
        records = []
        for offset, status in enumerate(statuses):
            if status is None:
                continue
            day = first_day + timedelta(days=offset)
            records.append(make_dose(medication, datetime(day.year, day.month, day.day, hour), status))
        return records

    return _make


@pytest.fixture
def make_metric(db_session: Session) -> Callable[..., MetricSample]:
    """Factory for metric samples"""
    def _make(user: User, measured_on: date, value: float, metric: MetricType = MetricType.WEIGHT) -> MetricSample:
        sample = MetricSample(user_id=user.id, metric=metric, measured_on=measured_on, value=value)
        db_session.add(sample)
        db_session.commit()
        return sample

    return _make


@pytest.fixture
def correlated_history(test_user: User, test_medication: Medication, make_dose, make_metric):
    """
    40 days where weight is lower on days the medication was taken

    Taken on even day offsets, missed on odd ones; weight 80 kg on taken
    days and 82 kg otherwise, with a slow drift.
    """
    days = 40
    for offset in range(days):
        day = TODAY - timedelta(days=days - 1 - offset)
        scheduled = datetime(day.year, day.month, day.day, 8)
        taken = offset % 2 == 0
        make_dose(test_medication, scheduled, DoseStatus.TAKEN if taken else DoseStatus.MISSED)
        make_metric(test_user, day, (80.0 if taken else 82.0) + offset * 0.01)
    return days
