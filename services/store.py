"""
Store Queries
Synchronous read/write helpers over the dose, metric and correlation tables.

These take an open session and never commit; the calling service owns the
transaction. Storage errors propagate unchanged.
"""

import logging
from typing import Any, Dict, List, Optional
from datetime import datetime, date
from sqlalchemy.orm import Session
from sqlalchemy import and_

import models
from database import upsert
from models import MetricType


logger = logging.getLogger(__name__)


CORRELATION_KEY_COLUMNS = ("user_id", "medication_id", "metric")
CORRELATION_UPDATE_COLUMNS = (
    "correlation_coefficient",
    "impact_direction",
    "data_points",
    "confidence_level",
    "observations",
    "sample_period_days",
    "updated_at",
)


def get_user_timezone(session: Session, user_id: int, default: str = "UTC") -> str:
    user = session.query(models.User).filter(models.User.id == user_id).first()
    if user and user.timezone:
        return user.timezone
    return default


def list_active_medications(session: Session, user_id: int) -> List[models.Medication]:
    """Active medications of a user, ordered by id"""
    return session.query(models.Medication).filter(
        and_(
            models.Medication.user_id == user_id,
            models.Medication.is_active == True  # noqa: E712
        )
    ).order_by(models.Medication.id).all()


def get_user_medication(
    session: Session,
    user_id: int,
    medication_id: int
) -> Optional[models.Medication]:
    """A medication only if it belongs to the user"""
    return session.query(models.Medication).filter(
        and_(
            models.Medication.id == medication_id,
            models.Medication.user_id == user_id
        )
    ).first()


def list_dose_records(
    session: Session,
    user_id: int,
    medication_id: Optional[int] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None
) -> List[models.DoseRecord]:
    """
    Dose records of a user by scheduled time

    Args:
        session: Database session
        user_id: User ID
        medication_id: Optional single medication
        start: Inclusive lower bound on scheduled_time (naive UTC)
        end: Exclusive upper bound on scheduled_time (naive UTC)
    """
    query = session.query(models.DoseRecord).filter(
        models.DoseRecord.user_id == user_id
    )

    if medication_id is not None:
        query = query.filter(models.DoseRecord.medication_id == medication_id)
    if start is not None:
        query = query.filter(models.DoseRecord.scheduled_time >= start)
    if end is not None:
        query = query.filter(models.DoseRecord.scheduled_time < end)

    return query.order_by(models.DoseRecord.scheduled_time).all()


def list_metric_samples(
    session: Session,
    user_id: int,
    metric: MetricType,
    start: Optional[date] = None,
    end: Optional[date] = None
) -> List[models.MetricSample]:
    """Metric samples of a user between two dates (both inclusive), oldest first"""
    query = session.query(models.MetricSample).filter(
        and_(
            models.MetricSample.user_id == user_id,
            models.MetricSample.metric == metric
        )
    )

    if start is not None:
        query = query.filter(models.MetricSample.measured_on >= start)
    if end is not None:
        query = query.filter(models.MetricSample.measured_on <= end)

    return query.order_by(models.MetricSample.measured_on).all()


def upsert_correlation_result(
    session: Session,
    key: Dict[str, Any],
    value: Dict[str, Any],
    now: Optional[datetime] = None
) -> None:
    """
    Insert or update the correlation row for (user_id, medication_id, metric)

    created_at is written only on insert; updated_at is bumped on every write.
    """
    now = now or datetime.utcnow()
    values = {**value, **key, "created_at": now, "updated_at": now}
    upsert(
        session,
        models.CorrelationResult,
        values,
        conflict_columns=CORRELATION_KEY_COLUMNS,
        update_columns=CORRELATION_UPDATE_COLUMNS
    )
    logger.debug(
        f"Upserted correlation for user {key['user_id']}, "
        f"medication {key['medication_id']}, metric {key['metric']}"
    )
