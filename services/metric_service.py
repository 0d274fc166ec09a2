"""
Metric Service
Recording and reading body-metric samples
"""

import logging
from typing import List, Optional, Union
from datetime import datetime, date, timedelta
from sqlalchemy.orm import Session

from database import get_db_context, upsert
import models
from models import MetricType
from services import store


logger = logging.getLogger(__name__)


class MetricService:
    """
    Service for body-metric samples

    At most one sample exists per (user, metric, day); recording again for
    the same day overwrites the value.
    """

    async def record_metric(
        self,
        user_id: int,
        metric: Union[MetricType, str],
        measured_on: date,
        value: float,
        db: Optional[Session] = None
    ) -> models.MetricSample:
        """
        Record a metric value for a day

        Args:
            user_id: User ID
            metric: Metric type or its name (e.g., "weight")
            measured_on: Calendar day of the measurement
            value: Measured value
            db: Database session

        Returns:
            The stored MetricSample
        """
        try:
            metric = MetricType(metric)
        except ValueError:
            raise ValueError(f"Unknown metric: {metric}")

        def _record(session: Session) -> models.MetricSample:
            now = datetime.utcnow()
            upsert(
                session,
                models.MetricSample,
                {
                    "user_id": user_id,
                    "metric": metric,
                    "measured_on": measured_on,
                    "value": float(value),
                    "created_at": now,
                    "updated_at": now,
                },
                conflict_columns=("user_id", "metric", "measured_on"),
                update_columns=("value", "updated_at")
            )
            session.commit()

            sample = session.query(models.MetricSample).filter(
                models.MetricSample.user_id == user_id,
                models.MetricSample.metric == metric,
                models.MetricSample.measured_on == measured_on
            ).one()
            session.refresh(sample)

            logger.info(f"Recorded {metric.value}={value} for user {user_id} on {measured_on}")
            return sample

        if db:
            return _record(db)

        with get_db_context() as session:
            return _record(session)

    async def get_metric_history(
        self,
        user_id: int,
        metric: Union[MetricType, str],
        days: int = 30,
        db: Optional[Session] = None,
        today: Optional[date] = None
    ) -> List[models.MetricSample]:
        """Samples of the last `days` days (today included), oldest first"""
        metric = MetricType(metric)

        def _get(session: Session) -> List[models.MetricSample]:
            end = today or date.today()
            start = end - timedelta(days=max(days, 1) - 1)
            return store.list_metric_samples(session, user_id, metric, start, end)

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)


# Singleton instance
metric_service = MetricService()
