"""
Correlation Service
Relates whether a medication was taken on a day to a body metric measured that day
"""

import logging
from typing import List, Optional, Sequence, Set, Union
from datetime import datetime, date, timedelta
from sqlalchemy.orm import Session

from database import get_db_context
from config import AnalyticsConfig, analytics_config, settings
import models
from models import ConfidenceLevel, DoseStatus, ImpactDirection, MetricType
from schemas.correlation import CorrelationAnalysis
from services import store
from tools.correlation_math import (
    calculate_average,
    calculate_pearson_correlation,
    describe_strength,
    determine_confidence,
    determine_impact_direction
)
from tools.date_bucketer import (
    adherence_percentage,
    clamp_days,
    get_zone,
    local_date,
    local_day_start_utc
)


logger = logging.getLogger(__name__)


class CorrelationService:
    """
    Service for medication/metric correlation analysis

    Series A is 1 on days the medication was taken and 0 otherwise; series
    B is the metric value. Only days with a metric sample are paired.
    Returns None rather than raising when there is nothing to report.
    """

    def __init__(self, config: Optional[AnalyticsConfig] = None):
        self.config = config or analytics_config

    def supports(self, metric: Union[MetricType, str]) -> bool:
        """Whether correlations are computed for this metric"""
        try:
            metric = MetricType(metric)
        except ValueError:
            return False
        return metric.value in self.config.supported_metrics

    async def analyze_medication_metric_correlation(
        self,
        user_id: int,
        medication_id: int,
        metric: Union[MetricType, str],
        lookback_days: Optional[int] = None,
        db: Optional[Session] = None,
        now: Optional[datetime] = None
    ) -> Optional[CorrelationAnalysis]:
        """
        Correlate one medication with one metric

        Args:
            user_id: User ID
            medication_id: Medication ID
            metric: Metric type or name
            lookback_days: Trailing days to analyze (default 90)
            db: Database session
            now: Current instant, naive UTC

        Returns:
            CorrelationAnalysis, or None for an unsupported metric, an
            unknown medication or too few paired days
        """
        if not self.supports(metric):
            logger.debug(f"Correlation not supported for metric {metric}")
            return None

        metric = MetricType(metric)
        lookback = clamp_days(lookback_days, settings.DEFAULT_LOOKBACK_DAYS, settings.MAX_LOOKBACK_DAYS)

        def _analyze(session: Session) -> Optional[CorrelationAnalysis]:
            medication = store.get_user_medication(session, user_id, medication_id)
            if not medication:
                return None
            return self.analyze_medication(session, medication, metric, lookback, now)

        if db:
            return _analyze(db)

        with get_db_context() as session:
            return _analyze(session)

    async def analyze_all_medication_correlations(
        self,
        user_id: int,
        lookback_days: Optional[int] = None,
        db: Optional[Session] = None,
        now: Optional[datetime] = None
    ) -> List[CorrelationAnalysis]:
        """Correlate every active medication with every supported metric"""
        lookback = clamp_days(lookback_days, settings.DEFAULT_LOOKBACK_DAYS, settings.MAX_LOOKBACK_DAYS)

        def _analyze_all(session: Session) -> List[CorrelationAnalysis]:
            results = []
            for medication in store.list_active_medications(session, user_id):
                for name in self.config.supported_metrics:
                    result = self.analyze_medication(
                        session, medication, MetricType(name), lookback, now
                    )
                    if result is not None:
                        results.append(result)
            return results

        if db:
            return _analyze_all(db)

        with get_db_context() as session:
            return _analyze_all(session)

    def analyze_medication(
        self,
        session: Session,
        medication: models.Medication,
        metric: MetricType,
        lookback_days: int,
        now: Optional[datetime] = None
    ) -> Optional[CorrelationAnalysis]:
        """Synchronous analysis of a loaded medication"""
        current = now or datetime.utcnow()
        tz = get_zone(store.get_user_timezone(session, medication.user_id, settings.DEFAULT_TIMEZONE))
        today = local_date(current, tz)
        start_day = today - timedelta(days=lookback_days)

        # One spare day each side: a dose can be taken on a different local day than scheduled
        records = store.list_dose_records(
            session,
            medication.user_id,
            medication_id=medication.id,
            start=local_day_start_utc(start_day - timedelta(days=1), tz),
            end=local_day_start_utc(today + timedelta(days=2), tz)
        )
        taken_days = self._taken_days(records, tz)

        samples = store.list_metric_samples(session, medication.user_id, metric, start_day, today)
        x = [1.0 if s.measured_on in taken_days else 0.0 for s in samples]
        y = [float(s.value) for s in samples]
        data_points = len(samples)

        if data_points < self.config.min_correlation_points:
            logger.debug(
                f"Skipping {medication.name} vs {metric.value} for user {medication.user_id}: "
                f"{data_points} paired days"
            )
            return None

        r = calculate_pearson_correlation(x, y)
        direction = determine_impact_direction(r, self.config)
        confidence = determine_confidence(data_points, r, self.config)

        return CorrelationAnalysis(
            user_id=medication.user_id,
            medication_id=medication.id,
            medication_name=medication.name,
            metric=metric,
            correlation_coefficient=r,
            impact_direction=direction,
            confidence_level=confidence,
            data_points=data_points,
            observations=self.build_observations(
                medication.name, metric, r, direction, confidence, x, y
            ),
            sample_period_days=lookback_days
        )

    def build_observations(
        self,
        medication_name: str,
        metric: MetricType,
        r: float,
        direction: ImpactDirection,
        confidence: ConfidenceLevel,
        x: Sequence[float],
        y: Sequence[float]
    ) -> List[str]:
        """Short descriptions of the result; never empty"""
        label = metric.value.replace("_", " ")
        n = len(x)
        observations = []

        strength = describe_strength(r, self.config)
        if strength == "negligible" or direction == ImpactDirection.NONE:
            observations.append(
                f"No meaningful relationship found between {medication_name} and your {label} "
                f"(r = {r:.2f})."
            )
        else:
            observations.append(
                f"{strength.capitalize()} {direction.value} correlation (r = {r:.2f}) "
                f"between taking {medication_name} and your {label}."
            )

        taken_count = int(sum(x))
        observations.append(
            f"{medication_name} was taken on {adherence_percentage(taken_count, n)}% "
            f"of the {n} days with a {label} measurement."
        )

        with_values = [v for taken, v in zip(x, y) if taken]
        without_values = [v for taken, v in zip(x, y) if not taken]
        if with_values and without_values:
            avg_with = calculate_average(with_values)
            avg_without = calculate_average(without_values)
            if avg_without != 0:
                change = (avg_with - avg_without) / abs(avg_without) * 100
                if abs(change) >= self.config.notable_change_percentage:
                    observations.append(
                        f"Average {label} was {avg_with:.1f} on days {medication_name} was taken "
                        f"vs {avg_without:.1f} on other days ({change:+.1f}%)."
                    )

        if n < self.config.medium_confidence_points:
            observations.append(
                f"Limited data ({n} days): confidence is {confidence.value} "
                f"and will improve as more days are recorded."
            )
        elif n >= self.config.high_confidence_points:
            observations.append(f"Based on {n} days of data.")

        return observations

    def _taken_days(self, records: Sequence[models.DoseRecord], tz) -> Set[date]:
        """Local days on which at least one dose was taken"""
        days = set()
        for record in records:
            if DoseStatus(record.status) != DoseStatus.TAKEN:
                continue
            days.add(local_date(record.taken_at or record.scheduled_time, tz))
        return days


# Singleton instance
correlation_service = CorrelationService()
