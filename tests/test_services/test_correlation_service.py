"""
Tests for Correlation Service
Tests pairing dose days with metric samples and the resulting analysis
"""

import pytest
from datetime import datetime, timedelta

from config import AnalyticsConfig
from models import ConfidenceLevel, DoseStatus, ImpactDirection, MetricType
from services.correlation_service import CorrelationService


@pytest.fixture
def service():
    return CorrelationService()


class TestSupportedMetrics:
    """Tests for metric support checks"""

    def test_weight_supported(self, service):
        assert service.supports(MetricType.WEIGHT)
        assert service.supports("weight")

    def test_known_but_unsupported(self, service):
        assert not service.supports(MetricType.MOOD)

    def test_unknown_name(self, service):
        assert not service.supports("cholesterol")

    @pytest.mark.asyncio
    async def test_unsupported_metric_returns_none(self, service, db_session, test_user, test_medication, now):
        result = await service.analyze_medication_metric_correlation(
            test_user.id, test_medication.id, "mood", db=db_session, now=now
        )
        assert result is None


class TestMedicationMetricCorrelation:
    """Tests for analyzing a single medication"""

    @pytest.mark.asyncio
    async def test_lower_weight_on_taken_days(self, service, db_session, test_user, test_medication, correlated_history, now):
        result = await service.analyze_medication_metric_correlation(
            test_user.id, test_medication.id, MetricType.WEIGHT, db=db_session, now=now
        )

        assert result is not None
        assert result.data_points == correlated_history
        assert result.impact_direction == ImpactDirection.NEGATIVE
        assert result.confidence_level == ConfidenceLevel.HIGH
        assert result.correlation_coefficient < -0.9
        assert result.medication_name == "Metformin"
        assert result.sample_period_days == 90

    @pytest.mark.asyncio
    async def test_observations(self, service, db_session, test_user, test_medication, correlated_history, now):
        result = await service.analyze_medication_metric_correlation(
            test_user.id, test_medication.id, MetricType.WEIGHT, db=db_session, now=now
        )

        assert result.observations[0].startswith("Strong negative correlation")
        assert any("50%" in o for o in result.observations)
        assert result.observations[-1] == "Based on 40 days of data."

    @pytest.mark.asyncio
    async def test_lookback_limits_samples(self, service, db_session, test_user, test_medication, correlated_history, now):
        result = await service.analyze_medication_metric_correlation(
            test_user.id, test_medication.id, MetricType.WEIGHT, lookback_days=20, db=db_session, now=now
        )

        # Both ends of the lookback are inclusive
        assert result.data_points == 21
        assert result.sample_period_days == 20
        assert result.confidence_level == ConfidenceLevel.MEDIUM

    @pytest.mark.asyncio
    async def test_too_few_points(self, service, db_session, test_user, test_medication, make_dose, make_metric, today, now):
        for offset in range(9):
            day = today - timedelta(days=offset)
            make_dose(test_medication, datetime(day.year, day.month, day.day, 8))
            make_metric(test_user, day, 80.0 + offset)

        result = await service.analyze_medication_metric_correlation(
            test_user.id, test_medication.id, MetricType.WEIGHT, db=db_session, now=now
        )
        assert result is None

    @pytest.mark.asyncio
    async def test_minimum_is_configurable(self, db_session, test_user, test_medication, make_dose, make_metric, today, now):
        service = CorrelationService(AnalyticsConfig(min_correlation_points=4))
        for offset in range(4):
            day = today - timedelta(days=offset)
            status = DoseStatus.TAKEN if offset % 2 else DoseStatus.MISSED
            make_dose(test_medication, datetime(day.year, day.month, day.day, 8), status)
            make_metric(test_user, day, 80.0 + offset % 2)

        result = await service.analyze_medication_metric_correlation(
            test_user.id, test_medication.id, MetricType.WEIGHT, db=db_session, now=now
        )

        assert result.correlation_coefficient == pytest.approx(1.0)
        assert result.confidence_level == ConfidenceLevel.LOW
        assert result.observations[-1].startswith("Limited data (4 days)")

    @pytest.mark.asyncio
    async def test_days_without_metric_are_not_paired(self, service, db_session, test_user, test_medication, make_dose, make_metric, today, now):
        for offset in range(20):
            day = today - timedelta(days=offset)
            make_dose(test_medication, datetime(day.year, day.month, day.day, 8))
            if offset % 2 == 0:
                make_metric(test_user, day, 80.0 + offset % 3)

        result = await service.analyze_medication_metric_correlation(
            test_user.id, test_medication.id, MetricType.WEIGHT, db=db_session, now=now
        )
        assert result.data_points == 10

    @pytest.mark.asyncio
    async def test_always_taken_is_no_relationship(self, service, db_session, test_user, test_medication, make_dose, make_metric, today, now):
        for offset in range(12):
            day = today - timedelta(days=offset)
            make_dose(test_medication, datetime(day.year, day.month, day.day, 8))
            make_metric(test_user, day, 80.0 - offset * 0.2)

        result = await service.analyze_medication_metric_correlation(
            test_user.id, test_medication.id, MetricType.WEIGHT, db=db_session, now=now
        )

        assert result.correlation_coefficient == 0.0
        assert result.impact_direction == ImpactDirection.NONE
        assert result.observations[0].startswith("No meaningful relationship")

    @pytest.mark.asyncio
    async def test_taken_day_follows_local_time(self, service, db_session, test_user, test_medication, make_dose, make_metric, today, now):
        """A 23:30 UTC dose counts for the next day in Tokyo"""
        test_user.timezone = "Asia/Tokyo"
        db_session.commit()

        for offset in range(1, 13):
            day = today - timedelta(days=offset)
            make_metric(test_user, day, 80.0 if offset % 2 else 82.0)
            if offset % 2:
                previous = day - timedelta(days=1)
                make_dose(test_medication, datetime(previous.year, previous.month, previous.day, 23, 30))

        result = await service.analyze_medication_metric_correlation(
            test_user.id, test_medication.id, MetricType.WEIGHT, db=db_session, now=now
        )

        assert result.correlation_coefficient == pytest.approx(-1.0)

    @pytest.mark.asyncio
    async def test_coefficient_within_bounds(self, service, db_session, test_user, test_medication, make_dose, make_metric, today, now):
        for offset in range(30):
            day = today - timedelta(days=offset)
            status = DoseStatus.TAKEN if offset % 3 else DoseStatus.SKIPPED
            make_dose(test_medication, datetime(day.year, day.month, day.day, 8), status)
            make_metric(test_user, day, 75.0 + (offset * 7) % 11)

        result = await service.analyze_medication_metric_correlation(
            test_user.id, test_medication.id, MetricType.WEIGHT, db=db_session, now=now
        )

        assert -1.0 <= result.correlation_coefficient <= 1.0

    @pytest.mark.asyncio
    async def test_unknown_medication(self, service, db_session, test_user, now):
        result = await service.analyze_medication_metric_correlation(
            test_user.id, 9999, MetricType.WEIGHT, db=db_session, now=now
        )
        assert result is None

    @pytest.mark.asyncio
    async def test_other_users_medication(self, service, db_session, other_user, test_medication, correlated_history, now):
        result = await service.analyze_medication_metric_correlation(
            other_user.id, test_medication.id, MetricType.WEIGHT, db=db_session, now=now
        )
        assert result is None


class TestAllMedicationCorrelations:
    """Tests for analyzing every active medication"""

    @pytest.mark.asyncio
    async def test_every_medication_paired_with_user_metrics(
        self, service, db_session, test_user, make_medication, correlated_history, now
    ):
        make_medication(test_user, "Vitamin D")

        results = await service.analyze_all_medication_correlations(test_user.id, db=db_session, now=now)

        # Vitamin D is never logged, so its taken series is constant
        assert {r.medication_name for r in results} == {"Metformin", "Vitamin D"}
        vitamin = next(r for r in results if r.medication_name == "Vitamin D")
        assert vitamin.impact_direction == ImpactDirection.NONE

    @pytest.mark.asyncio
    async def test_no_metric_samples(self, service, db_session, test_user, test_medication, make_daily_doses, now):
        make_daily_doses(test_medication, [DoseStatus.TAKEN] * 20)

        results = await service.analyze_all_medication_correlations(test_user.id, db=db_session, now=now)
        assert results == []

    @pytest.mark.asyncio
    async def test_inactive_medications_skipped(
        self, service, db_session, test_user, test_medication, correlated_history, now
    ):
        test_medication.is_active = False
        db_session.commit()

        results = await service.analyze_all_medication_correlations(test_user.id, db=db_session, now=now)
        assert results == []
