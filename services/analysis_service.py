"""
Analysis Service
Batch correlation analysis and the persisted results it produces
"""

import logging
from typing import List, Optional
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import desc

from database import get_db_context
import models
from models import MetricType
from schemas.correlation import CorrelationAnalysis, CorrelationInsight
from services import store
from services.correlation_service import CorrelationService, correlation_service as default_correlation_service


logger = logging.getLogger(__name__)


MAX_CORRELATION_INSIGHTS = 50


class AnalysisService:
    """
    Service for persisting correlation analysis

    Each run upserts one row per (user, medication, metric). Rows are never
    deleted by a run; a pair that falls below the minimum sample keeps its
    last stored result.
    """

    def __init__(self, correlation: Optional[CorrelationService] = None):
        self.correlation_service = correlation or default_correlation_service

    async def run_correlation_analysis(
        self,
        user_id: int,
        lookback_days: Optional[int] = None,
        db: Optional[Session] = None,
        now: Optional[datetime] = None
    ) -> List[CorrelationAnalysis]:
        """
        Analyze all active medications of a user and store the results

        Args:
            user_id: User ID
            lookback_days: Trailing days to analyze (default 90)
            db: Database session
            now: Current instant, naive UTC; also the write timestamp

        Returns:
            The results that were stored
        """
        async def _run(session: Session) -> List[CorrelationAnalysis]:
            results = await self.correlation_service.analyze_all_medication_correlations(
                user_id, lookback_days, db=session, now=now
            )

            if not results:
                logger.info(f"No correlations with enough data for user {user_id}")
                return results

            written_at = now or datetime.utcnow()
            for result in results:
                store.upsert_correlation_result(
                    session,
                    key={
                        "user_id": result.user_id,
                        "medication_id": result.medication_id,
                        "metric": MetricType(result.metric),
                    },
                    value={
                        "correlation_coefficient": result.correlation_coefficient,
                        "impact_direction": result.impact_direction,
                        "data_points": result.data_points,
                        "confidence_level": result.confidence_level,
                        "observations": list(result.observations),
                        "sample_period_days": result.sample_period_days,
                    },
                    now=written_at
                )
            session.commit()

            logger.info(f"Saved {len(results)} correlation results for user {user_id}")
            return results

        if db:
            return await _run(db)

        with get_db_context() as session:
            return await _run(session)

    async def get_correlation_insights(
        self,
        user_id: int,
        db: Optional[Session] = None
    ) -> List[CorrelationInsight]:
        """Stored results for a user, strongest positive first, with medication names"""
        def _get(session: Session) -> List[CorrelationInsight]:
            rows = session.query(models.CorrelationResult).filter(
                models.CorrelationResult.user_id == user_id
            ).order_by(
                desc(models.CorrelationResult.correlation_coefficient)
            ).limit(MAX_CORRELATION_INSIGHTS).all()

            insights = []
            for row in rows:
                insight = CorrelationInsight.model_validate(row)
                insight.medication_name = row.medication.name if row.medication else None
                insights.append(insight)
            return insights

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)


# Singleton instance
analysis_service = AnalysisService()
