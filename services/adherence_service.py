"""
Adherence Service
Aggregates dose history into adherence series, streaks, per-medication
breakdowns and insights
"""

import logging
from typing import Dict, List, Optional
from datetime import datetime, date, timedelta
from zoneinfo import ZoneInfo
from sqlalchemy.orm import Session

from database import get_db_context
from config import AnalyticsConfig, analytics_config, settings
import models
from actions.insights_engine import InsightsEngine
from schemas.adherence import (
    AdherenceOverview,
    AdherenceStreak,
    AdherenceTally,
    DailyAdherence,
    MedicationAdherence,
    MedicationAdherenceDetail,
    MedicationSummary,
    OverallStats,
    PeriodAdherence,
    TimePattern
)
from services import store
from tools.date_bucketer import (
    adherence_percentage,
    bucket_by_day,
    bucket_by_iso_week,
    bucket_by_month,
    bucket_by_time_of_day,
    clamp_days,
    get_zone,
    local_date,
    local_day_start_utc,
    tally
)
from tools.dose_projection import DoseView, materialize_unlogged_doses, project_dose_records
from tools.streak_calculator import calculate_streak


logger = logging.getLogger(__name__)


WEEK_DAYS = 7
MONTH_DAYS = 30


class AdherenceService:
    """
    Service for adherence aggregation

    Reads only; stored dose records are projected at read time (past pending
    doses and unlogged past schedule slots count as missed) and never
    modified.
    """

    def __init__(
        self,
        config: Optional[AnalyticsConfig] = None,
        engine: Optional[InsightsEngine] = None
    ):
        self.config = config or analytics_config
        self.insights_engine = engine or InsightsEngine(self.config)

    async def get_adherence_overview(
        self,
        user_id: int,
        window_days: Optional[int] = None,
        db: Optional[Session] = None,
        now: Optional[datetime] = None
    ) -> AdherenceOverview:
        """
        Compute the adherence overview for a user

        Args:
            user_id: User ID
            window_days: Trailing days covered before today (default 30);
                the daily series spans [today - window_days, today]
            db: Database session
            now: Current instant, naive UTC

        Returns:
            AdherenceOverview with insights
        """
        window = clamp_days(window_days, settings.DEFAULT_WINDOW_DAYS, settings.MAX_WINDOW_DAYS)

        def _get(session: Session) -> AdherenceOverview:
            current = now or datetime.utcnow()
            tz = self._user_zone(session, user_id)
            today = local_date(current, tz)
            window_start = today - timedelta(days=window)

            medications = store.list_active_medications(session, user_id)
            # Full history: all_time is not limited by the window
            records = store.list_dose_records(session, user_id)
            doses_by_medication = self._collect_doses(medications, records, today, current, tz)
            doses = [d for med_doses in doses_by_medication.values() for d in med_doses]

            day_buckets = bucket_by_day(doses, window_start, today + timedelta(days=1), tz)
            window_doses = self._between(doses, window_start, today, tz)
            streak = calculate_streak(day_buckets)

            per_medication = [
                self._medication_adherence(
                    med, self._between(doses_by_medication[med.id], window_start, today, tz), tz
                )
                for med in medications
            ]
            # Lowest first to surface problem medications
            per_medication.sort(key=lambda m: m.percentage)

            overview = AdherenceOverview(
                user_id=user_id,
                window_days=window,
                daily_series=[DailyAdherence.model_validate(b) for b in day_buckets],
                weekly_series=self._daily_series(
                    doses, today - timedelta(days=WEEK_DAYS - 1), today, tz
                ),
                monthly_series=self._daily_series(
                    doses, today - timedelta(days=min(window, MONTH_DAYS) - 1), today, tz
                ),
                weekly_totals=[
                    PeriodAdherence.model_validate(b) for b in bucket_by_iso_week(window_doses, tz)
                ],
                monthly_totals=[
                    PeriodAdherence.model_validate(b) for b in bucket_by_month(window_doses, tz)
                ],
                per_medication=per_medication,
                streak=AdherenceStreak(
                    current=streak.current,
                    longest=streak.longest,
                    last_perfect_day=streak.last_perfect_day
                ),
                overall_stats=OverallStats(
                    this_week=self._tally(
                        self._between(doses, today - timedelta(days=WEEK_DAYS - 1), today, tz)
                    ),
                    this_month=self._tally(
                        self._between(doses, today - timedelta(days=MONTH_DAYS - 1), today, tz)
                    ),
                    all_time=self._tally(doses)
                )
            )
            overview.insights = self.insights_engine.generate(overview)

            logger.debug(
                f"Adherence overview for user {user_id}: {len(window_doses)} doses "
                f"in {window} days, {len(overview.insights)} insights"
            )
            return overview

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_medication_adherence(
        self,
        user_id: int,
        medication_id: int,
        window_days: Optional[int] = None,
        db: Optional[Session] = None,
        now: Optional[datetime] = None
    ) -> MedicationAdherenceDetail:
        """
        Adherence detail for one medication

        Returns a detail with medication and stats set to None when the
        medication does not exist or belongs to another user.
        """
        window = clamp_days(window_days, settings.DEFAULT_WINDOW_DAYS, settings.MAX_WINDOW_DAYS)

        def _get(session: Session) -> MedicationAdherenceDetail:
            medication = store.get_user_medication(session, user_id, medication_id)
            if not medication:
                return MedicationAdherenceDetail()

            current = now or datetime.utcnow()
            tz = self._user_zone(session, user_id)
            today = local_date(current, tz)
            window_start = today - timedelta(days=window)

            records = store.list_dose_records(
                session,
                user_id,
                medication_id=medication.id,
                start=local_day_start_utc(window_start, tz),
                end=local_day_start_utc(today + timedelta(days=1), tz)
            )
            doses = self._collect_doses(
                [medication], records, today, current, tz, since=window_start
            )[medication.id]

            stats = self._medication_adherence(medication, doses, tz)
            return MedicationAdherenceDetail(
                medication=MedicationSummary.model_validate(medication),
                daily_series=self._daily_series(doses, window_start, today, tz),
                stats=stats,
                time_patterns=stats.time_patterns
            )

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    # ==================== HELPERS ====================

    def _user_zone(self, session: Session, user_id: int) -> ZoneInfo:
        return get_zone(store.get_user_timezone(session, user_id, settings.DEFAULT_TIMEZONE))

    def _collect_doses(
        self,
        medications: List[models.Medication],
        records: List[models.DoseRecord],
        today: date,
        now: datetime,
        tz: ZoneInfo,
        since: Optional[date] = None
    ) -> Dict[int, List[DoseView]]:
        """
        Projected doses per medication, including derived unlogged misses

        Unlogged slots are derived from the medication's start date, or from
        `since` when the records only cover a window starting that day.
        """
        by_medication: Dict[int, List] = {med.id: [] for med in medications}
        for record in records:
            if record.medication_id in by_medication:
                by_medication[record.medication_id].append(record)

        doses: Dict[int, List[DoseView]] = {}
        for med in medications:
            med_records = by_medication[med.id]
            views = project_dose_records(med_records, now)

            if self.config.derive_unlogged_missed:
                first_day = med.start_date
                if first_day is None and med.created_at:
                    first_day = local_date(med.created_at, tz)
                if first_day is None or (since and first_day < since):
                    first_day = since or today
                views.extend(
                    materialize_unlogged_doses(med, med_records, first_day, today, now, tz)
                )

            views.sort(key=lambda v: v.scheduled_time)
            doses[med.id] = views

        return doses

    def _between(self, doses: List[DoseView], first: date, last: date, tz: ZoneInfo) -> List[DoseView]:
        """Doses whose local scheduled day falls in [first, last]"""
        return [d for d in doses if first <= local_date(d.scheduled_time, tz) <= last]

    def _daily_series(
        self,
        doses: List[DoseView],
        first: date,
        last: date,
        tz: ZoneInfo
    ) -> List[DailyAdherence]:
        return [
            DailyAdherence.model_validate(bucket)
            for bucket in bucket_by_day(doses, first, last + timedelta(days=1), tz)
        ]

    def _tally(self, doses: List[DoseView]) -> AdherenceTally:
        counts = tally(doses)
        return AdherenceTally(
            taken=counts.taken,
            total=counts.total,
            percentage=adherence_percentage(
                counts.taken, counts.total, self.config.zero_schedule_percentage
            )
        )

    def _medication_adherence(
        self,
        medication: models.Medication,
        doses: List[DoseView],
        tz: ZoneInfo
    ) -> MedicationAdherence:
        counts = tally(doses)
        return MedicationAdherence(
            medication_id=medication.id,
            medication_name=medication.name,
            taken=counts.taken,
            missed=counts.missed,
            skipped=counts.skipped,
            total=counts.total,
            percentage=adherence_percentage(
                counts.taken, counts.total, self.config.zero_schedule_percentage
            ),
            time_patterns=[
                TimePattern(
                    pattern=bucket.pattern.value,
                    taken=bucket.taken,
                    missed=bucket.missed,
                    total=bucket.total,
                    missed_percentage=bucket.missed_percentage
                )
                for bucket in bucket_by_time_of_day(doses, tz)
            ]
        )


# Singleton instance
adherence_service = AdherenceService()
