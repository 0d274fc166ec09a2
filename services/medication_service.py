"""
Medication Service
Business logic for medication management and dose logging
"""

import logging
from typing import Dict, List, Optional, Any, Sequence
from datetime import datetime, date, timedelta
from sqlalchemy.orm import Session

from database import get_db_context, upsert
from config import settings
import models
from models import DoseStatus, MedicationType, MetricType
from services import store
from tools.date_bucketer import get_zone, local_date, local_datetime_to_utc
from tools.dose_schedule import build_schedule


logger = logging.getLogger(__name__)


class MedicationService:
    """
    Service for medication-related operations
    """

    async def add_medication(
        self,
        user_id: int,
        name: str,
        dosage_amount: float = 1,
        dosage_unit: str = "tablets",
        dosage_form: str = "tablet",
        medication_type: MedicationType = MedicationType.PRESCRIPTION,
        times_per_day: int = 1,
        specific_times: Optional[Sequence[str]] = None,
        days_of_week: Optional[Sequence[int]] = None,
        with_food: bool = False,
        notes: Optional[str] = None,
        affects_metrics: Optional[Sequence[str]] = None,
        start_date: Optional[date] = None,
        db: Optional[Session] = None,
        now: Optional[datetime] = None
    ) -> models.Medication:
        """
        Add a new medication for a user

        Args:
            user_id: User ID
            name: Medication name (unique per user)
            dosage_amount: Amount per dose
            dosage_unit: Unit of the amount (e.g., "mg")
            dosage_form: Form (e.g., "tablet")
            medication_type: Prescription, supplement or OTC
            times_per_day: Number of daily doses
            specific_times: Explicit "HH:MM" dose times
            days_of_week: Weekdays taken (Monday=0); empty means every day
            with_food: Whether to take with food
            notes: Free-text notes
            affects_metrics: Metric names this medication may influence
            start_date: First day of the schedule (default: the user's today)
            db: Database session
            now: Current instant, naive UTC

        Returns:
            Created Medication object
        """
        # Validates the frequency settings before anything is written
        build_schedule(times_per_day, specific_times, days_of_week)

        def _add(session: Session) -> models.Medication:
            user = session.query(models.User).filter(
                models.User.id == user_id
            ).first()

            if not user:
                raise ValueError(f"User {user_id} not found")

            tz = get_zone(user.timezone or settings.DEFAULT_TIMEZONE)

            medication = models.Medication(
                user_id=user_id,
                name=name.strip(),
                medication_type=medication_type,
                dosage_amount=dosage_amount,
                dosage_unit=dosage_unit,
                dosage_form=dosage_form,
                times_per_day=times_per_day,
                specific_times=list(specific_times or []),
                days_of_week=list(days_of_week or []),
                with_food=with_food,
                notes=notes,
                affects_metrics=[MetricType(m).value for m in (affects_metrics or [])],
                start_date=start_date or local_date(now or datetime.utcnow(), tz),
                is_active=True
            )

            session.add(medication)
            session.commit()
            session.refresh(medication)

            logger.info(f"Added medication {medication.name} for user {user_id}")
            return medication

        if db:
            return _add(db)

        with get_db_context() as session:
            return _add(session)

    async def get_medication(
        self,
        user_id: int,
        medication_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.Medication]:
        """Get a medication owned by the user"""
        def _get(session: Session) -> Optional[models.Medication]:
            return store.get_user_medication(session, user_id, medication_id)

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_user_medications(
        self,
        user_id: int,
        active_only: bool = True,
        db: Optional[Session] = None
    ) -> List[models.Medication]:
        """Get all medications for a user"""
        def _get(session: Session) -> List[models.Medication]:
            if active_only:
                return store.list_active_medications(session, user_id)

            return session.query(models.Medication).filter(
                models.Medication.user_id == user_id
            ).order_by(models.Medication.id).all()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def deactivate_medication(
        self,
        user_id: int,
        medication_id: int,
        db: Optional[Session] = None,
        now: Optional[datetime] = None
    ) -> bool:
        """Soft delete: mark inactive and end-date the user's today. Returns False when not found."""
        def _deactivate(session: Session) -> bool:
            medication = store.get_user_medication(session, user_id, medication_id)
            if not medication:
                return False

            tz = get_zone(store.get_user_timezone(session, user_id, settings.DEFAULT_TIMEZONE))
            medication.is_active = False
            medication.end_date = local_date(now or datetime.utcnow(), tz)
            session.commit()

            logger.info(f"Deactivated medication {medication_id} for user {user_id}")
            return True

        if db:
            return _deactivate(db)

        with get_db_context() as session:
            return _deactivate(session)

    async def delete_medication(
        self,
        user_id: int,
        medication_id: int,
        db: Optional[Session] = None
    ) -> bool:
        """Permanently delete a medication with its dose records and correlation results"""
        def _delete(session: Session) -> bool:
            medication = store.get_user_medication(session, user_id, medication_id)
            if not medication:
                return False

            # Dose records and correlation results go with it (ON DELETE CASCADE)
            session.delete(medication)
            session.commit()

            logger.info(f"Deleted medication {medication_id} for user {user_id}")
            return True

        if db:
            return _delete(db)

        with get_db_context() as session:
            return _delete(session)

    async def log_dose(
        self,
        user_id: int,
        medication_id: int,
        scheduled_time: datetime,
        status: DoseStatus,
        taken_at: Optional[datetime] = None,
        notes: Optional[str] = None,
        db: Optional[Session] = None
    ) -> models.DoseRecord:
        """
        Record the outcome of a scheduled dose

        Logging the same (medication, scheduled_time) again updates the
        existing record instead of creating a second one.

        Args:
            user_id: User ID
            medication_id: Medication ID
            scheduled_time: Scheduled instant (naive UTC)
            status: Dose status
            taken_at: When the dose was taken; defaults to now for TAKEN
            notes: Additional notes
            db: Database session

        Returns:
            The stored DoseRecord
        """
        status = DoseStatus(status)

        def _log(session: Session) -> models.DoseRecord:
            medication = store.get_user_medication(session, user_id, medication_id)
            if not medication:
                raise ValueError(f"Medication {medication_id} not found for user {user_id}")

            now = datetime.utcnow()
            values = {
                "user_id": user_id,
                "medication_id": medication_id,
                "scheduled_time": scheduled_time,
                "status": status,
                "taken_at": (taken_at or now) if status == DoseStatus.TAKEN else None,
                "notes": notes,
                "created_at": now,
                "updated_at": now,
            }
            upsert(
                session,
                models.DoseRecord,
                values,
                conflict_columns=("medication_id", "scheduled_time"),
                update_columns=("status", "taken_at", "notes", "updated_at")
            )
            session.commit()

            record = session.query(models.DoseRecord).filter(
                models.DoseRecord.medication_id == medication_id,
                models.DoseRecord.scheduled_time == scheduled_time
            ).one()
            session.refresh(record)

            logger.info(
                f"Logged dose for user {user_id}, "
                f"medication {medication_id}: {status.value}"
            )
            return record

        if db:
            return _log(db)

        with get_db_context() as session:
            return _log(session)

    async def get_dose_records(
        self,
        user_id: int,
        medication_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> List[models.DoseRecord]:
        """Get stored dose records, oldest first"""
        def _get(session: Session) -> List[models.DoseRecord]:
            return store.list_dose_records(session, user_id, medication_id, start, end)

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_todays_doses(
        self,
        user_id: int,
        db: Optional[Session] = None,
        now: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """
        Today's expected doses for every active medication

        Each dose carries its stored status; an unlogged dose whose time has
        passed is reported as missed, otherwise pending.
        """
        def _get(session: Session) -> List[Dict[str, Any]]:
            current = now or datetime.utcnow()
            tz = get_zone(store.get_user_timezone(session, user_id, settings.DEFAULT_TIMEZONE))
            today = local_date(current, tz)
            day_start = local_datetime_to_utc(datetime.combine(today, datetime.min.time()), tz)
            day_end = local_datetime_to_utc(
                datetime.combine(today + timedelta(days=1), datetime.min.time()), tz
            )

            result = []
            for medication in store.list_active_medications(session, user_id):
                schedule = medication.schedule
                if not schedule.applies_on(today):
                    continue

                records = {
                    r.scheduled_time: r
                    for r in store.list_dose_records(
                        session, user_id, medication.id, day_start, day_end
                    )
                }

                doses = []
                for clock in schedule.dose_times_on(today):
                    scheduled = local_datetime_to_utc(datetime.combine(today, clock), tz)
                    record = records.get(scheduled)

                    if record and record.status != DoseStatus.PENDING:
                        status = DoseStatus(record.status)
                    elif scheduled < current:
                        status = DoseStatus.MISSED
                    else:
                        status = DoseStatus.PENDING

                    doses.append({
                        "scheduled_time": scheduled.isoformat(),
                        "local_time": clock.strftime("%H:%M"),
                        "status": status.value,
                        "record_id": record.id if record else None,
                        "taken_at": record.taken_at.isoformat() if record and record.taken_at else None
                    })

                result.append({
                    "medication_id": medication.id,
                    "medication_name": medication.name,
                    "doses": doses
                })

            return result

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)


# Singleton instance
medication_service = MedicationService()
