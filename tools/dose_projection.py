"""
Dose Projection Tool
Read-time view of dose records used by the aggregation engines.

Stored rows are never modified here: a past "pending" dose is reported as
missed, and a scheduled slot with no stored row can be reported as missed too.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional
from dataclasses import dataclass
from datetime import datetime, date, timedelta
from zoneinfo import ZoneInfo

from models import DoseStatus
from tools.date_bucketer import local_date, local_datetime_to_utc


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DoseView:
    """A dose as seen by the aggregators"""
    medication_id: int
    scheduled_time: datetime  # naive UTC
    status: DoseStatus
    taken_at: Optional[datetime] = None
    derived: bool = False


def project_dose_record(record, now: datetime) -> Optional[DoseView]:
    """
    Project one stored record.

    Returns None for a pending dose that is not due yet.
    """
    status = DoseStatus(record.status)
    derived = False

    if status == DoseStatus.PENDING:
        if record.scheduled_time >= now:
            return None
        status = DoseStatus.MISSED
        derived = True

    return DoseView(
        medication_id=record.medication_id,
        scheduled_time=record.scheduled_time,
        status=status,
        taken_at=record.taken_at if status == DoseStatus.TAKEN else None,
        derived=derived
    )


def project_dose_records(records: Iterable, now: datetime) -> List[DoseView]:
    """Project stored records, dropping doses that are not due yet"""
    views = []
    for record in records:
        view = project_dose_record(record, now)
        if view is not None:
            views.append(view)
    return views


def _uncovered_slots(slots: List[datetime], logged: List[datetime]) -> List[datetime]:
    """
    Slots of one day left over once each logged dose has claimed one

    A logged time equal to a slot claims it; any other logged time claims
    the nearest slot still open.
    """
    remaining = list(slots)
    off_grid = []
    for scheduled in logged:
        if scheduled in remaining:
            remaining.remove(scheduled)
        else:
            off_grid.append(scheduled)

    for scheduled in sorted(off_grid):
        if not remaining:
            break
        nearest = min(remaining, key=lambda slot: abs(slot - scheduled))
        remaining.remove(nearest)

    return remaining


def materialize_unlogged_doses(
    medication,
    records: Iterable,
    start_day: date,
    end_day: date,
    now: datetime,
    tz: ZoneInfo
) -> List[DoseView]:
    """
    Expected doses with no stored record whose time has already passed

    Stored records are matched to the slots of their local day, so a dose
    logged at 09:00 against an 08:00 slot covers that slot.

    Args:
        medication: Medication with a schedule, start_date and end_date
        records: Stored dose records of that medication
        start_day: First local day to inspect (inclusive)
        end_day: Last local day to inspect (inclusive)
        now: Current instant, naive UTC
        tz: User timezone

    Returns:
        DoseView objects with status MISSED, one per unlogged past slot
    """
    logged_by_day: Dict[date, List[datetime]] = defaultdict(list)
    for record in records:
        if record.medication_id == medication.id:
            logged_by_day[local_date(record.scheduled_time, tz)].append(record.scheduled_time)
    schedule = medication.schedule

    first = start_day
    if medication.start_date and medication.start_date > first:
        first = medication.start_date
    last = end_day
    if medication.end_date and medication.end_date < last:
        last = medication.end_date

    missed = []
    day = first
    while day <= last:
        slots = [
            local_datetime_to_utc(datetime.combine(day, clock), tz)
            for clock in schedule.dose_times_on(day)
        ]
        for scheduled in _uncovered_slots(slots, logged_by_day.get(day, [])):
            if scheduled >= now:
                continue
            missed.append(DoseView(
                medication_id=medication.id,
                scheduled_time=scheduled,
                status=DoseStatus.MISSED,
                derived=True
            ))
        day += timedelta(days=1)

    if missed:
        logger.debug(
            f"Derived {len(missed)} unlogged missed doses for medication {medication.id}"
        )
    return missed
