"""
Date Bucketer Tool
Groups doses into calendar days, ISO weeks, calendar months and
time-of-day periods in the user's local timezone.

All stored instants are naive UTC; bucketing converts them to the user's
zone first so a "day" runs from local midnight to local midnight.
"""

from typing import Dict, Iterable, List, Optional
from dataclasses import dataclass, asdict
from datetime import datetime, date, time, timedelta, timezone
from enum import Enum
from zoneinfo import ZoneInfo

from models import DoseStatus


class TimeOfDay(str, Enum):
    """Time-of-day periods by scheduled hour"""
    MORNING = "morning"        # 05:00 - 11:59
    AFTERNOON = "afternoon"    # 12:00 - 17:59
    EVENING = "evening"        # 18:00 - 23:59
    NIGHT = "night"            # 00:00 - 04:59


TIME_OF_DAY_ORDER = [TimeOfDay.MORNING, TimeOfDay.AFTERNOON, TimeOfDay.EVENING, TimeOfDay.NIGHT]


@dataclass
class Tally:
    """Status counts for a group of doses"""
    taken: int = 0
    missed: int = 0
    skipped: int = 0
    total: int = 0

    def add(self, status: DoseStatus) -> None:
        self.total += 1
        if status == DoseStatus.TAKEN:
            self.taken += 1
        elif status == DoseStatus.MISSED:
            self.missed += 1
        elif status == DoseStatus.SKIPPED:
            self.skipped += 1


@dataclass
class DayBucket:
    """Adherence for one local calendar day"""
    date: date
    taken: int
    missed: int
    skipped: int
    total: int
    percentage: int

    @property
    def has_doses(self) -> bool:
        return self.total > 0

    @property
    def is_fully_adherent(self) -> bool:
        return self.total > 0 and self.taken == self.total

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


@dataclass
class PeriodBucket:
    """Adherence for an ISO week or calendar month"""
    period: str
    start: date
    taken: int
    missed: int
    skipped: int
    total: int
    percentage: int


@dataclass
class TimeOfDayBucket:
    """Adherence for one time-of-day period"""
    pattern: TimeOfDay
    taken: int
    missed: int
    skipped: int
    total: int
    missed_percentage: int


# ==================== TIME HELPERS ====================

def get_zone(name: Optional[str]) -> ZoneInfo:
    return ZoneInfo(name or "UTC")


def to_local(instant: datetime, tz: ZoneInfo) -> datetime:
    """Convert a naive UTC instant to the user's local time"""
    return instant.replace(tzinfo=timezone.utc).astimezone(tz)


def local_date(instant: datetime, tz: ZoneInfo) -> date:
    return to_local(instant, tz).date()


def local_datetime_to_utc(local: datetime, tz: ZoneInfo) -> datetime:
    """Convert a naive local wall-clock time to a naive UTC instant"""
    return local.replace(tzinfo=tz).astimezone(timezone.utc).replace(tzinfo=None)


def local_day_start_utc(day: date, tz: ZoneInfo) -> datetime:
    """Naive UTC instant of local midnight starting the given day"""
    return local_datetime_to_utc(datetime.combine(day, time.min), tz)


def clamp_days(days: Optional[int], default: int, maximum: int) -> int:
    """Window length in [1, maximum]; None means default"""
    if days is None:
        days = default
    return max(1, min(int(days), maximum))


def adherence_percentage(taken: int, total: int, empty_value: int = 0) -> int:
    """taken / total as a whole percentage (halves round up), or empty_value when nothing was scheduled"""
    if total <= 0:
        return empty_value
    return (200 * taken + total) // (2 * total)


def classify_time_of_day(hour: int) -> TimeOfDay:
    """Map an hour (0-23) to its time-of-day period"""
    if 5 <= hour < 12:
        return TimeOfDay.MORNING
    if 12 <= hour < 18:
        return TimeOfDay.AFTERNOON
    if 18 <= hour < 24:
        return TimeOfDay.EVENING
    return TimeOfDay.NIGHT


def iso_week_key(day: date) -> str:
    year, week, _ = day.isocalendar()
    return f"{year}-W{week:02d}"


def month_key(day: date) -> str:
    return f"{day.year}-{day.month:02d}"


# ==================== BUCKETING ====================

def tally(doses: Iterable) -> Tally:
    """Count statuses for a group of doses"""
    result = Tally()
    for dose in doses:
        result.add(dose.status)
    return result


def bucket_by_day(
    doses: Iterable,
    start: date,
    end: date,
    tz: ZoneInfo
) -> List[DayBucket]:
    """
    One bucket per local day in [start, end), oldest first.

    Days without doses are present with total 0 and percentage 0.
    """
    tallies: Dict[date, Tally] = {}
    day = start
    while day < end:
        tallies[day] = Tally()
        day += timedelta(days=1)

    for dose in doses:
        day = local_date(dose.scheduled_time, tz)
        if day in tallies:
            tallies[day].add(dose.status)

    return [
        DayBucket(
            date=day,
            taken=t.taken,
            missed=t.missed,
            skipped=t.skipped,
            total=t.total,
            percentage=adherence_percentage(t.taken, t.total)
        )
        for day, t in tallies.items()
    ]


def _bucket_by_period(doses: Iterable, tz: ZoneInfo, key_func, start_func) -> List[PeriodBucket]:
    tallies: Dict[str, Tally] = {}
    starts: Dict[str, date] = {}

    for dose in doses:
        day = local_date(dose.scheduled_time, tz)
        key = key_func(day)
        if key not in tallies:
            tallies[key] = Tally()
            starts[key] = start_func(day)
        tallies[key].add(dose.status)

    return [
        PeriodBucket(
            period=key,
            start=starts[key],
            taken=tallies[key].taken,
            missed=tallies[key].missed,
            skipped=tallies[key].skipped,
            total=tallies[key].total,
            percentage=adherence_percentage(tallies[key].taken, tallies[key].total)
        )
        for key in sorted(tallies, key=lambda k: starts[k])
    ]


def bucket_by_iso_week(doses: Iterable, tz: ZoneInfo) -> List[PeriodBucket]:
    """Buckets keyed "YYYY-Www", oldest first; weeks start on Monday"""
    return _bucket_by_period(
        doses, tz, iso_week_key, lambda d: d - timedelta(days=d.weekday())
    )


def bucket_by_month(doses: Iterable, tz: ZoneInfo) -> List[PeriodBucket]:
    """Buckets keyed "YYYY-MM", oldest first"""
    return _bucket_by_period(doses, tz, month_key, lambda d: d.replace(day=1))


def bucket_by_time_of_day(doses: Iterable, tz: ZoneInfo) -> List[TimeOfDayBucket]:
    """
    Tally doses per time-of-day period of their local scheduled hour.

    Only periods with at least one dose are returned, highest missed
    percentage first.
    """
    tallies = {pattern: Tally() for pattern in TIME_OF_DAY_ORDER}
    for dose in doses:
        hour = to_local(dose.scheduled_time, tz).hour
        tallies[classify_time_of_day(hour)].add(dose.status)

    buckets = [
        TimeOfDayBucket(
            pattern=pattern,
            taken=t.taken,
            missed=t.missed,
            skipped=t.skipped,
            total=t.total,
            missed_percentage=adherence_percentage(t.missed, t.total)
        )
        for pattern, t in tallies.items()
        if t.total > 0
    ]
    buckets.sort(key=lambda b: b.missed_percentage, reverse=True)
    return buckets
