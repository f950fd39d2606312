# salon_scheduler/core.py

"""
Interval conflict checking and wall-clock helpers.

All scheduling datetimes are naive values in the salon's configured
timezone. Intervals are half-open: [start, end).
"""
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from salon_scheduler.config import settings

APPOINTMENT = "appointment"
BLOCKOUT = "blockout"


@dataclass(frozen=True)
class BusyInterval:
    professional_id: str
    start: datetime
    end: datetime
    kind: str = APPOINTMENT
    ref_id: Optional[str] = None


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    # back-to-back intervals (end_a == start_b) do not overlap
    return start_a < end_b and end_a > start_b


def find_conflict(
    candidate_start: datetime,
    candidate_end: datetime,
    professional_id: str,
    busy: Iterable[BusyInterval],
    exclude_appointment_id: Optional[str] = None,
) -> Optional[BusyInterval]:
    for interval in busy:
        if interval.professional_id != professional_id:
            continue
        if (
            exclude_appointment_id is not None
            and interval.kind == APPOINTMENT
            and interval.ref_id == exclude_appointment_id
        ):
            continue
        if overlaps(candidate_start, candidate_end, interval.start, interval.end):
            return interval
    return None


def has_conflict(
    candidate_start: datetime,
    candidate_end: datetime,
    professional_id: str,
    busy: Iterable[BusyInterval],
    exclude_appointment_id: Optional[str] = None,
) -> bool:
    return find_conflict(
        candidate_start, candidate_end, professional_id, busy, exclude_appointment_id
    ) is not None


def salon_tz() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def local_now() -> datetime:
    return datetime.now(salon_tz()).replace(tzinfo=None)


def to_local_naive(value: datetime) -> datetime:
    """Aware datetimes are converted to salon time; naive ones are taken as-is."""
    if value.tzinfo is None:
        return value
    return value.astimezone(salon_tz()).replace(tzinfo=None)


def parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def combine_local(day: date, hhmm: str) -> datetime:
    return datetime.combine(day, parse_hhmm(hhmm))
