# salon_scheduler/services/availability_service.py

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from sqlmodel import Session

from salon_scheduler.config import settings
from salon_scheduler.core import BusyInterval, combine_local, has_conflict, local_now
from salon_scheduler.deps import require_context
from salon_scheduler.errors import NotFound, ValidationError
from salon_scheduler.gateway import TenantGateway, day_bounds
from salon_scheduler.models import User
from salon_scheduler.schemas import BusinessDay, CallerContext, Slot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfessionalDay:
    """
    A professional's own window for one day.

    ``start``/``end`` of None means the professional follows the salon's
    business hours; ``works`` False means the professional is off that day.
    """
    professional_id: str
    works: bool = True
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def can_take(self, start: datetime, end: datetime) -> bool:
        if not self.works:
            return False
        if self.start is not None and start < self.start:
            return False
        if self.end is not None and end > self.end:
            return False
        return True


def professional_day(professional: User, day: date) -> ProfessionalDay:
    if not professional.working_hours:
        return ProfessionalDay(professional.id)

    hours = BusinessDay.for_date(professional.working_hours, day)
    if hours is None or not hours.enabled:
        return ProfessionalDay(professional.id, works=False)
    return ProfessionalDay(
        professional.id,
        start=combine_local(day, hours.open),
        end=combine_local(day, hours.close),
    )


def free_professionals(
    start: datetime,
    end: datetime,
    professionals: Iterable[ProfessionalDay],
    busy: Sequence[BusyInterval],
) -> List[str]:
    return [
        p.professional_id
        for p in professionals
        if p.can_take(start, end) and not has_conflict(start, end, p.professional_id, busy)
    ]


def generate_slots(
    day: date,
    hours: Optional[BusinessDay],
    duration_minutes: int,
    professionals: Sequence[ProfessionalDay],
    busy: Sequence[BusyInterval],
    now: datetime,
    step_minutes: Optional[int] = None,
    lead_minutes: Optional[int] = None,
) -> List[Slot]:
    """
    Bookable start times for a service on ``day``.

    Candidates are walked from opening time at a fixed step. On the current
    day, starts earlier than ``now`` plus the lead time are skipped; the walk
    stops at the first candidate whose service would end after closing. A
    candidate is returned with every professional free for the whole
    service, and only if at least one is.
    """
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")
    if step_minutes is None:
        step_minutes = settings.SLOT_STEP_MINUTES
    if lead_minutes is None:
        lead_minutes = settings.SAME_DAY_LEAD_MINUTES

    # salon closed
    if hours is None or not hours.enabled:
        return []
    if not professionals:
        return []
    if day < now.date():
        return []

    step = timedelta(minutes=step_minutes)
    duration = timedelta(minutes=duration_minutes)
    opening = combine_local(day, hours.open)
    closing = combine_local(day, hours.close)
    earliest = now + timedelta(minutes=lead_minutes) if day == now.date() else None

    slots = []
    current = opening
    while current < closing:
        if earliest is not None and current < earliest:
            current += step
            continue

        slot_end = current + duration
        # a service cannot run past closing; later starts end even later
        if slot_end > closing:
            break

        free = free_professionals(current, slot_end, professionals, busy)
        if free:
            slots.append(Slot(time=current.strftime("%H:%M"), professional_ids=free))

        current += step

    return slots


def get_available_slots(
    session: Session,
    tenant_id: str,
    service_id: str,
    day: date,
    now: Optional[datetime] = None,
) -> List[Slot]:
    gateway = TenantGateway(session, tenant_id)

    service = gateway.get_service(service_id)
    if service is None:
        raise NotFound("Service not found")
    if service.duration_minutes <= 0:
        raise ValidationError("Service duration must be positive")

    hours = gateway.get_business_hours(day)
    if hours is None or not hours.enabled:
        logger.debug("Tenant %s closed on %s", tenant_id, day)
        return []

    professionals = gateway.list_active_professionals()
    if not professionals:
        return []

    day_start, day_end = day_bounds(day)
    busy = gateway.busy_intervals(day_start, day_end, [p.id for p in professionals])

    return generate_slots(
        day,
        hours,
        service.duration_minutes,
        [professional_day(p, day) for p in professionals],
        busy,
        now or local_now(),
    )


def available_slots_for(
    session: Session,
    ctx: Optional[CallerContext],
    service_id: str,
    day: date,
    now: Optional[datetime] = None,
) -> List[Slot]:
    ctx = require_context(ctx)
    return get_available_slots(session, ctx.tenant_id, service_id, day, now)
