# salon_scheduler/services/agenda_service.py

"""Agenda read views. Plain snapshot reads; writers re-check on their own."""
from datetime import date, datetime
from typing import List, Optional

from sqlmodel import Session

from salon_scheduler.core import to_local_naive
from salon_scheduler.deps import require_context, require_role
from salon_scheduler.errors import ValidationError
from salon_scheduler.gateway import TenantGateway, day_bounds
from salon_scheduler.schemas import (
    AgendaItem,
    BlockoutPublic,
    BoardAppointment,
    CalendarEvent,
    CallerContext,
    CustomerSummary,
    EventType,
    PersonSummary,
    SalonAgenda,
    ServiceSummary,
    UserRole,
)


def professional_agenda(session: Session, ctx: Optional[CallerContext], day: date) -> List[AgendaItem]:
    """The caller's own appointments for ``day``, every status included."""
    ctx = require_context(ctx)
    require_role(ctx, UserRole.professional)

    gateway = TenantGateway(session, ctx.tenant_id)
    day_start, day_end = day_bounds(day)
    appointments = gateway.find_appointments(
        day_start, day_end, professional_ids=[ctx.user_id], include_canceled=True,
    )
    customers = gateway.customers_by_id({a.customer_id for a in appointments})
    services = gateway.services_by_id({a.service_id for a in appointments})

    items = []
    for a in appointments:
        customer = customers[a.customer_id]
        service = services[a.service_id]
        items.append(AgendaItem(
            id=a.id,
            start_time=a.start_time,
            end_time=a.end_time,
            status=a.status,
            customer=CustomerSummary(id=customer.id, name=customer.name, phone=customer.phone),
            service=ServiceSummary(
                id=service.id,
                name=service.name,
                duration_minutes=service.duration_minutes,
                price=float(service.price),
            ),
        ))
    return items


def salon_agenda(session: Session, ctx: Optional[CallerContext], day: date) -> SalonAgenda:
    ctx = require_context(ctx)

    gateway = TenantGateway(session, ctx.tenant_id)
    day_start, day_end = day_bounds(day)

    professionals = gateway.list_active_professionals()
    appointments = gateway.find_appointments(day_start, day_end)
    blockouts = gateway.find_blockouts(day_start, day_end)
    customers = gateway.customers_by_id({a.customer_id for a in appointments})
    services = gateway.services_by_id({a.service_id for a in appointments})

    return SalonAgenda(
        professionals=[PersonSummary(id=p.id, name=p.name) for p in professionals],
        appointments=[
            BoardAppointment(
                id=a.id,
                professional_id=a.professional_id,
                start_time=a.start_time,
                end_time=a.end_time,
                status=a.status,
                customer_name=customers[a.customer_id].name,
                service_name=services[a.service_id].name,
            )
            for a in appointments
        ],
        blockouts=[
            BlockoutPublic(
                id=b.id,
                professional_id=b.professional_id,
                start_time=b.start_time,
                end_time=b.end_time,
                reason=b.reason,
            )
            for b in blockouts
        ],
    )


def calendar_events(
    session: Session,
    ctx: Optional[CallerContext],
    start: datetime,
    end: datetime,
) -> List[CalendarEvent]:
    ctx = require_context(ctx)
    start = to_local_naive(start)
    end = to_local_naive(end)
    if start >= end:
        raise ValidationError("start must be before end")

    gateway = TenantGateway(session, ctx.tenant_id)
    appointments = gateway.find_appointments(start, end)
    blockouts = gateway.find_blockouts(start, end)

    customers = gateway.customers_by_id({a.customer_id for a in appointments})
    services = gateway.services_by_id({a.service_id for a in appointments})
    users = gateway.users_by_id(
        {a.professional_id for a in appointments} | {b.professional_id for b in blockouts}
    )

    events = [
        CalendarEvent(
            id=a.id,
            title=f"{customers[a.customer_id].name} - {services[a.service_id].name}",
            professional_id=a.professional_id,
            professional_name=users[a.professional_id].name,
            start_time=a.start_time,
            end_time=a.end_time,
            type=EventType.appointment,
        )
        for a in appointments
    ]
    events.extend(
        CalendarEvent(
            id=b.id,
            title=b.reason or "Bloqueado",
            professional_id=b.professional_id,
            professional_name=users[b.professional_id].name,
            start_time=b.start_time,
            end_time=b.end_time,
            type=EventType.blockout,
        )
        for b in blockouts
    )
    events.sort(key=lambda e: e.start_time)
    return events
