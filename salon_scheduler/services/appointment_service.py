# salon_scheduler/services/appointment_service.py

"""
Appointment lifecycle: create, reschedule, move, cancel, complete.

Every write runs as one unit of work: the target professional's row is
locked, the conflict check reads the committed agenda, and the mutation is
committed or rolled back as a whole.
"""
import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from salon_scheduler.core import combine_local, find_conflict, to_local_naive
from salon_scheduler.db import atomic
from salon_scheduler.deps import require_context, require_owner_or_staff, require_staff
from salon_scheduler.errors import (
    ConflictError,
    DuplicateCustomer,
    InvalidStateTransition,
    NotFound,
    ValidationError,
)
from salon_scheduler.gateway import TenantGateway
from salon_scheduler.models import Appointment
from salon_scheduler.schemas import (
    AppointmentDetail,
    AppointmentStatus,
    CallerContext,
    CustomerSummary,
    PersonSummary,
    ServiceSummary,
    UserRole,
)
from salon_scheduler.services.availability_service import professional_day

logger = logging.getLogger(__name__)


@contextmanager
def _booking(session: Session):
    try:
        with atomic(session):
            yield
    except IntegrityError as exc:
        # storage guard caught a booking the locked check did not see
        logger.warning("Booking rejected by storage constraint: %s", exc.orig)
        raise ConflictError() from exc


def _ensure_free(
    gateway: TenantGateway,
    professional_id: str,
    start_time: datetime,
    end_time: datetime,
    exclude_appointment_id: Optional[str] = None,
):
    busy = gateway.busy_intervals(start_time, end_time, [professional_id])
    conflict = find_conflict(start_time, end_time, professional_id, busy, exclude_appointment_id)
    if conflict is not None:
        logger.warning(
            "Conflict for professional %s at %s-%s with %s %s",
            professional_id, start_time, end_time, conflict.kind, conflict.ref_id,
        )
        raise ConflictError(
            "Time unavailable: the professional already has a booking in this period",
            professional_id=professional_id,
            start_time=start_time,
            end_time=end_time,
            conflict_with=conflict.kind,
        )


def _require_scheduled(appointment: Appointment, message: str):
    if appointment.status != AppointmentStatus.scheduled.value:
        raise InvalidStateTransition(message, current_status=appointment.status)


def _lock_professionals(gateway: TenantGateway, professional_ids: Iterable[str]):
    # fixed order so two writers never wait on each other crosswise
    for professional_id in sorted(set(professional_ids)):
        gateway.lock_professional(professional_id)


def _load_for_write(
    gateway: TenantGateway,
    ctx: CallerContext,
    appointment_id: str,
    lock_professional: bool = True,
) -> Appointment:
    appointment = gateway.get_appointment(appointment_id)
    if appointment is None:
        raise NotFound("Appointment not found")
    require_owner_or_staff(ctx, appointment.professional_id)

    if lock_professional:
        gateway.lock_professional(appointment.professional_id)
    locked_professional_id = appointment.professional_id

    appointment = gateway.get_appointment(appointment_id, for_update=True)
    if appointment is None:
        raise NotFound("Appointment not found")
    if appointment.professional_id != locked_professional_id:
        # moved while we waited for the lock
        require_owner_or_staff(ctx, appointment.professional_id)
        if lock_professional:
            gateway.lock_professional(appointment.professional_id)
    return appointment


def create_appointment(
    session: Session,
    ctx: Optional[CallerContext],
    customer_id: str,
    service_id: str,
    start_time: datetime,
    professional_id: Optional[str] = None,
) -> Appointment:
    """
    Book a customer with a professional.

    Staff may book any professional of the tenant; a professional books
    into their own agenda. The end time is the service duration snapshot.
    """
    ctx = require_context(ctx)
    if professional_id is None and ctx.role == UserRole.professional:
        professional_id = ctx.user_id
    if not professional_id:
        raise ValidationError("professional_id is required")
    require_owner_or_staff(ctx, professional_id)

    start_time = to_local_naive(start_time)
    gateway = TenantGateway(session, ctx.tenant_id)

    with _booking(session):
        service = gateway.get_service(service_id)
        if service is None:
            raise NotFound("Service not found")
        if gateway.get_customer(customer_id) is None:
            raise NotFound("Customer not found")

        professional = gateway.lock_professional(professional_id)
        if professional is None or not professional.is_active:
            raise NotFound("Professional not found")

        end_time = start_time + timedelta(minutes=service.duration_minutes)
        _ensure_free(gateway, professional_id, start_time, end_time)

        appointment = gateway.create_appointment(
            customer_id=customer_id,
            professional_id=professional_id,
            service_id=service_id,
            start_time=start_time,
            end_time=end_time,
        )

    logger.info(
        "Appointment %s created for professional %s at %s (tenant %s)",
        appointment.id, professional_id, start_time, ctx.tenant_id,
    )
    return appointment


def _ensure_open(gateway: TenantGateway, start_time: datetime, end_time: datetime):
    day = start_time.date()
    hours = gateway.get_business_hours(day)
    if (
        hours is None
        or not hours.enabled
        or start_time < combine_local(day, hours.open)
        or end_time > combine_local(day, hours.close)
    ):
        logger.warning(
            "Rejected booking outside business hours at %s-%s (tenant %s)",
            start_time, end_time, gateway.tenant_id,
        )
        raise ConflictError(
            "Time unavailable: the salon is closed in this period",
            start_time=start_time,
            end_time=end_time,
        )


def _assign_professional(gateway: TenantGateway, start_time: datetime, end_time: datetime) -> str:
    """First active professional (by name) working and free for the whole interval."""
    professionals = gateway.list_active_professionals()
    if not professionals:
        raise NotFound("No professionals registered")

    day = start_time.date()
    candidates = [p for p in professionals if professional_day(p, day).can_take(start_time, end_time)]
    # every candidate up front, in the same id order as a move
    _lock_professionals(gateway, [p.id for p in candidates])

    busy = gateway.busy_intervals(start_time, end_time, [p.id for p in candidates])
    for professional in candidates:
        if find_conflict(start_time, end_time, professional.id, busy) is None:
            return professional.id

    logger.warning("No professional free at %s-%s (tenant %s)", start_time, end_time, gateway.tenant_id)
    raise ConflictError(
        "Time unavailable: no professional is free in this period",
        start_time=start_time,
        end_time=end_time,
    )


def _book_public(
    gateway: TenantGateway,
    service_id: str,
    start_time: datetime,
    customer_name: str,
    customer_phone: str,
    professional_id: Optional[str],
) -> Appointment:
    with _booking(gateway.session):
        service = gateway.get_service(service_id)
        if service is None:
            raise NotFound("Service not found")
        end_time = start_time + timedelta(minutes=service.duration_minutes)
        _ensure_open(gateway, start_time, end_time)

        if professional_id:
            professional = gateway.lock_professional(professional_id)
            if professional is None or not professional.is_active:
                raise NotFound("Professional not found")
            _ensure_free(gateway, professional_id, start_time, end_time)
        else:
            professional_id = _assign_professional(gateway, start_time, end_time)

        customer = gateway.find_or_create_customer(customer_name, customer_phone)
        return gateway.create_appointment(
            customer_id=customer.id,
            professional_id=professional_id,
            service_id=service_id,
            start_time=start_time,
            end_time=end_time,
        )


def create_public_appointment(
    session: Session,
    tenant_id: str,
    service_id: str,
    start_time: datetime,
    customer_name: str,
    customer_phone: str,
    professional_id: Optional[str] = None,
) -> Appointment:
    """
    Unauthenticated booking, authorized upstream by the public API key.

    The booking must fall inside the salon's business hours. The customer
    is found or created by phone. Without a professional the first active
    professional (by name) working and free for the interval is assigned.
    """
    start_time = to_local_naive(start_time)
    gateway = TenantGateway(session, tenant_id)

    try:
        appointment = _book_public(
            gateway, service_id, start_time, customer_name, customer_phone, professional_id,
        )
    except DuplicateCustomer:
        # the other booking committed the customer; the lookup now finds it
        logger.info("Customer registered concurrently (tenant %s), retrying booking", tenant_id)
        appointment = _book_public(
            gateway, service_id, start_time, customer_name, customer_phone, professional_id,
        )

    logger.info(
        "Public appointment %s created for professional %s at %s (tenant %s)",
        appointment.id, appointment.professional_id, start_time, tenant_id,
    )
    return appointment


def reschedule_appointment(
    session: Session,
    ctx: Optional[CallerContext],
    appointment_id: str,
    start_time: datetime,
    end_time: datetime,
) -> Appointment:
    ctx = require_context(ctx)
    start_time = to_local_naive(start_time)
    end_time = to_local_naive(end_time)
    if start_time >= end_time:
        raise ValidationError("start_time must be before end_time")

    gateway = TenantGateway(session, ctx.tenant_id)
    with _booking(session):
        appointment = _load_for_write(gateway, ctx, appointment_id)
        _require_scheduled(appointment, "Only scheduled appointments can be rescheduled")
        _ensure_free(
            gateway, appointment.professional_id, start_time, end_time,
            exclude_appointment_id=appointment.id,
        )
        gateway.update_appointment(appointment, start_time=start_time, end_time=end_time)

    logger.info("Appointment %s rescheduled to %s-%s", appointment_id, start_time, end_time)
    return appointment


def move_appointment(
    session: Session,
    ctx: Optional[CallerContext],
    appointment_id: str,
    new_professional_id: str,
    new_start_time: datetime,
) -> Appointment:
    """
    Drag-and-drop move on the salon board: new professional and start,
    same service duration. Staff only.
    """
    ctx = require_context(ctx)
    require_staff(ctx)
    new_start_time = to_local_naive(new_start_time)

    gateway = TenantGateway(session, ctx.tenant_id)
    with _booking(session):
        appointment = gateway.get_appointment(appointment_id)
        if appointment is None:
            raise NotFound("Appointment not found")

        _lock_professionals(gateway, [appointment.professional_id, new_professional_id])
        if gateway.get_professional(new_professional_id) is None:
            raise NotFound("Professional not found")

        appointment = gateway.get_appointment(appointment_id, for_update=True)
        if appointment is None:
            raise NotFound("Appointment not found")
        _require_scheduled(appointment, "Only scheduled appointments can be moved")

        service = gateway.get_service(appointment.service_id, active_only=False)
        if service is None:
            raise NotFound("Service not found")
        new_end_time = new_start_time + timedelta(minutes=service.duration_minutes)

        _ensure_free(
            gateway, new_professional_id, new_start_time, new_end_time,
            exclude_appointment_id=appointment.id,
        )
        gateway.update_appointment(
            appointment,
            professional_id=new_professional_id,
            start_time=new_start_time,
            end_time=new_end_time,
        )

    logger.info(
        "Appointment %s moved to professional %s at %s",
        appointment_id, new_professional_id, new_start_time,
    )
    return appointment


def cancel_appointment(
    session: Session,
    ctx: Optional[CallerContext],
    appointment_id: str,
) -> Appointment:
    ctx = require_context(ctx)
    gateway = TenantGateway(session, ctx.tenant_id)

    with atomic(session):
        appointment = _load_for_write(gateway, ctx, appointment_id, lock_professional=False)
        _require_scheduled(appointment, "This appointment cannot be canceled")
        gateway.update_appointment(appointment, status=AppointmentStatus.canceled.value)

    logger.info("Appointment %s canceled by %s", appointment_id, ctx.user_id)
    return appointment


def cancel_public_appointment(session: Session, tenant_id: str, appointment_id: str) -> Appointment:
    gateway = TenantGateway(session, tenant_id)

    with atomic(session):
        appointment = gateway.get_appointment(appointment_id, for_update=True)
        if appointment is None:
            raise NotFound("Appointment not found")
        _require_scheduled(
            appointment,
            f'Cannot cancel appointment with status "{appointment.status}"',
        )
        gateway.update_appointment(appointment, status=AppointmentStatus.canceled.value)

    logger.info("Appointment %s canceled through the public API", appointment_id)
    return appointment


def complete_appointment(
    session: Session,
    ctx: Optional[CallerContext],
    appointment_id: str,
    on_completed: Optional[Callable[[Appointment], None]] = None,
) -> Appointment:
    """
    SCHEDULED -> COMPLETED, triggered when a point-of-sale tab is opened
    for the appointment. ``on_completed`` receives the appointment after
    commit (commission/financial handoff).
    """
    ctx = require_context(ctx)
    gateway = TenantGateway(session, ctx.tenant_id)

    with atomic(session):
        appointment = _load_for_write(gateway, ctx, appointment_id, lock_professional=False)
        _require_scheduled(appointment, "Only scheduled appointments can be completed")
        gateway.update_appointment(appointment, status=AppointmentStatus.completed.value)

    logger.info("Appointment %s completed", appointment_id)
    if on_completed is not None:
        on_completed(appointment)
    return appointment


def get_appointment_detail(session: Session, tenant_id: str, appointment_id: str) -> AppointmentDetail:
    gateway = TenantGateway(session, tenant_id)

    appointment = gateway.get_appointment(appointment_id)
    if appointment is None:
        raise NotFound("Appointment not found")

    service = gateway.get_service(appointment.service_id, active_only=False)
    professional = gateway.get_user(appointment.professional_id)
    customer = gateway.get_customer(appointment.customer_id)
    if service is None or professional is None or customer is None:
        raise NotFound("Appointment not found")

    return AppointmentDetail(
        id=appointment.id,
        start_time=appointment.start_time,
        end_time=appointment.end_time,
        status=appointment.status,
        created_at=appointment.created_at,
        service=ServiceSummary(
            id=service.id,
            name=service.name,
            duration_minutes=service.duration_minutes,
            price=float(service.price),
        ),
        professional=PersonSummary(id=professional.id, name=professional.name),
        customer=CustomerSummary(id=customer.id, name=customer.name, phone=customer.phone),
    )
