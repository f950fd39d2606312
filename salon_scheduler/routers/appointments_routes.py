# salon_scheduler/routers/appointments_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from salon_scheduler.auth import get_caller_context
from salon_scheduler.db import get_session
from salon_scheduler.deps import require_context
from salon_scheduler.schemas import (
    AppointmentCreate,
    AppointmentCreated,
    AppointmentDetail,
    AppointmentMove,
    AppointmentReschedule,
    CallerContext,
    OperationResult,
    Slot,
)
from salon_scheduler.services import appointment_service, availability_service

router = APIRouter(
    tags=["appointments"],
)


@router.post("/appointments", response_model=AppointmentCreated, status_code=201)
def create_appointment(
    appt: AppointmentCreate,
    session: Session = Depends(get_session),
    ctx: Optional[CallerContext] = Depends(get_caller_context),
):
    appointment = appointment_service.create_appointment(
        session,
        ctx,
        customer_id=appt.customer_id,
        service_id=appt.service_id,
        start_time=appt.start_time,
        professional_id=appt.professional_id,
    )
    return AppointmentCreated(appointment_id=appointment.id)


@router.get("/appointments/{appt_id}", response_model=AppointmentDetail)
def get_appointment(
    appt_id: str,
    session: Session = Depends(get_session),
    ctx: Optional[CallerContext] = Depends(get_caller_context),
):
    ctx = require_context(ctx)
    return appointment_service.get_appointment_detail(session, ctx.tenant_id, appt_id)


@router.patch("/appointments/{appt_id}/reschedule", response_model=OperationResult)
def reschedule_appointment(
    appt_id: str,
    body: AppointmentReschedule,
    session: Session = Depends(get_session),
    ctx: Optional[CallerContext] = Depends(get_caller_context),
):
    appointment_service.reschedule_appointment(
        session, ctx, appt_id, body.start_time, body.end_time,
    )
    return OperationResult()


@router.patch("/appointments/{appt_id}/move", response_model=OperationResult)
def move_appointment(
    appt_id: str,
    body: AppointmentMove,
    session: Session = Depends(get_session),
    ctx: Optional[CallerContext] = Depends(get_caller_context),
):
    appointment_service.move_appointment(
        session, ctx, appt_id, body.professional_id, body.start_time,
    )
    return OperationResult()


@router.patch("/appointments/{appt_id}/cancel", response_model=OperationResult)
def cancel_appointment(
    appt_id: str,
    session: Session = Depends(get_session),
    ctx: Optional[CallerContext] = Depends(get_caller_context),
):
    appointment_service.cancel_appointment(session, ctx, appt_id)
    return OperationResult()


@router.patch("/appointments/{appt_id}/complete", response_model=OperationResult)
def complete_appointment(
    appt_id: str,
    session: Session = Depends(get_session),
    ctx: Optional[CallerContext] = Depends(get_caller_context),
):
    appointment_service.complete_appointment(session, ctx, appt_id)
    return OperationResult()


@router.get("/availability", response_model=List[Slot])
def get_available_slots(
    service_id: str = Query(alias="serviceId"),
    on_date: date = Query(alias="date"),
    session: Session = Depends(get_session),
    ctx: Optional[CallerContext] = Depends(get_caller_context),
):
    return availability_service.available_slots_for(session, ctx, service_id, on_date)
