# salon_scheduler/routers/public_routes.py

"""Public booking API, authenticated by the shared x-api-key header."""
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from salon_scheduler.auth import require_api_key
from salon_scheduler.db import get_session
from salon_scheduler.schemas import (
    AppointmentDetail,
    CustomerLookup,
    PublicAppointmentCreate,
    PublicAppointmentCreated,
    PublicProfessional,
    PublicService,
    PublicStatusResult,
    PublicStatusUpdate,
    PublicTenantInfo,
    Slot,
)
from salon_scheduler.services import appointment_service, availability_service, public_service

router = APIRouter(
    prefix="/api/public",
    tags=["public"],
    dependencies=[Depends(require_api_key)],
)


@router.get("/availability", response_model=List[Slot])
def availability(
    tenant_id: str = Query(alias="tenantId", min_length=1),
    service_id: str = Query(alias="serviceId", min_length=1),
    on_date: date = Query(alias="date"),
    session: Session = Depends(get_session),
):
    return availability_service.get_available_slots(session, tenant_id, service_id, on_date)


@router.post("/appointments", response_model=PublicAppointmentCreated, status_code=201)
def create_appointment(
    body: PublicAppointmentCreate,
    session: Session = Depends(get_session),
):
    appointment = appointment_service.create_public_appointment(
        session,
        tenant_id=body.tenant_id,
        service_id=body.service_id,
        start_time=body.start_time,
        customer_name=body.customer_name,
        customer_phone=body.customer_phone,
        professional_id=body.professional_id,
    )
    return PublicAppointmentCreated(
        appointment_id=appointment.id,
        customer_id=appointment.customer_id,
        professional_id=appointment.professional_id,
    )


@router.get("/appointments/{appt_id}", response_model=AppointmentDetail)
def get_appointment(
    appt_id: str,
    tenant_id: str = Query(alias="tenantId", min_length=1),
    session: Session = Depends(get_session),
):
    return appointment_service.get_appointment_detail(session, tenant_id, appt_id)


@router.patch("/appointments/{appt_id}", response_model=PublicStatusResult)
def cancel_appointment(
    appt_id: str,
    body: PublicStatusUpdate,
    tenant_id: str = Query(alias="tenantId", min_length=1),
    session: Session = Depends(get_session),
):
    appointment = appointment_service.cancel_public_appointment(session, tenant_id, appt_id)
    return PublicStatusResult(id=appointment.id, status=appointment.status)


@router.get("/tenant/{slug}", response_model=PublicTenantInfo)
def tenant_info(slug: str, session: Session = Depends(get_session)):
    return public_service.get_tenant_info(session, slug)


@router.get("/services", response_model=List[PublicService])
def services(
    tenant_id: str = Query(alias="tenantId", min_length=1),
    session: Session = Depends(get_session),
):
    return public_service.list_services(session, tenant_id)


@router.get("/professionals", response_model=List[PublicProfessional])
def professionals(
    tenant_id: str = Query(alias="tenantId", min_length=1),
    session: Session = Depends(get_session),
):
    return public_service.list_professionals(session, tenant_id)


@router.get("/customers/lookup", response_model=CustomerLookup)
def customer_lookup(
    tenant_id: str = Query(alias="tenantId", min_length=1),
    phone: str = Query(min_length=1),
    session: Session = Depends(get_session),
):
    return public_service.lookup_customer(session, tenant_id, phone)
