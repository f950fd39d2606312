# salon_scheduler/services/public_service.py

from typing import List

from sqlmodel import Session

from salon_scheduler.errors import NotFound
from salon_scheduler.gateway import TenantGateway, find_settings_by_slug
from salon_scheduler.schemas import (
    CustomerHistoryItem,
    CustomerLookup,
    PersonSummary,
    PublicProfessional,
    PublicService,
    PublicTenantInfo,
    ServiceSummary,
)

CUSTOMER_HISTORY_LIMIT = 20


def list_services(session: Session, tenant_id: str) -> List[PublicService]:
    gateway = TenantGateway(session, tenant_id)
    return [
        PublicService(
            id=s.id,
            name=s.name,
            duration_minutes=s.duration_minutes,
            price=float(s.price),
        )
        for s in gateway.list_services()
    ]


def list_professionals(session: Session, tenant_id: str) -> List[PublicProfessional]:
    gateway = TenantGateway(session, tenant_id)
    return [
        PublicProfessional(id=p.id, name=p.name, phone=p.phone, working_hours=p.working_hours)
        for p in gateway.list_active_professionals()
    ]


def get_tenant_info(session: Session, slug: str) -> PublicTenantInfo:
    tenant_settings = find_settings_by_slug(session, slug)
    if tenant_settings is None or not tenant_settings.is_public_booking_enabled:
        raise NotFound("Tenant not found or public booking disabled")

    gateway = TenantGateway(session, tenant_settings.tenant_id)
    tenant = gateway.get_tenant()
    if tenant is None:
        raise NotFound("Tenant not found or public booking disabled")

    return PublicTenantInfo(
        tenant_id=tenant.id,
        tenant_name=tenant.name,
        logo_url=tenant_settings.logo_url,
        address=tenant_settings.address,
        phone=tenant_settings.phone,
        business_hours=tenant_settings.business_hours,
        services=list_services(session, tenant.id),
    )


def lookup_customer(session: Session, tenant_id: str, phone: str) -> CustomerLookup:
    """Customer by phone with their most recent appointments first."""
    gateway = TenantGateway(session, tenant_id)
    customer = gateway.find_customer_by_phone(phone.strip())
    if customer is None:
        raise NotFound("Customer not found")

    appointments = gateway.find_appointments(customer_id=customer.id, include_canceled=True)
    recent = list(reversed(appointments))[:CUSTOMER_HISTORY_LIMIT]
    services = gateway.services_by_id({a.service_id for a in recent})
    users = gateway.users_by_id({a.professional_id for a in recent})

    return CustomerLookup(
        id=customer.id,
        name=customer.name,
        phone=customer.phone,
        email=customer.email,
        appointments=[
            CustomerHistoryItem(
                id=a.id,
                start_time=a.start_time,
                end_time=a.end_time,
                status=a.status,
                service=ServiceSummary(
                    id=a.service_id,
                    name=services[a.service_id].name,
                    duration_minutes=services[a.service_id].duration_minutes,
                    price=float(services[a.service_id].price),
                ),
                professional=PersonSummary(id=a.professional_id, name=users[a.professional_id].name),
            )
            for a in recent
        ],
    )
