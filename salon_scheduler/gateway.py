# salon_scheduler/gateway.py

"""
Tenant Data Gateway.

Every statement issued here is filtered by the tenant the gateway was built
for, so a foreign id behaves exactly like a missing one.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from salon_scheduler.core import APPOINTMENT, BLOCKOUT, BusyInterval
from salon_scheduler.errors import DuplicateCustomer
from salon_scheduler.models import (
    Appointment,
    Blockout,
    Customer,
    Service,
    Tenant,
    TenantSettings,
    User,
)
from salon_scheduler.schemas import AppointmentStatus, BusinessDay, UserRole

logger = logging.getLogger(__name__)


def day_bounds(day: date):
    day_start = datetime.combine(day, datetime.min.time())
    return day_start, day_start + timedelta(days=1)


class TenantGateway:
    def __init__(self, session: Session, tenant_id: str):
        self.session = session
        self.tenant_id = tenant_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_tenant(self) -> Optional[Tenant]:
        return self.session.get(Tenant, self.tenant_id)

    def get_settings(self) -> Optional[TenantSettings]:
        return self.session.get(TenantSettings, self.tenant_id)

    def get_business_hours(self, day: date) -> Optional[BusinessDay]:
        tenant_settings = self.get_settings()
        if tenant_settings is None:
            return None
        return BusinessDay.for_date(tenant_settings.business_hours, day)

    def get_service(self, service_id: str, active_only: bool = True) -> Optional[Service]:
        stmt = (
            select(Service)
            .where(Service.tenant_id == self.tenant_id)
            .where(Service.id == service_id)
        )
        if active_only:
            stmt = stmt.where(Service.is_active == True)  # noqa: E712
        return self.session.exec(stmt).first()

    def list_services(self) -> List[Service]:
        return self.session.exec(
            select(Service)
            .where(Service.tenant_id == self.tenant_id)
            .where(Service.is_active == True)  # noqa: E712
            .order_by(Service.name)
        ).all()

    def get_professional(self, professional_id: str, active_only: bool = True) -> Optional[User]:
        stmt = (
            select(User)
            .where(User.tenant_id == self.tenant_id)
            .where(User.id == professional_id)
            .where(User.role == UserRole.professional.value)
        )
        if active_only:
            stmt = stmt.where(User.is_active == True)  # noqa: E712
        return self.session.exec(stmt).first()

    def list_active_professionals(self) -> List[User]:
        return self.session.exec(
            select(User)
            .where(User.tenant_id == self.tenant_id)
            .where(User.role == UserRole.professional.value)
            .where(User.is_active == True)  # noqa: E712
            .order_by(User.name, User.id)
        ).all()

    def get_user(self, user_id: str) -> Optional[User]:
        return self.session.exec(
            select(User)
            .where(User.tenant_id == self.tenant_id)
            .where(User.id == user_id)
        ).first()

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        return self.session.exec(
            select(Customer)
            .where(Customer.tenant_id == self.tenant_id)
            .where(Customer.id == customer_id)
        ).first()

    def find_customer_by_phone(self, phone: str) -> Optional[Customer]:
        return self.session.exec(
            select(Customer)
            .where(Customer.tenant_id == self.tenant_id)
            .where(Customer.phone == phone)
        ).first()

    def customers_by_id(self, customer_ids: Iterable[str]) -> Dict[str, Customer]:
        rows = self.session.exec(
            select(Customer)
            .where(Customer.tenant_id == self.tenant_id)
            .where(Customer.id.in_(list(customer_ids)))
        ).all()
        return {c.id: c for c in rows}

    def services_by_id(self, service_ids: Iterable[str]) -> Dict[str, Service]:
        rows = self.session.exec(
            select(Service)
            .where(Service.tenant_id == self.tenant_id)
            .where(Service.id.in_(list(service_ids)))
        ).all()
        return {s.id: s for s in rows}

    def users_by_id(self, user_ids: Iterable[str]) -> Dict[str, User]:
        rows = self.session.exec(
            select(User)
            .where(User.tenant_id == self.tenant_id)
            .where(User.id.in_(list(user_ids)))
        ).all()
        return {u.id: u for u in rows}

    def get_appointment(self, appointment_id: str, for_update: bool = False) -> Optional[Appointment]:
        stmt = (
            select(Appointment)
            .where(Appointment.tenant_id == self.tenant_id)
            .where(Appointment.id == appointment_id)
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.exec(stmt).first()

    def find_appointments(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        professional_ids: Optional[Iterable[str]] = None,
        customer_id: Optional[str] = None,
        include_canceled: bool = False,
        overlapping: bool = False,
    ) -> List[Appointment]:
        """
        Appointments of the tenant, ordered by start time.

        With ``overlapping`` the window is matched by interval overlap
        (used for conflict checks); otherwise by start time within
        [start, end).
        """
        stmt = select(Appointment).where(Appointment.tenant_id == self.tenant_id)
        if overlapping:
            if start is not None:
                stmt = stmt.where(Appointment.end_time > start)
            if end is not None:
                stmt = stmt.where(Appointment.start_time < end)
        else:
            if start is not None:
                stmt = stmt.where(Appointment.start_time >= start)
            if end is not None:
                stmt = stmt.where(Appointment.start_time < end)
        if professional_ids is not None:
            stmt = stmt.where(Appointment.professional_id.in_(list(professional_ids)))
        if customer_id is not None:
            stmt = stmt.where(Appointment.customer_id == customer_id)
        if not include_canceled:
            stmt = stmt.where(Appointment.status != AppointmentStatus.canceled.value)
        return self.session.exec(stmt.order_by(Appointment.start_time)).all()

    def find_blockouts(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        professional_ids: Optional[Iterable[str]] = None,
        overlapping: bool = False,
    ) -> List[Blockout]:
        stmt = select(Blockout).where(Blockout.tenant_id == self.tenant_id)
        if overlapping:
            if start is not None:
                stmt = stmt.where(Blockout.end_time > start)
            if end is not None:
                stmt = stmt.where(Blockout.start_time < end)
        else:
            if start is not None:
                stmt = stmt.where(Blockout.start_time >= start)
            if end is not None:
                stmt = stmt.where(Blockout.start_time < end)
        if professional_ids is not None:
            stmt = stmt.where(Blockout.professional_id.in_(list(professional_ids)))
        return self.session.exec(stmt.order_by(Blockout.start_time)).all()

    def busy_intervals(
        self,
        start: datetime,
        end: datetime,
        professional_ids: Iterable[str],
    ) -> List[BusyInterval]:
        """Non-canceled appointments and blockouts overlapping [start, end)."""
        professional_ids = list(professional_ids)
        if not professional_ids:
            return []

        busy = [
            BusyInterval(a.professional_id, a.start_time, a.end_time, APPOINTMENT, a.id)
            for a in self.find_appointments(start, end, professional_ids, overlapping=True)
        ]
        busy.extend(
            BusyInterval(b.professional_id, b.start_time, b.end_time, BLOCKOUT, b.id)
            for b in self.find_blockouts(start, end, professional_ids, overlapping=True)
        )
        return busy

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def lock_professional(self, professional_id: str) -> Optional[User]:
        """
        Take the professional's scheduling write lock for the current
        transaction. The row is selected FOR UPDATE and its
        schedule_version bumped, so concurrent writers for the same
        professional serialize here on every backend.
        """
        professional = self.session.exec(
            select(User)
            .where(User.tenant_id == self.tenant_id)
            .where(User.id == professional_id)
            .where(User.role == UserRole.professional.value)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).first()
        if professional is None:
            return None

        professional.schedule_version += 1
        self.session.add(professional)
        self.session.flush()
        return professional

    def find_or_create_customer(self, name: str, phone: str) -> Customer:
        customer = self.find_customer_by_phone(phone)
        if customer is not None:
            return customer

        customer = Customer(tenant_id=self.tenant_id, name=name, phone=phone)
        self.session.add(customer)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # a concurrent booking inserted the same phone first
            raise DuplicateCustomer() from exc
        logger.info("Customer %s created for tenant %s", customer.id, self.tenant_id)
        return customer

    def create_appointment(
        self,
        customer_id: str,
        professional_id: str,
        service_id: str,
        start_time: datetime,
        end_time: datetime,
    ) -> Appointment:
        appointment = Appointment(
            tenant_id=self.tenant_id,
            customer_id=customer_id,
            professional_id=professional_id,
            service_id=service_id,
            start_time=start_time,
            end_time=end_time,
            status=AppointmentStatus.scheduled.value,
        )
        self.session.add(appointment)
        self.session.flush()
        return appointment

    def update_appointment(self, appointment: Appointment, **changes) -> Appointment:
        if appointment.tenant_id != self.tenant_id:
            raise ValueError("appointment belongs to another tenant")
        for field, value in changes.items():
            setattr(appointment, field, value)
        self.session.add(appointment)
        self.session.flush()
        return appointment

    def create_blockout(
        self,
        professional_id: str,
        start_time: datetime,
        end_time: datetime,
        reason: str,
    ) -> Blockout:
        blockout = Blockout(
            tenant_id=self.tenant_id,
            professional_id=professional_id,
            start_time=start_time,
            end_time=end_time,
            reason=reason,
        )
        self.session.add(blockout)
        self.session.flush()
        return blockout


def find_settings_by_slug(session: Session, slug: str) -> Optional[TenantSettings]:
    """Public slug lookup; the only read not scoped to a known tenant."""
    return session.exec(
        select(TenantSettings).where(TenantSettings.public_slug == slug)
    ).first()
