# salon_scheduler/schemas.py

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from salon_scheduler.core import parse_hhmm


class UserRole(str, Enum):
    admin = "ADMIN"
    reception = "RECEPCAO"
    professional = "PROFISSIONAL"


STAFF_ROLES = (UserRole.admin, UserRole.reception)


class AppointmentStatus(str, Enum):
    scheduled = "SCHEDULED"
    completed = "COMPLETED"
    canceled = "CANCELED"


# Sunday..Saturday, the keys business hours are stored under
WEEKDAY_KEYS = ["dom", "seg", "ter", "qua", "qui", "sex", "sab"]


def weekday_key(day: date) -> str:
    # date.weekday() is 0=Mon, ... 6=Sun
    return WEEKDAY_KEYS[(day.weekday() + 1) % 7]


class BusinessDay(BaseModel):
    open: str
    close: str
    enabled: bool = True

    @field_validator("open", "close")
    @classmethod
    def check_hhmm(cls, value: str) -> str:
        parse_hhmm(value)
        return value

    @classmethod
    def for_date(cls, hours: Optional[Dict[str, Any]], day: date) -> Optional["BusinessDay"]:
        """Typed hours for ``day``; None when missing or malformed."""
        if not hours:
            return None
        raw = hours.get(weekday_key(day))
        if not isinstance(raw, dict):
            return None
        try:
            return cls.model_validate(raw)
        except ValueError:
            return None


class CallerContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    tenant_id: str
    user_id: str
    role: UserRole

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


# ---------------------------------------------------------------------------
# Internal operations
# ---------------------------------------------------------------------------

class AppointmentCreate(ApiModel):
    customer_id: str
    service_id: str
    start_time: datetime
    # defaults to the caller for professionals
    professional_id: Optional[str] = None


class AppointmentReschedule(ApiModel):
    start_time: datetime
    end_time: datetime


class AppointmentMove(ApiModel):
    professional_id: str
    start_time: datetime


class BlockoutCreate(ApiModel):
    start_time: datetime
    end_time: datetime
    reason: str = ""
    professional_id: Optional[str] = None


class AppointmentCreated(ApiModel):
    appointment_id: str


class BlockoutCreated(ApiModel):
    ok: bool = True
    blockout_id: str


class OperationResult(ApiModel):
    ok: bool = True


class Slot(ApiModel):
    time: str
    professional_ids: List[str]


class UserPublic(ApiModel):
    tenant_id: str
    user_id: str
    role: UserRole


# ---------------------------------------------------------------------------
# Read views
# ---------------------------------------------------------------------------

class PersonSummary(ApiModel):
    id: str
    name: str


class CustomerSummary(ApiModel):
    id: str
    name: str
    phone: Optional[str] = None


class ServiceSummary(ApiModel):
    id: str
    name: str
    duration_minutes: int
    price: float


class AppointmentDetail(ApiModel):
    id: str
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    created_at: datetime
    service: ServiceSummary
    professional: PersonSummary
    customer: CustomerSummary


class AgendaItem(ApiModel):
    id: str
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    customer: CustomerSummary
    service: ServiceSummary


class BoardAppointment(ApiModel):
    id: str
    professional_id: str
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    customer_name: str
    service_name: str


class BlockoutPublic(ApiModel):
    id: str
    professional_id: str
    start_time: datetime
    end_time: datetime
    reason: str


class SalonAgenda(ApiModel):
    professionals: List[PersonSummary]
    appointments: List[BoardAppointment]
    blockouts: List[BlockoutPublic]


class EventType(str, Enum):
    appointment = "APPOINTMENT"
    blockout = "BLOCKOUT"


class CalendarEvent(ApiModel):
    id: str
    title: str
    professional_id: str
    professional_name: str
    start_time: datetime
    end_time: datetime
    type: EventType


# ---------------------------------------------------------------------------
# Public booking API
# ---------------------------------------------------------------------------

class PublicAppointmentCreate(ApiModel):
    tenant_id: str = Field(min_length=1)
    service_id: str = Field(min_length=1)
    start_time: datetime
    customer_name: str = Field(min_length=1)
    customer_phone: str = Field(min_length=1)
    professional_id: Optional[str] = None

    @field_validator("customer_name", "customer_phone")
    @classmethod
    def strip_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class PublicAppointmentCreated(ApiModel):
    appointment_id: str
    customer_id: str
    professional_id: str


class PublicStatusUpdate(ApiModel):
    status: str

    @model_validator(mode="after")
    def only_canceled(self) -> "PublicStatusUpdate":
        if self.status != AppointmentStatus.canceled.value:
            raise ValueError('Only status "CANCELED" is allowed via public API')
        return self


class PublicStatusResult(ApiModel):
    id: str
    status: AppointmentStatus


class PublicService(ApiModel):
    id: str
    name: str
    duration_minutes: int
    price: float


class PublicProfessional(ApiModel):
    id: str
    name: str
    phone: Optional[str] = None
    working_hours: Optional[Dict[str, Any]] = None


class PublicTenantInfo(ApiModel):
    tenant_id: str
    tenant_name: str
    logo_url: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    business_hours: Optional[Dict[str, Any]] = None
    services: List[PublicService]


class CustomerHistoryItem(ApiModel):
    id: str
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    service: ServiceSummary
    professional: PersonSummary


class CustomerLookup(ApiModel):
    id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    appointments: List[CustomerHistoryItem]
