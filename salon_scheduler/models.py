# salon_scheduler/models.py

from typing import Optional, Dict, Any
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import DateTime, Index, UniqueConstraint, text
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column

from salon_scheduler.core import local_now


def new_id() -> str:
    return str(uuid4())


def _local_datetime(index: bool = False) -> Column:
    # naive wall-clock values in the salon timezone, stored as-is
    return Column(DateTime(timezone=False), nullable=False, index=index)


class Tenant(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    created_at: datetime = Field(default_factory=local_now, sa_column=_local_datetime())


class TenantSettings(SQLModel, table=True):
    tenant_id: str = Field(foreign_key="tenant.id", primary_key=True)
    # {"seg": {"open": "09:00", "close": "18:00", "enabled": true}, ...}
    business_hours: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    public_slug: Optional[str] = Field(default=None, index=True, unique=True)
    is_public_booking_enabled: bool = False
    address: Optional[str] = None
    phone: Optional[str] = None
    logo_url: Optional[str] = None


class User(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    tenant_id: str = Field(foreign_key="tenant.id", index=True)
    name: str
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: str  # ADMIN, RECEPCAO or PROFISSIONAL
    is_active: bool = True
    phone: Optional[str] = None
    working_hours: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    # bumped by every scheduling write; the row lock for check-then-write
    schedule_version: int = 0


class Customer(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("tenant_id", "phone", name="uq_customer_tenant_phone"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    tenant_id: str = Field(foreign_key="tenant.id", index=True)
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime = Field(default_factory=local_now, sa_column=_local_datetime())


class Service(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    tenant_id: str = Field(foreign_key="tenant.id", index=True)
    name: str
    duration_minutes: int
    price: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    is_active: bool = True


class Appointment(SQLModel, table=True):
    __table_args__ = (
        Index(
            "uq_professional_start_active",
            "professional_id",
            "start_time",
            unique=True,
            sqlite_where=text("status != 'CANCELED'"),
            postgresql_where=text("status != 'CANCELED'"),
        ),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    tenant_id: str = Field(foreign_key="tenant.id", index=True)

    customer_id: str = Field(foreign_key="customer.id")
    professional_id: str = Field(foreign_key="user.id", index=True)
    service_id: str = Field(foreign_key="service.id")

    start_time: datetime = Field(sa_column=_local_datetime(index=True))
    end_time: datetime = Field(sa_column=_local_datetime())
    status: str = "SCHEDULED"
    created_at: datetime = Field(default_factory=local_now, sa_column=_local_datetime())


class Blockout(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    tenant_id: str = Field(foreign_key="tenant.id", index=True)

    professional_id: str = Field(foreign_key="user.id", index=True)
    start_time: datetime = Field(sa_column=_local_datetime(index=True))
    end_time: datetime = Field(sa_column=_local_datetime())
    reason: str = ""
    created_at: datetime = Field(default_factory=local_now, sa_column=_local_datetime())
