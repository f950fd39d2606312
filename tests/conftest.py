"""Shared fixtures: in-memory database, a seeded salon and HTTP client."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from salon_scheduler import models
from salon_scheduler.auth import create_session_token
from salon_scheduler.config import settings
from salon_scheduler.db import get_session
from salon_scheduler.main import app
from salon_scheduler.schemas import WEEKDAY_KEYS, CallerContext, UserRole

# Monday, far enough ahead that nothing is "in the past"
MONDAY = date(2030, 3, 4)
SUNDAY = date(2030, 3, 3)
API_KEY = "test-public-key"

WEEK_HOURS = {key: {"open": "09:00", "close": "18:00", "enabled": True} for key in WEEKDAY_KEYS}
WEEK_HOURS["dom"] = {"open": "09:00", "close": "18:00", "enabled": False}


def at(hhmm: str, day: date = MONDAY) -> datetime:
    hours, minutes = hhmm.split(":")
    return datetime(day.year, day.month, day.day, int(hours), int(minutes))


def ctx_for(user: models.User) -> CallerContext:
    return CallerContext(tenant_id=user.tenant_id, user_id=user.id, role=user.role)


def _user(tenant_id: str, name: str, role: UserRole, **kwargs) -> models.User:
    return models.User(
        tenant_id=tenant_id,
        name=name,
        email=f"{name.lower()}.{tenant_id[:8]}@example.com",
        password_hash="not-a-real-hash",
        role=role.value,
        **kwargs,
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


def seed_salon(session: Session) -> SimpleNamespace:
    """Two tenants: a full salon and a neighbour used for isolation checks."""
    tenant = models.Tenant(name="Studio Bella")
    other_tenant = models.Tenant(name="Outro Salao")
    session.add(tenant)
    session.add(other_tenant)
    session.flush()

    session.add(models.TenantSettings(
        tenant_id=tenant.id,
        business_hours=WEEK_HOURS,
        public_slug="studio-bella",
        is_public_booking_enabled=True,
        phone="+551130000000",
    ))
    session.add(models.TenantSettings(tenant_id=other_tenant.id, business_hours=WEEK_HOURS))

    admin = _user(tenant.id, "Admin", UserRole.admin)
    reception = _user(tenant.id, "Recepcao", UserRole.reception)
    ana = _user(tenant.id, "Ana", UserRole.professional)
    bruno = _user(tenant.id, "Bruno", UserRole.professional)
    carla = _user(tenant.id, "Carla", UserRole.professional, is_active=False)
    other_pro = _user(other_tenant.id, "Diego", UserRole.professional)
    other_admin = _user(other_tenant.id, "Eva", UserRole.admin)

    haircut = models.Service(tenant_id=tenant.id, name="Corte", duration_minutes=30, price=Decimal("50.00"))
    coloring = models.Service(tenant_id=tenant.id, name="Coloracao", duration_minutes=60, price=Decimal("120.00"))
    other_service = models.Service(tenant_id=other_tenant.id, name="Barba", duration_minutes=30)

    customer = models.Customer(tenant_id=tenant.id, name="Maria", phone="+5511988887777")
    other_customer = models.Customer(tenant_id=other_tenant.id, name="Joao", phone="+5511900000000")

    for row in (admin, reception, ana, bruno, carla, other_pro, other_admin,
                haircut, coloring, other_service, customer, other_customer):
        session.add(row)
    session.commit()

    return SimpleNamespace(
        tenant=tenant,
        other_tenant=other_tenant,
        admin=admin,
        reception=reception,
        ana=ana,
        bruno=bruno,
        carla=carla,
        other_pro=other_pro,
        other_admin=other_admin,
        haircut=haircut,
        coloring=coloring,
        other_service=other_service,
        customer=customer,
        other_customer=other_customer,
    )


@pytest.fixture
def salon(session: Session) -> SimpleNamespace:
    return seed_salon(session)


@pytest.fixture
def client(session: Session, monkeypatch: pytest.MonkeyPatch):
    def _override_session():
        yield session

    monkeypatch.setattr(settings, "PUBLIC_API_KEY", API_KEY)
    app.dependency_overrides[get_session] = _override_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user: models.User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_session_token(user)}"}

    return _headers


@pytest.fixture
def api_headers() -> dict[str, str]:
    return {"x-api-key": API_KEY}
