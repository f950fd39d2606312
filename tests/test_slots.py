"""Tests for slot generation and the availability queries."""

from __future__ import annotations

from datetime import datetime

import pytest

from salon_scheduler.core import APPOINTMENT, BLOCKOUT, BusyInterval
from salon_scheduler.errors import AuthenticationRequired, NotFound
from salon_scheduler.schemas import BusinessDay
from salon_scheduler.services import appointment_service, availability_service, blockout_service
from salon_scheduler.services.availability_service import (
    ProfessionalDay,
    generate_slots,
    professional_day,
)
from tests.conftest import MONDAY, SUNDAY, at, ctx_for

EARLIER = datetime(2030, 3, 1, 8, 0)
NINE_TO_ELEVEN = BusinessDay(open="09:00", close="11:00")
STAFF = [ProfessionalDay("ana"), ProfessionalDay("bruno")]


def _times(slots) -> list[str]:
    return [s.time for s in slots]


def test_closed_day_has_no_slots() -> None:
    closed = BusinessDay(open="09:00", close="18:00", enabled=False)

    assert generate_slots(MONDAY, closed, 30, STAFF, [], EARLIER) == []
    assert generate_slots(MONDAY, None, 30, STAFF, [], EARLIER) == []


def test_no_professionals_means_no_slots() -> None:
    assert generate_slots(MONDAY, NINE_TO_ELEVEN, 30, [], [], EARLIER) == []


def test_service_must_fit_before_closing() -> None:
    slots = generate_slots(MONDAY, NINE_TO_ELEVEN, 45, STAFF, [], EARLIER, step_minutes=30)

    assert _times(slots) == ["09:00", "09:30", "10:00"]
    assert slots[0].professional_ids == ["ana", "bruno"]


def test_zero_duration_is_rejected() -> None:
    with pytest.raises(ValueError):
        generate_slots(MONDAY, NINE_TO_ELEVEN, 0, STAFF, [], EARLIER)


def test_same_day_lead_time() -> None:
    hours = BusinessDay(open="09:00", close="13:00")
    now = at("09:10")

    slots = generate_slots(MONDAY, hours, 30, STAFF, [], now, step_minutes=30, lead_minutes=120)

    assert _times(slots)[0] == "11:30"
    assert _times(slots)[-1] == "12:30"


def test_past_day_has_no_slots() -> None:
    now = datetime(2030, 3, 5, 8, 0)

    assert generate_slots(MONDAY, NINE_TO_ELEVEN, 30, STAFF, [], now) == []


def test_busy_professionals_are_left_out() -> None:
    busy = [
        BusyInterval("ana", at("09:00"), at("09:30"), APPOINTMENT, "a1"),
        BusyInterval("bruno", at("09:00"), at("10:00"), BLOCKOUT, "b1"),
    ]

    slots = generate_slots(MONDAY, NINE_TO_ELEVEN, 30, STAFF, busy, EARLIER, step_minutes=30)
    by_time = {s.time: s.professional_ids for s in slots}

    assert "09:00" not in by_time
    assert by_time["09:30"] == ["ana"]
    assert by_time["10:00"] == ["ana", "bruno"]


def test_professional_off_for_the_day_is_excluded() -> None:
    staff = [ProfessionalDay("ana", works=False), ProfessionalDay("bruno")]

    slots = generate_slots(MONDAY, NINE_TO_ELEVEN, 30, staff, [], EARLIER, step_minutes=30)

    assert all(s.professional_ids == ["bruno"] for s in slots)


def test_professional_day_follows_working_hours(salon) -> None:
    salon.ana.working_hours = {"seg": {"open": "10:00", "close": "12:00", "enabled": True}}

    window = professional_day(salon.ana, MONDAY)
    assert window.can_take(at("10:00"), at("10:30"))
    assert not window.can_take(at("09:30"), at("10:00"))
    assert not window.can_take(at("11:45"), at("12:15"))

    # no entry for Sunday means the professional is off
    assert not professional_day(salon.ana, SUNDAY).works
    assert professional_day(salon.bruno, MONDAY).can_take(at("08:00"), at("20:00"))


def test_get_available_slots_uses_the_salon_agenda(session, salon) -> None:
    appointment_service.create_appointment(
        session, ctx_for(salon.admin), salon.customer.id, salon.haircut.id,
        at("09:00"), salon.ana.id,
    )
    blockout_service.create_blockout(
        session, ctx_for(salon.admin), at("09:00"), at("10:00"), "Curso", salon.bruno.id,
    )

    slots = availability_service.get_available_slots(
        session, salon.tenant.id, salon.haircut.id, MONDAY, now=EARLIER,
    )
    by_time = {s.time: s.professional_ids for s in slots}

    assert "09:00" not in by_time
    assert by_time["09:30"] == [salon.ana.id]
    assert sorted(by_time["10:00"]) == sorted([salon.ana.id, salon.bruno.id])
    # the inactive professional is never offered
    assert all(salon.carla.id not in ids for ids in by_time.values())
    assert _times(slots)[-1] == "17:30"


def test_canceled_appointments_free_the_slot(session, salon) -> None:
    ctx = ctx_for(salon.admin)
    for professional in (salon.ana, salon.bruno):
        appointment = appointment_service.create_appointment(
            session, ctx, salon.customer.id, salon.haircut.id, at("09:00"), professional.id,
        )
    appointment_service.cancel_appointment(session, ctx, appointment.id)

    slots = availability_service.get_available_slots(
        session, salon.tenant.id, salon.haircut.id, MONDAY, now=EARLIER,
    )

    assert slots[0].time == "09:00"
    assert slots[0].professional_ids == [salon.bruno.id]


def test_closed_weekday_from_tenant_settings(session, salon) -> None:
    slots = availability_service.get_available_slots(
        session, salon.tenant.id, salon.haircut.id, SUNDAY, now=EARLIER,
    )

    assert slots == []


def test_service_of_another_tenant_is_not_found(session, salon) -> None:
    with pytest.raises(NotFound):
        availability_service.get_available_slots(
            session, salon.tenant.id, salon.other_service.id, MONDAY, now=EARLIER,
        )


def test_internal_availability_requires_a_caller(session, salon) -> None:
    with pytest.raises(AuthenticationRequired):
        availability_service.available_slots_for(session, None, salon.haircut.id, MONDAY)

    slots = availability_service.available_slots_for(
        session, ctx_for(salon.reception), salon.haircut.id, MONDAY, now=EARLIER,
    )
    assert slots[0].time == "09:00"
