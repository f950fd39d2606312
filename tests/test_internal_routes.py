"""HTTP tests for the authenticated staff and professional endpoints."""

from __future__ import annotations

from salon_scheduler.auth import hash_password
from salon_scheduler.models import User
from tests.conftest import MONDAY


def _create(client, headers, salon, professional, start="2030-03-04T10:00:00"):
    return client.post(
        "/appointments",
        json={
            "customerId": salon.customer.id,
            "serviceId": salon.haircut.id,
            "professionalId": professional.id,
            "startTime": start,
        },
        headers=headers,
    )


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_login_and_me(client, session, salon) -> None:
    user = User(
        tenant_id=salon.tenant.id,
        name="Gerente",
        email="gerente@example.com",
        password_hash=hash_password("s3cret"),
        role="ADMIN",
    )
    session.add(user)
    session.commit()

    bad = client.post("/auth/login", data={"username": "gerente@example.com", "password": "wrong"})
    assert bad.status_code == 401
    assert bad.json() == {"error": "Invalid credentials", "kind": "AuthenticationRequired"}

    response = client.post("/auth/login", data={"username": "gerente@example.com", "password": "s3cret"})
    assert response.status_code == 200
    token = response.json()["access_token"]

    me = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json() == {"tenantId": salon.tenant.id, "userId": user.id, "role": "ADMIN"}


def test_requests_without_token_are_401(client, salon) -> None:
    response = _create(client, {}, salon, salon.ana)

    assert response.status_code == 401
    assert response.json()["kind"] == "AuthenticationRequired"


def test_garbage_token_is_401(client, salon) -> None:
    response = _create(client, {"Authorization": "Bearer not-a-jwt"}, salon, salon.ana)

    assert response.status_code == 401


def test_inactive_user_token_is_401(client, salon, auth_headers) -> None:
    response = client.get("/me", headers=auth_headers(salon.carla))

    assert response.status_code == 401


def test_create_and_conflict(client, salon, auth_headers) -> None:
    headers = auth_headers(salon.reception)

    created = _create(client, headers, salon, salon.ana)
    assert created.status_code == 201
    appointment_id = created.json()["appointmentId"]

    conflict = _create(client, headers, salon, salon.ana, start="2030-03-04T09:45:00")
    assert conflict.status_code == 422
    assert conflict.json()["kind"] == "ConflictError"

    detail = client.get(f"/appointments/{appointment_id}", headers=headers)
    assert detail.status_code == 200
    assert detail.json()["professional"]["name"] == "Ana"


def test_professional_cannot_book_a_colleague(client, salon, auth_headers) -> None:
    response = _create(client, auth_headers(salon.ana), salon, salon.bruno)

    assert response.status_code == 403
    assert response.json()["kind"] == "AuthorizationDenied"


def test_reschedule_move_cancel(client, salon, auth_headers) -> None:
    headers = auth_headers(salon.admin)
    appointment_id = _create(client, headers, salon, salon.ana).json()["appointmentId"]

    rescheduled = client.patch(
        f"/appointments/{appointment_id}/reschedule",
        json={"startTime": "2030-03-04T11:00:00", "endTime": "2030-03-04T11:30:00"},
        headers=headers,
    )
    assert rescheduled.status_code == 200
    assert rescheduled.json() == {"ok": True}

    moved = client.patch(
        f"/appointments/{appointment_id}/move",
        json={"professionalId": salon.bruno.id, "startTime": "2030-03-04T14:00:00"},
        headers=headers,
    )
    assert moved.status_code == 200

    detail = client.get(f"/appointments/{appointment_id}", headers=headers).json()
    assert detail["professional"]["id"] == salon.bruno.id
    assert detail["startTime"] == "2030-03-04T14:00:00"

    canceled = client.patch(f"/appointments/{appointment_id}/cancel", headers=headers)
    assert canceled.status_code == 200

    completed = client.patch(f"/appointments/{appointment_id}/complete", headers=headers)
    assert completed.status_code == 422
    assert completed.json()["currentStatus"] == "CANCELED"


def test_professional_cannot_move(client, salon, auth_headers) -> None:
    appointment_id = _create(client, auth_headers(salon.admin), salon, salon.ana).json()["appointmentId"]

    response = client.patch(
        f"/appointments/{appointment_id}/move",
        json={"professionalId": salon.ana.id, "startTime": "2030-03-04T15:00:00"},
        headers=auth_headers(salon.ana),
    )

    assert response.status_code == 403


def test_blockout_then_booking_conflicts(client, salon, auth_headers) -> None:
    response = client.post(
        "/blockouts",
        json={"startTime": "2030-03-04T12:00:00", "endTime": "2030-03-04T13:00:00", "reason": "Almoco"},
        headers=auth_headers(salon.ana),
    )
    assert response.status_code == 201
    assert response.json()["ok"] is True

    conflict = _create(client, auth_headers(salon.admin), salon, salon.ana, start="2030-03-04T12:30:00")
    assert conflict.status_code == 422
    assert conflict.json()["conflictWith"] == "blockout"


def test_blockout_with_inverted_interval_is_400(client, salon, auth_headers) -> None:
    response = client.post(
        "/blockouts",
        json={"startTime": "2030-03-04T13:00:00", "endTime": "2030-03-04T12:00:00"},
        headers=auth_headers(salon.ana),
    )

    assert response.status_code == 400


def test_agenda_views(client, salon, auth_headers) -> None:
    admin = auth_headers(salon.admin)
    _create(client, admin, salon, salon.ana)
    client.post(
        "/blockouts",
        json={
            "startTime": "2030-03-04T12:00:00",
            "endTime": "2030-03-04T13:00:00",
            "professionalId": salon.bruno.id,
        },
        headers=admin,
    )

    mine = client.get("/agenda/me", params={"date": MONDAY.isoformat()}, headers=auth_headers(salon.ana))
    assert mine.status_code == 200
    assert [item["customer"]["name"] for item in mine.json()] == ["Maria"]

    board = client.get("/agenda/salon", params={"date": MONDAY.isoformat()}, headers=admin).json()
    assert [p["name"] for p in board["professionals"]] == ["Ana", "Bruno"]
    assert board["appointments"][0]["serviceName"] == "Corte"
    assert board["blockouts"][0]["professionalId"] == salon.bruno.id

    events = client.get(
        "/agenda/calendar",
        params={"start": "2030-03-04T00:00:00", "end": "2030-03-05T00:00:00"},
        headers=admin,
    ).json()
    assert [(e["type"], e["title"]) for e in events] == [
        ("APPOINTMENT", "Maria - Corte"),
        ("BLOCKOUT", "Bloqueado"),
    ]


def test_staff_have_no_personal_agenda(client, salon, auth_headers) -> None:
    response = client.get("/agenda/me", params={"date": MONDAY.isoformat()}, headers=auth_headers(salon.admin))

    assert response.status_code == 403


def test_internal_availability(client, salon, auth_headers) -> None:
    response = client.get(
        "/availability",
        params={"serviceId": salon.coloring.id, "date": MONDAY.isoformat()},
        headers=auth_headers(salon.reception),
    )

    assert response.status_code == 200
    assert response.json()[-1]["time"] == "17:00"
