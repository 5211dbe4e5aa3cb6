"""Tests for the public directory and the doctor's own profile."""

import pytest

from app.models.user import User
from app.services.doctors import format_doctor_name, slugify


def test_format_doctor_name():
    assert format_doctor_name("Juan Perez", "male") == "Dr. Juan Perez"
    assert format_doctor_name("Laura Diaz", "Femenino") == "Dra. Laura Diaz"
    assert format_doctor_name("Dra. Laura Diaz", "female") == "Dra. Laura Diaz"
    assert format_doctor_name("", "male") == ""


def test_slugify_strips_accents():
    assert slugify("María José Núñez") == "maria-jose-nunez"
    assert slugify("!!!") == "doctor"


@pytest.mark.asyncio
async def test_directory_orders_by_rank(client, plans, make_doctor, subscribe):
    await make_doctor("alberto@example.com", name="Alberto Alvarez")
    medium = await make_doctor("bruno@example.com", name="Bruno Benitez")
    plus = await make_doctor("carla@example.com", name="Carla Castro", gender="female")
    await subscribe(medium.user_id, "plan-medium")
    await subscribe(plus.user_id, "plan-plus")

    resp = await client.get("/api/v1/doctors")

    assert resp.status_code == 200
    data = resp.json()
    assert data["total"] == 3
    assert [d["slug"] for d in data["doctors"]] == ["carla", "bruno", "alberto"]
    assert [d["rank"] for d in data["doctors"]] == ["VIP", "Intermedio", "Normal"]
    assert data["doctors"][0]["display_name"] == "Dra. Carla Castro"
    assert data["doctors"][0]["plan_name"] == "Plan Plus"
    assert data["doctors"][2]["plan_name"] == "Plan Free"


@pytest.mark.asyncio
async def test_directory_hides_unverified_and_incomplete(client, make_doctor):
    await make_doctor("listed@example.com")
    await make_doctor("unverified@example.com", verified=False)
    await make_doctor("draft@example.com", profile_complete=False)

    resp = await client.get("/api/v1/doctors")

    assert [d["slug"] for d in resp.json()["doctors"]] == ["listed"]


@pytest.mark.asyncio
async def test_directory_filters(client, make_doctor):
    await make_doctor("cardio@example.com", specialty="Cardiología", location="Córdoba")
    await make_doctor("derma@example.com", name="Ana Ruiz", specialty="Dermatología", location="Rosario")

    resp = await client.get("/api/v1/doctors", params={"specialty": "dermatología"})
    assert [d["slug"] for d in resp.json()["doctors"]] == ["derma"]

    resp = await client.get("/api/v1/doctors", params={"q": "ruiz"})
    assert [d["slug"] for d in resp.json()["doctors"]] == ["derma"]

    resp = await client.get("/api/v1/doctors", params={"location": "rosario"})
    assert resp.json()["total"] == 1

    resp = await client.get("/api/v1/doctors/specialties")
    assert resp.json() == ["Cardiología", "Dermatología"]


@pytest.mark.asyncio
async def test_directory_paging(client, make_doctor):
    for name in ("Ana", "Beto", "Ciro"):
        await make_doctor(f"{name.lower()}@example.com", name=name)

    resp = await client.get("/api/v1/doctors", params={"page": 2, "page_size": 2})

    data = resp.json()
    assert data["total"] == 3
    assert [d["slug"] for d in data["doctors"]] == ["ciro"]


@pytest.mark.asyncio
async def test_public_profile(client, make_doctor):
    await make_doctor(address="Av. Santa Fe 1234")

    resp = await client.get("/api/v1/doctors/doctor")
    assert resp.status_code == 200
    data = resp.json()
    assert data["display_name"] == "Dr. Juan Perez"
    assert data["address"] == "Av. Santa Fe 1234"
    assert data["rating_count"] == 0
    assert data["working_hours"]["monday"]["start"] == "09:00"

    resp = await client.get("/api/v1/doctors/nobody")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_profile_update_recomputes_completeness(client, make_doctor, headers_for, db):
    doctor = await make_doctor(phone=None, profile_complete=False)
    headers = headers_for(await db.get(User, doctor.user_id))

    resp = await client.get("/api/v1/doctors/me", headers=headers)
    assert resp.json()["profile_complete"] is False

    resp = await client.put("/api/v1/doctors/me", json={"phone": "+5491122223333"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["profile_complete"] is True

    resp = await client.put("/api/v1/doctors/me", json={"specialty": ""}, headers=headers)
    assert resp.json()["profile_complete"] is False


@pytest.mark.asyncio
async def test_patient_has_no_doctor_profile(client, make_user, headers_for):
    patient = await make_user("ana@example.com")
    resp = await client.get("/api/v1/doctors/me", headers=headers_for(patient))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_working_hours_are_gated_and_validated(client, plans, make_doctor, subscribe, headers_for, db):
    doctor = await make_doctor()
    headers = headers_for(await db.get(User, doctor.user_id))
    body = {"working_hours": {"saturday": {"start": "10:00", "end": "13:00", "enabled": True}}}

    resp = await client.put("/api/v1/doctors/me/working-hours", json=body, headers=headers)
    assert resp.status_code == 403
    assert resp.json()["detail"]["feature"] == "schedule"

    await subscribe(doctor.user_id, "plan-medium")

    resp = await client.put(
        "/api/v1/doctors/me/working-hours",
        json={"working_hours": {"funday": {"start": "10:00", "end": "13:00"}}},
        headers=headers,
    )
    assert resp.status_code == 422

    resp = await client.put(
        "/api/v1/doctors/me/working-hours",
        json={"working_hours": {"monday": {"start": "13:00", "end": "10:00"}}},
        headers=headers,
    )
    assert resp.status_code == 422

    resp = await client.put("/api/v1/doctors/me/working-hours", json=body, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["working_hours"] == {"saturday": {"start": "10:00", "end": "13:00", "enabled": True}}


@pytest.mark.asyncio
async def test_profile_update_rejects_null_name(client, make_doctor, headers_for, db):
    doctor = await make_doctor()
    headers = headers_for(await db.get(User, doctor.user_id))

    resp = await client.put("/api/v1/doctors/me", json={"name": None}, headers=headers)
    assert resp.status_code == 422

    resp = await client.put("/api/v1/doctors/me", json={"name": "   "}, headers=headers)
    assert resp.status_code == 422

    resp = await client.put("/api/v1/doctors/me", json={"name": " Juan Pablo Perez "}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Juan Pablo Perez"
