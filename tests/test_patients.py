"""Tests for the doctor's patient list."""

import pytest

from app.models.user import User


@pytest.mark.asyncio
async def test_patient_list_needs_paid_plan(client, plans, make_doctor, headers_for, db):
    doctor = await make_doctor()
    headers = headers_for(await db.get(User, doctor.user_id))

    resp = await client.get("/api/v1/patients", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["detail"]["feature"] == "patients"

    resp = await client.post("/api/v1/patients", json={"name": "Ana Gomez"}, headers=headers)
    assert resp.status_code == 403
    assert resp.json()["detail"]["feature"] == "nuevo-paciente"


@pytest.mark.asyncio
async def test_register_and_list_patients(client, plans, make_doctor, subscribe, headers_for, db):
    doctor = await make_doctor()
    other = await make_doctor("other@example.com")
    await subscribe(doctor.user_id, "plan-medium")
    await subscribe(other.user_id, "plan-medium")
    headers = headers_for(await db.get(User, doctor.user_id))

    for name in ("Zoe Lopez", "Ana Gomez"):
        resp = await client.post(
            "/api/v1/patients",
            json={"name": name, "email": "paciente@example.com", "date_of_birth": "1990-05-17"},
            headers=headers,
        )
        assert resp.status_code == 201

    resp = await client.get("/api/v1/patients", headers=headers)
    assert [p["name"] for p in resp.json()] == ["Ana Gomez", "Zoe Lopez"]
    assert resp.json()[0]["date_of_birth"] == "1990-05-17"

    resp = await client.get("/api/v1/patients", headers=headers_for(await db.get(User, other.user_id)))
    assert resp.json() == []
