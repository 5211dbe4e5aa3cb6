"""Tests for the subscription lifecycle and its endpoints."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from app.models.subscription import Subscription
from app.models.user import User
from app.services import subscriptions as subscription_service
from app.services.subscriptions import SubscriptionError


@pytest.mark.asyncio
async def test_me_without_subscription_is_free(client, plans, make_doctor, headers_for, db):
    doctor = await make_doctor()
    user = await db.get(User, doctor.user_id)

    resp = await client.get("/api/v1/subscriptions/me", headers=headers_for(user))

    assert resp.status_code == 200
    data = resp.json()
    assert data["tier"] == "free"
    assert data["tier_name"] == "Free"
    assert data["plan_name"] == "Plan Free"
    assert data["is_active"] is False
    assert data["days_remaining"] == 0
    assert "patients" not in data["features"]
    assert data["subscription"] is None


@pytest.mark.asyncio
async def test_me_with_active_medium(client, plans, make_user, make_doctor, subscribe, headers_for, db):
    doctor = await make_doctor()
    await subscribe(doctor.user_id, "plan-medium", days=10)

    user = await db.get(User, doctor.user_id)

    resp = await client.get("/api/v1/subscriptions/me", headers=headers_for(user))

    data = resp.json()
    assert data["tier"] == "medium"
    assert data["plan_name"] == "Plan Medium"
    assert data["is_active"] is True
    assert data["days_remaining"] == 10
    assert "appointments" in data["features"]
    assert data["subscription"]["status"] == "active"


@pytest.mark.asyncio
async def test_free_plan_create_and_renew(client, plans, make_doctor, headers_for, db):
    doctor = await make_doctor(verified=False)
    user = await db.get(User, doctor.user_id)
    headers = headers_for(user)

    resp = await client.post("/api/v1/subscriptions/free", headers=headers)
    assert resp.status_code == 201
    assert resp.json()["plan_id"] == "plan-free"
    assert resp.json()["activation_type"] == "free"

    resp = await client.post("/api/v1/subscriptions/free", headers=headers)
    assert resp.status_code == 409

    resp = await client.post("/api/v1/subscriptions/free/renew", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["renewed_at"] is not None

    await db.refresh(doctor)
    assert doctor.subscription_status == "active"
    assert doctor.subscription_plan == "Plan Free"
    # the free plan does not verify the profile
    assert doctor.verified is False


@pytest.mark.asyncio
async def test_renew_without_free_plan_fails(db, plans, make_doctor):
    doctor = await make_doctor()
    user = await db.get(User, doctor.user_id)
    with pytest.raises(SubscriptionError):
        await subscription_service.renew_free_subscription(db, user)


@pytest.mark.asyncio
async def test_patients_cannot_start_free_plan(client, make_user, headers_for):
    patient = await make_user("ana@example.com")
    resp = await client.post("/api/v1/subscriptions/free", headers=headers_for(patient))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_feature_and_page_checks(client, plans, make_doctor, subscribe, headers_for, db):
    doctor = await make_doctor()
    await subscribe(doctor.user_id, "plan-medium")
    user = await db.get(User, doctor.user_id)
    headers = headers_for(user)

    resp = await client.get("/api/v1/subscriptions/features/patients", headers=headers)
    assert resp.json() == {"feature": "patients", "has_access": True, "current_plan": "medium", "required_plan": "medium"}

    resp = await client.get("/api/v1/subscriptions/features/video-consultation", headers=headers)
    assert resp.json()["has_access"] is False
    assert resp.json()["required_plan"] == "plus"

    resp = await client.get("/api/v1/subscriptions/page-access", params={"path": "/admin/schedule"}, headers=headers)
    assert resp.json() == {"page": "/admin/schedule", "can_access": True, "feature": "appointments", "current_plan": "medium"}


@pytest.mark.asyncio
async def test_manual_activation_replaces_current(db, plans, make_user, make_doctor, subscribe):
    admin = await make_user("root@example.com", role="superadmin")
    doctor = await make_doctor(verified=False)
    old = await subscribe(doctor.user_id, "plan-medium")

    starts = datetime.utcnow()
    new = await subscription_service.manual_activate(
        db, admin, doctor.user_id, "plan-plus", starts, starts + timedelta(days=90),
    )

    await db.refresh(old)
    await db.refresh(doctor)
    assert old.status == "expired"
    assert new.status == "active"
    assert new.activated_by == "root@example.com"
    assert new.expires_at == starts + timedelta(days=90)
    assert doctor.subscription_plan == "Plan Plus"
    assert doctor.verified is True

    result = await db.execute(select(Subscription).where(Subscription.user_id == doctor.user_id, Subscription.status == "active"))
    assert len(result.scalars().all()) == 1


@pytest.mark.asyncio
async def test_manual_activation_validates_dates(db, plans, make_user, make_doctor):
    admin = await make_user("root@example.com", role="superadmin")
    doctor = await make_doctor()
    now = datetime.utcnow()
    with pytest.raises(SubscriptionError):
        await subscription_service.manual_activate(db, admin, doctor.user_id, "plan-plus", now, now)
    with pytest.raises(SubscriptionError):
        await subscription_service.manual_activate(db, admin, doctor.user_id, "plan-gold", now, now + timedelta(days=1))


@pytest.mark.asyncio
async def test_rejection_keeps_live_mirror(db, plans, make_doctor, subscribe):
    doctor = await make_doctor()
    await subscribe(doctor.user_id, "plan-medium")
    user = await db.get(User, doctor.user_id)

    plan = await subscription_service.get_plan(db, "plan-plus")
    upgrade = await subscription_service.start_pending_subscription(db, user, plan, payment_method="stripe")
    await db.commit()
    await subscription_service.reject_subscription(db, upgrade, reason="Payment failed")

    await db.refresh(doctor)
    assert upgrade.status == "rejected"
    assert doctor.subscription_status == "active"
    assert doctor.subscription_plan == "Plan Medium"
    assert doctor.rejection_reason == "Payment failed"
