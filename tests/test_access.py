"""Tests for resolving a user's effective tier."""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from app.core.permissions import TIER_FREE, TIER_MEDIUM, TIER_PLUS
from app.services.access import get_user_tier, has_user_feature_access, resolve_user_tier

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _fetcher(value):
    async def fetch(user_id):
        return value
    return fetch


async def _broken(user_id):
    raise ConnectionError("store unavailable")


ACTIVE_PLUS = {
    "status": "active",
    "plan_id": "plan-plus",
    "plan_name": "Plan Plus",
    "price": 25000,
    "expires_at": NOW + timedelta(days=10),
}
MIRROR_MEDIUM = {
    "subscription_status": "active",
    "subscription_plan": "Plan Medium",
    "subscription_expires_at": NOW + timedelta(days=10),
}


@pytest.mark.asyncio
async def test_subscription_record_wins():
    tier = await resolve_user_tier("u1", _fetcher(ACTIVE_PLUS), _fetcher(None), now=NOW)
    assert tier == TIER_PLUS


@pytest.mark.asyncio
async def test_falls_back_to_doctor_mirror():
    pending = dict(ACTIVE_PLUS, status="pending")
    tier = await resolve_user_tier("u1", _fetcher(pending), _fetcher(MIRROR_MEDIUM), now=NOW)
    assert tier == TIER_MEDIUM


@pytest.mark.asyncio
async def test_no_records_is_free():
    assert await resolve_user_tier("u1", _fetcher(None), _fetcher(None), now=NOW) == TIER_FREE


@pytest.mark.asyncio
async def test_subscription_fetch_error_is_free():
    assert await resolve_user_tier("u1", _broken, _fetcher(MIRROR_MEDIUM), now=NOW) == TIER_FREE


@pytest.mark.asyncio
async def test_doctor_fetch_error_is_free():
    assert await resolve_user_tier("u1", _fetcher(None), _broken, now=NOW) == TIER_FREE


@pytest.mark.asyncio
async def test_disagreement_is_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="app.services.access"):
        tier = await resolve_user_tier("u1", _fetcher(ACTIVE_PLUS), _fetcher(MIRROR_MEDIUM), now=NOW)
    assert tier == TIER_PLUS
    assert "out of sync" in caplog.text


@pytest.mark.asyncio
async def test_mirror_error_does_not_change_subscription_tier():
    assert await resolve_user_tier("u1", _fetcher(ACTIVE_PLUS), _broken, now=NOW) == TIER_PLUS


@pytest.mark.asyncio
async def test_db_tier_follows_activation(db, plans, make_doctor, subscribe):
    doctor = await make_doctor()
    assert await get_user_tier(db, doctor.user_id) == TIER_FREE

    await subscribe(doctor.user_id, "plan-plus")
    await db.refresh(doctor)

    assert await get_user_tier(db, doctor.user_id) == TIER_PLUS
    assert await has_user_feature_access(db, doctor.user_id, "video-consultation") is True
    assert doctor.subscription_status == "active"
    assert doctor.subscription_plan == "Plan Plus"


@pytest.mark.asyncio
async def test_db_tier_expired_subscription_is_free(db, plans, make_doctor, subscribe):
    doctor = await make_doctor()
    subscription = await subscribe(doctor.user_id, "plan-medium")
    await db.refresh(doctor)
    lapsed = datetime.utcnow() - timedelta(days=1)
    subscription.expires_at = lapsed
    doctor.subscription_expires_at = lapsed
    await db.commit()

    assert await get_user_tier(db, doctor.user_id) == TIER_FREE
    assert await has_user_feature_access(db, doctor.user_id, "patients") is False
