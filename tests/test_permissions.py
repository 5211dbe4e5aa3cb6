"""Tests for tier resolution and the feature permission table."""

from datetime import datetime, timedelta, timezone

import pytest

from app.core.permissions import (
    SUBSCRIPTION_PERMISSIONS,
    TIER_FREE,
    TIER_MEDIUM,
    TIER_PLUS,
    can_access_page,
    determine_plan_key,
    feature_for_page,
    get_doctor_plan_name,
    get_doctor_rank,
    get_subscription_days_remaining,
    get_tier_features,
    has_feature_access,
    is_subscription_active,
    required_tier_for,
    resolve_subscription_tier,
    resolve_tier,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
TOMORROW = NOW + timedelta(days=1)
YESTERDAY = NOW - timedelta(days=1)


def test_feature_lists_are_nested():
    free = set(SUBSCRIPTION_PERMISSIONS[TIER_FREE])
    medium = set(SUBSCRIPTION_PERMISSIONS[TIER_MEDIUM])
    plus = set(SUBSCRIPTION_PERMISSIONS[TIER_PLUS])
    assert free <= medium <= plus
    assert "video-consultation" in plus - medium
    assert {"patients", "appointments", "schedule"} <= medium - free


def test_permission_table_is_read_only():
    with pytest.raises(TypeError):
        SUBSCRIPTION_PERMISSIONS[TIER_FREE] = ("everything",)


@pytest.mark.parametrize("status", [None, "pending", "rejected", "expired", "ACTIVE"])
def test_non_active_status_resolves_free(status):
    record = {"subscription_status": status, "subscription_plan": "Plan Plus", "subscription_expires_at": TOMORROW}
    assert resolve_tier(record, now=NOW) == TIER_FREE


def test_active_plus_with_future_expiry():
    record = {"subscription_status": "active", "subscription_plan": "Plan Plus", "subscription_expires_at": TOMORROW}
    tier = resolve_tier(record, now=NOW)
    assert tier == TIER_PLUS
    assert has_feature_access(tier, "video-consultation") is True


def test_active_medium_but_expired_is_free():
    record = {"subscription_status": "active", "subscription_plan": "Plan Medium", "subscription_expires_at": YESTERDAY}
    tier = resolve_tier(record, now=NOW)
    assert tier == TIER_FREE
    assert has_feature_access(tier, "patients") is False


@pytest.mark.parametrize("expires_at", [
    TOMORROW.isoformat(),
    TOMORROW.timestamp(),
    int(TOMORROW.timestamp() * 1000),
    {"seconds": int(TOMORROW.timestamp()), "nanoseconds": 0},
    {"_seconds": int(TOMORROW.timestamp()), "_nanoseconds": 0},
    TOMORROW.replace(tzinfo=None),
])
def test_expiry_accepts_timestamp_shapes(expires_at):
    record = {"subscription_status": "active", "subscription_plan": "plan medio", "subscription_expires_at": expires_at}
    assert resolve_tier(record, now=NOW) == TIER_MEDIUM


def test_unreadable_expiry_counts_as_expired():
    record = {"subscription_status": "active", "subscription_plan": "Plan Plus", "subscription_expires_at": "soon"}
    assert resolve_tier(record, now=NOW) == TIER_FREE


def test_active_without_expiry_uses_plan_name():
    assert resolve_tier({"subscription_status": "active", "subscription_plan": "Premium"}, now=NOW) == TIER_PLUS
    assert resolve_tier({"subscription_status": "active", "subscription_plan": "Básico"}, now=NOW) == TIER_FREE


def test_resolve_tier_is_repeatable():
    record = {"subscription_status": "active", "subscription_plan": "Plan Medium", "subscription_expires_at": TOMORROW}
    assert resolve_tier(record, now=NOW) == resolve_tier(record, now=NOW) == TIER_MEDIUM


def test_resolve_tier_reads_attributes():
    class Record:
        subscription_status = "active"
        subscription_plan = "Plan Plus"
        subscription_expires_at = TOMORROW

    assert resolve_tier(Record(), now=NOW) == TIER_PLUS


def test_rank_labels_and_plan_name():
    vip = {"subscription_status": "active", "subscription_plan": "Plan Plus", "subscription_expires_at": TOMORROW}
    lapsed = {"subscription_status": "active", "subscription_plan": "Plan Plus", "subscription_expires_at": YESTERDAY}
    assert get_doctor_rank(vip, now=NOW) == "VIP"
    assert get_doctor_rank({"subscription_status": "active", "subscription_plan": "Plan Medium"}, now=NOW) == "Intermedio"
    assert get_doctor_rank(lapsed, now=NOW) == "Normal"
    assert get_doctor_plan_name(vip, now=NOW) == "Plan Plus"
    assert get_doctor_plan_name(lapsed, now=NOW) == "Plan Free"


@pytest.mark.parametrize("plan_id,plan_name,price,expected", [
    ("plan-plus", "Plan Plus", 0, TIER_FREE),
    ("plan-plus", "Plan Plus", 25000, TIER_PLUS),
    ("plan-medium", "whatever", 15000, TIER_MEDIUM),
    ("custom", "Plan Premium", 30000, TIER_PLUS),
    ("custom", "Plan Medio", 10000, TIER_MEDIUM),
    ("custom", "Plan Gratis", 10, TIER_FREE),
    ("custom", "Gold", 10, TIER_FREE),
    ("plan-medium", None, None, TIER_MEDIUM),
])
def test_determine_plan_key(plan_id, plan_name, price, expected):
    assert determine_plan_key(plan_id, plan_name, price) == expected


def test_subscription_record_active_and_days_remaining():
    subscription = {
        "status": "active",
        "plan_id": "plan-medium",
        "plan_name": "Plan Medium",
        "price": 15000,
        "expires_at": NOW + timedelta(days=2, hours=1),
    }
    assert is_subscription_active(subscription, now=NOW) is True
    assert resolve_subscription_tier(subscription) == TIER_MEDIUM
    assert get_subscription_days_remaining(subscription, now=NOW) == 3

    subscription["expires_at"] = YESTERDAY
    assert is_subscription_active(subscription, now=NOW) is False
    assert get_subscription_days_remaining(subscription, now=NOW) == 0


def test_pending_subscription_is_not_active():
    assert is_subscription_active({"status": "pending", "expires_at": TOMORROW}, now=NOW) is False
    assert is_subscription_active(None) is False


def test_unknown_tier_falls_back_to_free_features():
    assert get_tier_features("gold") == SUBSCRIPTION_PERMISSIONS[TIER_FREE]


def test_required_tier_for():
    assert required_tier_for("profile") == TIER_FREE
    assert required_tier_for("patients") == TIER_MEDIUM
    assert required_tier_for("video-consultation") == TIER_PLUS
    assert required_tier_for("teleport") is None


def test_page_access():
    assert feature_for_page("/admin/schedule") == "appointments"
    assert feature_for_page("/admin/patients/123") == "patients"
    assert feature_for_page("/admin/dashboard") is None
    assert can_access_page(TIER_FREE, "/admin/profile") is True
    assert can_access_page(TIER_FREE, "/admin/patients") is False
    assert can_access_page(TIER_MEDIUM, "/admin/appointment") is True
    assert can_access_page(TIER_MEDIUM, "/admin/video-consultation") is False
    assert can_access_page(TIER_PLUS, "/admin/video-consultation") is True


def test_referrals_page_is_open_to_every_tier():
    assert feature_for_page("/admin/referrals") == "referrals"
    for tier in (TIER_FREE, TIER_MEDIUM, TIER_PLUS):
        assert has_feature_access(tier, "referrals") is True
        assert can_access_page(tier, "/admin/referrals") is True
