"""Subscription tiers, the feature permission table and tier resolution.

Everything here is pure: callers fetch the subscription or doctor record and
pass it in. Records may be ORM objects, pydantic models or plain dicts.
"""

import logging
from datetime import datetime
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from app.utils.timestamps import to_utc_datetime, utc_now

logger = logging.getLogger(__name__)

TIER_FREE = "free"
TIER_MEDIUM = "medium"
TIER_PLUS = "plus"

TIER_ORDER: Tuple[str, ...] = (TIER_FREE, TIER_MEDIUM, TIER_PLUS)

_FREE_FEATURES = ("profile", "subscription", "referrals")
_MEDIUM_FEATURES = _FREE_FEATURES + (
    "schedule",
    "nuevo-paciente",
    "patients",
    "appointments",
    "reviews",
)
_PLUS_FEATURES = _MEDIUM_FEATURES + ("video-consultation",)

SUBSCRIPTION_PERMISSIONS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    TIER_FREE: _FREE_FEATURES,
    TIER_MEDIUM: _MEDIUM_FEATURES,
    TIER_PLUS: _PLUS_FEATURES,
})

ALL_FEATURES: Tuple[str, ...] = _PLUS_FEATURES

PLAN_MAPPING: Mapping[str, str] = MappingProxyType({
    "free": TIER_FREE,
    "medium": TIER_MEDIUM,
    "plus": TIER_PLUS,
    "plan-free": TIER_FREE,
    "plan-medium": TIER_MEDIUM,
    "plan-plus": TIER_PLUS,
})

RANK_LABELS: Mapping[str, str] = MappingProxyType({
    TIER_FREE: "Normal",
    TIER_MEDIUM: "Intermedio",
    TIER_PLUS: "VIP",
})

TIER_DISPLAY_NAMES: Mapping[str, str] = MappingProxyType({
    TIER_FREE: "Free",
    TIER_MEDIUM: "Medium",
    TIER_PLUS: "Plus",
})

# Admin pages -> feature tag. /admin/schedule is gated by appointments.
PAGE_FEATURES: Mapping[str, str] = MappingProxyType({
    "/admin/profile": "profile",
    "/admin/subscription": "subscription",
    "/admin/referrals": "referrals",
    "/admin/nuevo-paciente": "nuevo-paciente",
    "/admin/patients": "patients",
    "/admin/appointment": "appointments",
    "/admin/reviews": "reviews",
    "/admin/video-consultation": "video-consultation",
    "/admin/schedule": "appointments",
})


def _field(record: Any, name: str, default: Any = None) -> Any:
    if record is None:
        return default
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def is_expired(expires_at: Any, now: Optional[datetime] = None) -> bool:
    """True when ``expires_at`` is strictly before now or cannot be read."""
    expiry = to_utc_datetime(expires_at)
    if expiry is None:
        return True
    return expiry < (to_utc_datetime(now) or utc_now())


# ============================================================================
# DOCTOR MIRROR FIELDS
# ============================================================================

def resolve_tier(record: Any, now: Optional[datetime] = None) -> str:
    """Resolve the tier from the doctor-profile mirror fields.

    Reads ``subscription_status``, ``subscription_expires_at`` and
    ``subscription_plan``. Anything not active, or active but expired,
    resolves to free.
    """
    if _field(record, "subscription_status") != "active":
        return TIER_FREE

    expires_at = _field(record, "subscription_expires_at")
    if expires_at is not None and is_expired(expires_at, now):
        return TIER_FREE

    plan = (_field(record, "subscription_plan") or "").lower()
    if "plus" in plan or "premium" in plan:
        return TIER_PLUS
    if "medium" in plan or "medio" in plan:
        return TIER_MEDIUM
    return TIER_FREE


def get_doctor_rank(record: Any, now: Optional[datetime] = None) -> str:
    """Badge label (Normal / Intermedio / VIP) for listings."""
    return RANK_LABELS[resolve_tier(record, now)]


def get_doctor_plan_name(record: Any, now: Optional[datetime] = None) -> str:
    if _is_mirror_active(record, now):
        return _field(record, "subscription_plan") or "Plan Free"
    return "Plan Free"


def _is_mirror_active(record: Any, now: Optional[datetime] = None) -> bool:
    if _field(record, "subscription_status") != "active":
        return False
    expires_at = _field(record, "subscription_expires_at")
    return expires_at is None or not is_expired(expires_at, now)


# ============================================================================
# SUBSCRIPTION RECORDS
# ============================================================================

def is_subscription_active(subscription: Any, now: Optional[datetime] = None) -> bool:
    """Active means status == "active" and not past ``expires_at``.

    A subscription without an expiry date never lapses.
    """
    if subscription is None:
        return False
    if _field(subscription, "status") != "active":
        return False
    expires_at = _field(subscription, "expires_at")
    if expires_at is None:
        return True
    return not is_expired(expires_at, now)


def determine_plan_key(plan_id: Optional[str], plan_name: Optional[str], price: Any = 0) -> str:
    """Map a subscription's plan id / name / price to a tier key."""
    if price is not None and price == 0:
        return TIER_FREE

    if plan_id in PLAN_MAPPING:
        return PLAN_MAPPING[plan_id]

    name = (plan_name or "").lower()
    if "free" in name or "gratis" in name:
        return TIER_FREE
    if "medium" in name or "medio" in name:
        return TIER_MEDIUM
    if "plus" in name or "premium" in name:
        return TIER_PLUS
    return TIER_FREE


def resolve_subscription_tier(subscription: Any) -> str:
    return determine_plan_key(
        _field(subscription, "plan_id"),
        _field(subscription, "plan_name"),
        _field(subscription, "price", 0),
    )


def get_subscription_days_remaining(subscription: Any, now: Optional[datetime] = None) -> int:
    """Whole days left before expiry, rounded up; 0 when expired or unknown."""
    expiry = to_utc_datetime(_field(subscription, "expires_at"))
    if expiry is None:
        return 0
    remaining = (expiry - (to_utc_datetime(now) or utc_now())).total_seconds()
    if remaining <= 0:
        return 0
    days, rest = divmod(remaining, 86400)
    return int(days) + (1 if rest else 0)


# ============================================================================
# FEATURE CHECKS
# ============================================================================

def get_tier_features(tier: str) -> Tuple[str, ...]:
    return SUBSCRIPTION_PERMISSIONS.get(tier, SUBSCRIPTION_PERMISSIONS[TIER_FREE])


def has_feature_access(tier: str, feature: str) -> bool:
    return feature in get_tier_features(tier)


def required_tier_for(feature: str) -> Optional[str]:
    """Lowest tier that unlocks ``feature``; None for unknown features."""
    for tier in TIER_ORDER:
        if feature in SUBSCRIPTION_PERMISSIONS[tier]:
            return tier
    return None


def feature_for_page(page_path: str) -> Optional[str]:
    """Feature tag guarding an admin page, or None when the page is open."""
    feature = PAGE_FEATURES.get(page_path)
    if feature:
        return feature
    if "/patients" in page_path:
        return "patients"
    if "/appointment" in page_path:
        return "appointments"
    if "/video-consultation" in page_path:
        return "video-consultation"
    return None


def can_access_page(tier: str, page_path: str) -> bool:
    feature = feature_for_page(page_path)
    if feature is None:
        return True
    return has_feature_access(tier, feature)
