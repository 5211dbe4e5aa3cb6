"""Subscription lifecycle.

The ``subscriptions`` table is the authoritative subscription state. The
mirror fields on ``doctors`` are a read cache for listings and are only ever
written here, in the same transaction as the subscription row they copy.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.plans import PLAN_DURATION_DAYS, get_plan_config
from app.core.permissions import is_subscription_active, is_expired
from app.models.doctor import Doctor
from app.models.subscription import Subscription, SubscriptionStatus
from app.models.subscription_plan import SubscriptionPlan
from app.models.user import User
from app.services.audit_service import log_admin_action

logger = logging.getLogger(__name__)


class SubscriptionError(ValueError):
    """Raised when a lifecycle transition is not allowed."""


# ============================================================================
# READS
# ============================================================================

async def get_plan(db: AsyncSession, plan_id: str) -> Optional[SubscriptionPlan]:
    result = await db.execute(select(SubscriptionPlan).where(SubscriptionPlan.id == plan_id))
    return result.scalar_one_or_none()


async def list_active_plans(db: AsyncSession) -> list[SubscriptionPlan]:
    result = await db.execute(
        select(SubscriptionPlan)
        .where(SubscriptionPlan.is_active == True)  # noqa: E712
        .order_by(SubscriptionPlan.price)
    )
    return list(result.scalars().all())


async def _latest_with_status(db: AsyncSession, user_id: UUID, status: str) -> Optional[Subscription]:
    result = await db.execute(
        select(Subscription)
        .where(Subscription.user_id == user_id, Subscription.status == status)
        .order_by(Subscription.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def fetch_subscription(db: AsyncSession, user_id: UUID) -> Optional[Subscription]:
    """The user's current subscription: newest active one, else newest pending."""
    subscription = await _latest_with_status(db, user_id, SubscriptionStatus.ACTIVE.value)
    if subscription is None:
        subscription = await _latest_with_status(db, user_id, SubscriptionStatus.PENDING.value)
    return subscription


async def fetch_doctor_record(db: AsyncSession, user_id: UUID) -> Optional[Doctor]:
    result = await db.execute(select(Doctor).where(Doctor.user_id == user_id))
    return result.scalar_one_or_none()


# ============================================================================
# MIRROR
# ============================================================================

def _mirror_active(doctor: Doctor, subscription: Subscription) -> None:
    doctor.subscription_status = SubscriptionStatus.ACTIVE.value
    doctor.subscription_plan = subscription.plan_name
    doctor.subscription_plan_id = subscription.plan_id
    doctor.subscription_expires_at = subscription.expires_at
    doctor.subscription_activated_at = subscription.activated_at
    doctor.rejection_reason = None


def _mirror_status(doctor: Doctor, status: str) -> None:
    """Copy a non-active status unless the doctor still holds a live plan."""
    if doctor.subscription_status == SubscriptionStatus.ACTIVE.value and (
        doctor.subscription_expires_at is None or not is_expired(doctor.subscription_expires_at)
    ):
        return
    doctor.subscription_status = status


# ============================================================================
# WRITES
# ============================================================================

async def start_pending_subscription(
    db: AsyncSession,
    user: User,
    plan: SubscriptionPlan,
    payment_method: str,
    checkout_session_id: Optional[str] = None,
) -> Subscription:
    """Add a pending subscription for ``plan``. The caller commits."""
    subscription = Subscription(
        user_id=user.id,
        plan_id=plan.id,
        plan_name=plan.name,
        price=plan.price,
        status=SubscriptionStatus.PENDING.value,
        payment_method=payment_method,
        activation_type="payment",
        checkout_session_id=checkout_session_id,
    )
    db.add(subscription)

    doctor = await fetch_doctor_record(db, user.id)
    if doctor:
        _mirror_status(doctor, SubscriptionStatus.PENDING.value)

    await db.flush()
    return subscription


async def activate_subscription(
    db: AsyncSession,
    subscription: Subscription,
    activation_type: str = "payment",
    activated_by: Optional[str] = None,
    starts_at: Optional[datetime] = None,
    expires_at: Optional[datetime] = None,
    verify_doctor: bool = True,
) -> Subscription:
    """Mark ``subscription`` active and refresh the doctor's mirror fields."""
    now = datetime.utcnow()
    starts_at = starts_at or now
    duration = PLAN_DURATION_DAYS
    plan = await get_plan(db, subscription.plan_id)
    if plan and plan.duration_days:
        duration = plan.duration_days

    subscription.status = SubscriptionStatus.ACTIVE.value
    subscription.activation_type = activation_type
    subscription.activated_by = activated_by
    subscription.activated_at = starts_at
    subscription.expires_at = expires_at or starts_at + timedelta(days=duration)

    doctor = await fetch_doctor_record(db, subscription.user_id)
    if doctor:
        _mirror_active(doctor, subscription)
        if verify_doctor:
            doctor.verified = True

    await db.commit()
    await db.refresh(subscription)

    logger.info(
        "Subscription %s activated for user %s: %s until %s (%s)",
        subscription.id, subscription.user_id, subscription.plan_name,
        subscription.expires_at, activation_type,
    )
    return subscription


async def reject_subscription(
    db: AsyncSession,
    subscription: Subscription,
    reason: Optional[str] = None,
) -> Subscription:
    subscription.status = SubscriptionStatus.REJECTED.value

    doctor = await fetch_doctor_record(db, subscription.user_id)
    if doctor:
        _mirror_status(doctor, SubscriptionStatus.REJECTED.value)
        doctor.rejection_reason = reason

    await db.commit()
    await db.refresh(subscription)

    logger.info(
        "Subscription %s rejected for user %s: %s",
        subscription.id, subscription.user_id, reason or "no reason given",
    )
    return subscription


async def create_free_subscription(db: AsyncSession, user: User) -> Subscription:
    """Give ``user`` the free plan for one period."""
    current = await fetch_subscription(db, user.id)
    if current is not None and is_subscription_active(current):
        raise SubscriptionError("User already has an active subscription")

    plan = await get_plan(db, "plan-free")
    config = get_plan_config("plan-free")
    subscription = Subscription(
        user_id=user.id,
        plan_id="plan-free",
        plan_name=plan.name if plan else config["name"],
        price=0,
        status=SubscriptionStatus.PENDING.value,
        payment_method="free",
    )
    db.add(subscription)
    await db.flush()
    return await activate_subscription(db, subscription, activation_type="free", verify_doctor=False)


async def renew_free_subscription(db: AsyncSession, user: User) -> Subscription:
    """Push an active free subscription's expiry one period past now."""
    current = await fetch_subscription(db, user.id)
    if current is None or current.plan_id != "plan-free" or current.status != SubscriptionStatus.ACTIVE.value:
        raise SubscriptionError("No free subscription to renew")

    now = datetime.utcnow()
    current.expires_at = now + timedelta(days=PLAN_DURATION_DAYS)
    current.renewed_at = now

    doctor = await fetch_doctor_record(db, user.id)
    if doctor:
        _mirror_active(doctor, current)

    await db.commit()
    await db.refresh(current)
    logger.info("Free subscription %s renewed until %s", current.id, current.expires_at)
    return current


async def manual_activate(
    db: AsyncSession,
    admin: User,
    user_id: UUID,
    plan_id: str,
    starts_at: datetime,
    expires_at: datetime,
) -> Subscription:
    """Superadmin activation: replaces whatever the user currently has."""
    if starts_at >= expires_at:
        raise SubscriptionError("Start date must be before end date")

    plan = await get_plan(db, plan_id)
    if plan is None:
        raise SubscriptionError(f"Unknown plan: {plan_id}")

    await db.execute(
        update(Subscription)
        .where(
            Subscription.user_id == user_id,
            Subscription.status.in_([SubscriptionStatus.ACTIVE.value, SubscriptionStatus.PENDING.value]),
        )
        .values(status=SubscriptionStatus.EXPIRED.value)
    )

    subscription = Subscription(
        user_id=user_id,
        plan_id=plan.id,
        plan_name=plan.name,
        price=plan.price,
        status=SubscriptionStatus.PENDING.value,
        payment_method="manual",
    )
    db.add(subscription)
    await db.flush()

    subscription = await activate_subscription(
        db,
        subscription,
        activation_type="manual",
        activated_by=admin.email,
        starts_at=starts_at,
        expires_at=expires_at,
    )

    await log_admin_action(
        db,
        admin_id=admin.id,
        action="subscription_activate",
        target_user_id=user_id,
        details={
            "plan_id": plan.id,
            "starts_at": starts_at.isoformat(),
            "expires_at": expires_at.isoformat(),
        },
    )
    return subscription
