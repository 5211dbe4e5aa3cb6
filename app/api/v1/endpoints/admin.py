"""Superadmin back office.

All routes require the superadmin role.
"""

import logging
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import require_superadmin
from app.core.permissions import get_doctor_rank, get_subscription_days_remaining
from app.core.plans import build_plan_update, plan_sort_key
from app.core.seed import seed_plans
from app.models.doctor import Doctor
from app.models.subscription import Subscription
from app.models.subscription_plan import SubscriptionPlan
from app.models.user import User
from app.schemas.admin import (
    AdminDoctorList,
    AdminDoctorOut,
    AuditLogOut,
    DoctorVerifyUpdate,
    ManualActivation,
    PaymentStats,
    PlanUpdate,
    SubscriptionOverviewItem,
)
from app.schemas.subscription import PlanOut, SubscriptionOut
from app.services import subscriptions as subscription_service
from app.services.audit_service import list_admin_actions, log_admin_action
from app.services.billing import payment_stats
from app.services.subscriptions import SubscriptionError
from app.utils.timestamps import to_utc_datetime

router = APIRouter()
logger = logging.getLogger(__name__)


def _naive_utc(value):
    return to_utc_datetime(value).replace(tzinfo=None)


# ============================================================================
# DOCTORS
# ============================================================================

@router.get("/doctors", response_model=AdminDoctorList)
async def list_doctors(
    verified: Optional[bool] = Query(None),
    subscription_status: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db),
):
    query = select(Doctor)
    count_query = select(func.count(Doctor.id))
    if verified is not None:
        query = query.where(Doctor.verified == verified)
        count_query = count_query.where(Doctor.verified == verified)
    if subscription_status:
        query = query.where(Doctor.subscription_status == subscription_status)
        count_query = count_query.where(Doctor.subscription_status == subscription_status)

    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(query.order_by(Doctor.created_at.desc()).offset(offset).limit(limit))

    doctors = [
        AdminDoctorOut(
            id=d.id,
            user_id=d.user_id,
            slug=d.slug,
            name=d.name,
            email=d.email,
            specialty=d.specialty,
            verified=d.verified,
            profile_complete=d.profile_complete,
            subscription_status=d.subscription_status,
            subscription_plan=d.subscription_plan,
            subscription_expires_at=d.subscription_expires_at,
            last_payment_status=d.last_payment_status,
            last_payment_amount=d.last_payment_amount,
            rank=get_doctor_rank(d),
            created_at=d.created_at,
        )
        for d in result.scalars().all()
    ]
    return AdminDoctorList(doctors=doctors, total=total, limit=limit, offset=offset)


@router.put("/doctors/{doctor_id}/verify", response_model=AdminDoctorOut)
async def verify_doctor(
    doctor_id: UUID,
    body: DoctorVerifyUpdate,
    current_user: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Doctor).where(Doctor.id == doctor_id))
    doctor = result.scalar_one_or_none()
    if not doctor:
        raise HTTPException(status_code=404, detail="Doctor not found")

    doctor.verified = body.verified
    await db.commit()
    await db.refresh(doctor)

    await log_admin_action(
        db,
        admin_id=current_user.id,
        action="doctor_verify",
        target_user_id=doctor.user_id,
        details={"doctor_id": str(doctor.id), "verified": body.verified},
    )

    return AdminDoctorOut(
        id=doctor.id,
        user_id=doctor.user_id,
        slug=doctor.slug,
        name=doctor.name,
        email=doctor.email,
        specialty=doctor.specialty,
        verified=doctor.verified,
        profile_complete=doctor.profile_complete,
        subscription_status=doctor.subscription_status,
        subscription_plan=doctor.subscription_plan,
        subscription_expires_at=doctor.subscription_expires_at,
        last_payment_status=doctor.last_payment_status,
        last_payment_amount=doctor.last_payment_amount,
        rank=get_doctor_rank(doctor),
        created_at=doctor.created_at,
    )


# ============================================================================
# SUBSCRIPTIONS
# ============================================================================

@router.post("/subscriptions/activate", response_model=SubscriptionOut)
async def activate_subscription(
    body: ManualActivation,
    current_user: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db),
):
    """Activate a plan by hand, replacing the user's current subscription."""
    result = await db.execute(select(User).where(User.id == body.user_id))
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=404, detail="User not found")

    try:
        return await subscription_service.manual_activate(
            db,
            admin=current_user,
            user_id=body.user_id,
            plan_id=body.plan_id,
            starts_at=_naive_utc(body.starts_at),
            expires_at=_naive_utc(body.expires_at),
        )
    except SubscriptionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/subscriptions", response_model=List[SubscriptionOverviewItem])
async def list_subscriptions(
    status: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    current_user: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db),
):
    query = select(Subscription, User.email).join(User, User.id == Subscription.user_id)
    if status:
        query = query.where(Subscription.status == status)
    result = await db.execute(query.order_by(Subscription.created_at.desc()).limit(limit))

    return [
        SubscriptionOverviewItem(
            id=sub.id,
            user_id=sub.user_id,
            user_email=email,
            plan_id=sub.plan_id,
            plan_name=sub.plan_name,
            price=sub.price,
            status=sub.status,
            activation_type=sub.activation_type,
            created_at=sub.created_at,
            expires_at=sub.expires_at,
            days_remaining=get_subscription_days_remaining(sub),
        )
        for sub, email in result.all()
    ]


# ============================================================================
# PLANS
# ============================================================================

@router.get("/plans", response_model=List[PlanOut])
async def list_all_plans(
    current_user: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(SubscriptionPlan))
    return sorted(result.scalars().all(), key=lambda p: plan_sort_key(p.id))


@router.put("/plans/{plan_id}", response_model=PlanOut)
async def update_plan(
    plan_id: str,
    body: PlanUpdate,
    current_user: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db),
):
    """Edit one of the fixed plans. New plans cannot be created."""
    try:
        changes = build_plan_update(plan_id, body.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    plan = await subscription_service.get_plan(db, plan_id)
    if not plan:
        raise HTTPException(status_code=404, detail="Plan not found, seed plans first")

    for field, value in changes.items():
        setattr(plan, field, value)
    await db.commit()
    await db.refresh(plan)

    await log_admin_action(
        db,
        admin_id=current_user.id,
        action="plan_update",
        details={"plan_id": plan_id, "changes": changes},
    )
    return plan


@router.post("/plans/seed")
async def seed_fixed_plans(
    current_user: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db),
):
    created = await seed_plans(db)
    return {"created": created}


# ============================================================================
# PAYMENTS & AUDIT
# ============================================================================

@router.get("/payments/stats", response_model=PaymentStats)
async def get_payment_stats(
    current_user: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db),
):
    return await payment_stats(db)


@router.get("/audit-log", response_model=List[AuditLogOut])
async def get_audit_log(
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(require_superadmin),
    db: AsyncSession = Depends(get_db),
):
    return await list_admin_actions(db, limit=limit)
