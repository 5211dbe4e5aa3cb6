"""Plan catalog and the current user's subscription."""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user, require_doctor_role
from app.core.permissions import (
    TIER_DISPLAY_NAMES,
    can_access_page,
    feature_for_page,
    get_subscription_days_remaining,
    get_tier_features,
    has_feature_access,
    is_subscription_active,
    required_tier_for,
)
from app.models.subscription import Subscription
from app.models.user import User
from app.schemas.subscription import (
    FeatureAccessOut,
    PageAccessOut,
    PlanOut,
    SubscriptionOut,
    SubscriptionSummary,
)
from app.services import subscriptions as subscription_service
from app.services.access import get_user_tier
from app.services.subscriptions import SubscriptionError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/plans", response_model=List[PlanOut])
async def list_plans(db: AsyncSession = Depends(get_db)):
    """Active plans, cheapest first."""
    return await subscription_service.list_active_plans(db)


@router.get("/me", response_model=SubscriptionSummary)
async def get_my_subscription(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tier = await get_user_tier(db, current_user.id)
    subscription = await subscription_service.fetch_subscription(db, current_user.id)
    active = subscription is not None and is_subscription_active(subscription)

    return SubscriptionSummary(
        tier=tier,
        tier_name=TIER_DISPLAY_NAMES[tier],
        plan_name=subscription.plan_name if active else "Plan Free",
        is_active=active,
        days_remaining=get_subscription_days_remaining(subscription) if active else 0,
        features=list(get_tier_features(tier)),
        subscription=SubscriptionOut.model_validate(subscription) if subscription else None,
    )


@router.get("/history", response_model=List[SubscriptionOut])
async def get_my_subscription_history(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Subscription)
        .where(Subscription.user_id == current_user.id)
        .order_by(Subscription.created_at.desc())
    )
    return result.scalars().all()


@router.post("/free", response_model=SubscriptionOut, status_code=201)
async def start_free_plan(
    current_user: User = Depends(require_doctor_role),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await subscription_service.create_free_subscription(db, current_user)
    except SubscriptionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/free/renew", response_model=SubscriptionOut)
async def renew_free_plan(
    current_user: User = Depends(require_doctor_role),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await subscription_service.renew_free_subscription(db, current_user)
    except SubscriptionError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/features/{feature}", response_model=FeatureAccessOut)
async def check_feature_access(
    feature: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tier = await get_user_tier(db, current_user.id)
    return FeatureAccessOut(
        feature=feature,
        has_access=has_feature_access(tier, feature),
        current_plan=tier,
        required_plan=required_tier_for(feature),
    )


@router.get("/page-access", response_model=PageAccessOut)
async def check_page_access(
    path: str = Query(..., description="Admin page path, e.g. /admin/patients"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tier = await get_user_tier(db, current_user.id)
    return PageAccessOut(
        page=path,
        can_access=can_access_page(tier, path),
        feature=feature_for_page(path),
        current_plan=tier,
    )
