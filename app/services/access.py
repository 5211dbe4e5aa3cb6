"""Effective tier and feature access for a user.

The subscription record is read first; the doctor-profile mirror is only a
fallback for users whose subscription lookup yields nothing active. Any
failure to read either source means no paid access.
"""

import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Tuple
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import (
    TIER_FREE,
    get_tier_features,
    has_feature_access,
    is_subscription_active,
    resolve_subscription_tier,
    resolve_tier,
)
from app.services import subscriptions as subscription_service

logger = logging.getLogger(__name__)

RecordFetcher = Callable[[Any], Awaitable[Any]]


async def resolve_user_tier(
    user_id: Any,
    fetch_subscription: RecordFetcher,
    fetch_doctor_record: RecordFetcher,
    now: Optional[datetime] = None,
) -> str:
    try:
        subscription = await fetch_subscription(user_id)
    except Exception as e:
        logger.error("Subscription lookup failed for user %s, treating as free: %s", user_id, e)
        return TIER_FREE

    if subscription is not None and is_subscription_active(subscription, now):
        tier = resolve_subscription_tier(subscription)
        await _check_mirror(user_id, tier, fetch_doctor_record, now)
        return tier

    try:
        doctor = await fetch_doctor_record(user_id)
    except Exception as e:
        logger.error("Doctor lookup failed for user %s, treating as free: %s", user_id, e)
        return TIER_FREE

    if doctor is None:
        return TIER_FREE

    tier = resolve_tier(doctor, now)
    if tier != TIER_FREE:
        logger.warning(
            "User %s has no active subscription record but doctor mirror says %s",
            user_id, tier,
        )
    return tier


async def _check_mirror(user_id: Any, tier: str, fetch_doctor_record: RecordFetcher, now: Optional[datetime]) -> None:
    try:
        doctor = await fetch_doctor_record(user_id)
    except Exception as e:
        logger.debug("Doctor mirror unavailable for user %s: %s", user_id, e)
        return
    if doctor is None:
        return
    mirrored = resolve_tier(doctor, now)
    if mirrored != tier:
        logger.warning(
            "Doctor mirror out of sync for user %s: subscription=%s mirror=%s",
            user_id, tier, mirrored,
        )


async def get_user_tier(db: AsyncSession, user_id: UUID) -> str:
    """Tier for ``user_id`` read from the database."""

    async def _subscription(uid):
        return await subscription_service.fetch_subscription(db, uid)

    async def _doctor(uid):
        return await subscription_service.fetch_doctor_record(db, uid)

    return await resolve_user_tier(user_id, _subscription, _doctor)


async def get_user_features(db: AsyncSession, user_id: UUID) -> Tuple[str, ...]:
    return get_tier_features(await get_user_tier(db, user_id))


async def has_user_feature_access(db: AsyncSession, user_id: UUID, feature: str) -> bool:
    return has_feature_access(await get_user_tier(db, user_id), feature)
