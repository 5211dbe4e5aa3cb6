"""Seed fixed plans and the optional superadmin account on app startup."""

import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.database import async_session
from app.core.plans import DEFAULT_PLANS
from app.models.subscription_plan import SubscriptionPlan
from app.models.user import User
from app.services.auth import hash_password, get_user_by_email

logger = logging.getLogger(__name__)


async def seed_plans(db: AsyncSession) -> int:
    """Insert any missing fixed plan. Existing (possibly edited) plans are kept.

    Returns the number of plans created.
    """
    result = await db.execute(select(SubscriptionPlan.id))
    existing = {row[0] for row in result.all()}

    created = 0
    for config in DEFAULT_PLANS:
        if config["id"] in existing:
            continue
        db.add(SubscriptionPlan(**config))
        created += 1

    if created:
        await db.commit()
        logger.info("Seeded %d subscription plans", created)
    return created


async def seed_superadmin(db: AsyncSession) -> None:
    if not settings.SUPERADMIN_EMAIL or not settings.SUPERADMIN_PASSWORD:
        return

    if await get_user_by_email(db, settings.SUPERADMIN_EMAIL):
        logger.info("Superadmin already exists: %s", settings.SUPERADMIN_EMAIL)
        return

    db.add(User(
        email=settings.SUPERADMIN_EMAIL.lower(),
        hashed_password=hash_password(settings.SUPERADMIN_PASSWORD),
        full_name="Superadmin",
        role="superadmin",
        is_active=True,
    ))
    await db.commit()
    logger.info("Superadmin created: %s", settings.SUPERADMIN_EMAIL)


async def seed_defaults() -> None:
    async with async_session() as db:
        try:
            await seed_plans(db)
            await seed_superadmin(db)
        except Exception as e:
            logger.error("Startup seeding failed: %s", e)
            await db.rollback()
