"""Stripe billing for paid subscription plans.

Checkout creates a pending subscription plus a pending payment; the webhook
later approves or rejects both.
"""

import logging
import stripe
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.payment import Payment
from app.models.subscription import Subscription, SubscriptionStatus
from app.models.subscription_plan import SubscriptionPlan
from app.models.user import User
from app.services import subscriptions as subscription_service

logger = logging.getLogger(__name__)

# Configure Stripe
stripe.api_key = settings.STRIPE_API_KEY

APPROVE_EVENTS = ("checkout.session.completed", "checkout.session.async_payment_succeeded")
REJECT_EVENTS = ("checkout.session.async_payment_failed", "checkout.session.expired")


class BillingError(Exception):
    pass


def _to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


async def create_checkout_session(
    db: AsyncSession,
    user: User,
    plan: SubscriptionPlan,
    success_url: Optional[str] = None,
    cancel_url: Optional[str] = None,
) -> Tuple[str, Subscription]:
    """Open a Stripe Checkout session for ``plan``.

    Returns the hosted checkout URL and the pending subscription.
    """
    if not plan.price:
        raise BillingError("Free plans do not go through checkout")

    success_url = success_url or f"{settings.APP_URL}/admin/subscription?status=success"
    cancel_url = cancel_url or f"{settings.APP_URL}/admin/subscription?status=cancelled"

    try:
        session = stripe.checkout.Session.create(
            mode="payment",
            customer_email=user.email,
            line_items=[{
                "price_data": {
                    "currency": settings.STRIPE_CURRENCY,
                    "unit_amount": _to_minor_units(plan.price),
                    "product_data": {"name": plan.name, "description": plan.description or plan.name},
                },
                "quantity": 1,
            }],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata={"user_id": str(user.id), "plan_id": plan.id},
        )
    except stripe.StripeError as e:
        logger.error("Stripe error creating checkout session for user %s: %s", user.id, e)
        raise BillingError("Failed to create checkout session") from e

    subscription = await subscription_service.start_pending_subscription(
        db, user, plan, payment_method="stripe", checkout_session_id=session.id,
    )
    db.add(Payment(
        subscription_id=subscription.id,
        user_id=user.id,
        amount=plan.price,
        currency=settings.STRIPE_CURRENCY,
        status="pending",
        payment_method="stripe",
        checkout_session_id=session.id,
    ))
    await db.commit()
    await db.refresh(subscription)

    logger.info("Created checkout session %s for user %s (%s)", session.id, user.id, plan.id)
    return session.url, subscription


async def _find_by_session(
    db: AsyncSession, session_id: str
) -> Tuple[Optional[Subscription], Optional[Payment]]:
    result = await db.execute(select(Subscription).where(Subscription.checkout_session_id == session_id))
    subscription = result.scalar_one_or_none()
    result = await db.execute(select(Payment).where(Payment.checkout_session_id == session_id))
    payment = result.scalar_one_or_none()
    return subscription, payment


def _record_payment_on_doctor(doctor, payment: Payment) -> None:
    doctor.last_payment_id = payment.provider_payment_id or payment.checkout_session_id
    doctor.last_payment_status = payment.status
    doctor.last_payment_amount = payment.amount
    doctor.last_payment_date = datetime.utcnow()


async def handle_checkout_approved(db: AsyncSession, session: Dict[str, Any]) -> Optional[Subscription]:
    """Activate the subscription behind a paid checkout session."""
    session_id = session.get("id")
    if not session_id:
        logger.warning("Checkout event without a session id, ignoring")
        return None

    subscription, payment = await _find_by_session(db, session_id)
    if subscription is None:
        logger.warning("No subscription found for checkout session %s", session_id)
        return None

    if session.get("payment_status") not in ("paid", "no_payment_required"):
        # completed but still processing (delayed payment methods)
        logger.info("Checkout session %s completed with payment_status=%s, waiting",
                    session_id, session.get("payment_status"))
        return subscription

    if subscription.status == SubscriptionStatus.ACTIVE.value:
        logger.info("Subscription %s already active, ignoring duplicate event", subscription.id)
        return subscription

    if payment is not None:
        payment.status = "approved"
        payment.status_detail = session.get("payment_status")
        payment.provider_payment_id = session.get("payment_intent")
        payment.approved_at = datetime.utcnow()
        doctor = await subscription_service.fetch_doctor_record(db, subscription.user_id)
        if doctor:
            _record_payment_on_doctor(doctor, payment)

    return await subscription_service.activate_subscription(db, subscription, activation_type="payment")


async def handle_checkout_rejected(
    db: AsyncSession, session: Dict[str, Any], event_type: str
) -> Optional[Subscription]:
    session_id = session.get("id")
    if not session_id:
        logger.warning("%s event without a session id, ignoring", event_type)
        return None

    subscription, payment = await _find_by_session(db, session_id)
    if subscription is None:
        logger.warning("No subscription found for checkout session %s", session_id)
        return None

    if subscription.status != SubscriptionStatus.PENDING.value:
        logger.info("Subscription %s is %s, ignoring %s", subscription.id, subscription.status, event_type)
        return subscription

    reason = "Checkout expired" if event_type == "checkout.session.expired" else "Payment failed"
    if payment is not None:
        payment.status = "rejected"
        payment.status_detail = event_type
        doctor = await subscription_service.fetch_doctor_record(db, subscription.user_id)
        if doctor:
            _record_payment_on_doctor(doctor, payment)

    return await subscription_service.reject_subscription(db, subscription, reason=reason)


async def handle_event(db: AsyncSession, event: Dict[str, Any]) -> None:
    event_type = event.get("type")
    data = event.get("data")
    data = data.get("object") if isinstance(data, dict) else None
    if not isinstance(data, dict):
        data = {}

    logger.info("Stripe webhook received: %s", event_type)

    if event_type in APPROVE_EVENTS:
        await handle_checkout_approved(db, data)
    elif event_type in REJECT_EVENTS:
        await handle_checkout_rejected(db, data, event_type)
    else:
        logger.info("Unhandled Stripe event type: %s", event_type)


async def payment_stats(db: AsyncSession) -> Dict[str, Any]:
    """Totals for the superadmin dashboard; amounts count approved payments only."""
    result = await db.execute(select(Payment))
    payments = list(result.scalars().all())
    approved = [p for p in payments if p.status == "approved"]
    total_amount = sum(p.amount for p in approved)
    return {
        "total": len(payments),
        "approved": len(approved),
        "pending": sum(1 for p in payments if p.status == "pending"),
        "rejected": sum(1 for p in payments if p.status == "rejected"),
        "total_amount": total_amount,
        "avg_amount": round(total_amount / len(approved), 2) if approved else 0,
    }
