"""Checkout and Stripe webhook endpoints."""

import json
import logging
import stripe
from fastapi import APIRouter, Request, HTTPException, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.config import settings
from app.core.dependencies import require_doctor_role
from app.models.user import User
from app.schemas.subscription import CheckoutOut, CheckoutRequest
from app.services import billing as billing_service
from app.services import subscriptions as subscription_service
from app.services.billing import BillingError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/checkout", response_model=CheckoutOut)
async def create_checkout(
    body: CheckoutRequest,
    current_user: User = Depends(require_doctor_role),
    db: AsyncSession = Depends(get_db),
):
    """Start a Stripe Checkout for a paid plan.

    Returns the hosted checkout URL to redirect the doctor to.
    """
    if not settings.STRIPE_API_KEY:
        raise HTTPException(status_code=503, detail="Billing is not configured")

    plan = await subscription_service.get_plan(db, body.plan_id)
    if not plan or not plan.is_active:
        raise HTTPException(status_code=404, detail="Plan not found")
    if not plan.price:
        raise HTTPException(status_code=400, detail="The free plan does not require checkout")

    try:
        checkout_url, subscription = await billing_service.create_checkout_session(
            db, current_user, plan, success_url=body.success_url, cancel_url=body.cancel_url,
        )
    except BillingError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return CheckoutOut(checkout_url=checkout_url, subscription_id=subscription.id)


@router.post("/webhook")
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """Handle Stripe Checkout events."""
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    if not settings.STRIPE_WEBHOOK_SECRET:
        if settings.APP_ENV == "production":
            logger.error("Stripe webhook secret not configured, refusing unsigned event")
            raise HTTPException(status_code=503, detail="Webhook verification is not configured")
        logger.warning("Stripe webhook secret not configured, skipping verification")
    elif not sig_header:
        logger.error("Webhook received without a Stripe-Signature header")
        raise HTTPException(status_code=400, detail="Missing signature")
    else:
        try:
            stripe.Webhook.construct_event(payload, sig_header, settings.STRIPE_WEBHOOK_SECRET)
        except ValueError:
            logger.error("Invalid webhook payload")
            raise HTTPException(status_code=400, detail="Invalid payload")
        except stripe.SignatureVerificationError:
            logger.error("Invalid webhook signature")
            raise HTTPException(status_code=400, detail="Invalid signature")

    try:
        event = json.loads(payload)
    except ValueError:
        logger.error("Invalid webhook payload")
        raise HTTPException(status_code=400, detail="Invalid payload")
    if not isinstance(event, dict):
        raise HTTPException(status_code=400, detail="Invalid payload")

    await billing_service.handle_event(db, event)
    return {"status": "ok"}
