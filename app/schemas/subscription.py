"""Pydantic schemas for plans, subscriptions and checkout."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel


class PlanOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: float
    duration_days: int
    features: Optional[List[str]] = None
    is_active: bool
    is_popular: bool

    class Config:
        from_attributes = True


class SubscriptionOut(BaseModel):
    id: UUID
    user_id: UUID
    plan_id: str
    plan_name: str
    price: float
    status: str
    payment_method: Optional[str] = None
    activation_type: Optional[str] = None
    activated_by: Optional[str] = None
    created_at: Optional[datetime] = None
    activated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    renewed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubscriptionSummary(BaseModel):
    """Current plan as the dashboard shows it."""
    tier: str
    tier_name: str
    plan_name: str
    is_active: bool
    days_remaining: int
    features: List[str]
    subscription: Optional[SubscriptionOut] = None


class FeatureAccessOut(BaseModel):
    feature: str
    has_access: bool
    current_plan: str
    required_plan: Optional[str] = None


class PageAccessOut(BaseModel):
    page: str
    can_access: bool
    feature: Optional[str] = None
    current_plan: str


class CheckoutRequest(BaseModel):
    plan_id: str
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None


class CheckoutOut(BaseModel):
    checkout_url: str
    subscription_id: UUID
