"""Pydantic schemas for superadmin endpoints."""

from datetime import datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, Field


class AdminDoctorOut(BaseModel):
    """Doctor row with its subscription mirror, for the back office."""
    id: UUID
    user_id: Optional[UUID] = None
    slug: str
    name: str
    email: Optional[str] = None
    specialty: Optional[str] = None
    verified: bool
    profile_complete: bool
    subscription_status: Optional[str] = None
    subscription_plan: Optional[str] = None
    subscription_expires_at: Optional[datetime] = None
    last_payment_status: Optional[str] = None
    last_payment_amount: Optional[float] = None
    rank: str
    created_at: Optional[datetime] = None


class AdminDoctorList(BaseModel):
    doctors: List[AdminDoctorOut]
    total: int
    limit: int
    offset: int


class DoctorVerifyUpdate(BaseModel):
    verified: bool = True


class ManualActivation(BaseModel):
    """Activate a plan for a user without payment."""
    user_id: UUID
    plan_id: str
    starts_at: datetime
    expires_at: datetime


class PlanUpdate(BaseModel):
    """Editable fields of a fixed plan."""
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    features: Optional[List[str]] = None


class SubscriptionOverviewItem(BaseModel):
    id: UUID
    user_id: UUID
    user_email: Optional[str] = None
    plan_id: str
    plan_name: str
    price: float
    status: str
    activation_type: Optional[str] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    days_remaining: int


class PaymentStats(BaseModel):
    total: int
    approved: int
    pending: int
    rejected: int
    total_amount: float
    avg_amount: float


class AuditLogOut(BaseModel):
    id: UUID
    admin_id: UUID
    action: str
    target_user_id: Optional[UUID] = None
    details: Optional[dict] = None
    created_at: datetime

    class Config:
        from_attributes = True
