"""Doctor profile.

Besides the public profile, each doctor carries a denormalized copy of its
subscription state (subscription_status / subscription_plan /
subscription_expires_at) so listings can badge doctors without joining the
subscriptions table. Those fields are only written by
app.services.subscriptions, in the same transaction as the subscription row.
"""

from sqlalchemy import Column, String, DateTime, Boolean, Text, Float, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
from app.core.database import Base


class Doctor(Base):
    __tablename__ = "doctors"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=True, index=True)
    slug = Column(String, unique=True, index=True, nullable=False)

    # Public profile
    name = Column(String, nullable=False)
    gender = Column(String, nullable=True)
    specialty = Column(String, nullable=True, index=True)
    description = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    license_number = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    verified = Column(Boolean, default=False, nullable=False)
    profile_complete = Column(Boolean, default=False, nullable=False)

    # Scheduling
    schedule_text = Column(String, nullable=True)  # "Lunes a Viernes, 9:00 AM - 5:00 PM"
    working_hours = Column(JSON, nullable=True)  # {"monday": {"start": "09:00", "end": "17:00", "enabled": true}, ...}

    # Subscription mirror
    subscription_status = Column(String, nullable=True)  # pending, active, rejected, expired
    subscription_plan = Column(String, nullable=True)  # "Plan Medium"
    subscription_plan_id = Column(String, nullable=True)
    subscription_expires_at = Column(DateTime, nullable=True)
    subscription_activated_at = Column(DateTime, nullable=True)

    # Last payment seen by the webhook
    last_payment_id = Column(String, nullable=True)
    last_payment_status = Column(String, nullable=True)
    last_payment_amount = Column(Float, nullable=True)
    last_payment_date = Column(DateTime, nullable=True)
    rejection_reason = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="doctor")
    appointments = relationship("Appointment", back_populates="doctor")
    reviews = relationship("Review", back_populates="doctor")
    patients = relationship("Patient", back_populates="doctor")
