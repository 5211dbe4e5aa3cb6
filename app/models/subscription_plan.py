from sqlalchemy import Column, String, Integer, Boolean, DateTime, Float, Text, func
from sqlalchemy.types import JSON

from app.core.database import Base


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    id = Column(String, primary_key=True)  # plan-free, plan-medium, plan-plus
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False, default=0)
    duration_days = Column(Integer, nullable=False, default=30)
    features = Column(JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_popular = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())
