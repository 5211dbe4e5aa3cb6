"""Pydantic schemas for the doctor directory and profiles."""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from app.services.scheduling import WEEKDAY_KEYS, time_to_minutes


class DoctorCard(BaseModel):
    """Directory listing entry."""
    id: UUID
    slug: str
    name: str
    display_name: str
    gender: Optional[str] = None
    specialty: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    image_url: Optional[str] = None
    schedule_text: Optional[str] = None
    verified: bool
    rank: str  # Normal, Intermedio, VIP
    plan_name: str


class DoctorList(BaseModel):
    doctors: List[DoctorCard]
    total: int
    page: int
    page_size: int


class DoctorProfile(DoctorCard):
    """Public profile page, with the rating summary."""
    address: Optional[str] = None
    working_hours: Optional[dict] = None
    rating_average: float = 0.0
    rating_count: int = 0


class DoctorOwnProfile(BaseModel):
    """What a doctor sees about their own profile."""
    id: UUID
    slug: str
    name: str
    gender: Optional[str] = None
    specialty: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    license_number: Optional[str] = None
    image_url: Optional[str] = None
    schedule_text: Optional[str] = None
    working_hours: Optional[dict] = None
    verified: bool
    profile_complete: bool
    subscription_status: Optional[str] = None
    subscription_plan: Optional[str] = None
    subscription_expires_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    class Config:
        from_attributes = True


class DoctorProfileUpdate(BaseModel):
    name: Optional[str] = None
    gender: Optional[str] = None
    specialty: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    license_number: Optional[str] = None
    image_url: Optional[str] = None
    schedule_text: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_required(cls, v: Optional[str]) -> str:
        # the column is NOT NULL; omit the field to keep the current name
        if v is None or not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()


class DayHours(BaseModel):
    start: str = "09:00"
    end: str = "17:00"
    enabled: bool = True

    @field_validator("start", "end")
    @classmethod
    def valid_time(cls, v: str) -> str:
        time_to_minutes(v)
        return v


class WorkingHoursUpdate(BaseModel):
    """Per-weekday hours keyed sunday..saturday."""
    working_hours: Dict[str, DayHours] = Field(default_factory=dict)

    @field_validator("working_hours")
    @classmethod
    def known_days(cls, v: Dict[str, DayHours]) -> Dict[str, DayHours]:
        unknown = set(v) - set(WEEKDAY_KEYS)
        if unknown:
            raise ValueError(f"Unknown weekday keys: {', '.join(sorted(unknown))}")
        for key, day in v.items():
            if day.enabled and time_to_minutes(day.start) >= time_to_minutes(day.end):
                raise ValueError(f"{key}: start must be before end")
        return v

