"""Pydantic schemas for Appointments."""

import re
from datetime import datetime, date
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from app.models.appointment import AppointmentStatus

_SLOT_RE = re.compile(r"^\d{2}:\d{2}$")


def _check_slot(v: str) -> str:
    if not _SLOT_RE.match(v):
        raise ValueError("Time must be HH:MM")
    return v


class AppointmentCreate(BaseModel):
    """Booking request from the public profile page."""
    doctor_id: UUID
    appointment_date: date
    appointment_time: str  # "09:15"
    patient_name: str = Field(..., min_length=1)
    patient_email: Optional[EmailStr] = None
    patient_phone: Optional[str] = None
    reason: Optional[str] = None

    @field_validator("appointment_time")
    @classmethod
    def valid_slot(cls, v: str) -> str:
        return _check_slot(v)


class AppointmentOut(BaseModel):
    id: UUID
    doctor_id: UUID
    patient_user_id: Optional[UUID] = None
    patient_name: str
    patient_email: Optional[str] = None
    patient_phone: Optional[str] = None
    appointment_date: date
    appointment_time: str
    duration_minutes: int
    reason: Optional[str] = None
    status: AppointmentStatus
    rejection_reason: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AppointmentReason(BaseModel):
    reason: Optional[str] = None


class AppointmentReschedule(BaseModel):
    appointment_date: date
    appointment_time: str

    @field_validator("appointment_time")
    @classmethod
    def valid_slot(cls, v: str) -> str:
        return _check_slot(v)


class AvailableSlotsResponse(BaseModel):
    """Schema for available slots response."""
    doctor_id: UUID
    date: date
    slots: list[str]  # ["09:00", "09:15", ...]
