from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel


class VideoRoomCreate(BaseModel):
    appointment_id: UUID
    notes: Optional[str] = None


class VideoRoomOut(BaseModel):
    id: UUID
    doctor_id: UUID
    appointment_id: UUID
    patient_user_id: Optional[UUID] = None
    patient_name: str
    room_name: str
    join_url: str
    scheduled_at: Optional[datetime] = None
    notes: Optional[str] = None
    status: str
    doctor_joined: bool
    doctor_joined_at: Optional[datetime] = None
    doctor_left_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VideoAccessOut(BaseModel):
    """Result of checking whether the caller may enter a room."""
    valid: bool
    message: Optional[str] = None
    join_url: Optional[str] = None
