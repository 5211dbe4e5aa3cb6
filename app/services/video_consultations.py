"""Video consultation rooms for Plus doctors.

A doctor opens a room for a confirmed appointment. The patient can only get in
after the doctor has joined, and ending the call closes the room for good.
"""

import logging
import re
import secrets
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.appointment import Appointment, AppointmentStatus
from app.models.doctor import Doctor
from app.models.user import User
from app.models.video_consultation import VideoConsultation

logger = logging.getLogger(__name__)

OPEN_STATUSES = ("scheduled", "active")
ROOM_NAME_MAX_LENGTH = 41

_ROOM_NAME_RE = re.compile(r"[^a-z0-9-]")


class VideoConsultationError(ValueError):
    pass


class RoomNotFoundError(VideoConsultationError):
    pass


def sanitize_room_name(name: str) -> str:
    """Lowercase letters, digits and dashes only; meeting hosts reject the rest."""
    return _ROOM_NAME_RE.sub("-", name.lower())[:ROOM_NAME_MAX_LENGTH]


def generate_room_name(doctor_id: UUID, appointment_id: UUID) -> str:
    return sanitize_room_name(
        f"consulta-{str(doctor_id)[:8]}-{str(appointment_id)[:8]}-{secrets.token_hex(4)}"
    )


async def get_room(db: AsyncSession, room_name: str) -> Optional[VideoConsultation]:
    result = await db.execute(
        select(VideoConsultation).where(VideoConsultation.room_name == sanitize_room_name(room_name))
    )
    return result.scalar_one_or_none()


async def list_doctor_rooms(db: AsyncSession, doctor_id: UUID) -> List[VideoConsultation]:
    result = await db.execute(
        select(VideoConsultation)
        .where(VideoConsultation.doctor_id == doctor_id)
        .order_by(VideoConsultation.created_at.desc())
    )
    return list(result.scalars().all())


async def create_room(
    db: AsyncSession,
    doctor: Doctor,
    appointment_id: UUID,
    notes: Optional[str] = None,
) -> VideoConsultation:
    """Open a room for one of the doctor's confirmed appointments."""
    result = await db.execute(select(Appointment).where(Appointment.id == appointment_id))
    appointment = result.scalar_one_or_none()
    if appointment is None or appointment.doctor_id != doctor.id:
        raise RoomNotFoundError("Appointment not found")
    if appointment.status not in (AppointmentStatus.SCHEDULED, AppointmentStatus.RESCHEDULED):
        raise VideoConsultationError("Only confirmed appointments can have a video room")

    existing = await db.execute(
        select(VideoConsultation.id).where(
            VideoConsultation.appointment_id == appointment.id,
            VideoConsultation.status.in_(OPEN_STATUSES),
        )
    )
    if existing.first() is not None:
        raise VideoConsultationError("This appointment already has an open video room")

    hour, minute = (int(part) for part in appointment.appointment_time.split(":"))
    room = VideoConsultation(
        doctor_id=doctor.id,
        appointment_id=appointment.id,
        patient_user_id=appointment.patient_user_id,
        patient_name=appointment.patient_name,
        room_name=generate_room_name(doctor.id, appointment.id),
        scheduled_at=datetime.combine(appointment.appointment_date, datetime.min.time()).replace(
            hour=hour, minute=minute
        ),
        notes=notes,
        status="scheduled",
        doctor_joined=False,
    )
    db.add(room)
    await db.commit()
    await db.refresh(room)

    logger.info("Video room %s created for appointment %s", room.room_name, appointment.id)
    return room


async def mark_doctor_joined(db: AsyncSession, room: VideoConsultation) -> VideoConsultation:
    if room.status not in OPEN_STATUSES:
        raise VideoConsultationError("This video room is closed")

    room.doctor_joined = True
    room.doctor_joined_at = datetime.utcnow()
    room.status = "active"
    await db.commit()
    await db.refresh(room)

    logger.info("Doctor %s joined video room %s", room.doctor_id, room.room_name)
    return room


async def end_room(db: AsyncSession, room: VideoConsultation) -> VideoConsultation:
    """The doctor left: close the room so nobody else can enter."""
    if room.status not in OPEN_STATUSES:
        raise VideoConsultationError("This video room is closed")

    room.doctor_joined = False
    room.doctor_left_at = datetime.utcnow()
    room.status = "completed"
    await db.commit()
    await db.refresh(room)

    logger.info("Video room %s completed", room.room_name)
    return room


def validate_room_access(
    room: Optional[VideoConsultation],
    user: User,
    doctor: Optional[Doctor] = None,
) -> Dict[str, Any]:
    """Decide whether ``user`` may enter ``room``.

    Superadmins always can. A doctor only enters their own rooms. A patient
    only enters the room booked for them, and only once the doctor is in.
    """
    if room is None:
        return {"valid": False, "message": "Room not found"}
    if room.status not in OPEN_STATUSES:
        return {"valid": False, "message": "This video room is not available"}

    if user.role == "superadmin":
        return {"valid": True, "message": None}

    if user.role == "doctor":
        if doctor is not None and room.doctor_id == doctor.id:
            return {"valid": True, "message": None}
        return {"valid": False, "message": "This room does not belong to your account"}

    if room.patient_user_id is None or room.patient_user_id != user.id:
        return {"valid": False, "message": "You do not have access to this room"}
    if not room.doctor_joined:
        return {"valid": False, "message": "The doctor has not started the consultation yet. Please wait."}
    return {"valid": True, "message": None}
