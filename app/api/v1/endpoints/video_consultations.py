"""Video consultation rooms (Plus plan)."""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user, require_feature
from app.models.doctor import Doctor
from app.models.user import User
from app.models.video_consultation import VideoConsultation
from app.schemas.video_consultation import VideoAccessOut, VideoRoomCreate, VideoRoomOut
from app.services import video_consultations as video_service
from app.services.subscriptions import fetch_doctor_record
from app.services.video_consultations import RoomNotFoundError, VideoConsultationError

router = APIRouter()
logger = logging.getLogger(__name__)

require_video = require_feature("video-consultation")


async def _own_room(db: AsyncSession, room_name: str, doctor: Doctor) -> VideoConsultation:
    room = await video_service.get_room(db, room_name)
    if not room or room.doctor_id != doctor.id:
        raise HTTPException(status_code=404, detail="Video room not found")
    return room


@router.post("", response_model=VideoRoomOut, status_code=201)
async def create_room(
    body: VideoRoomCreate,
    doctor: Doctor = Depends(require_video),
    db: AsyncSession = Depends(get_db),
):
    """Open a video room for a confirmed appointment."""
    try:
        return await video_service.create_room(db, doctor, body.appointment_id, notes=body.notes)
    except RoomNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except VideoConsultationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=List[VideoRoomOut])
async def list_rooms(
    doctor: Doctor = Depends(require_video),
    db: AsyncSession = Depends(get_db),
):
    return await video_service.list_doctor_rooms(db, doctor.id)


@router.post("/{room_name}/join", response_model=VideoRoomOut)
async def join_room(
    room_name: str,
    doctor: Doctor = Depends(require_video),
    db: AsyncSession = Depends(get_db),
):
    """The doctor enters the room, which lets the patient in."""
    room = await _own_room(db, room_name, doctor)
    try:
        return await video_service.mark_doctor_joined(db, room)
    except VideoConsultationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{room_name}/end", response_model=VideoRoomOut)
async def end_room(
    room_name: str,
    doctor: Doctor = Depends(require_video),
    db: AsyncSession = Depends(get_db),
):
    room = await _own_room(db, room_name, doctor)
    try:
        return await video_service.end_room(db, room)
    except VideoConsultationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{room_name}/access", response_model=VideoAccessOut)
async def check_room_access(
    room_name: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Whether the caller may enter the room right now."""
    room = await video_service.get_room(db, room_name)
    doctor = None
    if current_user.role == "doctor":
        doctor = await fetch_doctor_record(db, current_user.id)

    access = video_service.validate_room_access(room, current_user, doctor)
    if not access["valid"]:
        logger.info("User %s denied access to video room %s: %s", current_user.id, room_name, access["message"])
        return VideoAccessOut(**access)
    return VideoAccessOut(**access, join_url=room.join_url)
