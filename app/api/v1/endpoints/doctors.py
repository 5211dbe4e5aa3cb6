"""Doctor directory and profile endpoints."""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_doctor, require_feature
from app.models.doctor import Doctor
from app.schemas.doctor import (
    DoctorCard,
    DoctorList,
    DoctorOwnProfile,
    DoctorProfile,
    DoctorProfileUpdate,
    WorkingHoursUpdate,
)
from app.services import doctors as doctor_service
from app.services.reviews import list_doctor_reviews, summarize_ratings

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=DoctorList)
async def list_doctors(
    specialty: Optional[str] = Query(None),
    q: Optional[str] = Query(None, description="Search name, specialty or location"),
    location: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Public directory, VIP doctors first."""
    doctors, total = await doctor_service.search_doctors(
        db, specialty=specialty, q=q, location=location, page=page, page_size=page_size,
    )
    return DoctorList(
        doctors=[DoctorCard(**doctor_service.doctor_card(d)) for d in doctors],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/specialties", response_model=list[str])
async def list_specialties(db: AsyncSession = Depends(get_db)):
    return await doctor_service.list_specialties(db)


@router.get("/me", response_model=DoctorOwnProfile)
async def get_own_profile(doctor: Doctor = Depends(get_current_doctor)):
    return doctor


@router.put("/me", response_model=DoctorOwnProfile)
async def update_own_profile(
    update: DoctorProfileUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    db: AsyncSession = Depends(get_db),
):
    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(doctor, field, value)
    doctor.profile_complete = doctor_service.is_profile_complete(doctor)

    await db.commit()
    await db.refresh(doctor)
    logger.info("Doctor %s updated profile (complete=%s)", doctor.id, doctor.profile_complete)
    return doctor


@router.put("/me/working-hours", response_model=DoctorOwnProfile)
async def update_working_hours(
    update: WorkingHoursUpdate,
    doctor: Doctor = Depends(require_feature("schedule")),
    db: AsyncSession = Depends(get_db),
):
    doctor.working_hours = {day: hours.model_dump() for day, hours in update.working_hours.items()}
    await db.commit()
    await db.refresh(doctor)
    logger.info("Doctor %s updated working hours", doctor.id)
    return doctor


@router.get("/{slug}", response_model=DoctorProfile)
async def get_doctor_profile(slug: str, db: AsyncSession = Depends(get_db)):
    doctor = await doctor_service.get_doctor_by_slug(db, slug)
    if not doctor:
        raise HTTPException(status_code=404, detail="Doctor not found")

    summary = summarize_ratings(await list_doctor_reviews(db, doctor.id))
    return DoctorProfile(
        **doctor_service.doctor_card(doctor),
        address=doctor.address,
        working_hours=doctor.working_hours,
        rating_average=summary["average"],
        rating_count=summary["count"],
    )
