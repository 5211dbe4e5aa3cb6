"""Patient reviews."""

import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import require_feature, require_patient
from app.models.doctor import Doctor
from app.models.user import User
from app.schemas.review import DoctorReviews, RatingSummary, ReviewCreate, ReviewOut
from app.services import reviews as review_service
from app.services.doctors import get_doctor_by_slug
from app.services.reviews import ReviewError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=ReviewOut, status_code=201)
async def create_review(
    body: ReviewCreate,
    current_user: User = Depends(require_patient),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await review_service.create_review(
            db,
            patient_user_id=current_user.id,
            appointment_id=body.appointment_id,
            rating=body.rating,
            comment=body.comment,
            aspects=body.aspects,
        )
    except ReviewError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/mine", response_model=DoctorReviews)
async def get_my_reviews(
    doctor: Doctor = Depends(require_feature("reviews")),
    db: AsyncSession = Depends(get_db),
):
    """Reviews left on the logged-in doctor's profile."""
    reviews = await review_service.list_doctor_reviews(db, doctor.id)
    return DoctorReviews(
        summary=RatingSummary(**review_service.summarize_ratings(reviews)),
        reviews=reviews,
    )


@router.get("/doctor/{slug}", response_model=DoctorReviews)
async def get_doctor_reviews(slug: str, db: AsyncSession = Depends(get_db)):
    doctor = await get_doctor_by_slug(db, slug)
    if not doctor:
        raise HTTPException(status_code=404, detail="Doctor not found")
    reviews = await review_service.list_doctor_reviews(db, doctor.id)
    return DoctorReviews(
        summary=RatingSummary(**review_service.summarize_ratings(reviews)),
        reviews=reviews,
    )
