"""Patient reviews and doctor rating summaries."""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.appointment import Appointment, AppointmentStatus
from app.models.review import Review

logger = logging.getLogger(__name__)

ASPECTS = ("punctuality", "attention", "explanation", "facilities")


class ReviewError(ValueError):
    pass


def summarize_ratings(reviews: List[Review]) -> Dict[str, Any]:
    """Average rating (one decimal), count, and per-aspect averages."""
    if not reviews:
        return {"average": 0.0, "count": 0, "aspects": {aspect: None for aspect in ASPECTS}}

    average = round(sum(r.rating for r in reviews) / len(reviews), 1)

    aspects: Dict[str, Optional[float]] = {}
    for aspect in ASPECTS:
        values = [r.aspects[aspect] for r in reviews if r.aspects and r.aspects.get(aspect)]
        aspects[aspect] = round(sum(values) / len(values), 1) if values else None

    return {"average": average, "count": len(reviews), "aspects": aspects}


async def list_doctor_reviews(db: AsyncSession, doctor_id: UUID) -> List[Review]:
    result = await db.execute(
        select(Review).where(Review.doctor_id == doctor_id).order_by(Review.created_at.desc())
    )
    return list(result.scalars().all())


async def create_review(
    db: AsyncSession,
    patient_user_id: UUID,
    appointment_id: UUID,
    rating: int,
    comment: Optional[str] = None,
    aspects: Optional[Dict[str, int]] = None,
) -> Review:
    """One review per completed appointment, by the patient who attended it."""
    result = await db.execute(select(Appointment).where(Appointment.id == appointment_id))
    appointment = result.scalar_one_or_none()
    if appointment is None or appointment.patient_user_id != patient_user_id:
        raise ReviewError("Appointment not found")
    if appointment.status != AppointmentStatus.COMPLETED:
        raise ReviewError("Only completed appointments can be reviewed")

    existing = await db.execute(select(Review.id).where(Review.appointment_id == appointment_id))
    if existing.first() is not None:
        raise ReviewError("This appointment has already been reviewed")

    review = Review(
        doctor_id=appointment.doctor_id,
        patient_user_id=patient_user_id,
        appointment_id=appointment_id,
        rating=rating,
        comment=comment,
        aspects={k: v for k, v in (aspects or {}).items() if k in ASPECTS},
    )
    db.add(review)
    await db.commit()
    await db.refresh(review)

    logger.info("Review %s added for doctor %s (rating %s)", review.id, review.doctor_id, rating)
    return review
