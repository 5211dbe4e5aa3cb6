from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID
from pydantic import BaseModel, Field, conint

Score = conint(ge=1, le=5)


class ReviewCreate(BaseModel):
    appointment_id: UUID
    rating: Score
    comment: Optional[str] = None
    aspects: Optional[Dict[str, Score]] = None  # punctuality, attention, explanation, facilities


class ReviewOut(BaseModel):
    id: UUID
    doctor_id: UUID
    appointment_id: UUID
    rating: int
    comment: Optional[str] = None
    aspects: Optional[Dict[str, int]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RatingSummary(BaseModel):
    average: float
    count: int
    aspects: Dict[str, Optional[float]]


class DoctorReviews(BaseModel):
    summary: RatingSummary
    reviews: List[ReviewOut]
