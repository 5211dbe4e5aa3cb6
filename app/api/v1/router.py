from fastapi import APIRouter
from app.api.v1.endpoints import (
    admin,
    appointments,
    auth,
    billing,
    doctors,
    patients,
    reviews,
    subscriptions,
    video_consultations,
)

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(doctors.router, prefix="/doctors", tags=["doctors"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["appointments"])
api_router.include_router(subscriptions.router, prefix="/subscriptions", tags=["subscriptions"])
api_router.include_router(billing.router, prefix="/billing", tags=["billing"])
api_router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
api_router.include_router(patients.router, prefix="/patients", tags=["patients"])
api_router.include_router(video_consultations.router, prefix="/video-consultations", tags=["video-consultations"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
