"""Import every model so Base.metadata knows all tables."""

from app.models.user import User
from app.models.doctor import Doctor
from app.models.subscription_plan import SubscriptionPlan
from app.models.subscription import Subscription, SubscriptionStatus
from app.models.payment import Payment
from app.models.patient import Patient
from app.models.appointment import Appointment, AppointmentStatus
from app.models.review import Review
from app.models.admin_audit_log import AdminAuditLog
from app.models.video_consultation import VideoConsultation

__all__ = [
    "User",
    "Doctor",
    "SubscriptionPlan",
    "Subscription",
    "SubscriptionStatus",
    "Payment",
    "Patient",
    "Appointment",
    "AppointmentStatus",
    "Review",
    "AdminAuditLog",
    "VideoConsultation",
]
