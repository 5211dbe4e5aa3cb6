from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
from app.core.config import settings
from app.core.database import Base


class VideoConsultation(Base):
    """A video room opened by a doctor for one of their appointments."""
    __tablename__ = "video_consultations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    doctor_id = Column(UUID(as_uuid=True), ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    appointment_id = Column(UUID(as_uuid=True), ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    patient_name = Column(String, nullable=False)
    room_name = Column(String(41), unique=True, nullable=False, index=True)
    scheduled_at = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="scheduled")  # scheduled, active, completed, cancelled

    # Patients can only enter once the doctor is in the room
    doctor_joined = Column(Boolean, nullable=False, default=False)
    doctor_joined_at = Column(DateTime, nullable=True)
    doctor_left_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def join_url(self) -> str:
        return f"{settings.VIDEO_BASE_URL.rstrip('/')}/{self.room_name}"
