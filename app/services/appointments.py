"""Appointment booking and the doctor-side status workflow."""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.appointment import Appointment, AppointmentStatus, BLOCKING_STATUSES
from app.models.doctor import Doctor
from app.services.scheduling import candidate_slots_for_date, get_available_slots

logger = logging.getLogger(__name__)

# status -> statuses it may move to
TRANSITIONS = {
    AppointmentStatus.PENDING: {
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.REJECTED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.RESCHEDULED,
    },
    AppointmentStatus.SCHEDULED: {
        AppointmentStatus.CANCELLED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.RESCHEDULED,
    },
    AppointmentStatus.RESCHEDULED: {
        AppointmentStatus.CANCELLED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.RESCHEDULED,
    },
}


class AppointmentError(ValueError):
    """Invalid booking or status change."""


class SlotUnavailableError(AppointmentError):
    """The requested slot is already taken."""


async def fetch_booked_slots(db: AsyncSession, doctor_id: UUID, target_date: date) -> List[str]:
    result = await db.execute(
        select(Appointment.appointment_time).where(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == target_date,
            Appointment.status.in_(BLOCKING_STATUSES),
        )
    )
    return [row[0] for row in result.all()]


async def available_slots(db: AsyncSession, doctor: Doctor, target_date: date) -> List[str]:
    async def _booked(doctor_id, day):
        return await fetch_booked_slots(db, doctor_id, day)

    return await get_available_slots(doctor, target_date, _booked)


async def _ensure_slot_free(
    db: AsyncSession,
    doctor: Doctor,
    target_date: date,
    time_slot: str,
    exclude_id: Optional[UUID] = None,
) -> None:
    if time_slot not in candidate_slots_for_date(doctor, target_date):
        raise AppointmentError("Selected time is outside the doctor's working hours")

    query = select(Appointment.id).where(
        Appointment.doctor_id == doctor.id,
        Appointment.appointment_date == target_date,
        Appointment.appointment_time == time_slot,
        Appointment.status.in_(BLOCKING_STATUSES),
    )
    if exclude_id is not None:
        query = query.where(Appointment.id != exclude_id)
    result = await db.execute(query)
    if result.first() is not None:
        raise SlotUnavailableError("This time slot is no longer available")


async def _commit_slot(db: AsyncSession) -> None:
    """Commit a booking; a concurrent claim on the same slot trips the unique index."""
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning("Slot claimed concurrently, rejecting booking: %s", e.orig)
        raise SlotUnavailableError("This time slot is no longer available") from e


async def create_appointment(
    db: AsyncSession,
    doctor: Doctor,
    appointment_date: date,
    appointment_time: str,
    patient_name: str,
    patient_email: Optional[str] = None,
    patient_phone: Optional[str] = None,
    reason: Optional[str] = None,
    patient_user_id: Optional[UUID] = None,
) -> Appointment:
    """Book a pending appointment after re-checking the slot."""
    if appointment_date < date.today():
        raise AppointmentError("Cannot book an appointment in the past")

    await _ensure_slot_free(db, doctor, appointment_date, appointment_time)

    appointment = Appointment(
        doctor_id=doctor.id,
        patient_user_id=patient_user_id,
        patient_name=patient_name,
        patient_email=patient_email,
        patient_phone=patient_phone,
        appointment_date=appointment_date,
        appointment_time=appointment_time,
        reason=reason,
        status=AppointmentStatus.PENDING,
    )
    db.add(appointment)
    await _commit_slot(db)
    await db.refresh(appointment)

    logger.info(
        "Appointment %s requested with doctor %s on %s at %s",
        appointment.id, doctor.id, appointment_date, appointment_time,
    )
    return appointment


async def list_doctor_appointments(
    db: AsyncSession,
    doctor_id: UUID,
    status: Optional[AppointmentStatus] = None,
    from_date: Optional[date] = None,
) -> List[Appointment]:
    query = select(Appointment).where(Appointment.doctor_id == doctor_id)
    if status is not None:
        query = query.where(Appointment.status == status)
    if from_date is not None:
        query = query.where(Appointment.appointment_date >= from_date)
    query = query.order_by(Appointment.appointment_date, Appointment.appointment_time)
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_patient_appointments(db: AsyncSession, patient_user_id: UUID) -> List[Appointment]:
    result = await db.execute(
        select(Appointment)
        .where(Appointment.patient_user_id == patient_user_id)
        .order_by(Appointment.appointment_date.desc(), Appointment.appointment_time.desc())
    )
    return list(result.scalars().all())


async def get_appointment(db: AsyncSession, appointment_id: UUID) -> Optional[Appointment]:
    result = await db.execute(select(Appointment).where(Appointment.id == appointment_id))
    return result.scalar_one_or_none()


def _check_transition(appointment: Appointment, target: AppointmentStatus) -> None:
    if target not in TRANSITIONS.get(appointment.status, set()):
        raise AppointmentError(
            f"Cannot change appointment from {appointment.status.value} to {target.value}"
        )


async def change_status(
    db: AsyncSession,
    appointment: Appointment,
    target: AppointmentStatus,
    reason: Optional[str] = None,
    cancelled_by: Optional[str] = None,
) -> Appointment:
    """Move an appointment along the workflow (approve, reject, cancel, complete)."""
    _check_transition(appointment, target)

    previous = appointment.status
    appointment.status = target
    if target == AppointmentStatus.REJECTED:
        appointment.rejection_reason = reason
    elif target == AppointmentStatus.CANCELLED:
        appointment.cancellation_reason = reason
        appointment.cancelled_by = cancelled_by

    await db.commit()
    await db.refresh(appointment)

    logger.info("Appointment %s: %s -> %s", appointment.id, previous.value, target.value)
    return appointment


async def reschedule(
    db: AsyncSession,
    appointment: Appointment,
    doctor: Doctor,
    new_date: date,
    new_time: str,
) -> Appointment:
    _check_transition(appointment, AppointmentStatus.RESCHEDULED)
    await _ensure_slot_free(db, doctor, new_date, new_time, exclude_id=appointment.id)

    appointment.appointment_date = new_date
    appointment.appointment_time = new_time
    appointment.status = AppointmentStatus.RESCHEDULED

    await _commit_slot(db)
    await db.refresh(appointment)

    logger.info("Appointment %s rescheduled to %s %s", appointment.id, new_date, new_time)
    return appointment
