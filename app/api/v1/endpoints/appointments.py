"""Appointment endpoints: public booking plus the doctor's agenda workflow."""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user_optional, require_feature, require_patient
from app.models.appointment import Appointment, AppointmentStatus
from app.models.doctor import Doctor
from app.models.user import User
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentOut,
    AppointmentReason,
    AppointmentReschedule,
    AvailableSlotsResponse,
)
from app.services import appointments as appointment_service
from app.services.appointments import AppointmentError, SlotUnavailableError
from app.services.doctors import format_doctor_name, get_doctor
from app.services.email_service import email_service

router = APIRouter()
logger = logging.getLogger(__name__)

require_appointments = require_feature("appointments")


async def _bookable_doctor(db: AsyncSession, doctor_id: UUID) -> Doctor:
    doctor = await get_doctor(db, doctor_id)
    if not doctor or not doctor.verified:
        raise HTTPException(status_code=404, detail="Doctor not found")
    return doctor


async def _own_appointment(db: AsyncSession, appointment_id: UUID, doctor: Doctor) -> Appointment:
    appointment = await appointment_service.get_appointment(db, appointment_id)
    if not appointment or appointment.doctor_id != doctor.id:
        raise HTTPException(status_code=404, detail="Appointment not found")
    return appointment


async def _notify_patient(appointment: Appointment, doctor: Doctor, reason: Optional[str] = None) -> None:
    if not appointment.patient_email:
        return
    await email_service.send_appointment_status(
        patient_email=appointment.patient_email,
        patient_name=appointment.patient_name,
        doctor_name=format_doctor_name(doctor.name, doctor.gender),
        appointment_date=appointment.appointment_date.isoformat(),
        appointment_time=appointment.appointment_time,
        status=appointment.status.value,
        reason=reason,
    )


# ============================================================================
# PUBLIC
# ============================================================================

@router.get("/available-slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    doctor_id: UUID = Query(...),
    date: date = Query(..., description="YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db),
):
    """Bookable HH:MM slots for a doctor on a date."""
    doctor = await _bookable_doctor(db, doctor_id)
    slots = await appointment_service.available_slots(db, doctor, date)
    return AvailableSlotsResponse(doctor_id=doctor.id, date=date, slots=slots)


@router.post("", response_model=AppointmentOut, status_code=201)
async def book_appointment(
    booking: AppointmentCreate,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    """Request an appointment. It stays pending until the doctor approves it."""
    doctor = await _bookable_doctor(db, booking.doctor_id)

    try:
        appointment = await appointment_service.create_appointment(
            db,
            doctor,
            appointment_date=booking.appointment_date,
            appointment_time=booking.appointment_time,
            patient_name=booking.patient_name,
            patient_email=booking.patient_email or (current_user.email if current_user else None),
            patient_phone=booking.patient_phone,
            reason=booking.reason,
            patient_user_id=current_user.id if current_user else None,
        )
    except SlotUnavailableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except AppointmentError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if appointment.patient_email:
        await email_service.send_appointment_request(
            patient_email=appointment.patient_email,
            patient_name=appointment.patient_name,
            doctor_name=format_doctor_name(doctor.name, doctor.gender),
            appointment_date=appointment.appointment_date.isoformat(),
            appointment_time=appointment.appointment_time,
        )

    return appointment


# ============================================================================
# PATIENT
# ============================================================================

@router.get("/mine", response_model=List[AppointmentOut])
async def list_my_appointments(
    current_user: User = Depends(require_patient),
    db: AsyncSession = Depends(get_db),
):
    return await appointment_service.list_patient_appointments(db, current_user.id)


@router.post("/mine/{appointment_id}/cancel", response_model=AppointmentOut)
async def cancel_my_appointment(
    appointment_id: UUID,
    body: AppointmentReason,
    current_user: User = Depends(require_patient),
    db: AsyncSession = Depends(get_db),
):
    appointment = await appointment_service.get_appointment(db, appointment_id)
    if not appointment or appointment.patient_user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Appointment not found")
    try:
        return await appointment_service.change_status(
            db, appointment, AppointmentStatus.CANCELLED, reason=body.reason, cancelled_by="patient",
        )
    except AppointmentError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ============================================================================
# DOCTOR AGENDA
# ============================================================================

@router.get("", response_model=List[AppointmentOut])
async def list_appointments(
    status: Optional[AppointmentStatus] = Query(None),
    from_date: Optional[date] = Query(None),
    doctor: Doctor = Depends(require_appointments),
    db: AsyncSession = Depends(get_db),
):
    return await appointment_service.list_doctor_appointments(db, doctor.id, status=status, from_date=from_date)


@router.get("/pending", response_model=List[AppointmentOut])
async def list_pending(
    doctor: Doctor = Depends(require_appointments),
    db: AsyncSession = Depends(get_db),
):
    return await appointment_service.list_doctor_appointments(db, doctor.id, status=AppointmentStatus.PENDING)


async def _transition(
    db: AsyncSession,
    appointment_id: UUID,
    doctor: Doctor,
    target: AppointmentStatus,
    reason: Optional[str] = None,
    notify: bool = True,
) -> Appointment:
    appointment = await _own_appointment(db, appointment_id, doctor)
    try:
        appointment = await appointment_service.change_status(
            db, appointment, target, reason=reason,
            cancelled_by="doctor" if target == AppointmentStatus.CANCELLED else None,
        )
    except AppointmentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if notify:
        await _notify_patient(appointment, doctor, reason)
    return appointment


@router.post("/{appointment_id}/approve", response_model=AppointmentOut)
async def approve_appointment(
    appointment_id: UUID,
    doctor: Doctor = Depends(require_appointments),
    db: AsyncSession = Depends(get_db),
):
    return await _transition(db, appointment_id, doctor, AppointmentStatus.SCHEDULED)


@router.post("/{appointment_id}/reject", response_model=AppointmentOut)
async def reject_appointment(
    appointment_id: UUID,
    body: AppointmentReason,
    doctor: Doctor = Depends(require_appointments),
    db: AsyncSession = Depends(get_db),
):
    return await _transition(db, appointment_id, doctor, AppointmentStatus.REJECTED, reason=body.reason)


@router.post("/{appointment_id}/cancel", response_model=AppointmentOut)
async def cancel_appointment(
    appointment_id: UUID,
    body: AppointmentReason,
    doctor: Doctor = Depends(require_appointments),
    db: AsyncSession = Depends(get_db),
):
    return await _transition(db, appointment_id, doctor, AppointmentStatus.CANCELLED, reason=body.reason)


@router.post("/{appointment_id}/complete", response_model=AppointmentOut)
async def complete_appointment(
    appointment_id: UUID,
    doctor: Doctor = Depends(require_appointments),
    db: AsyncSession = Depends(get_db),
):
    return await _transition(db, appointment_id, doctor, AppointmentStatus.COMPLETED, notify=False)


@router.post("/{appointment_id}/reschedule", response_model=AppointmentOut)
async def reschedule_appointment(
    appointment_id: UUID,
    body: AppointmentReschedule,
    doctor: Doctor = Depends(require_appointments),
    db: AsyncSession = Depends(get_db),
):
    appointment = await _own_appointment(db, appointment_id, doctor)
    try:
        appointment = await appointment_service.reschedule(
            db, appointment, doctor, body.appointment_date, body.appointment_time,
        )
    except SlotUnavailableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except AppointmentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    await _notify_patient(appointment, doctor)
    return appointment
