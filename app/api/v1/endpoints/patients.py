"""A doctor's patient list."""

import logging
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import require_feature
from app.models.doctor import Doctor
from app.models.patient import Patient
from app.schemas.patient import PatientCreate, PatientOut

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=List[PatientOut])
async def list_patients(
    doctor: Doctor = Depends(require_feature("patients")),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Patient).where(Patient.doctor_id == doctor.id).order_by(Patient.name)
    )
    return result.scalars().all()


@router.post("", response_model=PatientOut, status_code=201)
async def create_patient(
    body: PatientCreate,
    doctor: Doctor = Depends(require_feature("nuevo-paciente")),
    db: AsyncSession = Depends(get_db),
):
    patient = Patient(doctor_id=doctor.id, **body.model_dump())
    db.add(patient)
    await db.commit()
    await db.refresh(patient)
    logger.info("Doctor %s registered patient %s", doctor.id, patient.id)
    return patient
