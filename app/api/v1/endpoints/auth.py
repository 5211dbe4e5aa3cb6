"""Authentication endpoints."""

import logging
from datetime import datetime
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user
from app.models.doctor import Doctor
from app.models.user import User
from app.schemas.auth import UserRegister, UserLogin, Token, UserOut
from app.services.auth import (
    hash_password,
    authenticate_user,
    create_access_token,
    get_user_by_email,
)
from app.services.doctors import unique_slug

router = APIRouter()
logger = logging.getLogger(__name__)


async def _doctor_id_for(db: AsyncSession, user: User):
    if user.role != "doctor":
        return None
    result = await db.execute(select(Doctor.id).where(Doctor.user_id == user.id))
    return result.scalar_one_or_none()


@router.post("/register", response_model=Token, status_code=201)
async def register(user_data: UserRegister, db: AsyncSession = Depends(get_db)):
    """Register a patient or a doctor.

    Doctors also get an unverified draft profile; it stays out of the public
    directory until it is complete and verified by a superadmin.
    """
    existing_user = await get_user_by_email(db, user_data.email)
    if existing_user:
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(
        email=user_data.email.lower(),
        hashed_password=hash_password(user_data.password),
        full_name=user_data.full_name,
        phone=user_data.phone,
        role=user_data.role,
        is_active=True,
        last_login_at=datetime.utcnow(),
    )
    db.add(user)
    await db.flush()

    doctor_id = None
    if user.role == "doctor":
        doctor = Doctor(
            user_id=user.id,
            slug=await unique_slug(db, user_data.full_name),
            name=user_data.full_name,
            gender=user_data.gender,
            specialty=user_data.specialty,
            phone=user_data.phone,
            email=user.email,
            verified=False,
            profile_complete=False,
        )
        db.add(doctor)
        await db.flush()
        doctor_id = doctor.id

    await db.commit()
    await db.refresh(user)

    logger.info("User registered: %s (%s)", user.email, user.role)

    return Token(
        access_token=create_access_token(user),
        user_id=user.id,
        role=user.role,
        full_name=user.full_name,
        email=user.email,
        doctor_id=doctor_id,
    )


@router.post("/login", response_model=Token)
async def login(credentials: UserLogin, db: AsyncSession = Depends(get_db)):
    user = await authenticate_user(db, credentials.email, credentials.password)
    if not user:
        logger.warning("Failed login attempt for %s", credentials.email)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="User account is disabled")

    user.last_login_at = datetime.utcnow()
    await db.commit()

    return Token(
        access_token=create_access_token(user),
        user_id=user.id,
        role=user.role,
        full_name=user.full_name,
        email=user.email,
        doctor_id=await _doctor_id_for(db, user),
    )


@router.get("/me", response_model=UserOut)
async def me(current_user: User = Depends(get_current_user)):
    return current_user
