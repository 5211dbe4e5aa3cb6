"""FastAPI dependencies for authentication, roles and plan features."""

from typing import Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import feature_locked_exception
from app.core.permissions import has_feature_access, required_tier_for
from app.models.doctor import Doctor
from app.models.user import User
from app.services.access import get_user_tier
from app.services.auth import decode_access_token

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


async def _user_from_token(token: str, db: AsyncSession) -> Optional[User]:
    payload = decode_access_token(token)
    if not payload:
        return None
    try:
        user_id = UUID(payload.get("sub") or "")
    except ValueError:
        return None
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extract and validate the current user from the bearer token."""
    user = await _user_from_token(credentials.credentials, db)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    return user


async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but anonymous requests get None."""
    if not credentials:
        return None
    user = await _user_from_token(credentials.credentials, db)
    if user and user.is_active:
        return user
    return None


def require_role(*roles: str):
    """Dependency factory that checks if user has one of the required roles.

    Usage:
        @router.get("/admin-only")
        async def admin_route(user: User = Depends(require_superadmin)):
            ...
    """
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join(roles)}",
            )
        return current_user

    return role_checker


require_superadmin = require_role("superadmin")
require_doctor_role = require_role("doctor")
require_patient = require_role("patient")


async def get_current_doctor(
    current_user: User = Depends(require_doctor_role),
    db: AsyncSession = Depends(get_db),
) -> Doctor:
    """The doctor profile owned by the logged-in doctor."""
    result = await db.execute(select(Doctor).where(Doctor.user_id == current_user.id))
    doctor = result.scalar_one_or_none()
    if doctor is None:
        raise HTTPException(status_code=404, detail="Doctor profile not found")
    return doctor


def require_feature(feature: str):
    """Dependency factory gating a route on the user's plan.

    Usage:
        @router.get("/patients")
        async def list_patients(doctor: Doctor = Depends(require_feature("patients"))):
            ...
    """
    async def feature_checker(
        doctor: Doctor = Depends(get_current_doctor),
        db: AsyncSession = Depends(get_db),
    ) -> Doctor:
        tier = await get_user_tier(db, doctor.user_id)
        if not has_feature_access(tier, feature):
            raise feature_locked_exception(feature, required_tier_for(feature), tier)
        return doctor

    return feature_checker
